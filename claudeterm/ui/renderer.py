from rich.console import Console

from claudeterm.claude.events import EventKind, StreamEvent
from claudeterm.streaming.render import StyleProfile
from claudeterm.ui.components import (
    error_panel,
    result_footer,
    session_banner,
    tool_panel,
)
from claudeterm.ui.markdown_stream import StreamingMarkdown


class VisualRenderer:
    """Renders backend events to the terminal with Rich formatting."""

    def __init__(
        self,
        console: Console,
        profile: StyleProfile | None = None,
        partial: bool = True,
        show_thinking: bool = False,
    ):
        self._console = console
        self._show_thinking = show_thinking
        self._markdown = StreamingMarkdown(console, profile, partial=partial)

    def render(self, event: StreamEvent) -> None:
        # Finish streaming markdown before rendering non-text events
        if self._markdown.is_active and not event.is_text:
            self._markdown.finish()

        if event.kind is EventKind.SESSION_INIT:
            if event.session_id:
                self._console.print(session_banner(event.session_id))

        elif event.is_text:
            if not self._markdown.is_active:
                self._markdown.start()
            self._markdown.feed(event.text)

        elif event.kind is EventKind.TOOL_START:
            self._console.print(tool_panel(event))

        elif event.kind is EventKind.ERROR:
            self._console.print(error_panel(event.text))

        elif event.kind is EventKind.RESULT:
            footer = result_footer(event)
            if footer is not None:
                self._console.print(footer)

        elif event.kind is EventKind.THINKING:
            if self._show_thinking:
                self._console.print(event.text, style="thinking")

    def resize(self, width: int) -> None:
        self._markdown.resize(width)

    def finalize(self) -> None:
        if self._markdown.is_active:
            self._markdown.finish()


class NullRenderer:
    """No-op renderer."""

    def render(self, event: StreamEvent) -> None:
        pass

    def resize(self, width: int) -> None:
        pass

    def finalize(self) -> None:
        pass
