import logging

from rich.console import Console

from claudeterm.streaming.errors import StreamRenderError
from claudeterm.streaming.render import StyleProfile
from claudeterm.streaming.renderer import StreamRenderer
from claudeterm.streaming.sinks import console_sink, drain
from claudeterm.ui.components import error_panel

logger = logging.getLogger(__name__)


class StreamingMarkdown:
    """Feeds streamed text into a StreamRenderer that writes to the console.

    If rendering fails mid-response the error is shown once and the rest of
    that response is printed as plain text.
    """

    def __init__(
        self,
        console: Console,
        profile: StyleProfile | None = None,
        partial: bool = True,
    ):
        self._console = console
        self._profile = profile
        self._partial = partial
        self._renderer: StreamRenderer | None = None
        self._sink = None
        self._failed = False

    def start(self) -> None:
        self._failed = False
        self._sink = console_sink(self._console)
        self._renderer = StreamRenderer(
            self._sink,
            self._profile,
            width=self._console.width,
            # Previews need a cursor to retract them.
            partial=self._partial and self._console.is_terminal,
        )

    def feed(self, text: str) -> None:
        if self._renderer is None:
            return
        if self._failed:
            self._console.out(text, end="", highlight=False)
            return
        try:
            self._renderer.write(text)
        except StreamRenderError as e:
            self._fail(e)

    def resize(self, width: int) -> None:
        if self._renderer is None or self._failed:
            return
        try:
            self._renderer.resize(width)
        except StreamRenderError as e:
            self._fail(e)

    def finish(self) -> None:
        if self._renderer is None:
            return
        renderer, self._renderer = self._renderer, None
        if self._failed:
            self._console.out("")
            return
        try:
            renderer.close()
            drain(self._sink)
        except StreamRenderError as e:
            logger.exception("Final markdown render failed")
            self._console.print(error_panel(str(e), title="Render error"))
            self._console.out(renderer.committed_markdown, highlight=False)

    @property
    def is_active(self) -> bool:
        return self._renderer is not None

    def _fail(self, error: StreamRenderError) -> None:
        logger.exception("Streaming markdown render failed")
        self._failed = True
        self._console.print()
        self._console.print(error_panel(str(error), title="Render error"))
        # Whatever reached the renderer is already in its document or pending block.
        self._console.out(
            self._renderer.committed_markdown + self._renderer.pending_markdown,
            end="",
            highlight=False,
        )
