import re
from dataclasses import dataclass, field
from typing import Optional

from pygments.styles import get_style_by_name
from pygments.util import ClassNotFound
from rich.console import Console
from rich.errors import StyleSyntaxError
from rich.markdown import Markdown
from rich.syntax import RICH_SYNTAX_THEMES
from rich.theme import Theme

from claudeterm.streaming.errors import RendererBuildError

DEFAULT_WIDTH = 80

MULTI_NEWLINE = re.compile(r"\n{3,}")


@dataclass(frozen=True)
class StyleProfile:
    """Styling for the full-document renderer."""

    name: str
    code_theme: str = "monokai"
    color_system: Optional[str] = "truecolor"
    styles: dict[str, str] = field(default_factory=dict)


PROFILES = {
    "dark": StyleProfile(
        name="dark",
        code_theme="monokai",
        styles={
            "markdown.h1": "bold #a78bfa",
            "markdown.h2": "bold #c4b5fd",
            "markdown.code": "bold #34d399 on #1f2430",
            "markdown.link": "#7dd3fc",
            "markdown.block_quote": "italic #94a3b8",
        },
    ),
    "light": StyleProfile(
        name="light",
        code_theme="friendly",
        styles={
            "markdown.h1": "bold #5b21b6",
            "markdown.h2": "bold #6d28d9",
            "markdown.code": "bold #047857",
            "markdown.link": "#0369a1",
            "markdown.block_quote": "italic #475569",
        },
    ),
    "plain": StyleProfile(name="plain", code_theme="default", color_system=None),
}


def get_profile(name: str) -> StyleProfile:
    try:
        return PROFILES[name]
    except KeyError:
        raise RendererBuildError(
            f"unknown style profile {name!r} (choose from {', '.join(PROFILES)})"
        ) from None


def normalize_tabs(markdown: str) -> str:
    """Replace tabs with two spaces so code blocks keep within the width."""
    return markdown.replace("\t", "  ")


def collapse_newlines(rendered: str) -> str:
    """Reduce runs of three or more newlines to a single blank line."""
    return MULTI_NEWLINE.sub("\n\n", rendered)


class MarkdownRenderer:
    """Renders a complete markdown document to ANSI text at a fixed width.

    Output is deterministic for a given profile and width: the console is
    forced into terminal mode with a fixed colour system and hyperlinks are
    rendered inline, since OSC 8 link ids are random.
    """

    def __init__(self, profile: StyleProfile | None = None, width: int | None = None):
        self.profile = profile or PROFILES["dark"]
        if width is None:
            width = DEFAULT_WIDTH
        if not isinstance(width, int) or width <= 0:
            raise RendererBuildError(f"invalid render width: {width!r}")
        self.width = width

        try:
            theme = Theme(self.profile.styles)
        except StyleSyntaxError as e:
            raise RendererBuildError(f"invalid style in profile {self.profile.name!r}: {e}") from e

        code_theme = self.profile.code_theme
        if code_theme not in RICH_SYNTAX_THEMES:
            try:
                get_style_by_name(code_theme)
            except ClassNotFound:
                raise RendererBuildError(f"unknown code theme: {code_theme!r}") from None

        self._console = Console(
            width=width,
            force_terminal=True,
            force_jupyter=False,
            force_interactive=False,
            color_system=self.profile.color_system,
            theme=theme,
            legacy_windows=False,
            highlight=False,
            emoji=False,
            _environ={},
        )

    def render(self, markdown: str) -> str:
        document = Markdown(
            markdown,
            code_theme=self.profile.code_theme,
            hyperlinks=False,
        )
        with self._console.capture() as capture:
            self._console.print(document)
        return capture.get()
