from rich.console import Console
from rich.theme import Theme

from claudeterm.streaming.render import StyleProfile

UI_STYLES = {
    "tool": "cyan",
    "tool.detail": "#7c7c8a",
    "error": "red bold",
    "cost": "dim",
    "thinking": "dim italic",
    "prompt": "bold blue",
    "banner": "dim",
}

theme = Theme(UI_STYLES)


def make_console(width: int | None = None, profile: StyleProfile | None = None) -> Console:
    """Console for panels and prompts, coloured to match the markdown profile."""
    if profile is None:
        return Console(theme=theme, width=width)
    # The plain profile turns colour off for the whole session
    no_color = profile.color_system is None
    return Console(
        theme=Theme({**UI_STYLES, **profile.styles}),
        width=width,
        no_color=no_color,
    )
