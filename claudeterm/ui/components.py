from typing import Optional

from rich.panel import Panel
from rich.syntax import Syntax
from rich.text import Text

from claudeterm.claude.events import StreamEvent


def tool_panel(event: StreamEvent) -> Panel:
    """Render a tool invocation as a cyan-bordered panel."""
    if event.tool_name == "Bash" and event.text.startswith("$ "):
        body = Syntax(event.text[2:], "bash", theme="monokai", word_wrap=True)
    else:
        body = Text(event.text, style="tool.detail")

    return Panel(
        body,
        title=event.tool_name or "Tool",
        title_align="left",
        border_style="tool",
        expand=False,
    )


def error_panel(text: str, title: str = "Error") -> Panel:
    """Render an error message as a red-bordered panel."""
    return Panel(
        Text(text, style="error"),
        title=title,
        border_style="red",
        expand=False,
    )


def result_footer(event: StreamEvent) -> Optional[Text]:
    """Cost, duration and turn count as a dim line, or None without data."""
    parts = []
    if event.cost_usd is not None:
        parts.append(f"${event.cost_usd:.4f}")
    if event.duration_ms is not None:
        parts.append(f"{event.duration_ms / 1000:.1f}s")
    if event.num_turns is not None:
        parts.append(f"{event.num_turns} turn{'s' if event.num_turns != 1 else ''}")
    if not parts:
        return None
    if event.is_error:
        parts.append("(error)")
    return Text(" | ".join(parts), style="cost")


def session_banner(session_id: str) -> Text:
    return Text(f"Session: {session_id}", style="banner")
