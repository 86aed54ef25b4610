from rich.ansi import re_ansi
from rich.cells import cell_len
from rich.control import Control
from rich.segment import ControlType

from claudeterm.streaming.sinks import Sink

ERASE_TO_END_OF_SCREEN = "\x1b[0J"


def display_width(line: str) -> int:
    """Cell width of a line once ANSI escape sequences are removed."""
    return cell_len(re_ansi.sub("", line))


class TerminalController:
    """Cursor movement and erasure for retracting speculative output."""

    def __init__(self, sink: Sink, width: int):
        self.sink = sink
        self.width = width

    def clear_lines(self, n: int, column: int = 0) -> None:
        """Move up n rows to column (0-based) and erase to the end of the screen."""
        if n <= 0:
            return
        sequence = (
            Control((ControlType.CURSOR_UP, n)).segment.text
            + Control.move_to_column(column).segment.text
            + ERASE_TO_END_OF_SCREEN
        )
        self.sink.write(sequence)

    def retract(self, rows: int, column: int) -> None:
        """Erase a preview written on the rows below the cursor's resting line.

        Only the preview rows are erased; the cursor then goes back to column
        on the line above them without touching that line.
        """
        if rows <= 0:
            return
        sequence = ""
        if rows > 1:
            sequence += Control((ControlType.CURSOR_UP, rows - 1)).segment.text
        sequence += (
            Control.move_to_column(0).segment.text
            + ERASE_TO_END_OF_SCREEN
            + Control((ControlType.CURSOR_UP, 1)).segment.text
            + Control.move_to_column(column).segment.text
        )
        self.sink.write(sequence)

    def count_lines(self, rendered: str) -> int:
        """Number of terminal rows rendered occupies, wrapping included."""
        if not rendered:
            return 0

        lines = rendered.split("\n")
        if lines[-1] == "":
            lines.pop()

        total = 0
        for line in lines:
            width = display_width(line)
            if width == 0 or self.width <= 0:
                total += 1
            else:
                total += max(1, -(-width // self.width))
        return total

    def end_column(self, text: str) -> int:
        """Column (0-based) the cursor rests on after text was written."""
        width = display_width(text.rsplit("\n", 1)[-1])
        if self.width <= 0:
            return width
        if width and width % self.width == 0:
            # Pending wrap: the cursor stays on the last column.
            return self.width - 1
        return width % self.width
