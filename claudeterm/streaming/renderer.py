"""Incremental markdown renderer for streamed LLM output.

Input is split into lines and fed through the block state machine. Whenever a
block closes, the whole committed document is rendered again and the
reconciler writes only what changed, so the final output is identical to
rendering the complete text in one pass no matter how it was chunked.

With partial rendering enabled (and a known terminal width) the still-open
block is previewed up to its last safe point and erased again before the
next committed write.
"""

import codecs
import logging
from typing import Optional, Union

from claudeterm.streaming.blocks import (
    is_list_marker,
    is_ordered_list_marker_prefix,
)
from claudeterm.streaming.partial import PartialPreview, find_safe_point
from claudeterm.streaming.reconcile import SnapshotReconciler
from claudeterm.streaming.render import (
    MarkdownRenderer,
    StyleProfile,
    collapse_newlines,
    normalize_tabs,
)
from claudeterm.streaming.sinks import Sink
from claudeterm.streaming.state import BlockState, State, step
from claudeterm.streaming.terminal import TerminalController

logger = logging.getLogger(__name__)


class StreamRenderer:
    """Streams markdown into a sink as styled terminal text.

    Not safe for concurrent use; callers serialize write/flush/close/resize.
    """

    def __init__(
        self,
        sink: Sink,
        profile: Optional[StyleProfile] = None,
        *,
        width: Optional[int] = None,
        partial: bool = False,
    ):
        self._sink = sink
        self._profile = profile
        self._width = width
        self._markdown = MarkdownRenderer(profile, width)
        self._reconciler = SnapshotReconciler(sink)

        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._line_buffer = ""
        self._document: list[str] = []
        self._block = BlockState()
        self._closed = False

        self._partial_enabled = partial
        self._preview = PartialPreview()
        # Without a known width there is no way to retract a wrong guess.
        self._terminal: Optional[TerminalController] = None
        if partial and width:
            self._terminal = TerminalController(sink, width)

    @property
    def width(self) -> Optional[int]:
        return self._width

    @property
    def committed_markdown(self) -> str:
        return "".join(self._document)

    @property
    def committed_len(self) -> int:
        return sum(len(part) for part in self._document)

    @property
    def pending_markdown(self) -> str:
        """The open block: pending lines plus any unterminated tail."""
        return "".join(self._block.pending) + self._line_buffer

    @property
    def pending_is_table(self) -> bool:
        if self._block.state is State.IN_TABLE:
            return True
        # Only pipe-first rows, so prose with a pipe keeps its preview.
        return self._first_pending_line().startswith("|")

    @property
    def pending_is_list(self) -> bool:
        if self._block.state is State.IN_LIST:
            return True
        first = self._first_pending_line()
        if not first:
            return False
        # A lone "*" may still become emphasis, so it is left out here.
        return is_list_marker(first) or is_ordered_list_marker_prefix(first) or first in ("-", "+")

    @property
    def state(self) -> State:
        return self._block.state

    def write(self, data: Union[str, bytes]) -> int:
        if self._closed:
            raise ValueError("write to closed StreamRenderer")

        if isinstance(data, bytes):
            text = self._decoder.decode(data)
        else:
            text = data
        self._line_buffer += text

        while True:
            end = self._line_buffer.find("\n")
            if end == -1:
                break
            line = self._line_buffer[: end + 1]
            self._line_buffer = self._line_buffer[end + 1:]
            self._process_line(line)

        if self._terminal is not None and (self._block.pending or self._line_buffer):
            self._render_partial()

        return len(data)

    def flush(self) -> None:
        """Close any open block and write the final render, trailing newlines included."""
        self._clear_partial()

        self._line_buffer += self._decoder.decode(b"", final=True)
        pending = list(self._block.pending)
        if self._line_buffer:
            tail = self._line_buffer
            if not tail.endswith("\n"):
                tail += "\n"
            pending.append(tail)
            self._line_buffer = ""

        self._document.extend(pending)
        self._block = BlockState()

        if not self._document:
            return
        rendered = self._render_document()
        self._reconciler.apply(rendered, allow_rewrite=True)

    def close(self) -> None:
        if self._closed:
            return
        self.flush()
        self._closed = True

    def resize(self, width: int) -> None:
        """Re-render the committed document at a new width."""
        if width <= 0:
            return

        logger.debug("Resizing stream renderer from %s to %d columns", self._width, width)
        # The preview was laid out for the old width; take it back first.
        self._clear_partial()
        self._markdown = MarkdownRenderer(self._profile, width)
        self._width = width
        if self._terminal is not None:
            self._terminal.width = width
        elif self._partial_enabled:
            self._terminal = TerminalController(self._sink, width)

        self._reconciler.forget()

        if not self._document:
            return
        snapshot = self._render_document().rstrip("\n")
        if snapshot:
            self._reconciler.rewrite(snapshot)

    def _process_line(self, line: str) -> None:
        self._block, commits = step(self._block, line)
        if not commits:
            return

        # Every closed line joins the document before rendering, so a
        # renderer failure never drops input.
        for commit in commits:
            self._document.extend(commit.lines)
        if any(commit.emit for commit in commits):
            self._emit()

    def _emit(self) -> None:
        self._clear_partial()
        if not self._document:
            return
        snapshot = self._render_document().rstrip("\n")
        self._reconciler.apply(snapshot)

    def _render_document(self) -> str:
        markdown = normalize_tabs(self.committed_markdown)
        return collapse_newlines(self._markdown.render(markdown))

    def _first_pending_line(self) -> str:
        content = self.pending_markdown
        first = content.split("\n", 1)[0]
        if first.endswith("\r"):
            first = first[:-1]
        return first.lstrip(" \t")

    def _render_partial(self) -> None:
        content = self.pending_markdown
        if not content:
            return
        # Tables and lists restyle as rows arrive; they wait for a commit.
        if self.pending_is_table or self.pending_is_list:
            self._clear_partial()
            return

        safe = content[: find_safe_point(content)]
        if not safe or safe == self._preview.markdown:
            return

        rendered = self._markdown.render(safe).rstrip("\n")
        self._clear_partial()
        # Previews start on a fresh row so retracting them never touches
        # committed output.
        if rendered:
            self._sink.write("\n" + rendered)
        self._preview = PartialPreview(
            markdown=safe,
            rendered=rendered,
            rows=self._terminal.count_lines(rendered),
        )

    def _clear_partial(self) -> None:
        if self._terminal is not None and self._preview.rows > 0:
            column = self._terminal.end_column(self._reconciler.last_rendered)
            self._terminal.retract(self._preview.rows, column)
        self._preview = PartialPreview()
