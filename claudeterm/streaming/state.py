"""Block state machine for the streaming renderer.

The machine is a pure function over an immutable BlockState: feeding it a
raw line returns the next state together with the commits the caller has to
apply to the committed document. Nothing here renders or writes.
"""

from dataclasses import dataclass, replace
from enum import Enum
from typing import Optional

from claudeterm.streaming.blocks import (
    BlockType,
    Fence,
    classify_line,
    count_leading_spaces,
    is_blank_line,
    is_closing_fence,
    is_list_marker,
    is_table_line,
    parse_fence,
)


class State(Enum):
    READY = "ready"
    IN_PARAGRAPH = "in_paragraph"
    IN_FENCED_CODE = "in_fenced_code"
    IN_TABLE = "in_table"
    IN_LIST = "in_list"
    IN_BLOCKQUOTE = "in_blockquote"


@dataclass(frozen=True)
class ListContext:
    indent: int
    last_marker_indent: int


@dataclass(frozen=True)
class BlockState:
    state: State = State.READY
    pending: tuple[str, ...] = ()
    fence: Optional[Fence] = None
    list_context: Optional[ListContext] = None
    resume: State = State.READY


@dataclass(frozen=True)
class Commit:
    """Raw lines to append to the committed document.

    emit is False only for blank lines passed through between blocks; those
    join the document without triggering a render.
    """

    lines: tuple[str, ...]
    emit: bool = True


def strip_newline(line: str) -> str:
    if line.endswith("\n"):
        line = line[:-1]
    if line.endswith("\r"):
        line = line[:-1]
    return line


def step(block: BlockState, line: str) -> tuple[BlockState, list[Commit]]:
    """Advance the machine by one complete raw line (newline included)."""
    commits: list[Commit] = []
    content = strip_newline(line)
    handler = _HANDLERS[block.state]
    return handler(block, content, line, commits), commits


def _close(block: BlockState, commits: list[Commit]) -> BlockState:
    """Commit everything pending and return to READY."""
    if block.pending:
        commits.append(Commit(block.pending))
    return BlockState()


def _ready(block: BlockState, content: str, line: str, commits: list[Commit]) -> BlockState:
    kind = classify_line(content)

    if kind is BlockType.BLANK:
        commits.append(Commit((line,), emit=False))
        return block
    if kind in (BlockType.HEADING, BlockType.THEMATIC_BREAK):
        commits.append(Commit((line,)))
        return block
    if kind is BlockType.FENCED_CODE:
        return replace(
            block,
            state=State.IN_FENCED_CODE,
            fence=parse_fence(content),
            pending=block.pending + (line,),
        )
    if kind is BlockType.LIST:
        indent = count_leading_spaces(content)
        return replace(
            block,
            state=State.IN_LIST,
            list_context=ListContext(indent=indent, last_marker_indent=indent),
            pending=block.pending + (line,),
        )
    if kind is BlockType.TABLE:
        return replace(block, state=State.IN_TABLE, pending=block.pending + (line,))
    if kind is BlockType.BLOCKQUOTE:
        return replace(block, state=State.IN_BLOCKQUOTE, pending=block.pending + (line,))
    return replace(block, state=State.IN_PARAGRAPH, pending=block.pending + (line,))


def _paragraph(block: BlockState, content: str, line: str, commits: list[Commit]) -> BlockState:
    kind = classify_line(content, in_paragraph=True)

    if kind in (BlockType.BLANK, BlockType.SETEXT_UNDERLINE):
        commits.append(Commit(block.pending + (line,)))
        return BlockState()
    if kind is BlockType.PARAGRAPH:
        return replace(block, pending=block.pending + (line,))

    block = _close(block, commits)
    return _ready(block, content, line, commits)


def _fenced_code(block: BlockState, content: str, line: str, commits: list[Commit]) -> BlockState:
    pending = block.pending + (line,)
    if block.fence is None or not is_closing_fence(content, block.fence):
        return replace(block, pending=pending)

    if block.resume is State.IN_LIST:
        return replace(block, state=State.IN_LIST, resume=State.READY, fence=None, pending=pending)
    commits.append(Commit(pending))
    return BlockState()


def _table(block: BlockState, content: str, line: str, commits: list[Commit]) -> BlockState:
    if is_table_line(content):
        return replace(block, pending=block.pending + (line,))

    if block.resume is State.IN_LIST:
        block = replace(block, state=State.IN_LIST, resume=State.READY)
        return _list(block, content, line, commits)
    block = _close(block, commits)
    return _ready(block, content, line, commits)


def _blockquote(block: BlockState, content: str, line: str, commits: list[Commit]) -> BlockState:
    if is_blank_line(content) or content.lstrip(" \t").startswith(">"):
        return replace(block, pending=block.pending + (line,))

    if block.resume is State.IN_LIST:
        block = replace(block, state=State.IN_LIST, resume=State.READY)
        return _list(block, content, line, commits)
    block = _close(block, commits)
    return _ready(block, content, line, commits)


def _list(block: BlockState, content: str, line: str, commits: list[Commit]) -> BlockState:
    if is_blank_line(content):
        return replace(block, pending=block.pending + (line,))

    context = block.list_context or ListContext(indent=0, last_marker_indent=0)
    indent = count_leading_spaces(content)
    trimmed = content.lstrip(" \t")

    if is_list_marker(trimmed):
        # Sibling markers release the finished items right away. Nested
        # siblings wait for the nested list to close so a loose list is not
        # rewritten mid-stream.
        pending = block.pending
        if pending and (indent <= context.indent or indent < context.last_marker_indent):
            commits.append(Commit(pending))
            pending = ()
        context = ListContext(
            indent=min(indent, context.indent),
            last_marker_indent=indent,
        )
        return replace(block, pending=pending + (line,), list_context=context)

    kind = classify_line(content)
    if indent > context.indent:
        if kind is BlockType.FENCED_CODE:
            return replace(
                block,
                state=State.IN_FENCED_CODE,
                resume=State.IN_LIST,
                fence=parse_fence(content),
                pending=block.pending + (line,),
            )
        if kind is BlockType.BLOCKQUOTE:
            return replace(
                block,
                state=State.IN_BLOCKQUOTE,
                resume=State.IN_LIST,
                pending=block.pending + (line,),
            )
        if kind is BlockType.TABLE:
            return replace(
                block,
                state=State.IN_TABLE,
                resume=State.IN_LIST,
                pending=block.pending + (line,),
            )
        # Deeper headings, breaks and text continue the current item.
        return replace(block, pending=block.pending + (line,))

    block = _close(block, commits)
    return _ready(block, content, line, commits)


_HANDLERS = {
    State.READY: _ready,
    State.IN_PARAGRAPH: _paragraph,
    State.IN_FENCED_CODE: _fenced_code,
    State.IN_TABLE: _table,
    State.IN_LIST: _list,
    State.IN_BLOCKQUOTE: _blockquote,
}
