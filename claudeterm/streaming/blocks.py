import re
from dataclasses import dataclass
from enum import Enum
from typing import Optional


class BlockType(Enum):
    BLANK = "blank"
    HEADING = "heading"
    FENCED_CODE = "fenced_code"
    SETEXT_UNDERLINE = "setext_underline"
    THEMATIC_BREAK = "thematic_break"
    BLOCKQUOTE = "blockquote"
    LIST = "list"
    TABLE = "table"
    PARAGRAPH = "paragraph"


@dataclass(frozen=True)
class Fence:
    char: str
    length: int
    indent: int


HEADING = re.compile(r"#{1,6}(?:[ \t]|$)")
FENCE_OPEN = re.compile(r"(?:`{3,}|~{3,})")
ORDERED_MARKER = re.compile(r"[0-9]{1,9}[.)]")


def is_blank_line(line: str) -> bool:
    return not line.strip()


def count_leading_spaces(line: str) -> int:
    """Count leading indentation; a tab counts as a single column."""
    count = 0
    for ch in line:
        if ch not in " \t":
            break
        count += 1
    return count


def is_list_marker(trimmed: str) -> bool:
    """Whether a left-trimmed line starts with a list item marker."""
    if not trimmed:
        return False
    if trimmed[0] in "-*+":
        return len(trimmed) > 1 and trimmed[1] in " \t"

    match = ORDERED_MARKER.match(trimmed)
    if match is None:
        return False
    end = match.end()
    # "1." on its own is a marker whose content has not arrived yet
    return end == len(trimmed) or trimmed[end] in " \t"


def is_ordered_list_marker_prefix(trimmed: str) -> bool:
    """Whether trimmed is exactly a bare ordered marker such as "1." or "2)"."""
    return ORDERED_MARKER.fullmatch(trimmed) is not None


def is_thematic_break(trimmed: str) -> bool:
    if len(trimmed) < 3 or trimmed[0] not in "-*_":
        return False
    char = trimmed[0]
    count = 0
    for ch in trimmed:
        if ch == char:
            count += 1
        elif ch not in " \t":
            return False
    return count >= 3


def is_setext_underline(line: str) -> bool:
    trimmed = line.strip()
    if not trimmed or trimmed[0] not in "=-":
        return False
    return trimmed == trimmed[0] * len(trimmed)


def is_table_line(line: str) -> bool:
    return "|" in line.strip()


def parse_fence(line: str) -> Optional[Fence]:
    indent = count_leading_spaces(line)
    match = FENCE_OPEN.match(line, indent)
    if match is None:
        return None
    return Fence(char=line[indent], length=match.end() - match.start(), indent=indent)


def is_closing_fence(line: str, fence: Fence) -> bool:
    """Whether line closes a code block opened with fence.

    The closing run must use the same character, be at least as long as the
    opening run and carry nothing but trailing whitespace.
    """
    indent = count_leading_spaces(line)
    if indent > max(3, fence.indent + 3):
        return False

    trimmed = line[indent:]
    run = len(trimmed) - len(trimmed.lstrip(fence.char))
    if run < fence.length:
        return False
    return not trimmed[run:].strip()


def classify_line(line: str, in_paragraph: bool = False) -> BlockType:
    """Classify a single line (without its newline) into the block it starts.

    in_paragraph must be set while a paragraph is open: a pure run of "=" or
    "-" then reads as a Setext underline rather than a thematic break or list.
    """
    if is_blank_line(line):
        return BlockType.BLANK

    trimmed = line.lstrip(" \t")

    if HEADING.match(trimmed):
        return BlockType.HEADING
    if FENCE_OPEN.match(trimmed):
        return BlockType.FENCED_CODE
    if in_paragraph and is_setext_underline(trimmed):
        return BlockType.SETEXT_UNDERLINE
    if is_thematic_break(trimmed):
        return BlockType.THEMATIC_BREAK
    if trimmed[0] == ">":
        return BlockType.BLOCKQUOTE
    if is_list_marker(trimmed):
        return BlockType.LIST
    # Permissive: any pipe reads as a table row, prose with "|" included.
    if is_table_line(line):
        return BlockType.TABLE
    return BlockType.PARAGRAPH
