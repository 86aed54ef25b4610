from dataclasses import dataclass


@dataclass
class PartialPreview:
    """The speculative preview currently on screen, if any."""

    markdown: str = ""
    rendered: str = ""
    rows: int = 0


def _close_link(content: str, i: int) -> tuple[int, bool]:
    """Scan a link starting after its "[" at i; return (next index, closed)."""
    n = len(content)
    depth = 1
    while i < n:
        ch = content[i]
        if ch == "\\" and i + 1 < n:
            i += 2
            continue
        if ch == "[":
            depth += 1
        elif ch == "]":
            depth -= 1
            if depth == 0:
                if i + 1 < n and content[i + 1] in "([":
                    opener = content[i + 1]
                    closer = ")" if opener == "(" else "]"
                    i += 2
                    nesting = 1
                    while i < n and nesting:
                        if content[i] == "\\" and i + 1 < n:
                            i += 2
                            continue
                        if content[i] == opener:
                            nesting += 1
                        elif content[i] == closer:
                            nesting -= 1
                        i += 1
                    return i, nesting == 0
                # Bracketed text without a destination is plain text.
                return i + 1, True
        i += 1
    return i, False


def _find_single_close(content: str, marker: str, start: int) -> int:
    """Index of a lone marker (not part of a doubled run) at or after start."""
    n = len(content)
    pos = start
    while True:
        found = content.find(marker, pos)
        if found == -1:
            return -1
        doubled_after = found + 1 < n and content[found + 1] == marker
        doubled_before = found > pos and content[found - 1] == marker
        if not doubled_after and not doubled_before:
            return found
        pos = found + 1


def find_safe_point(content: str) -> int:
    """Length of the longest prefix of content with no unclosed inline span.

    Code spans, strong and emphasis markers, strikethrough and links are
    tracked; an unclosed one pulls the safe point back to just before its
    opening marker, and the earliest such marker wins.
    """
    n = len(content)
    if n == 0:
        return 0

    safe = n
    i = 0
    while i < n:
        ch = content[i]

        if ch == "\\" and i + 1 < n:
            i += 2
            continue

        if ch == "`":
            start = i
            while i < n and content[i] == "`":
                i += 1
            fence = content[start:i]
            close = content.find(fence, i)
            if close == -1:
                safe = min(safe, start)
            else:
                i = close + len(fence)
            continue

        if ch in "*_" and i + 1 < n and content[i + 1] == ch:
            start = i
            i += 2
            close = content.find(ch * 2, i)
            if close == -1:
                safe = min(safe, start)
            else:
                i = close + 2
            continue

        if ch in "*_":
            start = i
            i += 1
            close = _find_single_close(content, ch, i)
            if close == -1:
                safe = min(safe, start)
            else:
                i = close + 1
            continue

        if ch == "~" and i + 1 < n and content[i + 1] == "~":
            start = i
            i += 2
            close = content.find("~~", i)
            if close == -1:
                safe = min(safe, start)
            else:
                i = close + 2
            continue

        if ch == "[":
            start = i
            i, closed = _close_link(content, i + 1)
            if not closed:
                safe = min(safe, start)
            continue

        i += 1

    while safe > 1 and content[safe - 1] in " \t":
        safe -= 1
    return safe
