import logging

from rich.ansi import re_ansi

from claudeterm.streaming.errors import NonResettableWriterError
from claudeterm.streaming.sinks import Sink, is_resettable

logger = logging.getLogger(__name__)


def ansi_safe_suffix(text: str, offset: int) -> str:
    """Return text[offset:], moved back so it never starts inside an escape."""
    for match in re_ansi.finditer(text):
        if match.start() >= offset:
            break
        if match.end() > offset:
            return text[match.start():]
    return text[offset:]


class SnapshotReconciler:
    """Moves a sink from one full render to the next with minimal writes.

    last_rendered always equals what this reconciler has put in the sink
    since the last reset.
    """

    def __init__(self, sink: Sink):
        self._sink = sink
        self._resettable = is_resettable(sink)
        self.last_rendered = ""

    @property
    def rendered_len(self) -> int:
        return len(self.last_rendered)

    @property
    def resettable(self) -> bool:
        return self._resettable

    def forget(self) -> None:
        self.last_rendered = ""

    def apply(self, snapshot: str, allow_rewrite: bool = False) -> int:
        """Bring the sink to snapshot and return the number of characters written."""
        previous = self.last_rendered
        if snapshot == previous:
            return 0

        if snapshot.startswith(previous):
            return self._append(snapshot[len(previous):])

        if not self._resettable:
            raise NonResettableWriterError()

        if allow_rewrite or len(snapshot) < len(previous):
            return self._rewrite(snapshot)

        # Best effort: only the tail arrives now; the stale prefix is fixed
        # by the next full rewrite.
        delta = ansi_safe_suffix(snapshot, len(previous))
        logger.warning(
            "Rendered prefix changed mid-stream; appending %d trailing characters", len(delta)
        )
        return self._append(delta)

    def rewrite(self, snapshot: str) -> int:
        """Replace the sink contents with snapshot, resetting when possible."""
        if self._resettable:
            return self._rewrite(snapshot)
        self.last_rendered = ""
        return self._append(snapshot)

    def _append(self, delta: str) -> int:
        if delta:
            self._sink.write(delta)
        self.last_rendered += delta
        return len(delta)

    def _rewrite(self, snapshot: str) -> int:
        logger.debug("Rewriting sink with %d characters", len(snapshot))
        self._sink.reset()
        self.last_rendered = ""
        return self._append(snapshot)
