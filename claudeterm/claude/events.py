from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


class EventKind(Enum):
    SESSION_INIT = "session_init"
    MESSAGE_START = "message_start"
    TEXT_DELTA = "text_delta"
    TEXT = "text"
    TOOL_START = "tool_start"
    ERROR = "error"
    RESULT = "result"
    THINKING = "thinking"


@dataclass
class StreamEvent:
    kind: EventKind
    text: str = ""
    tool_name: Optional[str] = None
    is_error: bool = False
    cost_usd: Optional[float] = None
    duration_ms: Optional[int] = None
    num_turns: Optional[int] = None
    session_id: Optional[str] = None
    raw: Optional[dict] = field(default=None, repr=False)

    @property
    def is_text(self) -> bool:
        return self.kind in (EventKind.TEXT_DELTA, EventKind.TEXT)
