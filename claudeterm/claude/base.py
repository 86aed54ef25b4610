from abc import ABC, abstractmethod
from typing import AsyncIterator, Optional

from claudeterm.claude.events import StreamEvent


class ClaudeBackend(ABC):
    """Source of streamed assistant output for one prompt at a time."""

    @property
    def last_session_id(self) -> Optional[str]:
        return None

    @abstractmethod
    def send_prompt(
        self, prompt: str, *, session_id: str | None = None
    ) -> AsyncIterator[StreamEvent]:
        ...

    @abstractmethod
    async def interrupt(self) -> None:
        ...

    @abstractmethod
    async def close(self) -> None:
        ...
