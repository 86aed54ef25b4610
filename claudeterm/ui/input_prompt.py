import asyncio
from abc import ABC, abstractmethod
from typing import Optional

from rich.console import Console

EXIT_WORDS = ("quit", "exit", "q", "/exit", "/quit")


class InputSource(ABC):
    """Where prompts come from."""

    @abstractmethod
    async def get_prompt(self) -> Optional[str]:
        """Get the next user prompt. Returns None to quit."""
        ...


class RichInput(InputSource):
    """Rich-styled terminal input source."""

    def __init__(self, console: Console):
        self._console = console

    async def get_prompt(self) -> Optional[str]:
        loop = asyncio.get_running_loop()
        while True:
            try:
                line = await loop.run_in_executor(
                    None, lambda: self._console.input("[prompt]You:[/] ")
                )
            except (EOFError, KeyboardInterrupt):
                return None
            line = line.strip()
            if line.lower() in EXIT_WORDS:
                return None
            if line:
                return line
