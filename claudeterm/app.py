import asyncio
import logging
import shutil
import signal
import sys

from claudeterm.claude.base import ClaudeBackend
from claudeterm.ui.input_prompt import InputSource
from claudeterm.ui.renderer import NullRenderer

logger = logging.getLogger(__name__)


class ClaudeTermApp:
    """Main application: prompt -> Claude -> streaming markdown on the terminal."""

    def __init__(
        self,
        backend: ClaudeBackend,
        input_source: InputSource,
        renderer=None,
        width: int | None = None,
    ):
        self._backend = backend
        self._input = input_source
        self._renderer = renderer or NullRenderer()
        # A configured width pins rendering; terminal resizes are ignored.
        self._width = width
        self._running = True
        self._processing = False
        self._interrupted = False
        self._first_prompt = True

    async def run(self) -> None:
        self._install_signal_handlers()
        try:
            while self._running:
                prompt = await self._input.get_prompt()
                if prompt is None:
                    break
                try:
                    await self.process_prompt(prompt)
                except asyncio.CancelledError:
                    pass
        except KeyboardInterrupt:
            pass
        finally:
            self._renderer.finalize()
            await self._backend.close()

    async def process_prompt(self, prompt: str) -> None:
        self._processing = True
        self._interrupted = False
        logger.info("Sending prompt (%d chars)", len(prompt))

        try:
            sid = None
            if not self._first_prompt:
                sid = self._backend.last_session_id

            async for event in self._backend.send_prompt(prompt, session_id=sid):
                if self._interrupted:
                    break
                self._renderer.render(event)

            if not self._interrupted:
                self._renderer.finalize()
        finally:
            self._processing = False
            self._first_prompt = False

    def _install_signal_handlers(self) -> None:
        loop = asyncio.get_running_loop()
        if sys.platform == "win32":
            signal.signal(signal.SIGINT, lambda *_: self._handle_interrupt())
            return
        loop.add_signal_handler(signal.SIGINT, self._handle_interrupt)
        loop.add_signal_handler(signal.SIGWINCH, self._handle_resize)

    def _handle_resize(self) -> None:
        if self._width is not None:
            return
        width = shutil.get_terminal_size().columns
        logger.debug("Terminal resized to %d columns", width)
        self._renderer.resize(width)

    def _handle_interrupt(self) -> None:
        if self._processing:
            loop = asyncio.get_running_loop()
            loop.call_soon_threadsafe(lambda: asyncio.ensure_future(self._interrupt()))
        else:
            self._running = False

    async def _interrupt(self) -> None:
        self._interrupted = True
        self._renderer.finalize()
        await self._backend.interrupt()
        self._processing = False
        print("\n[Response interrupted. Enter a new prompt.]")
