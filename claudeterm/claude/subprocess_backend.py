import asyncio
import json
import logging
from typing import AsyncIterator, Optional

from claudeterm.claude.base import ClaudeBackend
from claudeterm.claude.events import EventKind, StreamEvent

logger = logging.getLogger(__name__)

TOOL_DETAIL_KEYS = {
    "Read": "file_path",
    "Write": "file_path",
    "Edit": "file_path",
    "NotebookEdit": "notebook_path",
    "Glob": "pattern",
    "Grep": "pattern",
    "WebFetch": "url",
    "WebSearch": "query",
    "Task": "description",
}


def describe_tool(name: str, input_data: dict) -> str:
    """One-line description of a tool call for the tool panel."""
    if name == "Bash":
        command = str(input_data.get("command", ""))
        return f"$ {command}" if len(command) <= 120 else f"$ {command[:117]}..."
    key = TOOL_DETAIL_KEYS.get(name)
    if key and input_data.get(key):
        return str(input_data[key])
    return name


def _tool_result_text(content) -> str:
    if isinstance(content, list):
        return " ".join(b.get("text", "") for b in content if b.get("type") == "text")
    return str(content)


def parse_ndjson_line(data: dict) -> list[StreamEvent]:
    """Parse one object of claude's stream-json output into events."""
    results = []
    msg_type = data.get("type", "")

    if msg_type == "stream_event":
        event = data.get("event", {})
        event_type = event.get("type", "")
        if event_type == "message_start":
            results.append(StreamEvent(kind=EventKind.MESSAGE_START, raw=data))
        elif event_type == "content_block_delta":
            delta = event.get("delta", {})
            if delta.get("type") == "text_delta" and delta.get("text"):
                results.append(StreamEvent(
                    kind=EventKind.TEXT_DELTA,
                    text=delta["text"],
                    raw=data,
                ))

    elif msg_type == "assistant":
        content = data.get("message", {}).get("content", [])
        if isinstance(content, list):
            for block in content:
                block_type = block.get("type", "")
                if block_type == "text" and block.get("text", "").strip():
                    results.append(StreamEvent(kind=EventKind.TEXT, text=block["text"], raw=data))
                elif block_type == "tool_use":
                    name = block.get("name", "unknown")
                    results.append(StreamEvent(
                        kind=EventKind.TOOL_START,
                        text=describe_tool(name, block.get("input", {})),
                        tool_name=name,
                        raw=data,
                    ))
                elif block_type == "thinking":
                    results.append(StreamEvent(
                        kind=EventKind.THINKING,
                        text=block.get("thinking", ""),
                        raw=data,
                    ))

    elif msg_type == "user":
        content = data.get("message", {}).get("content", [])
        if isinstance(content, list):
            for block in content:
                if block.get("type") == "tool_result" and block.get("is_error", False):
                    results.append(StreamEvent(
                        kind=EventKind.ERROR,
                        text=_tool_result_text(block.get("content", "")),
                        is_error=True,
                        raw=data,
                    ))

    elif msg_type == "system":
        if data.get("subtype", "") == "init":
            results.append(StreamEvent(
                kind=EventKind.SESSION_INIT,
                session_id=data.get("session_id"),
                raw=data,
            ))

    elif msg_type == "result":
        results.append(StreamEvent(
            kind=EventKind.RESULT,
            text=data.get("result", ""),
            is_error=data.get("is_error", False),
            cost_usd=data.get("total_cost_usd"),
            duration_ms=data.get("duration_ms"),
            num_turns=data.get("num_turns"),
            session_id=data.get("session_id"),
            raw=data,
        ))

    return results


class SubprocessBackend(ClaudeBackend):
    """Claude Code backend using a subprocess and stream-json NDJSON.

    Partial messages are requested so text arrives token by token; the
    complete text block that follows a streamed message is dropped.
    """

    def __init__(self, claude_path: str = "claude", model: Optional[str] = None):
        self._claude_path = claude_path
        self._model = model
        self._process: Optional[asyncio.subprocess.Process] = None
        self._last_session_id: Optional[str] = None

    @property
    def last_session_id(self) -> Optional[str]:
        return self._last_session_id

    @last_session_id.setter
    def last_session_id(self, value: Optional[str]) -> None:
        self._last_session_id = value

    def build_command(self, prompt: str, resume_id: Optional[str] = None) -> list[str]:
        cmd = [
            self._claude_path, "-p",
            "--output-format", "stream-json",
            "--verbose",
            "--include-partial-messages",
        ]
        if resume_id == "last":
            cmd.append("--continue")
        elif resume_id:
            cmd.extend(["--resume", resume_id])
        if self._model:
            cmd.extend(["--model", self._model])
        cmd.append(prompt)
        return cmd

    async def send_prompt(
        self, prompt: str, *, session_id: str | None = None
    ) -> AsyncIterator[StreamEvent]:
        cmd = self.build_command(prompt, session_id or self._last_session_id)
        logger.debug("Starting claude: %s", cmd[:-1])

        try:
            self._process = await asyncio.create_subprocess_exec(
                *cmd,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.DEVNULL,
            )
        except FileNotFoundError:
            yield StreamEvent(
                kind=EventKind.ERROR,
                text=f"Claude executable not found: {self._claude_path}",
                is_error=True,
            )
            return

        streamed = False
        while True:
            line = await self._process.stdout.readline()
            if not line:
                break
            text = line.decode("utf-8", errors="replace").strip()
            if not text:
                continue
            try:
                data = json.loads(text)
            except json.JSONDecodeError:
                logger.debug("Skipping non-JSON output: %r", text[:200])
                continue

            for event in parse_ndjson_line(data):
                if event.kind is EventKind.MESSAGE_START:
                    streamed = False
                    continue
                if event.kind is EventKind.TEXT_DELTA:
                    streamed = True
                elif event.kind is EventKind.TEXT and streamed:
                    continue
                if event.session_id:
                    self._last_session_id = event.session_id
                yield event

        returncode = await self._process.wait()
        if returncode != 0:
            logger.warning("claude exited with code %d", returncode)
            yield StreamEvent(
                kind=EventKind.ERROR,
                text=f"Claude process exited with code {returncode}",
                is_error=True,
            )
        self._process = None

    async def interrupt(self) -> None:
        if self._process and self._process.returncode is None:
            self._process.terminate()
            try:
                await asyncio.wait_for(self._process.wait(), timeout=3.0)
            except asyncio.TimeoutError:
                self._process.kill()

    async def close(self) -> None:
        await self.interrupt()
