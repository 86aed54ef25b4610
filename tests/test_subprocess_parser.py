import json
import os
import stat
import sys

import pytest

from claudeterm.claude.events import EventKind
from claudeterm.claude.subprocess_backend import (
    SubprocessBackend,
    describe_tool,
    parse_ndjson_line,
)


def test_parse_system_init():
    data = {
        "type": "system",
        "subtype": "init",
        "session_id": "abc-123",
        "tools": ["Bash", "Read"],
        "model": "claude-sonnet-4-6",
    }
    events = parse_ndjson_line(data)
    assert len(events) == 1
    assert events[0].kind == EventKind.SESSION_INIT
    assert events[0].session_id == "abc-123"


def test_parse_message_start():
    data = {"type": "stream_event", "event": {"type": "message_start", "message": {}}}
    events = parse_ndjson_line(data)
    assert [e.kind for e in events] == [EventKind.MESSAGE_START]


def test_parse_text_delta():
    data = {
        "type": "stream_event",
        "event": {
            "type": "content_block_delta",
            "index": 0,
            "delta": {"type": "text_delta", "text": "## Plan\n"},
        },
    }
    events = parse_ndjson_line(data)
    assert len(events) == 1
    assert events[0].kind == EventKind.TEXT_DELTA
    assert events[0].text == "## Plan\n"


def test_parse_ignores_non_text_deltas():
    data = {
        "type": "stream_event",
        "event": {
            "type": "content_block_delta",
            "delta": {"type": "input_json_delta", "partial_json": "{\"a\""},
        },
    }
    assert parse_ndjson_line(data) == []


def test_parse_assistant_text():
    data = {
        "type": "assistant",
        "message": {
            "role": "assistant",
            "content": [{"type": "text", "text": "Hello! How can I help?"}],
        },
    }
    events = parse_ndjson_line(data)
    assert len(events) == 1
    assert events[0].kind == EventKind.TEXT
    assert events[0].text == "Hello! How can I help?"


def test_parse_tool_use_bash():
    data = {
        "type": "assistant",
        "message": {
            "role": "assistant",
            "content": [
                {
                    "type": "tool_use",
                    "id": "tool-1",
                    "name": "Bash",
                    "input": {"command": "git status", "description": "Check git status"},
                }
            ],
        },
    }
    events = parse_ndjson_line(data)
    assert len(events) == 1
    assert events[0].kind == EventKind.TOOL_START
    assert events[0].tool_name == "Bash"
    assert events[0].text == "$ git status"


def test_describe_tool():
    assert describe_tool("Read", {"file_path": "/home/user/auth.py"}) == "/home/user/auth.py"
    assert describe_tool("Grep", {"pattern": "TODO"}) == "TODO"
    assert describe_tool("Mystery", {}) == "Mystery"
    long_command = "echo " + "x" * 200
    assert describe_tool("Bash", {"command": long_command}).endswith("...")


def test_parse_tool_result_error():
    data = {
        "type": "user",
        "message": {
            "role": "user",
            "content": [
                {
                    "type": "tool_result",
                    "tool_use_id": "tool-1",
                    "is_error": True,
                    "content": [{"type": "text", "text": "Permission denied"}],
                }
            ],
        },
    }
    events = parse_ndjson_line(data)
    assert len(events) == 1
    assert events[0].kind == EventKind.ERROR
    assert "Permission denied" in events[0].text


def test_parse_result_success():
    data = {
        "type": "result",
        "subtype": "success",
        "is_error": False,
        "result": "Task done",
        "total_cost_usd": 0.0123,
        "duration_ms": 4500,
        "num_turns": 2,
        "session_id": "abc-123",
    }
    events = parse_ndjson_line(data)
    assert len(events) == 1
    assert events[0].kind == EventKind.RESULT
    assert events[0].cost_usd == 0.0123
    assert events[0].duration_ms == 4500
    assert events[0].num_turns == 2
    assert not events[0].is_error


def test_parse_result_error():
    data = {
        "type": "result",
        "subtype": "error_max_turns",
        "is_error": True,
        "result": "Max turns reached",
    }
    events = parse_ndjson_line(data)
    assert len(events) == 1
    assert events[0].kind == EventKind.RESULT
    assert events[0].is_error


def test_parse_thinking_block():
    data = {
        "type": "assistant",
        "message": {
            "role": "assistant",
            "content": [{"type": "thinking", "thinking": "Let me consider..."}],
        },
    }
    events = parse_ndjson_line(data)
    assert len(events) == 1
    assert events[0].kind == EventKind.THINKING


def test_parse_full_fixture():
    """Parse the sample_stream.jsonl fixture end-to-end."""
    fixture_path = os.path.join(os.path.dirname(__file__), "fixtures", "sample_stream.jsonl")
    all_events = []
    with open(fixture_path) as f:
        for line in f:
            line = line.strip()
            if line:
                all_events.extend(parse_ndjson_line(json.loads(line)))

    kinds = [e.kind for e in all_events]
    assert EventKind.SESSION_INIT in kinds
    assert EventKind.TEXT_DELTA in kinds
    assert EventKind.TOOL_START in kinds
    assert EventKind.RESULT in kinds


def test_build_command_session_flags():
    backend = SubprocessBackend(model="sonnet")
    cmd = backend.build_command("hi", "last")
    assert "--continue" in cmd
    assert "--include-partial-messages" in cmd
    assert cmd[cmd.index("--model") + 1] == "sonnet"
    assert cmd[-1] == "hi"

    cmd = backend.build_command("hi", "abc-123")
    assert cmd[cmd.index("--resume") + 1] == "abc-123"


def make_fake_claude(tmp_path):
    """Executable that replays the fixture like `claude -p --output-format stream-json`."""
    fixture_path = os.path.join(os.path.dirname(__file__), "fixtures", "sample_stream.jsonl")
    script = tmp_path / "claude"
    script.write_text(
        f"#!{sys.executable}\n"
        "import sys\n"
        f"with open({fixture_path!r}) as f:\n"
        "    for line in f:\n"
        "        sys.stdout.write(line)\n"
        "        sys.stdout.flush()\n"
    )
    script.chmod(script.stat().st_mode | stat.S_IXUSR)
    return str(script)


@pytest.mark.asyncio
async def test_send_prompt_drops_duplicate_final_text(tmp_path):
    if sys.platform == "win32":
        pytest.skip("shebang scripts not available on Windows")

    backend = SubprocessBackend(claude_path=make_fake_claude(tmp_path))
    events = [event async for event in backend.send_prompt("hi")]

    kinds = [e.kind for e in events]
    assert EventKind.MESSAGE_START not in kinds
    assert EventKind.TEXT not in kinds
    streamed = "".join(e.text for e in events if e.kind is EventKind.TEXT_DELTA)
    assert streamed == "I'll read the file.\n\nThe file defines **two** functions.\n"
    assert backend.last_session_id == "sess-fixture"


@pytest.mark.asyncio
async def test_missing_executable_yields_error(tmp_path):
    backend = SubprocessBackend(claude_path=str(tmp_path / "no-such-claude"))
    events = [event async for event in backend.send_prompt("hi")]
    assert len(events) == 1
    assert events[0].kind == EventKind.ERROR
    assert events[0].is_error
