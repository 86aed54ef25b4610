from io import StringIO

import pytest
from rich.ansi import re_ansi
from rich.console import Console

from claudeterm.streaming.errors import NonResettableWriterError
from claudeterm.streaming.renderer import StreamRenderer
from claudeterm.streaming.sinks import (
    BufferSink,
    ConsoleSink,
    DeferredConsoleSink,
    TerminalSink,
    console_sink,
    drain,
    is_resettable,
)
from claudeterm.ui.markdown_stream import StreamingMarkdown

# Widening the number column from 9 to 10 items changes every earlier row.
ORDERED_LIST = "".join(f"{n}. item number {n}\n" for n in range(1, 13)) + "\n"


def plain(text):
    return re_ansi.sub("", text)


def test_console_sink_is_append_only():
    assert not is_resettable(ConsoleSink(Console(file=StringIO())))


def test_console_sink_factory_follows_terminal_detection():
    piped = console_sink(Console(file=StringIO(), width=60))
    assert isinstance(piped, DeferredConsoleSink)
    assert is_resettable(piped)

    terminal = console_sink(Console(file=StringIO(), width=60, force_terminal=True))
    assert isinstance(terminal, TerminalSink)
    assert is_resettable(terminal)


def test_changed_prefix_on_piped_console_raises():
    console = Console(file=StringIO(), width=60)
    renderer = StreamRenderer(ConsoleSink(console), width=60)
    with pytest.raises(NonResettableWriterError):
        for byte in ORDERED_LIST.encode():
            renderer.write(bytes([byte]))


def test_deferred_sink_writes_final_render_once():
    console = Console(file=StringIO(), width=60)
    sink = console_sink(console)
    renderer = StreamRenderer(sink, width=60)
    for byte in ORDERED_LIST.encode():
        renderer.write(bytes([byte]))
    renderer.close()
    assert console.file.getvalue() == ""

    drain(sink)
    expected = BufferSink()
    reference = StreamRenderer(expected, width=60)
    reference.write(ORDERED_LIST)
    reference.close()
    assert console.file.getvalue() == expected.getvalue()
    assert plain(console.file.getvalue()).count("item number 1 ") == 1


def test_drain_ignores_live_sinks():
    console = Console(file=StringIO(), width=60)
    sink = ConsoleSink(console)
    sink.write("kept")
    drain(sink)
    assert console.file.getvalue() == "kept"


def test_streaming_markdown_to_a_pipe_shows_list_once():
    console = Console(file=StringIO(), width=60)
    stream = StreamingMarkdown(console)
    stream.start()
    for char in ORDERED_LIST:
        stream.feed(char)
    stream.finish()

    shown = plain(console.file.getvalue())
    assert shown.count("item number 1 ") == 1
    assert shown.count("item number 12") == 1
    assert "Render error" not in shown
