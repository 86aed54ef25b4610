from typing import Protocol, Union, runtime_checkable

from rich.console import Console


@runtime_checkable
class Sink(Protocol):
    def write(self, text: str) -> object:
        ...


@runtime_checkable
class ResettableSink(Protocol):
    """A sink that can discard everything written to it and start over."""

    def write(self, text: str) -> object:
        ...

    def reset(self) -> None:
        ...


def is_resettable(sink: object) -> bool:
    return isinstance(sink, ResettableSink)


class BufferSink:
    """In-memory resettable sink."""

    def __init__(self):
        self._parts: list[str] = []

    def write(self, text: str) -> int:
        self._parts.append(text)
        return len(text)

    def reset(self) -> None:
        self._parts.clear()

    def getvalue(self) -> str:
        return "".join(self._parts)


class AppendOnlySink:
    """In-memory sink without reset, like a pipe or a log file."""

    def __init__(self):
        self._parts: list[str] = []

    def write(self, text: str) -> int:
        self._parts.append(text)
        return len(text)

    def getvalue(self) -> str:
        return "".join(self._parts)


class ConsoleSink:
    """Writes pre-rendered ANSI text straight to a rich console's file.

    Append-only: a pipe or redirected file cannot take output back.
    """

    def __init__(self, console: Console):
        self._console = console

    @property
    def width(self) -> int:
        return self._console.width

    def write(self, text: str) -> int:
        self._console.file.write(text)
        self._console.file.flush()
        return len(text)


class TerminalSink(ConsoleSink):
    """Console sink for a real terminal.

    Resetting clears the screen and homes the cursor, which is the only way a
    terminal can take back output that already scrolled past.
    """

    def reset(self) -> None:
        self._console.clear(home=True)


class DeferredConsoleSink(BufferSink):
    """Holds renders in memory and writes the final one to the console once.

    Used when the console is a pipe or a file, where a rewrite would leave
    every earlier render in the output.
    """

    def __init__(self, console: Console):
        super().__init__()
        self._console = console

    @property
    def width(self) -> int:
        return self._console.width

    def drain(self) -> None:
        text = self.getvalue()
        self.reset()
        if text:
            self._console.file.write(text)
            self._console.file.flush()


def console_sink(console: Console) -> Union[TerminalSink, DeferredConsoleSink]:
    """Live resettable sink on a terminal, deferred buffer everywhere else."""
    if console.is_terminal:
        return TerminalSink(console)
    return DeferredConsoleSink(console)


def drain(sink: Sink) -> None:
    """Write out anything a deferred sink is still holding."""
    if isinstance(sink, DeferredConsoleSink):
        sink.drain()
