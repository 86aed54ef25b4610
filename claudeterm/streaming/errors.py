class StreamRenderError(Exception):
    """Base class for streaming renderer failures."""


class RendererBuildError(StreamRenderError):
    """The full-document renderer could not be built for a style or width."""


class NonResettableWriterError(StreamRenderError):
    """A re-render changed already-written output on an append-only sink.

    Raised instead of writing anything: without a way to discard earlier
    output there is no correct delta to emit.
    """

    def __init__(self, message: str = "cannot update changed prefix with non-resettable writer"):
        super().__init__(message)
