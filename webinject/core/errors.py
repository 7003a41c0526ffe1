"""Error taxonomy shared by generators, composer and engine."""


class WebInjectError(Exception):
    """Base class for every error raised by webinject."""


class GenerationError(WebInjectError, ValueError):
    """Invalid generator parameters (negative depth, size below minimum...)."""


class ScanConfigurationError(WebInjectError, ValueError):
    """A scan cannot be built: missing injection points, bad budget, etc."""


class DispatchError(WebInjectError):
    """Network failure, refused connection or request deadline exceeded."""

    def __init__(self, message: str, timeout: bool = False):
        super().__init__(message)
        self.timeout = timeout


class VerificationError(WebInjectError):
    """A predicate crashed while inspecting a response."""

    def __init__(self, predicate, cause: BaseException):
        name = getattr(predicate, "__name__", repr(predicate))
        super().__init__(f"predicate {name} failed: {cause!r}")
        self.predicate = predicate
        self.cause = cause
