from __future__ import annotations


class RenderError(RuntimeError):
    code = "RENDER"

    def __init__(self, message: str, *, code: str | None = None) -> None:
        super().__init__(message)
        if code is not None:
            self.code = code


class ResolveError(RenderError):
    """Raised when a command-line argument cannot be turned into targets."""

    code = "OPEN"


class ClassificationError(RenderError):
    code = "CLASSIFY"


class UnsupportedTypeError(RenderError):
    code = "UNSUPPORTED"


class DecodeError(RenderError):
    code = "DECODE"


class CapabilityError(DecodeError):
    """Raised when a strategy needs a seekable, named handle and did not get one."""

    code = "CAPABILITY"


class ToolUnavailableError(RenderError):
    code = "TOOL_UNAVAILABLE"


class SubprocessError(RenderError):
    code = "SUBPROCESS"


class CleanupError(RenderError):
    code = "CLEANUP"


class EncodeError(RenderError):
    code = "ENCODE"


class CanceledError(RenderError):
    code = "CANCELED"


class TerminalGraphicsUnavailable(RenderError):
    code = "NO_GRAPHICS"

    def __init__(self, message: str = "terminal graphics not available") -> None:
        super().__init__(message)


__all__ = [
    "CanceledError",
    "CapabilityError",
    "ClassificationError",
    "CleanupError",
    "DecodeError",
    "EncodeError",
    "RenderError",
    "ResolveError",
    "SubprocessError",
    "TerminalGraphicsUnavailable",
    "ToolUnavailableError",
    "UnsupportedTypeError",
]
