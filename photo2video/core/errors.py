"""Error types raised while setting up or running an export.

Every export outcome that is not a success carries one of the ``ExportError``
subclasses below. ``SessionStateError`` is separate: it signals misuse of the
writer session API (calling an operation from the wrong state) and is never
delivered through a completion callback.
"""

from __future__ import annotations


class ExportError(Exception):
    """Base class for all export failures."""


class InvalidConfiguration(ExportError):
    """Non-positive frame rate or dimensions, empty output path, missing configuration."""


class FileSystemError(ExportError):
    """An existing output file could not be removed."""


class SetupError(ExportError):
    """The encoder/muxer could not be created for the given configuration."""


class ImageLoadError(ExportError):
    """The source image could not be decoded."""


class BufferAllocationError(ExportError):
    """A pixel buffer could not be allocated for the decoded image."""


class EncodingError(ExportError):
    """The encoder reported a failure while appending or finalizing."""


class SessionStateError(RuntimeError):
    def __init__(self, operation: str, state) -> None:
        super().__init__(f"cannot {operation} while session is {state.name}")
        self.operation = operation
        self.state = state


__all__ = [
    "ExportError",
    "InvalidConfiguration",
    "FileSystemError",
    "SetupError",
    "ImageLoadError",
    "BufferAllocationError",
    "EncodingError",
    "SessionStateError",
]
