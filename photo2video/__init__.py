"""Top-level package exports.

Public API surface (keep minimal):
 - ExportConfiguration, ContainerFormat, EncoderSettings (configuration)
 - Exporter (orchestrates one image -> video export)
 - ExportResult and the ExportError hierarchy (outcomes)

Lower-level pieces (FrameSchedule, PixelBufferFactory, WriterSession,
FrameEncoder) are importable from their modules.
"""

from .core.config import ContainerFormat, EncoderSettings, ExportConfiguration  # noqa: F401
from .core.errors import (  # noqa: F401
    BufferAllocationError,
    EncodingError,
    ExportError,
    FileSystemError,
    ImageLoadError,
    InvalidConfiguration,
    SetupError,
)
from .core.result import ExportResult  # noqa: F401
from .services.export import Exporter  # noqa: F401

__all__ = [
    "ContainerFormat",
    "EncoderSettings",
    "ExportConfiguration",
    "Exporter",
    "ExportResult",
    "ExportError",
    "InvalidConfiguration",
    "FileSystemError",
    "SetupError",
    "ImageLoadError",
    "BufferAllocationError",
    "EncodingError",
]
