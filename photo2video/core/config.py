"""Export configuration values.

``ExportConfiguration`` describes where and how one export is written. It is
created once by the caller and never mutated; ``with_dimensions`` returns a
new validated copy, which is how the exporter stamps the decoded image's own
size onto the configuration at export time.

``EncoderSettings`` holds the fixed video track parameters (H.264, 6 Mbps
average, High profile with automatic level).
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Dict, Tuple

from .errors import InvalidConfiguration

DEFAULT_FRAME_RATE = 30


class ContainerFormat(enum.Enum):
    MP4 = ("mp4", ".mp4")
    MOV = ("mov", ".mov")
    M4V = ("ipod", ".m4v")
    MKV = ("matroska", ".mkv")

    def __init__(self, muxer: str, suffix: str):
        self.muxer = muxer
        self.suffix = suffix

    @classmethod
    def from_path(cls, path: str | Path) -> "ContainerFormat":
        """Infer the container from the file suffix (case-insensitive)."""
        suffix = Path(path).suffix.lower()
        for fmt in cls:
            if fmt.suffix == suffix:
                return fmt
        raise InvalidConfiguration(f"unsupported container suffix: {suffix or '<none>'}")

    @classmethod
    def from_name(cls, name: str) -> "ContainerFormat":
        try:
            return cls[name.upper()]
        except KeyError:
            raise InvalidConfiguration(f"unknown container format: {name}") from None


@dataclass(frozen=True)
class ExportConfiguration:
    """Immutable description of one export target.

    Attributes
    ----------
    output_path: Destination file. Any existing file there is deleted before writing.
    container_format: Muxer used for the output file.
    frame_dimensions: ``(width, height)`` in pixels.
    frame_rate: Frames per second; also the denominator of every timestamp.
    """

    output_path: Path
    container_format: ContainerFormat
    frame_dimensions: Tuple[int, int]
    frame_rate: int = DEFAULT_FRAME_RATE

    def __post_init__(self) -> None:
        if self.output_path is None or str(self.output_path) == "":
            raise InvalidConfiguration("output path must not be empty")
        object.__setattr__(self, "output_path", Path(self.output_path))
        if not isinstance(self.container_format, ContainerFormat):
            raise InvalidConfiguration(
                f"container format must be a ContainerFormat, got {self.container_format!r}"
            )
        try:
            width, height = (int(v) for v in self.frame_dimensions)
        except (TypeError, ValueError):
            raise InvalidConfiguration(
                f"frame dimensions must be a (width, height) pair, got {self.frame_dimensions!r}"
            ) from None
        if width <= 0 or height <= 0:
            raise InvalidConfiguration(
                f"frame dimensions must be positive, got {width}x{height}"
            )
        object.__setattr__(self, "frame_dimensions", (width, height))
        if isinstance(self.frame_rate, bool) or not isinstance(self.frame_rate, int):
            raise InvalidConfiguration(f"frame rate must be an integer, got {self.frame_rate!r}")
        if self.frame_rate <= 0:
            raise InvalidConfiguration(f"frame rate must be positive, got {self.frame_rate}")

    @property
    def width(self) -> int:
        return self.frame_dimensions[0]

    @property
    def height(self) -> int:
        return self.frame_dimensions[1]

    def with_dimensions(self, dimensions: Tuple[int, int]) -> "ExportConfiguration":
        return replace(self, frame_dimensions=tuple(dimensions))


@dataclass(frozen=True)
class EncoderSettings:
    codec: str = "libx264"
    average_bit_rate: int = 6_000_000
    profile: str = "high"
    pixel_format: str = "yuv420p"
    preset: str = "medium"
    # readiness high-water mark, in frames queued but not yet consumed by the encoder
    max_pending_frames: int = 2
    start_timeout_ms: int = 10_000

    def __post_init__(self) -> None:
        if self.average_bit_rate <= 0:
            raise InvalidConfiguration("average bit rate must be positive")
        if self.max_pending_frames < 1:
            raise InvalidConfiguration("max_pending_frames must be >= 1")

    def video_settings(self, dimensions: Tuple[int, int]) -> Dict[str, Any]:
        """Describe the video track the way the encoder is configured for it."""
        width, height = dimensions
        return {
            "codec": "h264",
            "encoder": self.codec,
            "width": width,
            "height": height,
            "compression": {
                "average_bit_rate": self.average_bit_rate,
                "profile_level": f"{self.profile}/auto",
            },
        }


__all__ = [
    "DEFAULT_FRAME_RATE",
    "ContainerFormat",
    "ExportConfiguration",
    "EncoderSettings",
]
