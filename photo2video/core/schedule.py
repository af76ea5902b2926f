"""Frame scheduling: how many frames an export has and when each one appears.

Timestamps are exact rationals whose denominator is the configured frame rate,
so frame ``i`` lands at ``i / frame_rate`` seconds with no drift. The same time
base is used everywhere, including ``times_for_duration``.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from fractions import Fraction
from typing import Iterator, List

from .errors import InvalidConfiguration


def _check_rate(frame_rate: int) -> None:
    if frame_rate <= 0:
        raise InvalidConfiguration(f"frame rate must be positive, got {frame_rate}")


def frame_count(duration_seconds: float, frame_rate: int) -> int:
    """Return the number of whole frames in ``duration_seconds``.

    Truncates toward zero. The duration goes through ``Decimal(str(...))`` so
    binary float noise does not drop a frame (0.7 s at 30 fps is 21 frames).
    Non-positive durations give 0; NaN and infinities raise ``InvalidConfiguration``.
    """
    _check_rate(frame_rate)
    try:
        duration = Decimal(str(duration_seconds))
    except InvalidOperation:
        raise InvalidConfiguration(f"duration must be a number, got {duration_seconds!r}") from None
    if not duration.is_finite():
        raise InvalidConfiguration(f"duration must be finite, got {duration_seconds!r}")
    if duration <= 0:
        return 0
    return int(duration * frame_rate)


def presentation_time(index: int, frame_rate: int) -> Fraction:
    _check_rate(frame_rate)
    return Fraction(index, frame_rate)


@dataclass(frozen=True)
class FrameSchedule:
    frame_count: int
    frame_rate: int

    def __post_init__(self) -> None:
        _check_rate(self.frame_rate)
        if self.frame_count < 0:
            raise ValueError("frame_count must be >= 0")

    @classmethod
    def from_duration(cls, duration_seconds: float, frame_rate: int) -> "FrameSchedule":
        return cls(frame_count(duration_seconds, frame_rate), frame_rate)

    @property
    def duration(self) -> Fraction:
        return Fraction(self.frame_count, self.frame_rate)

    def timestamps(self) -> Iterator[Fraction]:
        """Lazily yield ``i / frame_rate`` for every frame, in increasing order.

        Each call returns a fresh generator; a generator itself cannot be restarted.
        """
        for index in range(self.frame_count):
            yield Fraction(index, self.frame_rate)


def times_for_duration(seconds: float, frame_rate: int) -> List[Fraction]:
    return list(FrameSchedule.from_duration(seconds, frame_rate).timestamps())


__all__ = [
    "frame_count",
    "presentation_time",
    "FrameSchedule",
    "times_for_duration",
]
