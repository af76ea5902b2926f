"""Time formatting utilities.

``format_time`` renders seconds (float or exact ``Fraction``) as mm:ss.mmm;
``format_frame_time`` does the same for a frame index at a given frame rate.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from fractions import Fraction
from numbers import Real

__all__ = ["format_time", "format_frame_time"]


def _to_decimal(seconds: Real) -> Decimal:
    if isinstance(seconds, Fraction):
        return Decimal(seconds.numerator) / Decimal(seconds.denominator)
    return Decimal(str(seconds))


def format_time(seconds: Real) -> str:
    """Return a timestamp mm:ss.mmm for logs and summaries.

    Uses ROUND_HALF_UP for milliseconds to avoid bankers rounding
    (1.2345 -> 1.235). Negative values clamp to zero.
    """
    if seconds < 0:
        seconds = 0
    ms_total = int(
        (_to_decimal(seconds) * Decimal(1000)).to_integral_value(rounding=ROUND_HALF_UP)
    )
    m, rem = divmod(ms_total, 60000)
    s, ms = divmod(rem, 1000)
    return f"{m:02d}:{s:02d}.{ms:03d}"


def format_frame_time(index: int, frame_rate: int) -> str:
    return format_time(Fraction(index, frame_rate))
