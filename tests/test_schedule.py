from fractions import Fraction

import pytest

from photo2video.core.errors import InvalidConfiguration
from photo2video.core.schedule import (
    FrameSchedule,
    frame_count,
    presentation_time,
    times_for_duration,
)


def test_two_seconds_at_thirty_fps():
    schedule = FrameSchedule.from_duration(2, 30)
    assert schedule.frame_count == 60
    times = list(schedule.timestamps())
    assert len(times) == 60
    assert times[0] == 0
    assert times[-1] == Fraction(59, 30)
    gaps = {b - a for a, b in zip(times, times[1:])}
    assert gaps == {Fraction(1, 30)}
    assert schedule.duration == 2


def test_frame_count_truncates_toward_zero():
    assert frame_count(0.7, 30) == 21
    assert frame_count(1.99, 30) == 59
    assert frame_count(0.01, 30) == 0


@pytest.mark.parametrize("duration", [0, 0.0, -1, -0.5])
def test_non_positive_duration_has_no_frames(duration):
    assert frame_count(duration, 30) == 0
    assert list(FrameSchedule.from_duration(duration, 30).timestamps()) == []


@pytest.mark.parametrize("duration", [float("nan"), float("inf"), float("-inf"), "soon"])
def test_non_finite_duration_is_invalid(duration):
    with pytest.raises(InvalidConfiguration):
        frame_count(duration, 30)


def test_invalid_frame_rate():
    with pytest.raises(InvalidConfiguration):
        frame_count(1, 0)
    with pytest.raises(InvalidConfiguration):
        presentation_time(3, -1)


def test_timestamps_generator_is_single_pass():
    gen = FrameSchedule(3, 10).timestamps()
    assert list(gen) == [0, Fraction(1, 10), Fraction(2, 10)]
    assert list(gen) == []


def test_times_for_duration_uses_configured_rate():
    times = times_for_duration(2, 24)
    assert len(times) == 48
    assert times[1] == Fraction(1, 24)
    assert times[-1] == Fraction(47, 24)
    assert all(t.denominator in (1, 2, 3, 4, 6, 8, 12, 24) for t in times)
