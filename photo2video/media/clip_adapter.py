"""Thread-safe read access to an exported video through MoviePy.

Used to inspect finished exports (size, frame rate, duration, individual
frames). Frame access is serialised with a mutex since a VideoFileClip reader
is not safe to share between threads.
"""

from __future__ import annotations

from pathlib import Path
from typing import Tuple

try:
    from moviepy import VideoFileClip
except ImportError:  # pragma: no cover
    try:
        from moviepy.editor import VideoFileClip  # type: ignore
    except ImportError:  # pragma: no cover
        VideoFileClip = None  # type: ignore

from PySide6.QtCore import QMutex, QMutexLocker


class ClipAdapter:
    def __init__(self, clip):
        self._clip = clip
        self._mutex = QMutex()

    @property
    def clip(self):
        return self._clip

    @property
    def duration(self) -> float:
        return float(getattr(self._clip, "duration", 0.0) or 0.0)

    @property
    def fps(self) -> float:
        return float(getattr(self._clip, "fps", 0.0) or 0.0)

    @property
    def size(self) -> Tuple[int, int]:
        w, h = self._clip.size
        return int(w), int(h)

    def get_frame(self, t: float):
        with QMutexLocker(self._mutex):
            return self._clip.get_frame(t)

    def close(self) -> None:
        with QMutexLocker(self._mutex):
            self._clip.close()

    def __enter__(self) -> "ClipAdapter":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    @classmethod
    def from_path(cls, path: str | Path) -> "ClipAdapter":
        if VideoFileClip is None:
            raise RuntimeError("MoviePy not available")
        return cls(VideoFileClip(str(path)))


__all__ = ["ClipAdapter"]
