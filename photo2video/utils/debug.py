"""Debug output toggle shared by the export pipeline.

Set ``PHOTO2VIDEO_DEBUG=1`` (or pass ``--verbose`` to the CLI) for per-frame
and lifecycle messages on stdout. Modules read ``debug.DEBUG_EXPORT`` at call
time so the flag can be flipped after import.
"""

from __future__ import annotations

import os

DEBUG_EXPORT = os.getenv("PHOTO2VIDEO_DEBUG", "").strip() not in ("", "0", "false")


def set_debug(enabled: bool) -> None:
    global DEBUG_EXPORT
    DEBUG_EXPORT = bool(enabled)


__all__ = ["DEBUG_EXPORT", "set_debug"]
