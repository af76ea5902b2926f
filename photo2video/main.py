"""Command line entry point: ``photo2video IMAGE OUTPUT --duration 2``.

Runs a QCoreApplication event loop for the writing phase and exits once the
export completes (status 0 on success, 1 on failure).
"""

from __future__ import annotations

import argparse
import sys
from typing import List, Optional

from PySide6.QtCore import QCoreApplication, QEventLoop

from .core.config import DEFAULT_FRAME_RATE, ContainerFormat, ExportConfiguration
from .core.errors import ExportError
from .core.result import ExportResult
from .media.clip_adapter import ClipAdapter
from .services.export import Exporter
from .utils import debug
from .utils.timefmt import format_time


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="photo2video",
        description="Turn a still image into an H.264 video of a given duration.",
    )
    parser.add_argument("image", help="Path to the source image")
    parser.add_argument("output", help="Output video path (overwritten if it exists)")
    parser.add_argument(
        "--duration", type=float, default=2.0, help="Duration in seconds (default: 2)"
    )
    parser.add_argument(
        "--fps", type=int, default=DEFAULT_FRAME_RATE, help="Frame rate (default: 30)"
    )
    parser.add_argument(
        "--format",
        dest="container",
        choices=[f.name.lower() for f in ContainerFormat],
        default=None,
        help="Container format (default: inferred from the output suffix)",
    )
    parser.add_argument("--verbose", action="store_true", help="Print per-frame progress")
    return parser


def _summary(result: ExportResult) -> str:
    path = result.output_path
    try:
        with ClipAdapter.from_path(path) as clip:
            w, h = clip.size
            return f"Wrote {path} ({w}x{h}, {format_time(clip.duration)} @ {clip.fps:g} fps)"
    except Exception as e:  # noqa: BLE001 - summary is informational only
        return f"Wrote {path} (could not read back: {e})"


def run(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    if args.verbose:
        debug.set_debug(True)

    try:
        container = (
            ContainerFormat.from_name(args.container)
            if args.container
            else ContainerFormat.from_path(args.output)
        )
        # Dimensions are replaced by the image's own size at export time.
        configuration = ExportConfiguration(args.output, container, (1, 1), args.fps)
    except ExportError as e:
        print(f"error: {e}", file=sys.stderr)
        return 1

    app = QCoreApplication.instance() or QCoreApplication(sys.argv[:1])
    exporter = Exporter()
    exporter.configure(configuration)
    outcome: dict = {}
    # Local loop: nothing is left queued on the application once run() returns.
    loop = QEventLoop(app)

    def on_complete(result: ExportResult) -> None:
        outcome["result"] = result
        if loop.isRunning():
            loop.quit()

    exporter.export(args.image, args.duration, on_complete)
    if "result" not in outcome:
        loop.exec()

    result: ExportResult = outcome["result"]
    if not result.ok:
        print(f"error: {type(result.error).__name__}: {result.error}", file=sys.stderr)
        return 1
    print(_summary(result))
    return 0


def main() -> None:
    sys.exit(run())


if __name__ == "__main__":
    main()
