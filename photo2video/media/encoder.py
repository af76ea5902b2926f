"""H.264 encoder/muxer backed by an ffmpeg child process.

``FrameEncoder`` owns a ``QProcess`` running the ffmpeg binary that moviepy
resolves (``moviepy.config.FFMPEG_BINARY``, overridable through moviepy's
``FFMPEG_BINARY`` / ``IMAGEIO_FFMPEG_EXE`` environment variables). Raw BGRA
frames are written to the process's stdin at an input rate equal to the
configured frame rate, so frame ``i`` is presented at exactly ``i/frame_rate``.

Readiness protocol:
    ``QProcess`` buffers writes and drains them into the pipe as ffmpeg reads.
    The encoder counts as ready while fewer than ``max_pending_frames`` frames
    are queued. Every ``bytesWritten`` notification re-checks that and emits
    ``readyForMoreMediaData``; ffmpeg's consumption rate is therefore the only
    thing that paces the producer.

All methods must be called from the thread that owns the encoder; signals are
delivered on that thread's event loop.
"""

from __future__ import annotations

import os
from fractions import Fraction
from typing import Callable, List, Optional

from moviepy.config import FFMPEG_BINARY
from PySide6.QtCore import QObject, QProcess, QTimer, Signal

from ..core.config import EncoderSettings, ExportConfiguration
from ..core.errors import EncodingError, SetupError
from ..utils import debug
from .pixel_buffer import FrameBuffer

FinishCallback = Callable[[Optional[EncodingError]], None]


class FrameEncoder(QObject):
    readyForMoreMediaData = Signal()
    failed = Signal(object)  # EncodingError

    def __init__(
        self,
        configuration: ExportConfiguration,
        settings: EncoderSettings | None = None,
        parent: Optional[QObject] = None,
        *,
        binary: str | None = None,
    ):
        super().__init__(parent)
        self._configuration = configuration
        self._settings = settings or EncoderSettings()
        self._binary = binary or FFMPEG_BINARY
        width, height = configuration.frame_dimensions
        self._frame_nbytes = width * height * 4
        self._high_water = self._settings.max_pending_frames * self._frame_nbytes
        self._process: Optional[QProcess] = None
        self._accepting = False
        self._frames_appended = 0
        self._finish_callback: Optional[FinishCallback] = None
        self._done = False
        self.error: Optional[EncodingError] = None

    # Command line
    def arguments(self) -> List[str]:
        cfg = self._configuration
        s = self._settings
        video = s.video_settings(cfg.frame_dimensions)
        width, height = video["width"], video["height"]
        compression = video["compression"]
        profile = compression["profile_level"].split("/", 1)[0]
        args = [
            "-hide_banner",
            "-loglevel",
            "error",
            "-y",
            "-f",
            "rawvideo",
            "-pix_fmt",
            "bgra",
            "-s",
            f"{width}x{height}",
            "-r",
            str(cfg.frame_rate),
            "-i",
            "-",
            "-an",
            "-c:v",
            video["encoder"],
            "-preset",
            s.preset,
            "-b:v",
            str(compression["average_bit_rate"]),
            "-profile:v",
            profile,
            "-pix_fmt",
            s.pixel_format,
        ]
        if width % 2 or height % 2:
            # 4:2:0 chroma subsampling needs even dimensions
            args += ["-vf", "pad=ceil(iw/2)*2:ceil(ih/2)*2"]
        args += ["-f", cfg.container_format.muxer, os.fspath(cfg.output_path)]
        return args

    def command(self) -> List[str]:
        return [self._binary] + self.arguments()

    @property
    def frames_appended(self) -> int:
        return self._frames_appended

    # Lifecycle
    def open(self) -> None:
        """Launch the ffmpeg process. Raises ``SetupError`` if it cannot start."""
        if self._process is not None:
            raise SetupError("encoder already opened")
        process = QProcess(self)
        process.setProgram(self._binary)
        process.setArguments(self.arguments())
        process.setStandardOutputFile(QProcess.nullDevice())
        process.start()
        if not process.waitForStarted(self._settings.start_timeout_ms):
            message = process.errorString()
            process.deleteLater()
            raise SetupError(f"could not launch encoder {self._binary!r}: {message}")
        process.bytesWritten.connect(self._onBytesWritten)
        process.finished.connect(self._onProcessFinished)
        self._process = process
        if debug.DEBUG_EXPORT:
            print(f"[FrameEncoder] started: {' '.join(self.command())}")

    def start_session(self) -> None:
        if self._process is None:
            raise SetupError("encoder not opened")
        self._accepting = True

    def request_media_data_when_ready(self, callback: Callable[[], None]) -> None:
        self.readyForMoreMediaData.connect(callback)
        # first pulse comes from the event loop, never from inside this call
        QTimer.singleShot(0, self._emitReadiness)

    def is_ready_for_more_media_data(self) -> bool:
        if not self._accepting or self._process is None:
            return False
        return self._process.bytesToWrite() + self._frame_nbytes <= self._high_water

    def append(self, buffer: FrameBuffer, presentation_time: Fraction) -> bool:
        """Queue ``buffer`` as the next frame. Returns False and sets ``error`` on rejection."""
        if not self._accepting:
            return self._reject("encoder is not accepting frames")
        expected = Fraction(self._frames_appended, self._configuration.frame_rate)
        if presentation_time != expected:
            return self._reject(
                f"frame {self._frames_appended} expected at {expected}, got {presentation_time}"
            )
        if buffer.size != self._configuration.frame_dimensions:
            return self._reject(
                f"buffer is {buffer.width}x{buffer.height}, track is "
                f"{self._configuration.width}x{self._configuration.height}"
            )
        written = self._process.write(buffer.tobytes())
        if written != buffer.nbytes:
            return self._reject(f"short write to encoder ({written} of {buffer.nbytes} bytes)")
        self._frames_appended += 1
        return True

    def mark_as_finished(self) -> None:
        self._accepting = False
        if self._process is not None:
            self._process.closeWriteChannel()

    def finish_writing(self, callback: FinishCallback) -> None:
        """Ask ffmpeg to flush and close the container; ``callback`` runs on exit."""
        if self._done:
            raise EncodingError("encoder already finished")
        self._finish_callback = callback

    def cancel(self) -> None:
        self._accepting = False
        self._finish_callback = None
        self._done = True
        process = self._process
        if process is not None and process.state() != QProcess.ProcessState.NotRunning:
            process.kill()
            process.waitForFinished(1000)

    # Internal
    def _reject(self, message: str) -> bool:
        self.error = EncodingError(message)
        if debug.DEBUG_EXPORT:
            print(f"[FrameEncoder] append rejected: {message}")
        return False

    def _emitReadiness(self) -> None:
        if self.is_ready_for_more_media_data():
            self.readyForMoreMediaData.emit()

    def _onBytesWritten(self, _count: int) -> None:
        self._emitReadiness()

    def _stderrText(self) -> str:
        if self._process is None:
            return ""
        return self._process.readAllStandardError().data().decode("utf-8", "replace").strip()

    def _onProcessFinished(self, exit_code: int, exit_status) -> None:
        if self._done:
            return
        self._done = True
        self._accepting = False
        error = None
        if exit_status == QProcess.ExitStatus.CrashExit:
            error = EncodingError(f"encoder crashed: {self._stderrText() or 'no output'}")
        elif exit_code != 0:
            error = EncodingError(
                f"encoder exited with status {exit_code}: {self._stderrText() or 'no output'}"
            )
        if debug.DEBUG_EXPORT:
            print(f"[FrameEncoder] exited code={exit_code} frames={self._frames_appended}")
        callback = self._finish_callback
        self._finish_callback = None
        if callback is not None:
            self.error = error
            callback(error)
            return
        # Exited while frames were still being supplied.
        self.error = error or EncodingError("encoder exited before the session was finalized")
        self.failed.emit(self.error)


__all__ = ["FrameEncoder", "FinishCallback"]
