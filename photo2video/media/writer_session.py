"""Writer session: the lifecycle of one output file.

State machine::

    IDLE --open()--> OPENED --start()--> WRITING --(all frames appended)--> FINALIZING
                                            |                                  |
                                            +--(encoder failure)--> FAILED <---+
                                                                   FINISHED <--+

Writing is pull based. The encoder signals that it can take more data; each
signal runs one bounded append loop that submits the shared frame buffer while
the encoder stays ready and frames remain, then returns to the event loop.
The loop never spins waiting for capacity. When the last frame has been
accepted the same invocation marks the input finished and requests finalize,
exactly once.

A session is used for a single export. FINISHED and FAILED are terminal and
``completed`` is emitted once, on entering either of them.

The encoder is parented to the session, so an unparented session must stay
referenced until it is terminal. Dropping it deletes the encoder with it.
"""

from __future__ import annotations

import enum
from fractions import Fraction
from typing import Callable, Iterator, Optional

from PySide6.QtCore import QObject, Signal

from ..core.config import EncoderSettings, ExportConfiguration
from ..core.errors import (
    EncodingError,
    ExportError,
    FileSystemError,
    SessionStateError,
    SetupError,
)
from ..core.result import ExportResult
from ..core.schedule import FrameSchedule
from ..utils import debug
from .encoder import FrameEncoder
from .pixel_buffer import FrameBuffer

EncoderFactory = Callable[[ExportConfiguration, EncoderSettings], FrameEncoder]


class SessionState(enum.Enum):
    IDLE = "idle"
    OPENED = "opened"
    WRITING = "writing"
    FINALIZING = "finalizing"
    FINISHED = "finished"
    FAILED = "failed"

    @property
    def terminal(self) -> bool:
        return self in (SessionState.FINISHED, SessionState.FAILED)


class WriterSession(QObject):
    stateChanged = Signal(object)  # SessionState
    frameAppended = Signal(int, object)  # frame index, presentation time (Fraction)
    progressChanged = Signal(float)  # 0.0 - 1.0
    completed = Signal(object)  # ExportResult

    def __init__(
        self,
        parent: Optional[QObject] = None,
        *,
        encoder_factory: Optional[EncoderFactory] = None,
        settings: EncoderSettings | None = None,
    ):
        super().__init__(parent)
        self._encoder_factory = encoder_factory or FrameEncoder
        self._settings = settings or EncoderSettings()
        self._state = SessionState.IDLE
        self._configuration: Optional[ExportConfiguration] = None
        self._encoder: Optional[FrameEncoder] = None
        self._buffer: Optional[FrameBuffer] = None
        self._timestamps: Optional[Iterator[Fraction]] = None
        self._frame_count = 0
        self._current_frame = 0
        self._in_append_loop = False
        self._result: Optional[ExportResult] = None

    # Introspection
    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def frame_count(self) -> int:
        return self._frame_count

    @property
    def frames_appended(self) -> int:
        return self._current_frame

    @property
    def result(self) -> Optional[ExportResult]:
        return self._result

    @property
    def encoder(self) -> Optional[FrameEncoder]:
        return self._encoder

    # Transitions
    def open(self, configuration: ExportConfiguration) -> None:
        """IDLE -> OPENED: clear the output path and create the encoder.

        Raises ``FileSystemError`` if an existing file cannot be removed and
        ``SetupError`` if the encoder cannot be created. The session stays
        IDLE on failure and must be discarded.
        """
        self._require(SessionState.IDLE, "open")
        path = configuration.output_path
        if path.exists() or path.is_symlink():
            if debug.DEBUG_EXPORT:
                print(f"[WriterSession] removing existing {path}")
            try:
                path.unlink()
            except OSError as e:
                raise FileSystemError(f"could not remove existing output {path}: {e}") from e
        try:
            encoder = self._encoder_factory(configuration, self._settings)
            encoder.open()
        except SetupError:
            raise
        except Exception as e:  # noqa: BLE001 - any factory failure is a setup failure
            raise SetupError(f"could not create encoder for {path}: {e}") from e
        encoder.setParent(self)
        encoder.failed.connect(self._onEncoderFailed)
        self._encoder = encoder
        self._configuration = configuration
        self._setState(SessionState.OPENED)

    def start(self, buffer: FrameBuffer, frame_count: int) -> None:
        """OPENED -> WRITING: begin at timestamp 0 and wait for readiness."""
        self._require(SessionState.OPENED, "start")
        if frame_count < 0:
            raise ValueError("frame_count must be >= 0")
        schedule = FrameSchedule(frame_count, self._configuration.frame_rate)
        self._buffer = buffer
        self._frame_count = frame_count
        self._timestamps = schedule.timestamps()
        self._current_frame = 0
        self._encoder.start_session()
        self._setState(SessionState.WRITING)
        if frame_count == 0:
            # Nothing to supply; no readiness signal is needed.
            self._finalize()
            return
        self._encoder.request_media_data_when_ready(self._onReadyForMoreMediaData)

    def abort(self, error: ExportError) -> None:
        """Fail a non-terminal session, stopping the encoder."""
        if self._state.terminal:
            raise SessionStateError("abort", self._state)
        if self._encoder is not None:
            self._encoder.cancel()
        self._fail(error)

    # Readiness protocol
    def _onReadyForMoreMediaData(self) -> None:
        if self._state is not SessionState.WRITING or self._in_append_loop:
            return
        encoder = self._encoder
        self._in_append_loop = True
        try:
            while (
                encoder.is_ready_for_more_media_data()
                and self._current_frame < self._frame_count
            ):
                presentation_time = next(self._timestamps)
                if not encoder.append(self._buffer, presentation_time):
                    error = encoder.error or EncodingError(
                        f"encoder rejected frame {self._current_frame}"
                    )
                    encoder.cancel()
                    self._fail(error)
                    return
                if debug.DEBUG_EXPORT:
                    print(
                        f"[WriterSession] appended frame {self._current_frame} at {presentation_time}"
                    )
                self.frameAppended.emit(self._current_frame, presentation_time)
                self._current_frame += 1
        finally:
            self._in_append_loop = False
        self.progressChanged.emit(self._current_frame / self._frame_count)
        if self._current_frame == self._frame_count:
            self._finalize()

    def _finalize(self) -> None:
        self._setState(SessionState.FINALIZING)
        if debug.DEBUG_EXPORT:
            print(f"[WriterSession] finalizing after {self._current_frame} frames")
        self._encoder.mark_as_finished()
        self._encoder.finish_writing(self._onFinishWriting)

    def _onFinishWriting(self, error: Optional[EncodingError]) -> None:
        if self._state is not SessionState.FINALIZING:
            return
        if error is not None:
            self._fail(error)
            return
        self._result = ExportResult.success(self._configuration.output_path)
        self._setState(SessionState.FINISHED)
        self.completed.emit(self._result)

    def _onEncoderFailed(self, error: EncodingError) -> None:
        if self._state is not SessionState.WRITING:
            return
        self._fail(error)

    # Helpers
    def _fail(self, error: ExportError) -> None:
        if debug.DEBUG_EXPORT:
            print(f"[WriterSession] failed: {error}")
        self._result = ExportResult.failure(error)
        self._setState(SessionState.FAILED)
        self.completed.emit(self._result)

    def _require(self, state: SessionState, operation: str) -> None:
        if self._state is not state:
            raise SessionStateError(operation, self._state)

    def _setState(self, state: SessionState) -> None:
        if self._state.terminal:
            raise SessionStateError(f"enter {state.name}", self._state)
        self._state = state
        self.stateChanged.emit(state)


__all__ = ["SessionState", "WriterSession", "EncoderFactory"]
