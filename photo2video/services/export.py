"""Export pipeline: one still image in, one video file out.

``Exporter`` composes the pieces in order:
 - check the stored configuration
 - decode the image and render it once into a BGRA ``FrameBuffer``
 - stamp the image's own size onto the configuration as frame dimensions
 - compute the frame count for the requested duration
 - open a fresh ``WriterSession`` (delete old output, launch encoder) and start it

Those setup steps run synchronously inside ``export``. If any of them fails the
completion callback is called right away with a failure result and no writing
begins. Otherwise ``export`` returns and the writing phase proceeds on the
event loop of the thread that owns the exporter; the completion runs when the
session reaches FINISHED or FAILED.

The completion callback is invoked exactly once per ``export`` call.
"""

from __future__ import annotations

from pathlib import Path
from typing import Callable, Optional, Set, Tuple

from PySide6.QtCore import QObject, Signal

from ..core.config import EncoderSettings, ExportConfiguration
from ..core.errors import ExportError, InvalidConfiguration, SetupError
from ..core.result import ExportResult
from ..core.schedule import frame_count as compute_frame_count
from ..media.pixel_buffer import FrameBuffer, PixelBufferFactory
from ..media.writer_session import EncoderFactory, WriterSession
from ..utils import debug

CompletionCallback = Callable[[ExportResult], None]
ProgressCallback = Callable[[float], None]  # 0.0 - 1.0


class _OnceCompletion:
    """Wraps a completion so that only the first call gets through."""

    def __init__(self, callback: CompletionCallback):
        self._callback = callback
        self.fired = False

    def __call__(self, result: ExportResult) -> None:
        if self.fired:
            if debug.DEBUG_EXPORT:
                print(f"[Exporter] dropped duplicate completion {result}")
            return
        self.fired = True
        self._callback(result)


class Exporter(QObject):
    """Runs one export at a time.

    While an export is in flight the exporter holds a reference to itself in
    ``_live``, so dropping the caller's reference does not tear down the
    session and encoder before the completion fires.
    """

    exportFinished = Signal(object)  # ExportResult
    progressChanged = Signal(float)

    _live: Set["Exporter"] = set()

    def __init__(
        self,
        parent: Optional[QObject] = None,
        *,
        encoder_factory: Optional[EncoderFactory] = None,
        settings: EncoderSettings | None = None,
    ):
        super().__init__(parent)
        self._encoder_factory = encoder_factory
        self._settings = settings or EncoderSettings()
        self._configuration: Optional[ExportConfiguration] = None
        # rendering context owned for the exporter's lifetime
        self._buffer_factory = PixelBufferFactory()
        self._session: Optional[WriterSession] = None
        self._completion: Optional[_OnceCompletion] = None
        self._progress: Optional[ProgressCallback] = None

    @property
    def configuration(self) -> Optional[ExportConfiguration]:
        return self._configuration

    @property
    def session(self) -> Optional[WriterSession]:
        """The live session, if an export is in flight."""
        return self._session

    @property
    def busy(self) -> bool:
        return self._session is not None

    def configure(self, configuration: ExportConfiguration) -> None:
        if not isinstance(configuration, ExportConfiguration):
            raise InvalidConfiguration(
                f"expected ExportConfiguration, got {type(configuration).__name__}"
            )
        self._configuration = configuration

    def export(
        self,
        image_path: str | Path,
        duration_seconds: float,
        completion: CompletionCallback,
        progress: Optional[ProgressCallback] = None,
    ) -> None:
        """Write ``image_path`` held for ``duration_seconds`` to the configured output.

        Parameters
        ----------
        image_path: Source still image.
        duration_seconds: Target duration; truncated to whole frames.
        completion: Receives one ``ExportResult``.
        progress: Optional callback receiving the appended fraction.
        """
        once = _OnceCompletion(completion)
        if self._session is not None:
            self._fail_setup(once, SetupError("an export is already in progress"))
            return
        try:
            session, buffer, count = self._prepare(image_path, duration_seconds)
        except ExportError as e:
            self._fail_setup(once, e)
            return
        self._completion = once
        self._progress = progress
        self._session = session
        Exporter._live.add(self)
        session.progressChanged.connect(self._onSessionProgress)
        session.completed.connect(self._onSessionCompleted)
        session.start(buffer, count)

    # Internal
    def _fail_setup(self, once: _OnceCompletion, error: ExportError) -> None:
        if debug.DEBUG_EXPORT:
            print(f"[Exporter] setup failed: {type(error).__name__}: {error}")
        result = ExportResult.failure(error)
        once(result)
        self.exportFinished.emit(result)

    def _prepare(
        self, image_path: str | Path, duration_seconds: float
    ) -> Tuple[WriterSession, FrameBuffer, int]:
        if self._configuration is None:
            raise InvalidConfiguration("exporter is not configured; call configure() first")
        image = self._buffer_factory.load_image(image_path)
        buffer = self._buffer_factory.render(image)
        # Output dimensions always follow the source image.
        configuration = self._configuration.with_dimensions(buffer.size)
        count = compute_frame_count(duration_seconds, configuration.frame_rate)
        if debug.DEBUG_EXPORT:
            print(
                f"[Exporter] {image_path} -> {configuration.output_path} "
                f"{buffer.width}x{buffer.height} {count} frames @ {configuration.frame_rate} fps"
            )
        session = WriterSession(
            self, encoder_factory=self._encoder_factory, settings=self._settings
        )
        try:
            session.open(configuration)
        except ExportError:
            session.deleteLater()
            raise
        return session, buffer, count

    def _onSessionProgress(self, fraction: float) -> None:
        self.progressChanged.emit(fraction)
        if self._progress is not None:
            self._progress(fraction)

    def _onSessionCompleted(self, result: ExportResult) -> None:
        session = self._session
        completion = self._completion
        self._session = None
        self._completion = None
        self._progress = None
        Exporter._live.discard(self)
        if session is not None:
            session.deleteLater()
        if debug.DEBUG_EXPORT:
            print(f"[Exporter] finished: {result}")
        if completion is not None:
            completion(result)
        self.exportFinished.emit(result)


__all__ = ["Exporter", "CompletionCallback", "ProgressCallback"]
