import time

import pytest
from PIL import Image
from PySide6.QtCore import QCoreApplication, QEventLoop, QObject, Signal

from photo2video.core.errors import EncodingError


@pytest.fixture(scope="session", autouse=True)
def qapp():
    return QCoreApplication.instance() or QCoreApplication([])


@pytest.fixture
def wait_until(qapp):
    """Spin the Qt event loop until ``predicate()`` is true or the timeout hits."""

    def _wait(predicate, timeout=30.0):
        deadline = time.monotonic() + timeout
        while not predicate() and time.monotonic() < deadline:
            QCoreApplication.processEvents(QEventLoop.ProcessEventsFlag.AllEvents, 50)
            time.sleep(0.002)
        return predicate()

    return _wait


@pytest.fixture
def image_file(tmp_path):
    """Write a small solid-color PNG and return its path."""

    def _make(size=(32, 24), color=(200, 40, 10), name="still.png", mode="RGB"):
        path = tmp_path / name
        Image.new(mode, size, color).save(path)
        return path

    return _make


class FakeEncoder(QObject):
    """Encoder stand-in driven by the test: readiness is pulsed by hand."""

    readyForMoreMediaData = Signal()
    failed = Signal(object)

    def __init__(self, configuration, settings):
        super().__init__()
        self.configuration = configuration
        self.settings = settings
        self.opened = False
        self.session_started = False
        self.capacity = 0
        self.appended = []
        self.reject_at = None
        self.marked_finished = False
        self.finish_requests = 0
        self.cancelled = False
        self.ready_checks_after_finish = 0
        self.error = None
        self._finish_callback = None

    def open(self):
        self.opened = True

    def start_session(self):
        self.session_started = True

    def request_media_data_when_ready(self, callback):
        self.readyForMoreMediaData.connect(callback)

    def is_ready_for_more_media_data(self):
        if self.marked_finished:
            self.ready_checks_after_finish += 1
            return False
        return self.capacity > 0

    def append(self, buffer, presentation_time):
        if self.marked_finished:
            raise AssertionError("append after mark_as_finished")
        if self.reject_at is not None and len(self.appended) == self.reject_at:
            self.error = EncodingError(f"rejected frame {self.reject_at}")
            return False
        self.appended.append((buffer, presentation_time))
        self.capacity -= 1
        return True

    def mark_as_finished(self):
        self.marked_finished = True

    def finish_writing(self, callback):
        self.finish_requests += 1
        self._finish_callback = callback

    def cancel(self):
        self.cancelled = True

    # test controls
    def pulse(self, capacity):
        self.capacity = capacity
        self.readyForMoreMediaData.emit()

    def complete(self, error=None):
        callback, self._finish_callback = self._finish_callback, None
        callback(error)

    def die(self, error):
        self.failed.emit(error)


@pytest.fixture
def fake_encoders():
    """Encoder factory that records every FakeEncoder it creates."""
    created = []

    def factory(configuration, settings):
        encoder = FakeEncoder(configuration, settings)
        created.append(encoder)
        return encoder

    factory.created = created
    return factory
