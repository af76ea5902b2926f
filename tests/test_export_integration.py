"""End-to-end exports through the real ffmpeg encoder, read back with MoviePy."""

from photo2video.core.config import ContainerFormat, ExportConfiguration
from photo2video.core.errors import ImageLoadError
from photo2video.media.clip_adapter import ClipAdapter
from photo2video.services.export import Exporter


def _export(exporter, image, seconds, wait_until):
    results = []
    exporter.export(image, seconds, results.append)
    assert wait_until(lambda: bool(results), timeout=60.0)
    assert len(results) == 1
    return results[0]


def test_export_two_seconds(tmp_path, image_file, wait_until):
    out = tmp_path / "still.mp4"
    exporter = Exporter()
    exporter.configure(ExportConfiguration(out, ContainerFormat.MP4, (1, 1), 30))
    result = _export(exporter, image_file(size=(64, 48), color=(0, 200, 0)), 2, wait_until)
    assert result.ok, result.error
    assert result.output_path == out
    with ClipAdapter.from_path(out) as clip:
        assert clip.size == (64, 48)
        assert abs(clip.fps - 30) < 0.01
        assert abs(clip.duration - 2.0) < 0.1
        frame = clip.get_frame(1.0)
        assert frame.shape[:2] == (48, 64)
        r, g, b = frame[24, 32][:3]
        assert g > 150 and r < 60 and b < 60


def test_export_twice_replaces_output(tmp_path, image_file, wait_until):
    out = tmp_path / "again.mov"
    exporter = Exporter()
    exporter.configure(ExportConfiguration(out, ContainerFormat.MOV, (1, 1), 15))
    first = _export(exporter, image_file(size=(32, 32), color=(255, 0, 0), name="red.png"), 2, wait_until)
    assert first.ok, first.error
    second = _export(exporter, image_file(size=(16, 16), color=(0, 0, 255), name="blue.png"), 1, wait_until)
    assert second.ok, second.error
    with ClipAdapter.from_path(out) as clip:
        assert clip.size == (16, 16)
        assert abs(clip.duration - 1.0) < 0.15
        r, g, b = clip.get_frame(0.5)[8, 8][:3]
        assert b > 150 and r < 80


def test_odd_sized_image_exports(tmp_path, image_file, wait_until):
    out = tmp_path / "odd.mp4"
    exporter = Exporter()
    exporter.configure(ExportConfiguration(out, ContainerFormat.MP4, (1, 1), 10))
    result = _export(exporter, image_file(size=(33, 21)), 1, wait_until)
    assert result.ok, result.error
    with ClipAdapter.from_path(out) as clip:
        assert clip.size == (34, 22)


def test_missing_image_creates_no_output(tmp_path, wait_until):
    out = tmp_path / "never.mp4"
    exporter = Exporter()
    exporter.configure(ExportConfiguration(out, ContainerFormat.MP4, (1, 1)))
    result = _export(exporter, tmp_path / "ghost.png", 2, wait_until)
    assert isinstance(result.error, ImageLoadError)
    assert not out.exists()
