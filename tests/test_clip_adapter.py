from moviepy import ColorClip

from photo2video.media.clip_adapter import ClipAdapter


def test_clip_adapter_basic(tmp_path):
    video_path = tmp_path / "color.mp4"
    clip = ColorClip(size=(32, 32), color=(0, 255, 0), duration=0.5)
    clip.write_videofile(str(video_path), fps=24, logger=None)
    clip.close()
    adapter = ClipAdapter.from_path(str(video_path))
    assert adapter.duration == 0.5
    assert adapter.size == (32, 32)
    assert adapter.fps == 24
    frame = adapter.get_frame(0.1)
    assert frame.shape[0] == 32 and frame.shape[1] == 32
    adapter.close()


def test_clip_adapter_context_manager(tmp_path):
    video_path = tmp_path / "ctx.mp4"
    clip = ColorClip(size=(16, 16), color=(0, 0, 0), duration=0.2)
    clip.write_videofile(str(video_path), fps=10, logger=None)
    clip.close()
    with ClipAdapter.from_path(video_path) as adapter:
        assert adapter.get_frame(0).shape[:2] == (16, 16)
