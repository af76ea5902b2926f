"""Decode the source image and render it once into a BGRA frame buffer.

The buffer is sized to the image's natural extent and handed by reference to
every append call; the content never changes between frames, so rendering is
a single blocking step per export.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import numpy as np
from PIL import Image, UnidentifiedImageError

from ..core.errors import BufferAllocationError, ImageLoadError
from ..utils import debug

# channel indices of RGBA that produce BGRA
_BGRA_ORDER = [2, 1, 0, 3]


class FrameBuffer:
    """Read-only 32-bit BGRA pixel buffer, shape ``(height, width, 4)``."""

    pixel_format = "bgra"

    def __init__(self, pixels: np.ndarray):
        if pixels.ndim != 3 or pixels.shape[2] != 4 or pixels.dtype != np.uint8:
            raise BufferAllocationError(
                f"expected (h, w, 4) uint8 pixels, got {pixels.shape} {pixels.dtype}"
            )
        pixels.flags.writeable = False
        self._pixels = pixels
        self._raw: Optional[bytes] = None

    @property
    def pixels(self) -> np.ndarray:
        return self._pixels

    @property
    def width(self) -> int:
        return int(self._pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self._pixels.shape[0])

    @property
    def size(self) -> tuple[int, int]:
        return self.width, self.height

    @property
    def nbytes(self) -> int:
        return int(self._pixels.nbytes)

    def tobytes(self) -> bytes:
        # Same bytes go out for every frame; serialise once.
        if self._raw is None:
            self._raw = self._pixels.tobytes()
        return self._raw

    def __repr__(self) -> str:
        return f"FrameBuffer({self.width}x{self.height}, bgra)"


class PixelBufferFactory:
    """Turns image files into ``FrameBuffer`` objects.

    One instance lives as long as the ``Exporter`` that owns it.
    """

    def load_image(self, path: str | Path) -> Image.Image:
        p = Path(path)
        try:
            with Image.open(p) as img:
                img.load()
                # Detach from the file handle before the context closes it.
                image = img.copy()
        except FileNotFoundError:
            raise ImageLoadError(f"image not found: {p}") from None
        except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError) as e:
            raise ImageLoadError(f"could not decode image {p}: {e}") from e
        if debug.DEBUG_EXPORT:
            print(f"[PixelBufferFactory] loaded {p} mode={image.mode} size={image.size}")
        return image

    def render(self, image: Image.Image) -> FrameBuffer:
        width, height = image.size
        if width <= 0 or height <= 0:
            raise BufferAllocationError(f"cannot allocate a {width}x{height} buffer")
        try:
            pixels = np.empty((height, width, 4), dtype=np.uint8)
        except (MemoryError, ValueError) as e:
            raise BufferAllocationError(
                f"could not allocate {width}x{height} BGRA buffer: {e}"
            ) from e

        rgba = image.convert("RGBA")
        if "A" in image.getbands() or "transparency" in image.info:
            # Transparent regions render as black, as in a premultiplied buffer.
            background = Image.new("RGBA", rgba.size, (0, 0, 0, 255))
            rgba = Image.alpha_composite(background, rgba)
        pixels[...] = np.asarray(rgba)[..., _BGRA_ORDER]
        if debug.DEBUG_EXPORT:
            print(f"[PixelBufferFactory] rendered {width}x{height} BGRA buffer")
        return FrameBuffer(pixels)


__all__ = ["FrameBuffer", "PixelBufferFactory"]
