"""Image decoding service backed by Pillow.

Turns image files into raw ``PixelBuffer`` objects at a requested size.
All format handling lives here; the compositor only ever sees pixels.
"""

from __future__ import annotations

import logging
from pathlib import Path

from PIL import Image, ImageOps

from .compositor import PixelBuffer
from .errors import DecodeError

logger = logging.getLogger(__name__)

MEDIA_EXTENSIONS = frozenset(
    {".jpg", ".jpeg", ".png", ".gif", ".bmp", ".webp", ".tiff", ".tga"}
)

_ALPHA_MODES = frozenset({"RGBA", "LA", "PA", "RGBa", "La"})


def is_media_file(name: str) -> bool:
    """Return whether ``name`` has a recognized image extension."""
    return Path(name).suffix.lower() in MEDIA_EXTENSIONS


def _has_alpha(image: Image.Image) -> bool:
    return image.mode in _ALPHA_MODES or "transparency" in image.info


class PillowImageDecoder:
    """Decode and resize images into 8-bit RGB/RGBA pixel buffers."""

    def __init__(self, resample: Image.Resampling = Image.Resampling.LANCZOS) -> None:
        self.resample = resample

    def dimensions(self, path: Path) -> tuple[int, int]:
        """Return ``(width, height)`` in source pixels."""
        try:
            with Image.open(path) as image:
                return image.size
        except (OSError, ValueError, Image.DecompressionBombError) as exc:
            raise DecodeError(path, str(exc)) from exc

    def decode(
        self,
        path: Path,
        target_width: int | None = None,
        target_height: int | None = None,
    ) -> PixelBuffer:
        """Decode ``path`` into a pixel buffer.

        With both targets the image is scaled to cover the box and center
        cropped. With only ``target_width`` the height follows the source
        aspect ratio. Without targets the native size is kept.
        """
        try:
            with Image.open(path) as image:
                image.seek(0)
                mode = "RGBA" if _has_alpha(image) else "RGB"
                frame = image.convert(mode)
        except (OSError, ValueError, EOFError, Image.DecompressionBombError) as exc:
            logger.debug("decode failed for %s: %s", path, exc)
            raise DecodeError(path, str(exc)) from exc

        source_width, source_height = frame.size
        if source_width <= 0 or source_height <= 0:
            raise DecodeError(path, "image has no pixels")

        if target_width is not None and target_height is not None:
            frame = ImageOps.fit(
                frame,
                (max(1, target_width), max(1, target_height)),
                method=self.resample,
            )
        elif target_width is not None:
            width = max(1, target_width)
            height = max(1, round(width * source_height / source_width))
            frame = frame.resize((width, height), self.resample)
        elif target_height is not None:
            height = max(1, target_height)
            width = max(1, round(height * source_width / source_height))
            frame = frame.resize((width, height), self.resample)

        return PixelBuffer(
            width=frame.width,
            height=frame.height,
            channels=len(mode),
            data=frame.tobytes(),
        )
