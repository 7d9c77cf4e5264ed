"""
8-bit RGB output image.

Shading works on unclamped linear colors; this is the only place they are
clamped to [0, 1] and quantized to bytes.
"""

from __future__ import annotations
import logging
import math
from pathlib import Path
from typing import Union

import numpy as np
from PIL import Image as PILImage

from .vec3 import Color

logger = logging.getLogger(__name__)


def to_byte(c: float) -> int:
    """Clamp a channel to [0, 1] and map it to the nearest byte value."""
    if math.isnan(c):
        return 0
    c = min(max(c, 0.0), 1.0)
    return int(math.floor(c * 255 + 0.5))


def quantize(colors: np.ndarray) -> np.ndarray:
    """Vectorized to_byte over an array of float channels."""
    clipped = np.clip(np.nan_to_num(colors, nan=0.0), 0.0, 1.0)
    return np.floor(clipped * 255 + 0.5).astype(np.uint8)


class Framebuffer:
    """A width x height grid of RGB bytes, row-major, top row first."""

    def __init__(self, width: int, height: int):
        if width <= 0 or height <= 0:
            raise ValueError(f"Framebuffer size must be positive, got {width}x{height}")
        self.width = width
        self.height = height
        self.data = np.zeros((height, width, 3), dtype=np.uint8)

    def set_color(self, x: int, y: int, color: Color) -> None:
        """Store a linear color at column x, row y (row 0 is the top)."""
        self.data[y, x] = (to_byte(color.r), to_byte(color.g), to_byte(color.b))

    def set_row(self, y: int, colors: np.ndarray) -> None:
        """Store a whole row of linear colors, shape (width, 3)."""
        self.data[y] = quantize(colors)

    def get_color(self, x: int, y: int) -> tuple[int, int, int]:
        r, g, b = self.data[y, x]
        return int(r), int(g), int(b)

    def to_image(self) -> PILImage.Image:
        """Return the pixels as a Pillow RGB image."""
        return PILImage.fromarray(self.data, 'RGB')

    def save(self, filename: Union[str, Path]) -> Path:
        """Encode the framebuffer to disk; format follows the file extension.

        Args:
            filename: Output path, parent directories are created

        Returns:
            The path that was written
        """
        path = Path(filename)
        path.parent.mkdir(parents=True, exist_ok=True)
        self.to_image().save(path)
        logger.info("Saved %dx%d image to %s", self.width, self.height, path)
        return path

    def __repr__(self) -> str:
        return f"Framebuffer({self.width}x{self.height})"
