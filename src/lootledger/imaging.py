from __future__ import annotations

import io
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional, Protocol

from PIL import Image

from .errors import ImageUnavailable

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PixelRegion:
    """Raw RGBA pixels cut out of a host texture.

    `pixels` holds width * height * 4 bytes. Engines that address textures
    from the bottom row up set `bottom_up` so encoders can flip the rows.
    """

    width: int
    height: int
    pixels: bytes
    bottom_up: bool = False

    def __post_init__(self) -> None:
        if self.width <= 0 or self.height <= 0:
            raise ImageUnavailable(f"Empty pixel region {self.width}x{self.height}")
        expected = self.width * self.height * 4
        if len(self.pixels) != expected:
            raise ImageUnavailable(
                f"Pixel buffer has {len(self.pixels)} bytes, expected {expected} for RGBA {self.width}x{self.height}"
            )


class IconHandle(Protocol):
    """Host reference to an item's icon sprite."""

    def read_region(self) -> Optional[PixelRegion]:
        """Read the sprite's pixels. Must run on the host rendering thread.

        Returns None (or raises ImageUnavailable) when the source texture is not readable.
        """


class ImageEncoder(ABC):
    """Turns a pixel region into encoded image bytes."""

    @abstractmethod
    def encode(self, region: PixelRegion) -> bytes:
        raise NotImplementedError


class PillowPngEncoder(ImageEncoder):
    """PNG encoder backed by Pillow."""

    def __init__(self, optimize: bool = False) -> None:
        self.optimize = optimize

    def encode(self, region: PixelRegion) -> bytes:
        image = Image.frombytes("RGBA", (region.width, region.height), region.pixels)
        if region.bottom_up:
            image = image.transpose(Image.Transpose.FLIP_TOP_BOTTOM)
        buf = io.BytesIO()
        image.save(buf, format="PNG", optimize=self.optimize)
        logger.debug("Encoded %dx%d icon to %d PNG bytes", region.width, region.height, buf.tell())
        return buf.getvalue()
