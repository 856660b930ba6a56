"""Flat-color placeholder texture handed to renderers alongside a mesh."""

from dataclasses import dataclass

import numpy as np


@dataclass(frozen=True)
class Pixel:
    r: int
    g: int
    b: int
    a: int = 255

    @staticmethod
    def rgb(r: int, g: int, b: int) -> "Pixel":
        return Pixel(r, g, b, 255)

    def as_float(self):
        return (self.r / 255.0, self.g / 255.0, self.b / 255.0, self.a / 255.0)


Pixel.TRANSPARENT = Pixel(0, 0, 0, 0)
Pixel.WHITE = Pixel.rgb(255, 255, 255)
Pixel.BLACK = Pixel.rgb(0, 0, 0)


class Texture:
    """RGBA8 pixel grid, row-major, shape (height, width, 4)."""

    def __init__(self, pixels: np.ndarray):
        pixels = np.array(pixels, dtype=np.uint8)
        if pixels.ndim != 3 or pixels.shape[2] != 4:
            raise ValueError(f"expected (height, width, 4) pixels, got {pixels.shape}")
        self.pixels = pixels
        self.pixels.setflags(write=False)

    @classmethod
    def solid(cls, pixel: Pixel, width: int = 1, height: int = 1) -> "Texture":
        grid = np.empty((height, width, 4), dtype=np.uint8)
        grid[:, :] = (pixel.r, pixel.g, pixel.b, pixel.a)
        return cls(grid)

    @classmethod
    def white(cls) -> "Texture":
        return cls.solid(Pixel.WHITE)

    @property
    def width(self) -> int:
        return self.pixels.shape[1]

    @property
    def height(self) -> int:
        return self.pixels.shape[0]

    def data(self) -> bytes:
        return self.pixels.tobytes()

    def base_color(self) -> Pixel:
        r, g, b, a = (int(c) for c in self.pixels[0, 0])
        return Pixel(r, g, b, a)

    def __eq__(self, other):
        if not isinstance(other, Texture):
            return NotImplemented
        return np.array_equal(self.pixels, other.pixels)

    __hash__ = None
