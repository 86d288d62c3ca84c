"""
Image Data Model

Pixel, Image and ColorMode types shared by the codec, the display and the
evolution engine. Images are stored as contiguous numpy buffers so that
mutation, fitness and crossover strategies can work on whole arrays.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Tuple

import numpy as np


class ColorMode(Enum):
    """How color channels of specimens are treated"""
    RGB = "rgb"              # channels mutated and scored separately
    GRAYSCALE = "grayscale"  # all three channels always hold the same value


@dataclass(frozen=True)
class Pixel:
    """Three 8-bit color channels"""
    r: int
    g: int
    b: int

    def __post_init__(self):
        for channel in (self.r, self.g, self.b):
            if not 0 <= channel <= 255:
                raise ValueError(f"Channel value out of range 0-255: {channel}")

    @classmethod
    def white(cls) -> 'Pixel':
        return cls(255, 255, 255)

    @classmethod
    def grayscale(cls, value: int) -> 'Pixel':
        return cls(value, value, value)

    def as_tuple(self) -> Tuple[int, int, int]:
        return (self.r, self.g, self.b)

    def __iter__(self):
        """Allow unpacking as tuple"""
        yield self.r
        yield self.g
        yield self.b


class Image:
    """
    Row-major raster of height*width RGB pixels.

    The pixel buffer always has shape (height*width, 3) and dtype uint8.
    Use as_array() for a (height, width, 3) view that shares memory with
    the buffer, so in-place edits on the view mutate the image.
    """

    def __init__(self, height: int, width: int, pixels: np.ndarray):
        if height <= 0 or width <= 0:
            raise ValueError(f"Image dimensions must be positive, got {height}x{width}")

        pixels = np.ascontiguousarray(pixels, dtype=np.uint8)
        if pixels.ndim == 3:
            pixels = pixels.reshape(-1, 3)

        if pixels.shape != (height * width, 3):
            raise ValueError(
                f"Pixel buffer of shape {pixels.shape} does not match "
                f"{height}x{width} image (expected ({height * width}, 3))"
            )

        self._height = height
        self._width = width
        self._pixels = pixels

    @classmethod
    def blank(cls, height: int, width: int, pixel: Pixel = None) -> 'Image':
        """Create an image filled with a single color (white by default)"""
        pixel = pixel or Pixel.white()
        pixels = np.empty((height * width, 3), dtype=np.uint8)
        pixels[:] = pixel.as_tuple()
        return cls(height, width, pixels)

    @classmethod
    def from_pixels(cls, height: int, width: int, pixels: Iterable[Pixel]) -> 'Image':
        data = np.array([p.as_tuple() for p in pixels], dtype=np.uint8)
        if data.size == 0:
            data = data.reshape(0, 3)
        return cls(height, width, data)

    @classmethod
    def from_array(cls, array: np.ndarray) -> 'Image':
        """Create an image from a (height, width, 3) array"""
        array = np.asarray(array)
        if array.ndim != 3 or array.shape[2] != 3:
            raise ValueError(f"Expected array of shape (height, width, 3), got {array.shape}")
        return cls(array.shape[0], array.shape[1], array)

    @property
    def height(self) -> int:
        return self._height

    @property
    def width(self) -> int:
        return self._width

    @property
    def dimensions(self) -> Tuple[int, int]:
        """(height, width)"""
        return (self._height, self._width)

    @property
    def pixels(self) -> np.ndarray:
        """The (height*width, 3) uint8 pixel buffer"""
        return self._pixels

    def as_array(self) -> np.ndarray:
        """(height, width, 3) view over the pixel buffer"""
        return self._pixels.reshape(self._height, self._width, 3)

    def as_raw_bytes(self) -> bytes:
        return self._pixels.tobytes()

    def copy(self) -> 'Image':
        return Image(self._height, self._width, self._pixels.copy())

    def freeze(self) -> 'Image':
        """Mark the pixel buffer read-only and return self"""
        self._pixels.flags.writeable = False
        return self

    def __len__(self) -> int:
        return self._pixels.shape[0]

    def __getitem__(self, index: int) -> Pixel:
        r, g, b = self._pixels[index]
        return Pixel(int(r), int(g), int(b))

    def __setitem__(self, index: int, pixel: Pixel):
        self._pixels[index] = pixel.as_tuple()

    def __eq__(self, other) -> bool:
        if not isinstance(other, Image):
            return NotImplemented
        return (self.dimensions == other.dimensions
                and np.array_equal(self._pixels, other._pixels))

    def __repr__(self) -> str:
        return f"Image(height={self._height}, width={self._width})"
