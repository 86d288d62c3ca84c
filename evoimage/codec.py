"""
Image Codec

Loads target images from disk and writes evolved specimens back out.
Decoding goes through Pillow so any format it understands can be used as a
target, as long as it converts to 8-bit RGB.
"""

from pathlib import Path
from typing import Union

import numpy as np
from PIL import Image as PILImage
from PIL import UnidentifiedImageError

from .image_model import Image


class ImageIOError(OSError):
    """Base class for image load/save failures"""
    pass


class DecodeError(ImageIOError):
    """Raised when an image cannot be read or converted to RGB"""
    pass


class EncodeError(ImageIOError):
    """Raised when an image cannot be written"""
    pass


# Pillow modes that convert to RGB without losing meaning
_RGB_CONVERTIBLE_MODES = {"1", "L", "LA", "P", "PA", "RGB", "RGBA", "RGBX", "CMYK", "YCbCr", "I;16", "I", "F"}


class ImageCodec:
    """Reads and writes Images through Pillow"""

    def load(self, path: Union[str, Path]) -> Image:
        """
        Load the image at the given path as 8-bit RGB.

        Args:
            path: Path to an image file

        Returns:
            Decoded Image

        Raises:
            DecodeError: If the file is missing, unreadable, or cannot be
                converted to RGB
        """
        path = Path(path)

        if not path.exists():
            raise DecodeError(f"Image file not found: {path}")
        if not path.is_file():
            raise DecodeError(f"Image path is not a file: {path}")

        try:
            with PILImage.open(path) as source:
                if source.mode not in _RGB_CONVERTIBLE_MODES:
                    raise DecodeError(
                        f"Cannot convert image mode '{source.mode}' to RGB: {path}"
                    )
                array = np.asarray(source.convert("RGB"), dtype=np.uint8)
        except UnidentifiedImageError as e:
            raise DecodeError(f"Unrecognized image format: {path}") from e
        except OSError as e:
            if isinstance(e, DecodeError):
                raise
            raise DecodeError(f"Failed to read image {path}: {e}") from e

        return Image.from_array(array)

    def save(self, path: Union[str, Path], image: Image) -> Path:
        """
        Write an image to disk. The format is chosen from the file suffix.

        Args:
            path: Destination file path
            image: Image to write

        Returns:
            Path of the written file

        Raises:
            EncodeError: If the image cannot be encoded or written
        """
        path = Path(path)

        try:
            PILImage.fromarray(image.as_array()).save(path)
        except (OSError, ValueError, KeyError) as e:
            raise EncodeError(f"Failed to write image {path}: {e}") from e

        return path
