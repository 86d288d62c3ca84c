"""
I/O utilities for the evolution engine.

Handles loading the target image and writing generation snapshots to the
output directory.
"""

from pathlib import Path
from typing import Optional, Union

from evoimage.codec import ImageCodec
from evoimage.config_loader import ConfigurationError
from evoimage.image_model import Image


def load_target_image(image_path: Union[str, Path], codec: Optional[ImageCodec] = None) -> Image:
    """
    Load the target image for a run.

    Args:
        image_path: Path to the source image
        codec: Codec to decode with (default: Pillow-backed ImageCodec)

    Returns:
        Decoded target Image

    Raises:
        DecodeError: If the image cannot be read
    """
    codec = codec or ImageCodec()
    return codec.load(image_path)


def generate_snapshot_path(
    output_directory: Union[str, Path],
    generation: int,
    filename_prefix: str = "",
    suffix: str = ".png"
) -> Path:
    """
    Build the path of a generation snapshot.

    Args:
        output_directory: Directory holding the snapshots
        generation: Generation number (zero-padded to six digits)
        filename_prefix: Text put in front of the generation number
        suffix: File extension, selects the encoding

    Returns:
        Path like output_directory/{prefix}000150.png

    Example:
        generate_snapshot_path("out", 150, "lenna_")
        → out/lenna_000150.png
    """
    return Path(output_directory) / f"{filename_prefix}{generation:06d}{suffix}"


class ImageWriter:
    """
    Save sink writing the elite of selected generations to a directory.

    Attributes:
        output_directory: Existing directory receiving the snapshots
        filename_prefix: Prefix for every snapshot filename
    """

    def __init__(
        self,
        output_directory: Union[str, Path],
        filename_prefix: str = "",
        codec: Optional[ImageCodec] = None
    ):
        self.output_directory = Path(output_directory)
        self.filename_prefix = filename_prefix
        self.codec = codec or ImageCodec()

        if not self.output_directory.exists():
            raise ConfigurationError(f"Output directory does not exist: {self.output_directory}")
        if not self.output_directory.is_dir():
            raise ConfigurationError(f"Output path is not a directory: {self.output_directory}")

    def write(self, generation: int, image: Image) -> Path:
        """
        Write one generation's elite.

        Returns:
            Path of the written snapshot

        Raises:
            EncodeError: If the image cannot be written
        """
        path = generate_snapshot_path(self.output_directory, generation, self.filename_prefix)
        return self.codec.save(path, image)
