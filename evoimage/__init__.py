"""
Franklin - Evolutionary Image Approximation

Image model, codec, display and configuration shared by the evolution engine.
"""

__version__ = "1.0.0"
__author__ = "Franklin Team"

# Export main classes for easy importing
from .image_model import ColorMode, Image, Pixel
from .codec import ImageCodec, ImageIOError, DecodeError, EncodeError
from .config_loader import ConfigurationError, load_config, validate_config

__all__ = [
    'ColorMode',
    'Image',
    'Pixel',
    'ImageCodec',
    'ImageIOError',
    'DecodeError',
    'EncodeError',
    'ConfigurationError',
    'load_config',
    'validate_config',
]
