"""
Tests for the image data model
"""

import unittest
import sys
from pathlib import Path

import numpy as np

# Add parent directory to path
sys.path.append(str(Path(__file__).parent.parent))

from evoimage.image_model import ColorMode, Image, Pixel


class TestPixel(unittest.TestCase):
    """Test Pixel value type"""

    def test_white(self):
        self.assertEqual(Pixel.white(), Pixel(255, 255, 255))

    def test_grayscale(self):
        self.assertEqual(Pixel.grayscale(42).as_tuple(), (42, 42, 42))

    def test_out_of_range_channel(self):
        with self.assertRaises(ValueError):
            Pixel(256, 0, 0)
        with self.assertRaises(ValueError):
            Pixel(0, -1, 0)

    def test_unpacking(self):
        r, g, b = Pixel(1, 2, 3)
        self.assertEqual((r, g, b), (1, 2, 3))


class TestImage(unittest.TestCase):
    """Test Image buffer handling"""

    def test_blank_is_white(self):
        image = Image.blank(2, 3)
        self.assertEqual(image.dimensions, (2, 3))
        self.assertEqual(len(image), 6)
        self.assertTrue(np.all(image.pixels == 255))

    def test_blank_with_color(self):
        image = Image.blank(2, 2, Pixel(10, 20, 30))
        self.assertEqual(image[3], Pixel(10, 20, 30))

    def test_buffer_shape_must_match_dimensions(self):
        with self.assertRaises(ValueError):
            Image(2, 2, np.zeros((5, 3), dtype=np.uint8))

    def test_non_positive_dimensions(self):
        with self.assertRaises(ValueError):
            Image(0, 4, np.zeros((0, 3), dtype=np.uint8))

    def test_from_pixels_row_major(self):
        pixels = [Pixel(i, i, i) for i in range(6)]
        image = Image.from_pixels(2, 3, pixels)

        # Second row, first column is index 3
        self.assertEqual(image.as_array()[1, 0].tolist(), [3, 3, 3])

    def test_from_array(self):
        array = np.zeros((4, 5, 3), dtype=np.uint8)
        array[1, 2] = (7, 8, 9)
        image = Image.from_array(array)

        self.assertEqual(image.height, 4)
        self.assertEqual(image.width, 5)
        self.assertEqual(image[1 * 5 + 2], Pixel(7, 8, 9))

    def test_from_array_rejects_wrong_shape(self):
        with self.assertRaises(ValueError):
            Image.from_array(np.zeros((4, 5), dtype=np.uint8))

    def test_as_array_is_a_view(self):
        image = Image.blank(2, 2)
        image.as_array()[0, 1] = (0, 0, 0)
        self.assertEqual(image[1], Pixel(0, 0, 0))

    def test_copy_owns_its_buffer(self):
        image = Image.blank(2, 2)
        clone = image.copy()
        clone[0] = Pixel(1, 2, 3)

        self.assertEqual(image[0], Pixel.white())
        self.assertNotEqual(image, clone)

    def test_freeze_makes_buffer_read_only(self):
        image = Image.blank(2, 2).freeze()
        with self.assertRaises(ValueError):
            image[0] = Pixel(0, 0, 0)

    def test_raw_bytes(self):
        image = Image.blank(1, 2, Pixel(1, 2, 3))
        self.assertEqual(image.as_raw_bytes(), bytes([1, 2, 3, 1, 2, 3]))

    def test_equality(self):
        self.assertEqual(Image.blank(2, 2), Image.blank(2, 2))
        self.assertNotEqual(Image.blank(2, 2), Image.blank(1, 4))


class TestColorMode(unittest.TestCase):

    def test_values(self):
        self.assertIs(ColorMode("rgb"), ColorMode.RGB)
        self.assertIs(ColorMode("grayscale"), ColorMode.GRAYSCALE)


if __name__ == '__main__':
    unittest.main()
