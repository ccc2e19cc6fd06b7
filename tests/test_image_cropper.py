"""Unit tests for the Pillow image cropper."""

import io
import os
import sys
import unittest

from PIL import Image

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from package_detector.models.config import Rect
from package_detector.services.error_handler import ImageCropError
from package_detector.services.image_cropper import PillowImageCropper


def make_jpeg(width=640, height=480, mode="RGB"):
    image = Image.new(mode, (width, height))
    output = io.BytesIO()
    if mode != "RGB":
        image.save(output, format="PNG")
    else:
        image.save(output, format="JPEG")
    return output.getvalue()


class TestPillowImageCropper(unittest.TestCase):
    """Test cases for PillowImageCropper."""

    def setUp(self):
        self.cropper = PillowImageCropper()
        self.image = make_jpeg()

    def test_unset_rect_returns_image_unchanged(self):
        """An all-zero rectangle skips cropping entirely."""
        self.assertIs(self.cropper.crop_image(self.image, Rect()), self.image)

    def test_crop_size(self):
        """The output covers exactly x1,y1 to x2,y2."""
        cropped = self.cropper.crop_image(self.image, Rect(10, 20, 110, 70))
        with Image.open(io.BytesIO(cropped)) as result:
            self.assertEqual(result.format, "JPEG")
            self.assertEqual(result.size, (100, 50))

    def test_rect_clamped_to_image(self):
        """A rectangle overhanging the image is clipped to its bounds."""
        cropped = self.cropper.crop_image(self.image, Rect(600, 400, 1000, 1000))
        with Image.open(io.BytesIO(cropped)) as result:
            self.assertEqual(result.size, (40, 80))

    def test_rect_outside_image(self):
        """A rectangle entirely outside the image is an error."""
        with self.assertRaises(ImageCropError):
            self.cropper.crop_image(self.image, Rect(700, 500, 800, 600))

    def test_non_rgb_source(self):
        """Images with other modes are converted before JPEG encoding."""
        png = make_jpeg(mode="RGBA")
        cropped = self.cropper.crop_image(png, Rect(0, 0, 32, 32))
        with Image.open(io.BytesIO(cropped)) as result:
            self.assertEqual(result.mode, "RGB")
            self.assertEqual(result.size, (32, 32))

    def test_undecodable_image(self):
        """Bytes that are not an image raise ImageCropError."""
        with self.assertRaises(ImageCropError) as ctx:
            self.cropper.crop_image(b"not an image", Rect(0, 0, 10, 10))
        self.assertEqual(ctx.exception.step, "crop")

    def test_quality_bounds(self):
        """Quality is clamped to the JPEG range."""
        self.assertEqual(PillowImageCropper(image_quality=0).image_quality, 1)
        self.assertEqual(PillowImageCropper(image_quality=150).image_quality, 100)


if __name__ == '__main__':
    unittest.main()
