"""Unit tests for the image store."""

import os
import shutil
import sys
import tempfile
import unittest
from datetime import datetime
from unittest.mock import patch

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from package_detector.services.error_handler import ConfigurationError
from package_detector.services.storage_service import ImageStore


class TestImageStore(unittest.TestCase):
    """Test cases for ImageStore."""

    def setUp(self):
        """Set up test fixtures."""
        self.test_dir = tempfile.mkdtemp()
        self.cache_file = os.path.join(self.test_dir, "img.jpg")

    def tearDown(self):
        """Clean up test fixtures."""
        shutil.rmtree(self.test_dir, ignore_errors=True)

    def test_cache_file_overwritten(self):
        """The cache file always holds the latest image."""
        store = ImageStore(self.cache_file)

        self.assertEqual(store.save_image(b"first"), self.cache_file)
        store.save_image(b"second")

        with open(self.cache_file, "rb") as f:
            self.assertEqual(f.read(), b"second")

    def test_no_archive_by_default(self):
        store = ImageStore(self.cache_file)
        store.save_image(b"image", datetime(2024, 5, 1, 9, 30, 0))
        self.assertEqual(os.listdir(self.test_dir), ["img.jpg"])

    def test_archive_copy(self):
        """Archived copies are named after the capture time."""
        archive_dir = os.path.join(self.test_dir, "archive")
        os.makedirs(archive_dir)
        store = ImageStore(self.cache_file, archive_dir)

        store.save_image(b"image", datetime(2024, 5, 1, 9, 30, 15))

        archived = os.path.join(archive_dir, "2024-05-01T09-30-15.jpeg")
        self.assertTrue(os.path.exists(archived))
        with open(archived, "rb") as f:
            self.assertEqual(f.read(), b"image")

    def test_archive_file_for(self):
        store = ImageStore(self.cache_file, "/srv/archive")
        self.assertEqual(store.archive_file_for(datetime(2023, 12, 31, 23, 59, 1)),
                         os.path.join("/srv/archive", "2023-12-31T23-59-01.jpeg"))

    def test_cache_directory_created(self):
        """A missing parent directory for the cache file is created."""
        nested = os.path.join(self.test_dir, "cache", "latest.jpg")
        ImageStore(nested).save_image(b"image")
        self.assertTrue(os.path.exists(nested))

    def test_unusable_cache_directory(self):
        """A cache directory that cannot be created is a configuration error."""
        with patch("package_detector.services.storage_service.ensure_directory_exists",
                   side_effect=PermissionError("permission denied")):
            with self.assertRaises(ConfigurationError):
                ImageStore(os.path.join(self.test_dir, "locked", "img.jpg"))

    def test_write_failure_raises(self):
        """Write errors propagate to the caller as OSError."""
        store = ImageStore(self.cache_file, os.path.join(self.test_dir, "missing"))
        with self.assertRaises(OSError):
            store.save_image(b"image", datetime(2024, 1, 1))


if __name__ == '__main__':
    unittest.main()
