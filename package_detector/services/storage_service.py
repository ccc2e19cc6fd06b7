"""Persistence of the most recent classified image."""

import os
from datetime import datetime
from typing import Optional

from .interfaces import ImageStoreInterface
from .error_handler import ConfigurationError
from ..utils import ensure_directory_exists
from ..logging_config import get_logger

logger = get_logger("storage_service")


class ImageStore(ImageStoreInterface):
    """Writes the classified image to a cache file and an optional archive.

    The cache file is overwritten on every cycle and is what email
    notifications attach. Archived copies are named after the capture time.
    """

    def __init__(self, cache_file: str, archive_path: str = ""):
        self.cache_file = cache_file
        self.archive_path = archive_path

        cache_dir = os.path.dirname(os.path.abspath(cache_file))
        try:
            ensure_directory_exists(cache_dir)
        except OSError as e:
            raise ConfigurationError(f"Unable to create the directory for image.cachefile {cache_file}: {e}") from e

    def save_image(self, image: bytes, captured_at: Optional[datetime] = None) -> str:
        with open(self.cache_file, "wb") as f:
            f.write(image)

        if self.archive_path:
            archive_file = self.archive_file_for(captured_at or datetime.now())
            with open(archive_file, "wb") as f:
                f.write(image)
            logger.debug(f"Archived image to {archive_file}")

        return self.cache_file

    def archive_file_for(self, captured_at: datetime) -> str:
        filename = captured_at.strftime("%Y-%m-%dT%H-%M-%S") + ".jpeg"
        return os.path.join(self.archive_path, filename)
