"""Camera snapshot fetching over HTTP."""

import requests

from .interfaces import ImageSourceInterface
from .error_handler import ImageFetchError
from ..logging_config import get_logger

logger = get_logger("image_fetcher")


class HttpImageSource(ImageSourceInterface):
    """Fetches a still image from a camera snapshot URL."""

    def __init__(self, timeout: float = 10.0, session: requests.Session = None):
        self.timeout = timeout
        self.session = session or requests.Session()

    def fetch_image(self, url: str) -> bytes:
        try:
            response = self.session.get(url, timeout=self.timeout)
            response.raise_for_status()
        except requests.RequestException as e:
            raise ImageFetchError(f"Error fetching image from {url}: {e}") from e

        if not response.content:
            raise ImageFetchError(f"Camera at {url} returned an empty image")

        logger.debug(f"Fetched {len(response.content)} bytes from {url}")
        return response.content
