"""Image cropping with Pillow."""

import io

from PIL import Image, UnidentifiedImageError

from .interfaces import ImageCropperInterface
from .error_handler import ImageCropError
from ..models.config import Rect
from ..logging_config import get_logger

logger = get_logger("image_cropper")


class PillowImageCropper(ImageCropperInterface):
    """Crops an encoded image to a rectangle and re-encodes it as JPEG."""

    def __init__(self, image_quality: int = 85):
        self.image_quality = max(1, min(100, image_quality))

    def crop_image(self, image: bytes, rect: Rect) -> bytes:
        # An unset rectangle leaves the image untouched
        if not rect.is_set:
            return image

        try:
            with Image.open(io.BytesIO(image)) as source:
                source.load()
                width, height = source.size
                box = (
                    max(0, rect.x1),
                    max(0, rect.y1),
                    min(width, rect.x2),
                    min(height, rect.y2)
                )
                if box[2] <= box[0] or box[3] <= box[1]:
                    raise ImageCropError(
                        f"Crop rectangle {rect.as_box()} lies outside the {width}x{height} image")

                cropped = source.crop(box)
                if cropped.mode != "RGB":
                    cropped = cropped.convert("RGB")

                output = io.BytesIO()
                cropped.save(output, format="JPEG", quality=self.image_quality)
        except (UnidentifiedImageError, OSError, ValueError) as e:
            raise ImageCropError(f"Crop failed: {e}") from e

        logger.debug(f"Cropped image to {box}")
        return output.getvalue()
