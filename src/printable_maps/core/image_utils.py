"""Raster utilities backed by Pillow."""

import io
from typing import Tuple

from PIL import Image, UnidentifiedImageError

from .exceptions import ProcessingError, ValidationError
from .layout import CropArea


def read_image_dimensions(image_bytes: bytes) -> Tuple[int, int]:
    """
    Read pixel dimensions from an encoded image without decoding it fully.

    Args:
        image_bytes: Encoded image (PNG, JPEG, TIFF, ...)

    Returns:
        (width, height) in pixels

    Raises:
        ValidationError: If the data is not a readable image or has no area
    """
    try:
        with Image.open(io.BytesIO(image_bytes)) as image:
            width, height = image.size
    except (UnidentifiedImageError, OSError, ValueError, Image.DecompressionBombError) as exc:
        raise ValidationError(f"Unable to read image: {exc}") from exc

    if not width or not height:
        raise ValidationError("Unable to process image - invalid dimensions")
    return width, height


def load_image(image_bytes: bytes) -> Image.Image:
    """Decode image bytes into a loaded RGB(A) Pillow image."""
    try:
        image = Image.open(io.BytesIO(image_bytes))
        image.load()
    except (UnidentifiedImageError, OSError, SyntaxError, Image.DecompressionBombError) as exc:
        raise ProcessingError(f"Image loading failed: {exc}") from exc

    if image.mode not in ("RGB", "RGBA"):
        image = image.convert("RGBA" if "A" in image.getbands() else "RGB")
    return image


def crop_tile(image: Image.Image, crop: CropArea) -> bytes:
    """
    Cut one tile out of the source image and re-encode it as PNG.

    Raises:
        ProcessingError: If the rectangle is empty, leaves the image, or
            Pillow fails to crop or encode it
    """
    if crop.area <= 0:
        raise ProcessingError(f"Empty crop area {crop}")
    if crop.left < 0 or crop.top < 0 or crop.right > image.width or crop.bottom > image.height:
        raise ProcessingError(
            f"Crop {crop} outside image bounds {image.width}x{image.height}"
        )

    try:
        tile = image.crop(crop.as_box())
        output_stream = io.BytesIO()
        tile.save(output_stream, format="PNG")
    except (OSError, ValueError) as exc:
        raise ProcessingError(f"Failed to crop tile {crop}: {exc}") from exc
    return output_stream.getvalue()
