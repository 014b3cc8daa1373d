"""
Image Preparation

Receipt photos are downscaled before being sent to the AI service:
longest side at most `max_image_dimension` pixels, re-encoded as JPEG.
"""

import io
from typing import Optional

from PIL import Image, UnidentifiedImageError

from cardledger.config import get_settings


class ImageProcessingError(Exception):
    """The image could not be decoded or re-encoded."""
    pass


def prepare_image(
    image_bytes: bytes,
    max_dimension: Optional[int] = None,
    quality: Optional[int] = None,
) -> bytes:
    """
    Decode, downscale and re-encode an image as JPEG.

    Aspect ratio is kept. Images already within bounds are only
    re-encoded.

    Raises:
        ImageProcessingError: If the bytes are not a readable image
    """
    app = get_settings().app
    max_dimension = max_dimension or app.max_image_dimension
    quality = quality or app.jpeg_quality

    if len(image_bytes) > app.max_upload_size_bytes:
        raise ImageProcessingError("Image is larger than the upload limit")

    try:
        with Image.open(io.BytesIO(image_bytes)) as img:
            img = img.convert("RGB")
            img.thumbnail((max_dimension, max_dimension), Image.Resampling.LANCZOS)
            out = io.BytesIO()
            img.save(out, format="JPEG", quality=quality)
    except (UnidentifiedImageError, OSError, ValueError) as e:
        raise ImageProcessingError(f"Could not process image: {e}")

    return out.getvalue()
