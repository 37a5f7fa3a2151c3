"""Image normalization before upload: bound, resize, re-encode."""

from __future__ import annotations

import logging

from .errors import DecodeError, ImageTooLargeError, InvalidImageError
from .models import JPEG, NormalizedImage, RawImage, sniff_mime

logger = logging.getLogger(__name__)

MAX_DIMENSION = 1024
JPEG_QUALITY = 80  # 0.8 on the 0-1 scale browsers use
MAX_IMAGE_BYTES = 10 * 1024 * 1024


def fit_within(width: int, height: int, max_dimension: int) -> tuple[int, int]:
    """Scale (width, height) down so the longest side is at most max_dimension.

    Never upscales. The longest side lands exactly on the bound.
    """
    longest = max(width, height)
    if longest <= max_dimension:
        return width, height
    scale = max_dimension / longest
    if width >= height:
        return max_dimension, max(1, round(height * scale))
    return max(1, round(width * scale)), max_dimension


class ImagePreprocessor:
    """Turn a RawImage into a NormalizedImage.

    Runs locally, before anything goes over the network, so an oversized
    or broken image is rejected without spending a vision call on it.
    """

    def __init__(
        self,
        max_dimension: int = MAX_DIMENSION,
        jpeg_quality: int = JPEG_QUALITY,
        max_bytes: int = MAX_IMAGE_BYTES,
    ) -> None:
        self._max_dimension = max_dimension
        self._jpeg_quality = jpeg_quality
        self._max_bytes = max_bytes

    def normalize(self, raw: RawImage) -> NormalizedImage:
        if not raw.data:
            raise InvalidImageError("image payload is empty")
        if raw.estimated_size() > self._max_bytes:
            raise ImageTooLargeError(raw.estimated_size(), self._max_bytes)
        if sniff_mime(raw.data) is None:
            raise InvalidImageError(
                f"payload declared as {raw.mime_type} is not a recognised image format"
            )

        try:
            import cv2
            import numpy as np
        except ImportError:
            raise ImportError(
                "opencv-python is required: pip install opencv-python-headless"
            ) from None

        buf = np.frombuffer(raw.data, dtype=np.uint8)
        img = cv2.imdecode(buf, cv2.IMREAD_COLOR)
        if img is None:
            raise DecodeError("image data could not be decoded into pixels")

        height, width = img.shape[:2]
        new_width, new_height = fit_within(width, height, self._max_dimension)
        if (new_width, new_height) != (width, height):
            img = cv2.resize(
                img, (new_width, new_height), interpolation=cv2.INTER_AREA
            )
            logger.debug(
                "Resized image %dx%d -> %dx%d", width, height, new_width, new_height
            )

        ok, encoded = cv2.imencode(
            ".jpg", img, [int(cv2.IMWRITE_JPEG_QUALITY), self._jpeg_quality]
        )
        if not ok:
            raise DecodeError("image could not be re-encoded as JPEG")

        data = encoded.tobytes()
        if len(data) > self._max_bytes:
            raise ImageTooLargeError(len(data), self._max_bytes)

        logger.info(
            "Normalized image: %dx%d, %d bytes (input %d bytes, %s)",
            new_width, new_height, len(data), len(raw.data), raw.mime_type,
        )
        return NormalizedImage(
            data=data, width=new_width, height=new_height, mime_type=JPEG
        )
