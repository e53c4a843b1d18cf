"""Utility functions for dates, clamping and image decoding"""
import cv2
import numpy as np
from datetime import date, timedelta
from typing import Optional, Union
import logging
import base64

from exceptions import InvalidImageError


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def iso_day(day: Optional[date] = None) -> str:
    """Calendar date as YYYY-MM-DD (today when omitted)"""
    return (day or date.today()).isoformat()


def parse_day(value: Union[str, date, None]) -> Optional[date]:
    """Parse a stored ISO date; empty or unreadable values give None"""
    if value is None or value == "":
        return None
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError:
        logging.warning(f"Ignoring unreadable stored date: {value!r}")
        return None


def days_between(earlier: date, later: date) -> int:
    return (later - earlier).days


def yesterday_of(day: date) -> date:
    return day - timedelta(days=1)


def compress_image(image: np.ndarray, max_size: int = 640) -> np.ndarray:
    """Downscale large images before landmark detection"""
    h, w = image.shape[:2]

    # Only resize if image is larger than max_size
    if max(h, w) > max_size:
        scale = max_size / max(h, w)
        new_w = int(w * scale)
        new_h = int(h * scale)
        image = cv2.resize(image, (new_w, new_h), interpolation=cv2.INTER_AREA)
        logging.debug(f"Compressed image from {w}x{h} to {new_w}x{new_h}")

    return image


def decode_image(image_data: str, max_size: int = 640) -> np.ndarray:
    """Decode a base64 (or data URL) image into an RGB array"""
    if not image_data:
        raise InvalidImageError("No image data provided")
    try:
        # Handle data URL format
        if ',' in image_data:
            image_bytes = base64.b64decode(image_data.split(',', 1)[1])
        else:
            image_bytes = base64.b64decode(image_data)
    except ValueError as e:
        raise InvalidImageError(f"Image is not valid base64: {e}") from e

    nparr = np.frombuffer(image_bytes, dtype=np.uint8)
    image = cv2.imdecode(nparr, cv2.IMREAD_COLOR) if nparr.size else None
    if image is None:
        raise InvalidImageError("Failed to decode image")

    # Convert BGR to RGB
    image = cv2.cvtColor(image, cv2.COLOR_BGR2RGB)
    return compress_image(image, max_size=max_size)
