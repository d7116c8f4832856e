"""
Image utility functions for banner generation.

This module provides image processing utilities including:
- Remote asset download with cache defeating
- Image decoding and orientation fixing
- Cover fitting (scale and center crop)
- Frame template normalization and per-slot cropping
"""

import logging
import time
from io import BytesIO
from typing import Tuple

import requests
from PIL import Image, UnidentifiedImageError

from config import FETCH_TIMEOUT
from errors import AssetDecodeError, AssetFetchError

logger = logging.getLogger(__name__)

# Candidate photos are replaced in place, so every download must skip caches
_NO_CACHE_HEADERS = {
    "Cache-Control": "no-cache, no-store, max-age=0",
    "Pragma": "no-cache",
    "User-Agent": "Mozilla/5.0",
}


# ========= FETCH / DECODE =========
def fetch_bytes(url: str, timeout: int = FETCH_TIMEOUT) -> bytes:
    """
    Download a remote asset, bypassing HTTP caches.

    Args:
        url: Public address of the asset
        timeout: Seconds before the download is abandoned

    Returns:
        Raw response body

    Raises:
        AssetFetchError: On a non-success status or a transport failure
    """
    try:
        response = requests.get(
            url,
            params={"t": int(time.time() * 1000)},
            headers=_NO_CACHE_HEADERS,
            timeout=timeout,
        )
    except requests.RequestException as e:
        raise AssetFetchError(url, reason=str(e)) from e

    if not 200 <= response.status_code < 300:
        raise AssetFetchError(url, status=response.status_code, reason=response.reason or "")
    return response.content


# EXIF orientation tag and rotation values
_EXIF_ORIENTATION_TAG = 274
_ORIENTATION_ROTATIONS = {
    3: 180,
    6: 270,
    8: 90,
}


def fix_image_orientation(img: Image.Image) -> Image.Image:
    """
    Fix image orientation based on EXIF data.

    Phone cameras store pixels in sensor orientation and use EXIF metadata
    to indicate how the image should be rotated for display.
    """
    try:
        exif = img.getexif()
        orientation = exif.get(_EXIF_ORIENTATION_TAG)
        rotation = _ORIENTATION_ROTATIONS.get(orientation)
        if rotation:
            img = img.rotate(rotation, expand=True)
    except (AttributeError, KeyError, TypeError):
        pass
    return img


def decode_image(data: bytes) -> Image.Image:
    """
    Decode raw bytes into an RGBA image.

    Raises:
        AssetDecodeError: If the bytes are not a supported raster format
    """
    try:
        img = Image.open(BytesIO(data))
        img.load()
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError) as e:
        raise AssetDecodeError(f"Could not decode image ({len(data)} bytes): {e}") from e

    img = fix_image_orientation(img)
    return img.convert("RGBA")


def load_image(url: str) -> Image.Image:
    """Fetch and decode a remote image."""
    return decode_image(fetch_bytes(url))


# ========= GEOMETRY =========
def cover_fit(img: Image.Image, target_w: int, target_h: int) -> Image.Image:
    """
    Scale an image to cover target_w x target_h, then center crop to it.

    No letterboxing and no aspect distortion. An image already at the target
    size is returned as an unchanged copy.

    Args:
        img: Source image
        target_w: Output width in pixels
        target_h: Output height in pixels

    Returns:
        Image of exactly (target_w, target_h)
    """
    if img.size == (target_w, target_h):
        return img.copy()

    # Scale to cover the target size
    scale = max(target_w / img.width, target_h / img.height)
    new_w = max(target_w, round(img.width * scale))
    new_h = max(target_h, round(img.height * scale))
    resized = img.resize((new_w, new_h), Image.LANCZOS)

    left = (new_w - target_w) // 2
    top = (new_h - target_h) // 2
    return resized.crop((left, top, left + target_w, top + target_h))


def normalize_to_canvas(img: Image.Image, size: Tuple[int, int]) -> Image.Image:
    """Stretch a template asset to the canvas size when its native size differs."""
    if img.size == tuple(size):
        return img
    logger.info("Resizing template from %dx%d to %dx%d", img.width, img.height, size[0], size[1])
    return img.resize(tuple(size), Image.LANCZOS)


def composite(canvas: Image.Image, overlay: Image.Image, x: int, y: int) -> None:
    """
    Alpha composite overlay onto canvas in place, clipping at the canvas edges.

    Both images must be RGBA.
    """
    left = max(0, -x)
    top = max(0, -y)
    right = min(overlay.width, canvas.width - x)
    bottom = min(overlay.height, canvas.height - y)
    if right <= left or bottom <= top:
        return
    canvas.alpha_composite(overlay, (x + left, y + top), (left, top, right, bottom))


def crop_frame_for_slot(
    frame: Image.Image,
    x: int,
    y: int,
    photo_w: int,
    photo_h: int,
    name_bar_h: int,
) -> Image.Image:
    """
    Cut the part of a full-canvas frame overlay that belongs to one slot.

    The fragment covers the photo and the name bar beneath it, so it can be
    composited at (x, y) right on top of the slot photo.
    """
    return frame.crop((x, y, x + photo_w, y + photo_h + name_bar_h))
