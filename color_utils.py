"""
Color helpers for banner generation.

Two parsers with different contracts live here:
- hex_to_rgb is strict and raises InvalidColorFormat (used for frame recoloring)
- normalize_hex6 is lenient and falls back to a caller supplied color (used for text)
"""

import re
from typing import Any, Tuple

from PIL import Image

from errors import InvalidColorFormat

_HEX6_RE = re.compile(r"#?([0-9a-fA-F]{6})")
_HEX_SHORT_OR_LONG_RE = re.compile(r"#([0-9a-fA-F]{3}|[0-9a-fA-F]{6})")


def hex_to_rgb(hex_color: str) -> Tuple[int, int, int]:
    """
    Parse a 6 digit hex color, with or without a leading '#'.

    Args:
        hex_color: Color string such as "#FFD44A" or "ffd44a"

    Returns:
        Tuple of (r, g, b), each in 0..255

    Raises:
        InvalidColorFormat: If the value is not exactly 6 hex digits
    """
    match = _HEX6_RE.fullmatch(hex_color) if isinstance(hex_color, str) else None
    if not match:
        raise InvalidColorFormat(f"Invalid hex color: {hex_color!r}")

    value = int(match.group(1), 16)
    return (value >> 16) & 0xFF, (value >> 8) & 0xFF, value & 0xFF


def normalize_hex6(value: Any, fallback: str) -> str:
    """
    Normalize '#rgb' or '#rrggbb' to lowercase '#rrggbb'.

    Anything else returns fallback unchanged.
    """
    if not isinstance(value, str):
        return fallback
    match = _HEX_SHORT_OR_LONG_RE.fullmatch(value)
    if not match:
        return fallback

    digits = match.group(1).lower()
    if len(digits) == 3:
        digits = "".join(ch * 2 for ch in digits)
    return f"#{digits}"


def recolor_non_transparent(img: Image.Image, hex_color: str) -> Image.Image:
    """
    Paint every visible pixel with hex_color while keeping its alpha.

    Anti-aliased edges keep their partial alpha, so the overlay stays smooth.
    The input image is never modified.

    Args:
        img: Template image (any mode, converted to RGBA)
        hex_color: Target color, parsed strictly

    Returns:
        New RGBA image
    """
    r, g, b = hex_to_rgb(hex_color)
    source = img.convert("RGBA") if img.mode != "RGBA" else img.copy()
    alpha = source.getchannel("A")

    # Visible pixels get the solid color, fully transparent ones keep their RGB
    solid = Image.new("RGBA", source.size, (r, g, b, 255))
    mask = alpha.point(lambda a: 255 if a > 0 else 0)
    result = source.copy()
    result.paste(solid, (0, 0), mask)
    result.putalpha(alpha)
    return result
