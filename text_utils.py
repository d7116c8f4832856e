"""
Text rendering helpers for banner generation.

This module provides:
- A process-wide cache of downloaded font files
- Rendering a string into a tight transparent glyph image
- Synthetic bold by offset compositing
- Font size search that fits text into a maximum width
"""

from io import BytesIO
from typing import Dict, Optional, Tuple, Union

from PIL import Image, ImageDraw, ImageFont

from config import FONT_SIZE_STEP
from image_utils import fetch_bytes

Color = Union[str, Tuple[int, int, int], Tuple[int, int, int, int]]

# ========= FONT LOADING =========
# Font bytes cache, filled lazily and never invalidated.
# Concurrent first calls may download twice; the result is the same.
_font_bytes_cache: Dict[str, bytes] = {}


def get_font_bytes(url: str) -> bytes:
    """
    Return the TTF bytes behind url, downloading them on first use.

    Raises:
        AssetFetchError: If the font cannot be downloaded
    """
    cached = _font_bytes_cache.get(url)
    if cached is not None:
        return cached

    data = fetch_bytes(url)
    _font_bytes_cache[url] = data
    return data


def clear_font_cache() -> None:
    """Clear the font cache. Useful for testing."""
    _font_bytes_cache.clear()


def load_font(size: int, font_bytes: Optional[bytes] = None) -> ImageFont.FreeTypeFont:
    """
    Load a font at the given size.

    Args:
        size: Font size in pixels
        font_bytes: TTF/OTF file contents; Pillow's built-in font is used when None

    Returns:
        Font object
    """
    if font_bytes is None:
        return ImageFont.load_default(size=size)
    return ImageFont.truetype(BytesIO(font_bytes), size=size)


# ========= RENDERING =========
def render_text(text: str, font: ImageFont.FreeTypeFont, color: Color) -> Image.Image:
    """Render text into a transparent RGBA image cropped to its ink box."""
    left, top, right, bottom = font.getbbox(text)
    width = max(1, right - left)
    height = max(1, bottom - top)

    img = Image.new("RGBA", (width, height), (0, 0, 0, 0))
    draw = ImageDraw.Draw(img)
    draw.text((-left, -top), text, font=font, fill=color)
    return img


def embolden(img: Image.Image, strength: int = 1) -> Image.Image:
    """
    Thicken glyph strokes by stacking copies of the image.

    The image is composited at every offset from (0, 0) to (strength, strength),
    so the result is strength pixels larger in both directions.
    """
    if strength <= 0:
        return img.copy()

    out = Image.new("RGBA", (img.width + strength, img.height + strength), (0, 0, 0, 0))
    for dy in range(strength + 1):
        for dx in range(strength + 1):
            out.alpha_composite(img, (dx, dy))
    return out


def fit_text_render(
    text: str,
    max_width: int,
    start_size: int,
    min_size: int,
    color: Color,
    bold: bool = False,
    bold_strength: int = 1,
    font_bytes: Optional[bytes] = None,
) -> Tuple[Image.Image, int]:
    """
    Render text at the largest size that fits max_width.

    Sizes are tried from start_size downwards in steps of FONT_SIZE_STEP.
    When nothing fits, the min_size rendering is returned even though it
    overflows; callers never have to handle a fitting failure.

    Args:
        text: Text to render
        max_width: Maximum allowed width in pixels
        start_size: First font size to try
        min_size: Smallest font size allowed
        color: Fill color
        bold: Whether to apply synthetic bold
        bold_strength: Offset used by synthetic bold
        font_bytes: Font file contents (built-in font when None)

    Returns:
        Tuple of (rendered image, font size used)
    """
    size = start_size
    while size >= min_size:
        img = _render_at(text, size, color, bold, bold_strength, font_bytes)
        if img.width <= max_width:
            return img, size
        size -= FONT_SIZE_STEP

    return _render_at(text, min_size, color, bold, bold_strength, font_bytes), min_size


def _render_at(
    text: str,
    size: int,
    color: Color,
    bold: bool,
    bold_strength: int,
    font_bytes: Optional[bytes],
) -> Image.Image:
    img = render_text(text, load_font(size, font_bytes), color)
    if bold:
        img = embolden(img, bold_strength)
    return img
