"""
Candidate banner generator.

Builds fixed-size banner images for one event category: a background, a grid
of candidate photos with a recolored frame overlay, a name bar under each
photo and the category title on top. Candidates that do not fit in one banner
continue on the next one.
"""

import argparse
import json
import logging
from dataclasses import dataclass, field
from io import BytesIO
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from PIL import Image

from color_utils import hex_to_rgb, normalize_hex6, recolor_non_transparent
from config import (
    ASSETS_PREFIX,
    CANDIDATES_BUCKET,
    DEFAULT_FRAME_COLOR,
    DEFAULT_TEXT_COLOR,
    DEFAULT_TITLE,
    DEFAULT_TITLE_COLOR,
    FONT_FILENAME,
    GRID_BACKGROUND,
    GRID_CANVAS_SIZE,
    GRID_FRAMES,
    GRID_NAME_BAR_H,
    GRID_PHOTO_H,
    GRID_PHOTO_W,
    GRID_SLOTS,
    LOG_FORMAT,
    LOG_LEVEL,
    NAME_BOLD_STRENGTH,
    NAME_FONT_MIN,
    NAME_FONT_START,
    NAME_PADDING,
    STORY_BACKGROUND,
    STORY_CANVAS_SIZE,
    STORY_FRAMES,
    STORY_NAME_BAR_H,
    STORY_PHOTO_H,
    STORY_PHOTO_W,
    STORY_SLOTS,
    TITLE_BOLD_STRENGTH,
    TITLE_FONT_MIN,
    TITLE_FONT_START,
    TITLE_MARGIN,
    TITLE_TOP,
)
from errors import (
    AssetDecodeError,
    AssetFetchError,
    CategoryLookupError,
    InvalidParameter,
    MissingParameter,
    NoCandidatesFound,
)
from image_utils import (
    composite,
    cover_fit,
    crop_frame_for_slot,
    load_image,
    normalize_to_canvas,
)
from supabase_client import Candidate, LocalPublisher, SupabaseClient
from text_utils import fit_text_render, get_font_bytes

logger = logging.getLogger(__name__)

# Publisher signature: (bucket, path, png bytes) -> public address
Publisher = Callable[[str, str, bytes], str]


# ========= LAYOUTS =========
@dataclass(frozen=True)
class Slot:
    """Top-left corner of a photo area on the canvas."""

    x: int
    y: int


@dataclass(frozen=True)
class BannerLayout:
    name: str
    canvas_size: Tuple[int, int]
    slots: Tuple[Slot, ...]
    photo_w: int
    photo_h: int
    name_bar_h: int
    background: str
    frames: str

    @property
    def slots_per_page(self) -> int:
        return len(self.slots)


GRID_LAYOUT = BannerLayout(
    name="grid",
    canvas_size=GRID_CANVAS_SIZE,
    slots=tuple(Slot(x, y) for x, y in GRID_SLOTS),
    photo_w=GRID_PHOTO_W,
    photo_h=GRID_PHOTO_H,
    name_bar_h=GRID_NAME_BAR_H,
    background=GRID_BACKGROUND,
    frames=GRID_FRAMES,
)

STORY_LAYOUT = BannerLayout(
    name="story",
    canvas_size=STORY_CANVAS_SIZE,
    slots=tuple(Slot(x, y) for x, y in STORY_SLOTS),
    photo_w=STORY_PHOTO_W,
    photo_h=STORY_PHOTO_H,
    name_bar_h=STORY_NAME_BAR_H,
    background=STORY_BACKGROUND,
    frames=STORY_FRAMES,
)

LAYOUTS: Dict[str, BannerLayout] = {
    GRID_LAYOUT.name: GRID_LAYOUT,
    STORY_LAYOUT.name: STORY_LAYOUT,
}


# ========= REQUEST / RESULT =========
def _parse_id(payload: Dict[str, Any], key: str) -> int:
    value = payload.get(key)
    if value is None or value == "" or value == 0:
        raise MissingParameter("Missing id_event or id_category")
    if isinstance(value, bool):
        raise InvalidParameter(f"'{key}' must be a number")
    if isinstance(value, float) and not value.is_integer():
        raise InvalidParameter(f"'{key}' must be a whole number, got {value!r}")
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise InvalidParameter(f"'{key}' must be a number, got {value!r}")
    if number < 1:
        raise InvalidParameter(f"'{key}' must be a positive number, got {value!r}")
    return number


@dataclass
class CollageRequest:
    """Parameters of one banner generation run."""

    id_event: int
    id_category: int
    frame_color: str = DEFAULT_FRAME_COLOR
    bucket: str = CANDIDATES_BUCKET
    layout: str = GRID_LAYOUT.name
    text_color: str = DEFAULT_TEXT_COLOR
    title_color: str = DEFAULT_TITLE_COLOR
    title: Optional[str] = None

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> "CollageRequest":
        """
        Build a request from a JSON payload.

        Expected payload structure:
        {
          "id_event": 1,                 # required
          "id_category": 3,              # required
          "frameColor": "#FFD44A",       # frame overlay color, strict 6-digit hex
          "bucket": "candidates",        # storage bucket for photos, assets and output
          "layout": "grid",              # "grid" (9 per banner) or "story" (6 per banner)
          "textColor": "#0D0D0D",        # name bar text, '#rgb' or '#rrggbb'
          "titleColor": "#FFFFFF",       # title text, '#rgb' or '#rrggbb'
          "title": "Miss Teen 2025"      # overrides the category name
        }

        Raises:
            MissingParameter: If id_event or id_category is absent
            InvalidParameter: If an id is not a number or the layout is unknown
            InvalidColorFormat: If frameColor is not a 6-digit hex color
        """
        id_event = _parse_id(payload, "id_event")
        id_category = _parse_id(payload, "id_category")

        frame_color = payload.get("frameColor") or DEFAULT_FRAME_COLOR
        # Fail before any network call rather than after the first banner
        hex_to_rgb(frame_color)

        layout = payload.get("layout") or GRID_LAYOUT.name
        if layout not in LAYOUTS:
            raise InvalidParameter(
                f"Unknown layout {layout!r}, expected one of: {', '.join(sorted(LAYOUTS))}"
            )

        title = payload.get("title")
        return cls(
            id_event=id_event,
            id_category=id_category,
            frame_color=frame_color,
            bucket=payload.get("bucket") or CANDIDATES_BUCKET,
            layout=layout,
            text_color=normalize_hex6(payload.get("textColor"), DEFAULT_TEXT_COLOR),
            title_color=normalize_hex6(payload.get("titleColor"), DEFAULT_TITLE_COLOR),
            title=title.strip() if isinstance(title, str) and title.strip() else None,
        )


@dataclass
class CollageResult:
    banners: List[str] = field(default_factory=list)
    total_banners: int = 0
    total_candidates: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "banners": list(self.banners),
            "totalBanners": self.total_banners,
            "totalCandidates": self.total_candidates,
        }


@dataclass(frozen=True)
class BannerAssets:
    """Public addresses of the template assets used for every banner."""

    background_url: str
    frames_url: str
    font_url: Optional[str] = None

    @classmethod
    def for_layout(cls, client: SupabaseClient, bucket: str, layout: BannerLayout) -> "BannerAssets":
        font_url = None
        if FONT_FILENAME:
            font_url = client.public_url(bucket, f"{ASSETS_PREFIX}/{FONT_FILENAME}")
        return cls(
            background_url=client.public_url(bucket, f"{ASSETS_PREFIX}/{layout.background}"),
            frames_url=client.public_url(bucket, f"{ASSETS_PREFIX}/{layout.frames}"),
            font_url=font_url,
        )


# ========= NAMING / PAGINATION =========
def candidate_photo_filename(id_event: int, id_category: int, id_candidate: int) -> str:
    return f"event_{id_event}_category_{id_category}_candidate_{id_candidate}.jpg"


def banner_filename(id_event: int, id_category: int, page_number: int) -> str:
    return f"event_{id_event}_category_{id_category}_banner_{page_number}.png"


def paginate(items: Sequence[Any], per_page: int) -> List[List[Any]]:
    """
    Split items into consecutive pages of at most per_page entries.

    Order is preserved and only the last page can be partial.
    """
    if per_page < 1:
        raise ValueError("per_page must be at least 1")
    return [list(items[i:i + per_page]) for i in range(0, len(items), per_page)]


def global_candidate_number(page_index: int, slot_index: int, per_page: int) -> int:
    """1-based position of a candidate across all banners of a run."""
    return page_index * per_page + slot_index + 1


def name_label(number: int, name: str) -> str:
    return f"{number} {name}".strip().upper()


# ========= COMPOSITION =========
def compose_banner(
    layout: BannerLayout,
    background: Image.Image,
    frame: Image.Image,
    photos: Sequence[Optional[Image.Image]],
    labels: Sequence[str],
    title: str,
    text_color: str = DEFAULT_TEXT_COLOR,
    title_color: str = DEFAULT_TITLE_COLOR,
    font_bytes: Optional[bytes] = None,
) -> Image.Image:
    """
    Compose one banner.

    Args:
        layout: Canvas size and slot geometry
        background: Background image (cover fitted to the canvas)
        frame: Recolored frame overlay at canvas size
        photos: One entry per filled slot; None leaves the slot photo blank
        labels: Name bar text per filled slot
        title: Category title drawn at the top
        text_color: Name bar text color
        title_color: Title color
        font_bytes: Font file contents (built-in font when None)

    Returns:
        RGBA banner image
    """
    canvas_w, canvas_h = layout.canvas_size
    if frame.mode != "RGBA":
        frame = frame.convert("RGBA")
    canvas = Image.new("RGBA", (canvas_w, canvas_h), (0, 0, 0, 0))
    composite(canvas, cover_fit(background.convert("RGBA"), canvas_w, canvas_h), 0, 0)

    # Photos, each covered by its own piece of the frame overlay
    for slot, photo in zip(layout.slots, photos):
        if photo is not None:
            fitted = cover_fit(photo.convert("RGBA"), layout.photo_w, layout.photo_h)
            composite(canvas, fitted, slot.x, slot.y)
        fragment = crop_frame_for_slot(
            frame, slot.x, slot.y, layout.photo_w, layout.photo_h, layout.name_bar_h
        )
        composite(canvas, fragment, slot.x, slot.y)

    # Name bars
    for slot, label in zip(layout.slots, labels):
        text_img, _ = fit_text_render(
            label,
            layout.photo_w - NAME_PADDING * 2,
            NAME_FONT_START,
            NAME_FONT_MIN,
            text_color,
            bold=True,
            bold_strength=NAME_BOLD_STRENGTH,
            font_bytes=font_bytes,
        )
        text_x = slot.x + (layout.photo_w - text_img.width) // 2
        text_y = slot.y + layout.photo_h + (layout.name_bar_h - text_img.height) // 2
        composite(canvas, text_img, text_x, text_y)

    title_img, _ = fit_text_render(
        title,
        canvas_w - TITLE_MARGIN * 2,
        TITLE_FONT_START,
        TITLE_FONT_MIN,
        title_color,
        bold=True,
        bold_strength=TITLE_BOLD_STRENGTH,
        font_bytes=font_bytes,
    )
    composite(canvas, title_img, (canvas_w - title_img.width) // 2, TITLE_TOP)

    return canvas


def encode_png(img: Image.Image) -> bytes:
    buffer = BytesIO()
    img.save(buffer, format="PNG", optimize=True)
    return buffer.getvalue()


def load_candidate_photo(client: SupabaseClient, bucket: str, candidate: Candidate) -> Optional[Image.Image]:
    """Load a candidate photo, or None when it is missing or unreadable."""
    filename = candidate_photo_filename(
        candidate.id_event, candidate.id_category, candidate.id_candidate
    )
    try:
        return load_image(client.public_url(bucket, filename))
    except (AssetFetchError, AssetDecodeError) as e:
        logger.warning("Photo for candidate %s skipped: %s", candidate.id_candidate, e)
        return None


def resolve_title(request: CollageRequest, client: SupabaseClient) -> str:
    """Title override, else the category name, else the generic label."""
    if request.title:
        return request.title

    name = client.fetch_category_name(request.id_event, request.id_category)
    if name is None:
        raise CategoryLookupError(
            f"Category {request.id_category} not found for event {request.id_event}"
        )
    return name.strip() or DEFAULT_TITLE


def storage_publisher(client: SupabaseClient) -> Publisher:
    """Publisher that upserts into Supabase Storage and returns the public URL."""

    def publish(bucket: str, path: str, data: bytes) -> str:
        client.upload(bucket, path, data, content_type="image/png", upsert=True)
        return client.public_url(bucket, path)

    return publish


def generate_banners(
    request: CollageRequest,
    client: SupabaseClient,
    *,
    assets: Optional[BannerAssets] = None,
    publisher: Optional[Publisher] = None,
) -> CollageResult:
    """
    Generate and publish every banner of an event category.

    This is the main entry point for banner generation. Parameter and lookup
    errors abort before anything is published. A missing candidate photo only
    blanks its slot. A publish failure aborts the run; banners published
    before it are kept.

    Args:
        request: Validated request parameters
        client: Data store and storage client
        assets: Template asset addresses (default: the layout's assets in the bucket)
        publisher: Where encoded banners go (default: storage upload)

    Returns:
        Published banner addresses and totals
    """
    if not request.id_event or not request.id_category:
        raise MissingParameter("Missing id_event or id_category")

    layout = LAYOUTS[request.layout]
    if assets is None:
        assets = BannerAssets.for_layout(client, request.bucket, layout)
    if publisher is None:
        publisher = storage_publisher(client)

    candidates = client.fetch_candidates(request.id_event, request.id_category)
    if not candidates:
        raise NoCandidatesFound(
            f"No candidates found for event {request.id_event}, category {request.id_category}"
        )

    title = resolve_title(request, client)
    font_bytes = get_font_bytes(assets.font_url) if assets.font_url else None

    per_page = layout.slots_per_page
    pages = paginate(candidates, per_page)
    logger.info(
        "Generating %d banner(s) for %d candidate(s), event %s category %s",
        len(pages), len(candidates), request.id_event, request.id_category,
    )

    result = CollageResult(total_candidates=len(candidates))
    for page_index, page in enumerate(pages):
        background = load_image(assets.background_url)
        frame = normalize_to_canvas(load_image(assets.frames_url), layout.canvas_size)
        frame = recolor_non_transparent(frame, request.frame_color)

        photos = [load_candidate_photo(client, request.bucket, c) for c in page]
        labels = [
            name_label(global_candidate_number(page_index, i, per_page), c.name)
            for i, c in enumerate(page)
        ]

        banner = compose_banner(
            layout, background, frame, photos, labels, title,
            text_color=request.text_color,
            title_color=request.title_color,
            font_bytes=font_bytes,
        )

        path = banner_filename(request.id_event, request.id_category, page_index + 1)
        address = publisher(request.bucket, path, encode_png(banner))
        logger.info("Published banner %d/%d: %s", page_index + 1, len(pages), address)
        result.banners.append(address)

    result.total_banners = len(result.banners)
    return result


def main():
    parser = argparse.ArgumentParser(description="Generate candidate banners for an event category")
    parser.add_argument("--event", type=int, required=True, help="Event id")
    parser.add_argument("--category", type=int, required=True, help="Category id")
    parser.add_argument("--frame-color", default=None, help="Frame color as #rrggbb")
    parser.add_argument("--bucket", default=None, help="Storage bucket")
    parser.add_argument("--layout", default="grid", choices=sorted(LAYOUTS), help="Banner layout")
    parser.add_argument("--title", default=None, help="Title override")
    parser.add_argument("--output-dir", default=None, help="Write banners here instead of uploading")
    args = parser.parse_args()

    logging.basicConfig(level=LOG_LEVEL, format=LOG_FORMAT)

    request = CollageRequest.from_payload({
        "id_event": args.event,
        "id_category": args.category,
        "frameColor": args.frame_color,
        "bucket": args.bucket,
        "layout": args.layout,
        "title": args.title,
    })
    publisher = LocalPublisher(args.output_dir) if args.output_dir else None

    client = SupabaseClient()
    try:
        result = generate_banners(request, client, publisher=publisher)
    finally:
        client.close()
    print(json.dumps(result.to_dict(), indent=2))


if __name__ == "__main__":
    main()
