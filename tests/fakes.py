"""
In-memory stand-ins for Supabase and the asset host.

FakeSupabase has the same methods as SupabaseClient; FakeAssetServer replaces
requests.get and answers with whatever bytes were registered for a URL.
"""

import os
import sys
from io import BytesIO
from typing import Dict, Iterable, List, Optional, Tuple

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from PIL import Image, ImageDraw

from errors import PublishError
from make_banners import BannerAssets, BannerLayout, candidate_photo_filename
from supabase_client import Candidate

BASE_URL = "https://storage.test"

BACKGROUND_COLOR = (90, 90, 90, 255)
CANDIDATE_COLORS = [
    (230, 25, 75, 255),
    (60, 180, 75, 255),
    (255, 225, 25, 255),
    (0, 130, 200, 255),
    (245, 130, 48, 255),
    (145, 30, 180, 255),
    (70, 240, 240, 255),
    (240, 50, 230, 255),
    (210, 245, 60, 255),
    (250, 190, 212, 255),
    (0, 128, 128, 255),
    (170, 110, 40, 255),
]


def make_image(size: Tuple[int, int], color, mode: str = "RGBA") -> Image.Image:
    return Image.new(mode, size, color)


def encode(img: Image.Image, fmt: str = "PNG") -> bytes:
    buffer = BytesIO()
    if fmt == "JPEG":
        img = img.convert("RGB")
    img.save(buffer, format=fmt)
    return buffer.getvalue()


def decode(data: bytes) -> Image.Image:
    return Image.open(BytesIO(data)).convert("RGBA")


def make_candidates(count: int, id_event: int = 1, id_category: int = 2) -> List[Candidate]:
    return [
        Candidate(id_event, id_category, number, f"Candidate {number}")
        for number in range(1, count + 1)
    ]


def make_frame(layout: BannerLayout) -> Image.Image:
    """Frame template that is opaque only over the name bars."""
    frame = Image.new("RGBA", layout.canvas_size, (0, 0, 0, 0))
    draw = ImageDraw.Draw(frame)
    for slot in layout.slots:
        top = slot.y + layout.photo_h
        draw.rectangle(
            [slot.x, top, slot.x + layout.photo_w - 1, top + layout.name_bar_h - 1],
            fill=(255, 255, 255, 255),
        )
    return frame


class FakeResponse:
    def __init__(self, status_code: int = 200, content: bytes = b"", reason: str = "OK"):
        self.status_code = status_code
        self.content = content
        self.reason = reason


class FakeAssetServer:
    """Callable replacement for requests.get serving registered URLs."""

    def __init__(self):
        self.files: Dict[str, bytes] = {}
        self.requested: List[str] = []

    def add(self, url: str, data: bytes):
        self.files[url] = data

    def __call__(self, url, params=None, headers=None, timeout=None, **kwargs):
        self.requested.append(url)
        if url not in self.files:
            return FakeResponse(404, b"", "Not Found")
        return FakeResponse(200, self.files[url])


class FakeSupabase:
    """Same surface as SupabaseClient, backed by plain lists."""

    def __init__(
        self,
        candidates: Iterable[Candidate] = (),
        category_name: Optional[str] = "Miss Teen",
        fail_uploads: Iterable[str] = (),
    ):
        self.candidates = list(candidates)
        self.category_name = category_name
        self.fail_uploads = set(fail_uploads)
        self.uploads: Dict[str, bytes] = {}
        self.upload_calls: List[Tuple[str, str, str, bool]] = []
        self.category_lookups = 0

    def fetch_candidates(self, id_event, id_category):
        rows = [
            c for c in self.candidates
            if c.id_event == id_event and c.id_category == id_category
        ]
        return sorted(rows, key=lambda c: c.id_candidate)

    def fetch_category_name(self, id_event, id_category):
        self.category_lookups += 1
        return self.category_name

    def public_url(self, bucket, path):
        return f"{BASE_URL}/{bucket}/{path}"

    def upload(self, bucket, path, data, content_type="image/png", upsert=True):
        self.upload_calls.append((bucket, path, content_type, upsert))
        if path in self.fail_uploads:
            raise PublishError(f"Upload of {bucket}/{path} failed: storage rejected the write")
        self.uploads[path] = data
        return path


def serve_event(
    server: FakeAssetServer,
    client: FakeSupabase,
    layout: BannerLayout,
    bucket: str = "candidates",
    missing: Iterable[int] = (),
) -> BannerAssets:
    """Register background, frame and every candidate photo except the missing ones."""
    assets = BannerAssets(
        background_url=client.public_url(bucket, f"assets/{layout.background}"),
        frames_url=client.public_url(bucket, f"assets/{layout.frames}"),
        font_url=None,
    )
    server.add(assets.background_url, encode(make_image((100, 100), BACKGROUND_COLOR)))
    server.add(assets.frames_url, encode(make_frame(layout)))

    missing = set(missing)
    for index, candidate in enumerate(client.candidates):
        if candidate.id_candidate in missing:
            continue
        filename = candidate_photo_filename(
            candidate.id_event, candidate.id_category, candidate.id_candidate
        )
        color = CANDIDATE_COLORS[index % len(CANDIDATE_COLORS)]
        server.add(client.public_url(bucket, filename), encode(make_image((80, 120), color), "JPEG"))
    return assets
