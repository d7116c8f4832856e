"""
Unit tests for image fetching, decoding and geometry.

Tests cover:
- fetch_bytes status handling and cache defeating
- decode_image failures
- cover_fit sizing, cropping and determinism
- Frame normalization and slot cropping
- Clipped compositing
"""

import os
import sys
import unittest
from unittest.mock import patch

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

import requests
from PIL import Image

from errors import AssetDecodeError, AssetFetchError
from fakes import FakeResponse, encode, make_image
from image_utils import (
    composite,
    cover_fit,
    crop_frame_for_slot,
    decode_image,
    fetch_bytes,
    load_image,
    normalize_to_canvas,
)


class TestFetchBytes(unittest.TestCase):
    """Tests for remote asset download."""

    @patch("image_utils.requests.get")
    def test_success_returns_content(self, mock_get):
        mock_get.return_value = FakeResponse(200, b"payload")
        self.assertEqual(fetch_bytes("https://example.com/a.png"), b"payload")

    @patch("image_utils.requests.get")
    def test_request_defeats_caches(self, mock_get):
        mock_get.return_value = FakeResponse(200, b"x")
        fetch_bytes("https://example.com/a.png", timeout=7)

        args, kwargs = mock_get.call_args
        self.assertEqual(args[0], "https://example.com/a.png")
        self.assertIn("no-cache", kwargs["headers"]["Cache-Control"])
        self.assertIn("t", kwargs["params"])
        self.assertEqual(kwargs["timeout"], 7)

    @patch("image_utils.requests.get")
    def test_not_found_raises_with_status_and_url(self, mock_get):
        mock_get.return_value = FakeResponse(404, b"", "Not Found")

        with self.assertRaises(AssetFetchError) as context:
            fetch_bytes("https://example.com/missing.jpg")

        self.assertEqual(context.exception.status, 404)
        self.assertIn("404", str(context.exception))
        self.assertIn("https://example.com/missing.jpg", str(context.exception))

    @patch("image_utils.requests.get")
    def test_transport_error_raises(self, mock_get):
        mock_get.side_effect = requests.ConnectionError("connection refused")

        with self.assertRaises(AssetFetchError) as context:
            fetch_bytes("https://example.com/a.png")
        self.assertIsNone(context.exception.status)


class TestDecodeImage(unittest.TestCase):
    """Tests for decoding raw bytes."""

    def test_png_decodes_to_rgba(self):
        img = decode_image(encode(make_image((10, 5), (1, 2, 3), "RGB")))
        self.assertEqual(img.size, (10, 5))
        self.assertEqual(img.mode, "RGBA")

    def test_garbage_raises(self):
        with self.assertRaises(AssetDecodeError):
            decode_image(b"definitely not an image")

    def test_empty_raises(self):
        with self.assertRaises(AssetDecodeError):
            decode_image(b"")

    def test_oversized_image_raises(self):
        with patch("PIL.Image.MAX_IMAGE_PIXELS", 10):
            with self.assertRaises(AssetDecodeError):
                decode_image(encode(make_image((40, 40), (1, 2, 3))))

    @patch("image_utils.requests.get")
    def test_load_image(self, mock_get):
        mock_get.return_value = FakeResponse(200, encode(make_image((4, 4), (9, 9, 9, 255))))
        img = load_image("https://example.com/a.png")
        self.assertEqual(img.getpixel((0, 0)), (9, 9, 9, 255))


class TestCoverFit(unittest.TestCase):
    """Tests for scale-to-cover and center crop."""

    def test_output_size_is_exact(self):
        for src in [(100, 100), (300, 100), (100, 300), (7, 13), (1000, 999)]:
            for target in [(370, 470), (50, 50), (1365, 1365), (1, 1)]:
                with self.subTest(src=src, target=target):
                    img = make_image(src, (10, 20, 30, 255))
                    self.assertEqual(cover_fit(img, *target).size, target)

    def test_same_size_is_unchanged(self):
        img = Image.effect_noise((64, 48), 50).convert("RGBA")
        result = cover_fit(img, 64, 48)
        self.assertEqual(result.tobytes(), img.tobytes())
        self.assertIsNot(result, img)

    def test_crop_is_centered(self):
        # Red, green, blue thirds; covering a square keeps only the middle
        img = Image.new("RGB", (300, 100), (255, 0, 0))
        img.paste((0, 255, 0), (100, 0, 200, 100))
        img.paste((0, 0, 255), (200, 0, 300, 100))

        result = cover_fit(img, 100, 100)
        colors = {color for _, color in result.getcolors()}
        self.assertEqual(colors, {(0, 255, 0)})

    def test_is_deterministic(self):
        img = Image.effect_noise((120, 80), 80).convert("RGBA")
        first = cover_fit(img, 90, 110)
        second = cover_fit(img, 90, 110)
        self.assertEqual(first.tobytes(), second.tobytes())


class TestFrameHelpers(unittest.TestCase):
    """Tests for frame normalization and slot cropping."""

    def test_normalize_resizes_when_needed(self):
        frame = make_image((200, 300), (0, 0, 0, 0))
        self.assertEqual(normalize_to_canvas(frame, (768, 1365)).size, (768, 1365))

    def test_normalize_keeps_matching_size(self):
        frame = make_image((768, 1365), (0, 0, 0, 0))
        self.assertIs(normalize_to_canvas(frame, (768, 1365)), frame)

    def test_slot_crop_covers_photo_and_name_bar(self):
        frame = make_image((1365, 1365), (0, 0, 0, 0))
        frame.putpixel((75, 195), (1, 1, 1, 255))
        fragment = crop_frame_for_slot(frame, 75, 195, 380, 320, 60)
        self.assertEqual(fragment.size, (380, 380))
        self.assertEqual(fragment.getpixel((0, 0)), (1, 1, 1, 255))


class TestComposite(unittest.TestCase):
    """Tests for clipped alpha compositing."""

    def test_inside_canvas(self):
        canvas = make_image((10, 10), (0, 0, 0, 0))
        composite(canvas, make_image((2, 2), (255, 0, 0, 255)), 3, 4)
        self.assertEqual(canvas.getpixel((3, 4)), (255, 0, 0, 255))
        self.assertEqual(canvas.getpixel((5, 4)), (0, 0, 0, 0))

    def test_negative_offset_is_clipped(self):
        canvas = make_image((10, 10), (0, 0, 0, 0))
        composite(canvas, make_image((4, 4), (0, 255, 0, 255)), -2, -2)
        self.assertEqual(canvas.getpixel((0, 0)), (0, 255, 0, 255))
        self.assertEqual(canvas.getpixel((1, 1)), (0, 255, 0, 255))
        self.assertEqual(canvas.getpixel((2, 2)), (0, 0, 0, 0))

    def test_overflow_is_clipped(self):
        canvas = make_image((10, 10), (0, 0, 0, 0))
        composite(canvas, make_image((5, 5), (0, 0, 255, 255)), 8, 8)
        self.assertEqual(canvas.getpixel((9, 9)), (0, 0, 255, 255))
        self.assertEqual(canvas.size, (10, 10))

    def test_fully_outside_is_ignored(self):
        canvas = make_image((10, 10), (0, 0, 0, 0))
        composite(canvas, make_image((5, 5), (0, 0, 255, 255)), 20, 20)
        self.assertEqual(canvas.getcolors(), [(100, (0, 0, 0, 0))])


if __name__ == "__main__":
    unittest.main()
