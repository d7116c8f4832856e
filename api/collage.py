import json
import logging
import os
import sys
from http.server import BaseHTTPRequestHandler

# Add parent directory to path for Vercel serverless environment
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from typing import Any, Dict, Optional, Tuple

from config import LOG_FORMAT, LOG_LEVEL
from errors import CollageError
from make_banners import CollageRequest, generate_banners
from supabase_client import SupabaseClient

logging.basicConfig(level=LOG_LEVEL, format=LOG_FORMAT)
logger = logging.getLogger(__name__)


def build_collage_from_payload(
    payload: Dict[str, Any],
    client: Optional[SupabaseClient] = None,
) -> Dict[str, Any]:
    """
    Pure logic function that:
    - Receives a dict representing the JSON payload of a request
    - Generates and publishes every banner of the requested category
    - Returns the response body as a dict

    Expected payload structure:
    {
      "id_event": 1,               # required
      "id_category": 3,            # required
      "frameColor": "#FFD44A",     # optional, frame overlay color
      "bucket": "candidates",      # optional, storage bucket
      "layout": "grid",            # optional, "grid" or "story"
      "textColor": "#0D0D0D",      # optional, name bar text color
      "titleColor": "#FFFFFF",     # optional, title color
      "title": "..."               # optional, overrides the category name
    }

    Response structure:
    {
      "banners": ["https://.../event_1_category_3_banner_1.png", ...],
      "totalBanners": 1,
      "totalCandidates": 9
    }
    """
    request = CollageRequest.from_payload(payload or {})
    if client is not None:
        return generate_banners(request, client).to_dict()

    client = SupabaseClient()
    try:
        return generate_banners(request, client).to_dict()
    finally:
        client.close()


def error_response(error: Exception) -> Tuple[int, Dict[str, str]]:
    """Map an exception to (status, JSON body)."""
    if isinstance(error, CollageError):
        return error.status_code, {"error": str(error)}
    return 500, {"error": str(error)}


# Vercel serverless function handler
class handler(BaseHTTPRequestHandler):
    """Vercel serverless function entrypoint for banner generation."""

    def _send_json(self, status: int, body: Dict[str, Any]):
        data = json.dumps(body).encode("utf-8")
        self.send_response(status)
        self.send_header("Content-Type", "application/json")
        self.send_header("Content-Length", str(len(data)))
        self.send_header("Access-Control-Allow-Origin", "*")
        self.end_headers()
        self.wfile.write(data)

    def do_POST(self):
        """Handle POST request to generate banners."""
        try:
            # Read request body
            content_length = int(self.headers.get("Content-Length", 0))
            body = self.rfile.read(content_length) if content_length > 0 else b""

            # Parse JSON payload
            payload = json.loads(body.decode("utf-8")) if body else {}
            if not isinstance(payload, dict):
                raise json.JSONDecodeError("Expected a JSON object", body.decode("utf-8"), 0)

            self._send_json(200, build_collage_from_payload(payload))

        except json.JSONDecodeError as e:
            self._send_json(400, {"error": f"Invalid JSON: {e}"})

        except Exception as e:
            logger.exception("Banner generation failed")
            status, error_body = error_response(e)
            self._send_json(status, error_body)

    def do_OPTIONS(self):
        """Handle CORS preflight requests."""
        self.send_response(200)
        self.send_header("Access-Control-Allow-Origin", "*")
        self.send_header("Access-Control-Allow-Methods", "POST, OPTIONS")
        self.send_header("Access-Control-Allow-Headers", "authorization, x-client-info, apikey, content-type")
        self.end_headers()
