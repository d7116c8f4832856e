"""
Supabase access for banner generation.

A thin client over the PostgREST and Storage HTTP APIs. Only the handful of
calls the banner generator needs are implemented:
- Reading the candidates of an event category
- Reading a category name
- Building public object URLs
- Uploading (upserting) objects

LocalPublisher stands in for storage uploads when banners are written to disk.
"""

import logging
import os
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import requests

from config import API_TIMEOUT, SUPABASE_KEY, SUPABASE_URL
from errors import CategoryLookupError, DataFetchError, PublishError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Candidate:
    """One contestant of an event category."""

    id_event: int
    id_category: int
    id_candidate: int
    name: str


def _error_text(response: requests.Response) -> str:
    """Extract a readable message from a Supabase error response."""
    try:
        body = response.json()
    except ValueError:
        return response.text or str(response.status_code)
    if isinstance(body, dict):
        return str(body.get("message") or body.get("error") or body)
    return str(body)


class SupabaseClient:
    """Minimal PostgREST + Storage client."""

    def __init__(
        self,
        url: str = SUPABASE_URL,
        key: str = SUPABASE_KEY,
        timeout: int = API_TIMEOUT,
        session: Optional[requests.Session] = None,
    ):
        self.url = url.rstrip("/")
        self.key = key
        self.timeout = timeout
        self.session = session or requests.Session()

    def close(self):
        self.session.close()

    def _headers(self, extra: Optional[Dict[str, str]] = None) -> Dict[str, str]:
        headers = {
            "apikey": self.key,
            "Authorization": f"Bearer {self.key}",
        }
        if extra:
            headers.update(extra)
        return headers

    def _select(self, table: str, params: Dict[str, Any]) -> List[Dict[str, Any]]:
        url = f"{self.url}/rest/v1/{table}"
        try:
            response = self.session.get(
                url, params=params, headers=self._headers(), timeout=self.timeout
            )
        except requests.RequestException as e:
            raise DataFetchError(f"Query on '{table}' failed: {e}") from e

        if response.status_code != 200:
            raise DataFetchError(f"Query on '{table}' failed: {_error_text(response)}")
        return response.json()

    # ========= DATA =========
    def fetch_candidates(self, id_event: int, id_category: int) -> List[Candidate]:
        """
        Get all candidates of a category ordered by candidate number.

        Raises:
            DataFetchError: If the query fails upstream
        """
        rows = self._select("candidates", {
            "select": "id_event,id_category,id_candidate,name",
            "id_event": f"eq.{id_event}",
            "id_category": f"eq.{id_category}",
            "order": "id_candidate.asc",
        })
        return [
            Candidate(
                id_event=int(row.get("id_event", id_event)),
                id_category=int(row.get("id_category", id_category)),
                id_candidate=int(row["id_candidate"]),
                name=str(row.get("name") or ""),
            )
            for row in rows
        ]

    def fetch_category_name(self, id_event: int, id_category: int) -> Optional[str]:
        """
        Get the display name of a category.

        Returns:
            The name (possibly empty), or None when no such category exists

        Raises:
            CategoryLookupError: If the query fails upstream
        """
        try:
            rows = self._select("categories", {
                "select": "name",
                "id_event": f"eq.{id_event}",
                "id_category": f"eq.{id_category}",
                "limit": 1,
            })
        except DataFetchError as e:
            raise CategoryLookupError(str(e)) from e

        if not rows:
            return None
        return str(rows[0].get("name") or "")

    # ========= STORAGE =========
    def public_url(self, bucket: str, path: str) -> str:
        """Public address of an object in a public bucket."""
        return f"{self.url}/storage/v1/object/public/{bucket}/{path.lstrip('/')}"

    def upload(
        self,
        bucket: str,
        path: str,
        data: bytes,
        content_type: str = "image/png",
        upsert: bool = True,
    ) -> str:
        """
        Upload an object, overwriting any existing one when upsert is set.

        Raises:
            PublishError: If storage rejects the write
        """
        url = f"{self.url}/storage/v1/object/{bucket}/{path.lstrip('/')}"
        headers = self._headers({
            "Content-Type": content_type,
            "x-upsert": "true" if upsert else "false",
            "Cache-Control": "no-cache",
        })
        try:
            response = self.session.post(url, data=data, headers=headers, timeout=self.timeout)
        except requests.RequestException as e:
            raise PublishError(f"Upload of {bucket}/{path} failed: {e}") from e

        if not 200 <= response.status_code < 300:
            raise PublishError(f"Upload of {bucket}/{path} failed: {_error_text(response)}")
        return path


class LocalPublisher:
    """Writes banners into a local folder instead of storage."""

    def __init__(self, output_dir: str):
        self.output_dir = output_dir

    def __call__(self, bucket: str, path: str, data: bytes) -> str:
        out_path = os.path.join(self.output_dir, path)
        os.makedirs(os.path.dirname(out_path) or ".", exist_ok=True)
        with open(out_path, "wb") as f:
            f.write(data)
        return out_path
