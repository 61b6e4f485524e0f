"""Test configuration for pytest."""

import sys
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import pytest

# Add the project root directory to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))


class FakeClient:
    """Stands in for AuthenticatedClient, serving canned pages and content.

    Args:
        pages: Listing response bodies keyed by the pageToken that requests them
        content: Content bodies (or exceptions to raise) keyed by URL
    """

    def __init__(self, pages: Optional[Dict[str, Any]] = None, content: Optional[Dict[str, Any]] = None):
        self.pages = pages or {}
        self.content = content or {}
        self.list_requests: List[Tuple[str, Dict[str, Any]]] = []
        self.content_requests: List[str] = []
        self.closed = False

    def get_json(self, url, params=None):
        params = dict(params or {})
        self.list_requests.append((url, params))
        result = self.pages[params.get("pageToken", "")]
        if isinstance(result, Exception):
            raise result
        return result

    def get_content(self, url):
        self.content_requests.append(url)
        result = self.content[url]
        if isinstance(result, Exception):
            raise result
        return result

    def close(self):
        self.closed = True


@pytest.fixture
def fake_client_factory():
    """Return the FakeClient class so tests can build their own."""
    return FakeClient


@pytest.fixture
def two_page_client() -> FakeClient:
    """Client with two pages: a.jpg then b/c.jpg."""
    return FakeClient(
        pages={
            "": {
                "mediaItems": [{"id": "1", "filename": "a.jpg", "baseUrl": "http://x/a", "mimeType": "image/jpeg"}],
                "nextPageToken": "tok2",
            },
            "tok2": {
                "mediaItems": [{"id": "2", "filename": "b/c.jpg", "baseUrl": "http://x/b", "mimeType": "image/jpeg"}],
                "nextPageToken": "",
            },
        },
        content={"http://x/a=d": b"content-a", "http://x/b=d": b"content-b"},
    )
