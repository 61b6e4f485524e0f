"""Models for Google Photos Mirror."""

import os
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Mapping, Optional, Tuple

SCOPES = ("https://www.googleapis.com/auth/photoslibrary.readonly",)
AUTH_URI = "https://accounts.google.com/o/oauth2/v2/auth"
TOKEN_URI = "https://oauth2.googleapis.com/token"
REDIRECT_URI = "http://localhost:8080"
MEDIA_ITEMS_URL = "https://photoslibrary.googleapis.com/v1/mediaItems"


@dataclass(frozen=True)
class AuthConfig:
    """OAuth client settings, built once at startup."""
    client_id: str
    client_secret: str
    scopes: Tuple[str, ...] = SCOPES
    auth_uri: str = AUTH_URI
    token_uri: str = TOKEN_URI
    redirect_uri: str = REDIRECT_URI

    @classmethod
    def from_env(
        cls, environ: Optional[Mapping[str, str]] = None, **overrides: Any
    ) -> "AuthConfig":
        """Build a config from CLIENT_ID and CLIENT_SECRET.

        Missing variables are not validated; they become empty strings and
        the token exchange fails later.
        """
        if environ is None:
            environ = os.environ
        return cls(
            client_id=environ.get("CLIENT_ID", ""),
            client_secret=environ.get("CLIENT_SECRET", ""),
            **overrides,
        )

    def to_client_config(self) -> Dict[str, Dict[str, Any]]:
        """Return the installed-app client config understood by oauthlib flows."""
        return {
            "installed": {
                "client_id": self.client_id,
                "client_secret": self.client_secret,
                "auth_uri": self.auth_uri,
                "token_uri": self.token_uri,
                "redirect_uris": [self.redirect_uri],
            }
        }


@dataclass(frozen=True)
class MediaItem:
    """Represents a media item in Google Photos."""
    id: str
    description: str
    base_url: str
    mime_type: str
    filename: str

    @classmethod
    def from_api(cls, data: Any) -> "MediaItem":
        """Parse one entry of the ``mediaItems`` array.

        Raises:
            DecodeError: If the entry is not a JSON object
        """
        if not isinstance(data, dict):
            raise DecodeError(f"Expected media item object, got {type(data).__name__}")
        return cls(
            id=str(data.get("id") or ""),
            description=str(data.get("description") or ""),
            base_url=str(data.get("baseUrl") or ""),
            mime_type=str(data.get("mimeType") or ""),
            filename=str(data.get("filename") or ""),
        )


@dataclass(frozen=True)
class Page:
    """One response of the listing endpoint."""
    items: Tuple[MediaItem, ...]
    next_page_token: str = ""

    @property
    def is_last(self) -> bool:
        return not self.next_page_token

    @classmethod
    def from_api(cls, data: Any) -> "Page":
        """Parse a decoded listing response body.

        An absent ``mediaItems`` key is an empty page, which is how the API
        answers for an empty library. An absent ``nextPageToken`` ends
        pagination.

        Raises:
            DecodeError: If the body does not have the expected shape
        """
        if not isinstance(data, dict):
            raise DecodeError(f"Expected JSON object, got {type(data).__name__}")
        raw_items = data.get("mediaItems") or []
        if not isinstance(raw_items, list):
            raise DecodeError("'mediaItems' is not a list")
        token = data.get("nextPageToken") or ""
        if not isinstance(token, str):
            raise DecodeError("'nextPageToken' is not a string")
        return cls(items=tuple(MediaItem.from_api(item) for item in raw_items), next_page_token=token)


@dataclass
class Library:
    """All media items, in the order the server returned them."""
    items: List[MediaItem] = field(default_factory=list)

    def add_page(self, page: Page) -> None:
        self.items.extend(page.items)

    def __iter__(self) -> Iterator[MediaItem]:
        return iter(self.items)

    def __len__(self) -> int:
        return len(self.items)


@dataclass
class SyncReport:
    """Outcome of a synchronizer run."""
    downloaded: List[str] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)

    @property
    def processed(self) -> int:
        return len(self.downloaded) + len(self.skipped)


class PhotosMirrorError(Exception):
    """Base exception for Google Photos Mirror operations."""


class AuthorizationError(PhotosMirrorError):
    """Raised when the authorization code cannot be obtained or exchanged."""


class TransportError(PhotosMirrorError):
    """Raised when an HTTP round trip fails or returns a non-success status."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class DecodeError(PhotosMirrorError):
    """Raised when a response body does not have the expected structure."""


class StorageError(PhotosMirrorError):
    """Raised when reading or writing local files fails."""
