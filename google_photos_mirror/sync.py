"""Mirrors library items to a local directory."""

import logging
import os

from google_photos_mirror.models import (
    Library,
    MediaItem,
    PhotosMirrorError,
    SyncReport,
)
from google_photos_mirror.utils.auth import AuthenticatedClient
from google_photos_mirror.utils.file_utils import (
    ensure_directory,
    file_exists,
    local_filename,
    write_file_atomic,
)

logger = logging.getLogger(__name__)

# Appended to a base URL to get the original bytes instead of a thumbnail.
CONTENT_SUFFIX = "=d"


def content_url(item: MediaItem) -> str:
    """Get the URL that serves the original bytes of an item."""
    return f"{item.base_url}{CONTENT_SUFFIX}"


class MediaSynchronizer:
    """Downloads each library item that is not already present locally."""

    def __init__(self, client: AuthenticatedClient, dest_dir: str = ".", show_progress: bool = True):
        self.client = client
        self.dest_dir = dest_dir
        self.show_progress = show_progress

    def _progress(self, message: str) -> None:
        if self.show_progress:
            print(f"\r{message}", end="", flush=True)

    def sync_item(self, item: MediaItem, report: SyncReport) -> None:
        """Download one item unless a file with its local name exists."""
        filename = local_filename(item)
        path = os.path.join(self.dest_dir, filename)

        if file_exists(path):
            logger.debug("Skipping %s, already present", filename)
            self._progress(f"Skipping {filename}")
            report.skipped.append(filename)
            return

        logger.debug("Downloading %s from %s", filename, item.base_url)
        self._progress(f"Downloading {filename}")
        content = self.client.get_content(content_url(item))
        write_file_atomic(path, content)
        report.downloaded.append(filename)

    def sync(self, library: Library) -> SyncReport:
        """Mirror every item in library order, stopping at the first error.

        Returns:
            Report whose ``processed`` count covers downloaded and skipped items

        Raises:
            TransportError: If a content request fails
            AuthorizationError: If the access token cannot be refreshed
            StorageError: If a file cannot be written
            DecodeError: If an item has neither a usable filename nor an id

            Errors carry the report for the items done so far as ``report``.
        """
        report = SyncReport()
        try:
            ensure_directory(self.dest_dir)
            for item in library:
                self.sync_item(item, report)
        except PhotosMirrorError as e:
            e.report = report
            raise
        finally:
            if self.show_progress and report.processed:
                print()

        logger.info(
            "Processed %d items: %d downloaded, %d skipped",
            report.processed,
            len(report.downloaded),
            len(report.skipped),
        )
        return report
