"""Main module for Google Photos Mirror."""

import argparse
import logging
import sys
from typing import Optional

from tabulate import tabulate

from google_photos_mirror.library import LibraryPaginator
from google_photos_mirror.models import (
    MEDIA_ITEMS_URL,
    REDIRECT_URI,
    AuthConfig,
    Library,
    PhotosMirrorError,
    SyncReport,
)
from google_photos_mirror.sync import MediaSynchronizer
from google_photos_mirror.utils.auth import (
    AuthenticatedClient,
    CallbackCodeReceiver,
    ManualCodeReceiver,
    TokenAuthorizer,
)

logger = logging.getLogger(__name__)


class GooglePhotosMirror:
    """Authorizes, lists the library and mirrors it to a local directory."""

    def __init__(
        self,
        config: AuthConfig,
        dest_dir: str = ".",
        manual: bool = False,
        page_size: Optional[int] = None,
        list_url: str = MEDIA_ITEMS_URL,
    ):
        """Initialize the mirror."""
        self.config = config
        self.dest_dir = dest_dir
        self.manual = manual
        self.page_size = page_size
        self.list_url = list_url
        self.client: Optional[AuthenticatedClient] = None

    def authenticate(self) -> None:
        """Authenticate with Google Photos API."""
        if self.manual:
            receiver = ManualCodeReceiver()
        else:
            receiver = CallbackCodeReceiver.from_redirect_uri(self.config.redirect_uri)
        self.client = TokenAuthorizer(self.config, receiver=receiver).authorize()

    def load_library(self) -> Library:
        """Fetch every media item from Google Photos."""
        if not self.client:
            raise PhotosMirrorError("Not authenticated with Google Photos")

        print("Loading library...")
        paginator = LibraryPaginator(self.client, list_url=self.list_url, page_size=self.page_size)
        return paginator.fetch_library()

    def download(self, library: Library) -> SyncReport:
        """Download every item not already in the destination directory."""
        print(f"Downloading {len(library)} images")
        return MediaSynchronizer(self.client, dest_dir=self.dest_dir).sync(library)

    def sync(self) -> SyncReport:
        library = self.load_library()
        report = self.download(library)
        print_report(report)
        return report

    def print_library(self) -> None:
        """Print the library as a table."""
        library = self.load_library()
        rows = [[item.filename, item.mime_type, item.id, item.description] for item in library]
        if rows:
            print(
                tabulate(
                    rows,
                    headers=["Filename", "MIME Type", "ID", "Description"],
                    tablefmt="psql",
                )
            )
        print(f"\nTotal items: {len(rows)}")

    def close(self) -> None:
        if self.client:
            self.client.close()
            self.client = None


def print_report(report: SyncReport) -> None:
    """Print a summary of a sync run."""
    print(
        tabulate(
            [
                ["Downloaded", len(report.downloaded)],
                ["Skipped", len(report.skipped)],
                ["Processed", report.processed],
            ],
            headers=["Result", "Items"],
            tablefmt="psql",
        )
    )


def parse_arguments(argv=None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(description="Google Photos Mirror")

    # Global arguments
    parser.add_argument(
        "--dest-dir", type=str, default=".", help="Directory to download into (default: .)"
    )
    parser.add_argument(
        "--manual",
        action="store_true",
        help="Type the authorization code instead of running a local callback listener",
    )
    parser.add_argument(
        "--redirect-url", type=str, default=REDIRECT_URI, help="OAuth redirect URL"
    )
    parser.add_argument("--page-size", type=int, help="Items requested per listing page")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")

    subparsers = parser.add_subparsers(dest="command", help="Commands", required=True)
    subparsers.add_parser("sync", help="Download every item not already present locally")
    subparsers.add_parser("list", help="List every item in the library")

    return parser.parse_args(argv)


def main(argv=None) -> None:
    """Main entry point for the Google Photos Mirror CLI."""
    args = parse_arguments(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(name)s %(levelname)s: %(message)s",
    )

    config = AuthConfig.from_env(redirect_uri=args.redirect_url)
    mirror = GooglePhotosMirror(
        config,
        dest_dir=args.dest_dir,
        manual=args.manual,
        page_size=args.page_size,
    )

    try:
        mirror.authenticate()
        if args.command == "sync":
            mirror.sync()
        elif args.command == "list":
            mirror.print_library()
    except PhotosMirrorError as e:
        logger.error("%s", e)
        sys.exit(1)
    finally:
        mirror.close()


if __name__ == "__main__":
    main()
