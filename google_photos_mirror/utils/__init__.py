"""Utility functions for Google Photos Mirror."""

from .auth import AuthenticatedClient, TokenAuthorizer
from .file_utils import local_filename, sanitize_filename, write_file_atomic

__all__ = [
    "AuthenticatedClient",
    "TokenAuthorizer",
    "local_filename",
    "sanitize_filename",
    "write_file_atomic",
]
