"""Hashing and timestamp helpers shared by the loader and the audit trail."""

from pubdedupe.utils.hashing import calculate_file_sha256, format_sha256
from pubdedupe.utils.timestamps import get_file_mtime, get_iso_timestamp

__all__ = [
    "calculate_file_sha256",
    "format_sha256",
    "get_file_mtime",
    "get_iso_timestamp",
]
