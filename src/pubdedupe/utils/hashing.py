"""Content hashes in the "sha256:<hex>" form used by run manifests."""

import hashlib
from pathlib import Path

__all__ = ["calculate_file_sha256", "format_sha256"]


def format_sha256(hex_digest: str) -> str:
    return f"sha256:{hex_digest}"


def calculate_file_sha256(path: Path) -> str:
    """Hash a file's bytes without loading it whole.

    Raises
    ------
    FileNotFoundError
        If the file does not exist.
    """
    with Path(path).open("rb") as f:
        digest = hashlib.file_digest(f, "sha256")
    return format_sha256(digest.hexdigest())
