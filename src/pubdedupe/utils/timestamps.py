"""UTC timestamps for the audit trail."""

from datetime import UTC, datetime
from pathlib import Path

__all__ = ["get_file_mtime", "get_iso_timestamp"]

# Fixed width: always microseconds, always "Z"
_EVENT_FORMAT = "%Y-%m-%dT%H:%M:%S.%fZ"
_MTIME_FORMAT = "%Y-%m-%dT%H:%M:%SZ"


def get_iso_timestamp() -> str:
    """Current UTC time, e.g. "2026-02-03T12:34:56.123456Z"."""
    return datetime.now(UTC).strftime(_EVENT_FORMAT)


def get_file_mtime(file_path: Path) -> str | None:
    """Modification time of a file to the second, or None if it cannot be read."""
    try:
        modified = Path(file_path).stat().st_mtime
    except OSError:
        return None
    return datetime.fromtimestamp(modified, UTC).strftime(_MTIME_FORMAT)
