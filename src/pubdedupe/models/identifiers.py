"""Stable identifiers for records that arrive without one.

Callers normally assign record ids. File loaders fall back to a
deterministic UUIDv5 derived from the record content and its position so
that reruns on the same input produce the same ids.
"""

import hashlib
import json
import uuid
from collections.abc import Mapping
from typing import Any

# Project-fixed namespace UUID for deterministic UUIDv5 generation
# This is a constant that should never change across versions
PUBDEDUPE_NAMESPACE = uuid.UUID("6ba7b810-9dad-11d1-80b4-00c04fd430c8")


def calculate_record_digest(fields: Mapping[str, Any]) -> str:
    """Calculate deterministic content fingerprint of a flat record.

    Parameters
    ----------
    fields : Mapping[str, Any]
        Flat field mapping as read from input.

    Returns
    -------
    str
        SHA-256 digest in format "sha256:<hex>".
    """
    json_bytes = json.dumps(
        dict(fields),
        sort_keys=True,
        ensure_ascii=False,
        separators=(",", ":"),
        default=str,
    ).encode("utf-8")

    digest = hashlib.sha256(json_bytes).hexdigest()
    return f"sha256:{digest}"


def calculate_record_id(source: str, position: int, record_digest: str) -> str:
    """Calculate deterministic UUIDv5 record identifier.

    Parameters
    ----------
    source : str
        Record source name.
    position : int
        0-based position of the record in its input.
    record_digest : str
        Content digest from :func:`calculate_record_digest`.

    Returns
    -------
    str
        UUIDv5 string in standard format.

    Notes
    -----
    The position is part of the name so two byte-identical rows in one
    input still get distinct ids.
    """
    name = f"{source}:{position}:{record_digest}"
    return str(uuid.uuid5(PUBDEDUPE_NAMESPACE, name))


def validate_record_id_format(record_id: str) -> bool:
    """Check whether a string is a generated (UUIDv5) record id.

    Parameters
    ----------
    record_id : str
        Identifier to check.

    Returns
    -------
    bool
        True if the id is a valid UUIDv5.
    """
    try:
        parsed = uuid.UUID(record_id)
        return parsed.version == 5
    except (ValueError, AttributeError):
        return False
