"""Quality flags raised while normalizing a record.

A flagged record still takes part in the batch. The flags explain why it
may never match anything, so the audit trail can report it instead of
the record silently ending up distinct.
"""

from typing import Any

__all__ = [
    "DOI_NOT_TEXT",
    "TITLE_MISSING",
    "TITLE_NOT_TEXT",
    "generate_flags",
]

# Title value was a number, boolean or container rather than text
TITLE_NOT_TEXT = "title_not_text"
# DOI value was a number, boolean or container rather than text
DOI_NOT_TEXT = "doi_not_text"
# Nothing comparable left after title normalization
TITLE_MISSING = "title_missing"


def _not_text(value: Any) -> bool:
    return value is not None and not isinstance(value, str)


def generate_flags(title_raw: Any, doi_raw: Any, title_norm: str) -> tuple[str, ...]:
    """Generate quality flags for one record.

    Parameters
    ----------
    title_raw : Any
        Title as found on the record.
    doi_raw : Any
        DOI as found on the record.
    title_norm : str
        Normalized title.

    Returns
    -------
    tuple[str, ...]
        Flag codes in a fixed order; empty for a clean record.
    """
    flags: list[str] = []
    if _not_text(title_raw):
        flags.append(TITLE_NOT_TEXT)
    if _not_text(doi_raw):
        flags.append(DOI_NOT_TEXT)
    if not title_norm:
        flags.append(TITLE_MISSING)
    return tuple(flags)
