"""Title normalization."""

from .._helpers import (
    collapse_whitespace,
    strip_non_alphanumeric,
    tag_roman_numerals,
    transliterate,
)


def normalize_title(title: str | None) -> str:
    """Canonicalize a title for comparison.

    Steps, in order: lower-case, transliterate Greek and accented Latin
    letters, tag whole-word roman numerals (``iv`` -> ``roman4``), drop
    everything but letters, numbers and whitespace, collapse whitespace.

    Parameters
    ----------
    title : str | None
        Free-text title.

    Returns
    -------
    str
        Normalized title, empty for missing input.

    Notes
    -----
    The function is idempotent: ``romanN`` tokens are not numerals, and a
    normalized title holds nothing the later steps would remove.
    """
    if not title:
        return ""

    text = title.lower().strip()
    text = transliterate(text)
    text = tag_roman_numerals(text)
    text = strip_non_alphanumeric(text)
    return collapse_whitespace(text)
