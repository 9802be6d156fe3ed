"""DOI normalization."""

from .._helpers import DOI_URL_PREFIX_RE


def normalize_doi(doi: str | None) -> str | None:
    """Canonicalize a DOI for equality comparison.

    Lower-cases, trims, and strips one leading ``https://doi.org/``
    (case-insensitive).

    Parameters
    ----------
    doi : str | None
        Free-text DOI as delivered by a source.

    Returns
    -------
    str | None
        Normalized DOI, or None when the input is missing or blank.

    Examples
    --------
        >>> normalize_doi("https://doi.org/10.1/ABC ")
        '10.1/abc'
    """
    if not doi:
        return None

    doi_norm = DOI_URL_PREFIX_RE.sub("", doi.strip()).lower().strip()
    return doi_norm or None


def dois_match(doi_a: str | None, doi_b: str | None) -> bool:
    """Check whether two normalized DOIs identify the same work.

    Parameters
    ----------
    doi_a : str | None
        First normalized DOI.
    doi_b : str | None
        Second normalized DOI.

    Returns
    -------
    bool
        True iff both are non-empty and equal.
    """
    return bool(doi_a) and bool(doi_b) and doi_a == doi_b
