"""String similarity for title comparison.

This module provides pure, deterministic Jaro and Jaro-Winkler similarity
functions. Inputs are expected to be normalized titles; the functions
themselves apply no normalization.

All functions are symmetric and return values in [0, 1].
"""

# Winkler prefix scaling constant and maximum rewarded prefix length
DEFAULT_PREFIX_SCALE = 0.1
MAX_PREFIX_LENGTH = 4


def _ordered(a: str, b: str) -> tuple[str, str]:
    """Order a pair so the shorter string comes first.

    Equal-length strings are ordered lexicographically, which makes the
    greedy matching below independent of argument order.
    """
    if len(a) > len(b) or (len(a) == len(b) and a > b):
        return b, a
    return a, b


def jaro(a: str, b: str) -> float:
    """Compute Jaro similarity between two strings.

    Parameters
    ----------
    a : str
        First string.
    b : str
        Second string.

    Returns
    -------
    float
        Jaro similarity (0.0-1.0). 0.0 if either string is empty.

    Notes
    -----
    With ``s1`` the shorter and ``s2`` the longer string, a character of
    ``s1`` matches the first unmatched equal character of ``s2`` within
    ``max(0, len(s2) // 2 - 1)`` positions. ``t`` counts matched characters
    that differ when both match sequences are read in order::

        jaro = (m / len1 + m / len2 + (m - t / 2) / m) / 3
    """
    if not a or not b:
        return 0.0

    s1, s2 = _ordered(a, b)
    len1, len2 = len(s1), len(s2)

    window = max(0, len2 // 2 - 1)
    s1_matched = [False] * len1
    s2_matched = [False] * len2

    matches = 0
    for i, char in enumerate(s1):
        start = max(0, i - window)
        end = min(i + window + 1, len2)
        for j in range(start, end):
            if not s2_matched[j] and s2[j] == char:
                s1_matched[i] = True
                s2_matched[j] = True
                matches += 1
                break

    if matches == 0:
        return 0.0

    transpositions = 0
    k = 0
    for i, char in enumerate(s1):
        if not s1_matched[i]:
            continue
        while not s2_matched[k]:
            k += 1
        if char != s2[k]:
            transpositions += 1
        k += 1

    score = (matches / len1 + matches / len2 + (matches - transpositions / 2) / matches) / 3
    return min(1.0, max(0.0, score))


def common_prefix_length(a: str, b: str, limit: int = MAX_PREFIX_LENGTH) -> int:
    """Length of the shared prefix of two strings, capped at ``limit``."""
    length = 0
    for char_a, char_b in zip(a[:limit], b[:limit], strict=False):
        if char_a != char_b:
            break
        length += 1
    return length


def jaro_winkler(a: str, b: str, prefix_scale: float = DEFAULT_PREFIX_SCALE) -> float:
    """Compute Jaro-Winkler similarity between two strings.

    Parameters
    ----------
    a : str
        First string.
    b : str
        Second string.
    prefix_scale : float, optional
        Winkler scaling constant ``p``, by default 0.1.

    Returns
    -------
    float
        Similarity (0.0-1.0). 0.0 if either string is empty,
        1.0 for identical non-empty strings.

    Examples
    --------
        >>> round(jaro_winkler("martha", "marhta"), 4)
        0.9611
    """
    score = jaro(a, b)
    if score == 0.0:
        return 0.0

    prefix = common_prefix_length(a, b)
    boosted = score + prefix * prefix_scale * (1.0 - score)
    return min(1.0, boosted)


# Public name used by the pairwise classifier
similarity = jaro_winkler


def title_similarity(title_a: str, title_b: str) -> float | None:
    """Similarity of two normalized titles.

    Parameters
    ----------
    title_a : str
        First normalized title.
    title_b : str
        Second normalized title.

    Returns
    -------
    float | None
        Jaro-Winkler score, or None when either title is empty
        (an absent title is never evidence of a match).
    """
    if not title_a or not title_b:
        return None
    return jaro_winkler(title_a, title_b)
