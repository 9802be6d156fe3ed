"""Lookup tables and compiled regex patterns for normalization.

Everything here is module-level and immutable so the normalizers stay
pure and cheap to call inside the all-pairs loop.
"""

import re
import unicodedata

# Pre-compiled regex patterns
DOI_URL_PREFIX_RE = re.compile(r"^https://doi\.org/", re.IGNORECASE)
WHITESPACE_RE = re.compile(r"\s+")

# Lower-case Greek letters and accented Latin letters mapped to ASCII
TRANSLITERATION_TABLE: dict[str, str] = {
    # Greek
    "α": "alpha",
    "β": "beta",
    "γ": "gamma",
    "δ": "delta",
    "ε": "epsilon",
    "ζ": "zeta",
    "η": "eta",
    "θ": "theta",
    "ι": "iota",
    "κ": "kappa",
    "λ": "lambda",
    "μ": "mu",
    "ν": "nu",
    "ξ": "xi",
    "ο": "omicron",
    "π": "pi",
    "ρ": "rho",
    "σ": "sigma",
    "τ": "tau",
    "υ": "upsilon",
    "φ": "phi",
    "χ": "chi",
    "ψ": "psi",
    "ω": "omega",
    # Latin
    "ä": "a",
    "ö": "o",
    "ü": "u",
    "ß": "ss",
    "à": "a",
    "á": "a",
    "â": "a",
    "ã": "a",
    "ç": "c",
    "è": "e",
    "é": "e",
    "ê": "e",
    "ë": "e",
    "ì": "i",
    "í": "i",
    "î": "i",
    "ï": "i",
    "ð": "d",
    "ñ": "n",
    "ò": "o",
    "ó": "o",
    "ô": "o",
    "õ": "o",
    "ù": "u",
    "ú": "u",
    "û": "u",
    "ý": "y",
    "þ": "th",
    "ÿ": "y",
    "ø": "o",
    "ł": "l",
    "ś": "s",
    "ą": "a",
    "ć": "c",
    "ę": "e",
    "ń": "n",
    "ź": "z",
    "ż": "z",
}

_TRANSLITERATION = str.maketrans(TRANSLITERATION_TABLE)

ROMAN_NUMERALS: dict[str, int] = {
    "i": 1,
    "ii": 2,
    "iii": 3,
    "iv": 4,
    "v": 5,
    "vi": 6,
    "vii": 7,
    "viii": 8,
    "ix": 9,
    "x": 10,
    "xi": 11,
    "xii": 12,
    "xiii": 13,
    "xiv": 14,
    "xv": 15,
    "xvi": 16,
    "xvii": 17,
    "xviii": 18,
    "xix": 19,
    "xx": 20,
}

# Longest alternatives first; a numeral is a whole word when it has no
# letter or digit on either side. Underscore is stripped later, so it must
# separate here too or a second pass would read "x_i" as "xi".
ROMAN_NUMERAL_RE = re.compile(
    r"(?<![^\W_])("
    + "|".join(sorted(ROMAN_NUMERALS, key=len, reverse=True))
    + r")(?![^\W_])"
)


def transliterate(text: str) -> str:
    """Replace Greek and accented Latin letters with ASCII spellings.

    Parameters
    ----------
    text : str
        Lower-cased text.

    Returns
    -------
    str
        Text with table entries replaced.
    """
    return text.translate(_TRANSLITERATION)


def tag_roman_numerals(text: str) -> str:
    """Rewrite whole-word roman numerals i..xx as ``romanN`` tokens.

    Parameters
    ----------
    text : str
        Lower-cased text.

    Returns
    -------
    str
        Text with numerals replaced, padded with spaces.
    """
    return ROMAN_NUMERAL_RE.sub(lambda m: f" roman{ROMAN_NUMERALS[m.group(1)]} ", text)


def strip_non_alphanumeric(text: str) -> str:
    """Drop every character that is not a letter, a number or whitespace.

    Parameters
    ----------
    text : str
        Input text.

    Returns
    -------
    str
        Text containing only Unicode letters, numbers and whitespace.
    """
    return "".join(
        c for c in text if c.isspace() or unicodedata.category(c)[0] in ("L", "N")
    )


def collapse_whitespace(text: str) -> str:
    """Collapse whitespace runs to a single space and trim."""
    return WHITESPACE_RE.sub(" ", text).strip()
