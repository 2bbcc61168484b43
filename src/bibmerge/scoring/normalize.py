"""Field normalization helpers for duplicate detection.

Normalized values are only used for comparison; records themselves are
never rewritten.
"""

import re
import unicodedata

# Pre-compiled regex patterns
DOI_PREFIX_RE = re.compile(r"^(?:https?://(?:dx\.)?doi\.org/|doi:\s*)", re.IGNORECASE)
YEAR_RE = re.compile(r"\b(1[5-9]|20)\d{2}\b")
PUNCT_RE = re.compile(r'[.,:;!?\'"()\[\]\\$~^]+')
LATEX_ACCENT_RE = re.compile(r"\\['`\"^~=.]")
LATEX_COMMAND_RE = re.compile(r"\\[a-zA-Z]+\s*")
SUFFIX_RE = re.compile(r"\s+(Jr\.?|Sr\.?|II|III|IV|V)$", re.IGNORECASE)
ISBN_CHARS_RE = re.compile(r"[^0-9X]")
AUTHOR_SEPARATOR_RE = re.compile(r"\s+and\s+", re.IGNORECASE)


def strip_accents(text: str) -> str:
    """Remove diacritical marks for cross-locale matching.

    Parameters
    ----------
    text : str
        Input text with potential diacritics.

    Returns
    -------
    str
        Text with diacritical marks removed.
    """
    nfd = unicodedata.normalize("NFD", text)
    stripped = "".join(c for c in nfd if unicodedata.category(c) != "Mn")
    return unicodedata.normalize("NFC", stripped)


def normalize_text_for_matching(text: str | None) -> str:
    """Full text normalization for dedup matching.

    Applies NFKC, strips LaTeX accents, commands and braces, then
    casefolds, strips accents, removes punctuation and collapses whitespace.

    Parameters
    ----------
    text : str | None
        Raw text to normalize.

    Returns
    -------
    str
        Normalized text ready for matching.
    """
    if not text:
        return ""
    text = unicodedata.normalize("NFKC", text)
    text = LATEX_ACCENT_RE.sub("", text)
    text = LATEX_COMMAND_RE.sub("", text)
    text = text.replace("{", "").replace("}", "")
    text = text.casefold()
    text = strip_accents(text)
    text = PUNCT_RE.sub(" ", text)
    return " ".join(text.split())


def normalize_doi(value: str | None) -> str | None:
    """Lower-case a DOI and strip resolver URL or ``doi:`` prefixes."""
    if not value:
        return None
    doi = DOI_PREFIX_RE.sub("", value.strip()).strip().rstrip(".").lower()
    return doi or None


def normalize_isbn(value: str | None) -> str | None:
    """Reduce an ISBN to its digits (and check character X)."""
    if not value:
        return None
    isbn = ISBN_CHARS_RE.sub("", value.upper())
    return isbn or None


def normalize_identifier(value: str | None) -> str | None:
    """Casefold and trim a free-form identifier such as an eprint id."""
    if not value:
        return None
    ident = value.strip().casefold()
    return ident or None


def extract_year(value: str | None) -> int | None:
    """Extract a four digit year from a year or date field.

    Parameters
    ----------
    value : str | None
        Field value such as "2020" or "2020-05-01".

    Returns
    -------
    int | None
        Year, or None if no plausible year is present.
    """
    if not value:
        return None
    match = YEAR_RE.search(value)
    return int(match.group(0)) if match else None


def author_signatures(value: str | None) -> list[str]:
    """Family-name signatures for a BibTeX ``and``-separated author list.

    Handles both "Family, Given" and "Given Family" name forms.

    Parameters
    ----------
    value : str | None
        Raw author field.

    Returns
    -------
    list[str]
        Casefolded, accent-stripped family names in author order.
    """
    if not value:
        return []

    signatures: list[str] = []
    for part in AUTHOR_SEPARATOR_RE.split(value):
        name = part.strip().strip("{}").strip()
        if not name or name.casefold() in ("others", "et al.", "et al"):
            continue
        if "," in name:
            family = SUFFIX_RE.sub("", name.split(",", 1)[0].strip())
        else:
            family = SUFFIX_RE.sub("", name).split()[-1]
        family = normalize_text_for_matching(family).replace(" ", "")
        if family:
            signatures.append(family)
    return signatures
