"""
String manipulation utilities.
"""
import re
import unicodedata

_CHARACTER_REPLACEMENTS = {
    "“": '"',
    "”": '"',
    "‘": "'",
    "’": "'",
    "…": "...",
    "–": "-",
    "—": "-",
}

# Leading/trailing noise; brackets are kept so qualifier clauses survive
_LEADING_NOISE = re.compile(r"^[^\w(\[]+")
_TRAILING_NOISE = re.compile(r"[^\w)\]]+$")


def clean_text(text: object) -> str:
    """
    Clean a display string.

    Trims and collapses whitespace, maps typographic quotes, ellipsis and
    dashes to ASCII, and strips leading/trailing punctuation.

    Args:
        text: Raw field value; non-strings yield an empty string

    Returns:
        Cleaned string
    """
    if not text or not isinstance(text, str):
        return ""

    text = re.sub(r"\s+", " ", text.strip())
    for source, target in _CHARACTER_REPLACEMENTS.items():
        text = text.replace(source, target)

    text = _LEADING_NOISE.sub("", text)
    text = _TRAILING_NOISE.sub("", text)

    return text.strip()


def comparison_text(text: object) -> str:
    """
    Lowercase a string and replace punctuation with single spaces.

    Used wherever two catalogs' strings are compared character by character.
    """
    if not text:
        return ""

    text = str(text).lower()
    text = re.sub(r"[^\w\s]", " ", text)
    return re.sub(r"\s+", " ", text).strip()


def normalize_string(text: str) -> str:
    """
    Normalize a string for loose comparison purposes.

    Args:
        text: Input string to normalize

    Returns:
        Normalized string
    """
    if not text:
        return ""

    # Convert to lowercase
    text = text.lower()

    # Remove unicode accents and normalize
    text = unicodedata.normalize('NFD', text)
    text = ''.join(c for c in text if unicodedata.category(c) != 'Mn')

    # Underscores count as punctuation here
    text = re.sub(r'[\W_]+', ' ', text)

    return text.strip()
