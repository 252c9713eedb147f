"""Utility functions for flatcache."""

import re
import unicodedata

# Characters allowed in a single filesystem path segment
SAFE_CHARS_PATTERN = re.compile(r"[A-Za-z0-9._-]+")
UNSAFE_CHAR_PATTERN = re.compile(r"[^A-Za-z0-9._-]")

# Letters that NFKD decomposition does not fold to ASCII
SPECIAL_LETTERS = {
    "ß": "ss",
    "æ": "ae",
    "Æ": "AE",
    "œ": "oe",
    "Œ": "OE",
    "ø": "o",
    "Ø": "O",
    "đ": "d",
    "Đ": "D",
    "ð": "d",
    "Ð": "D",
    "ł": "l",
    "Ł": "L",
    "þ": "th",
    "Þ": "Th",
}


def is_safe_name(name: str) -> bool:
    """Check whether a name only contains ASCII alphanumerics, '-', '_' and '.'.

    Args:
        name: Name to check

    Returns:
        True if every character is safe (False for the empty string)

    Examples:
        >>> is_safe_name('user-42.profile')
        True
        >>> is_safe_name('café')
        False
    """
    return SAFE_CHARS_PATTERN.fullmatch(name) is not None


def collapse_double_dots(name: str) -> str:
    """Collapse every '..' run down to a single '.'.

    Examples:
        >>> collapse_double_dots('../../etc')
        './etc'
    """
    while ".." in name:
        name = name.replace("..", ".")
    return name


def to_safe_name(
    name: str,
    max_length: int = 191,
    replacement: str = "_",
    collapse_replacement: bool = True,
) -> str:
    """Transliterate an arbitrary string into a filesystem-safe name.

    Diacritics are folded to their ASCII base letters, any other character
    outside ``[A-Za-z0-9._-]`` becomes ``replacement``, and runs of the
    replacement character are collapsed to one.

    Args:
        name: Raw name
        max_length: Maximum length of the result
        replacement: Character used for disallowed characters
        collapse_replacement: Collapse adjacent replacement characters

    Returns:
        Safe name, possibly empty. Leading/trailing punctuation is kept.

    Examples:
        >>> to_safe_name('Crème brûlée')
        'Creme_brulee'
        >>> to_safe_name('price: 5€ / kg')
        'price_5_kg'
    """
    translated = "".join(SPECIAL_LETTERS.get(char, char) for char in name)
    folded = unicodedata.normalize("NFKD", translated)
    folded = "".join(char for char in folded if not unicodedata.combining(char))

    safe = UNSAFE_CHAR_PATTERN.sub(replacement, folded)
    if collapse_replacement and replacement:
        safe = re.sub(f"(?:{re.escape(replacement)}){{2,}}", replacement, safe)

    return collapse_double_dots(safe[:max_length])
