"""Cache name sanitization."""

from typing import Callable, Optional

from flatcache.utils import collapse_double_dots, is_safe_name, to_safe_name

MAX_NAME_LENGTH = 191

# Stripped from both ends of every sanitized name
TRIM_CHARS = ".-_"


class NameSanitizer:
    """Converts arbitrary cache names into safe file name stems.

    Names are never rejected. Path traversal sequences and separators are
    neutralized first; names made only of ASCII alphanumerics, '-', '_' and
    '.' are then just truncated, while anything else goes through the
    transliteration fallback.

    Args:
        max_length: Maximum length of a sanitized name
        transliterate: Fallback called as
            ``transliterate(name, max_length=..., replacement='_')``

    Examples:
        >>> sanitizer = NameSanitizer()
        >>> sanitizer.sanitize('../../etc/passwd')
        'etc_passwd'
        >>> sanitizer.sanitize('Grüße*')
        'Grusse'
    """

    def __init__(
        self,
        max_length: int = MAX_NAME_LENGTH,
        transliterate: Optional[Callable[..., str]] = None,
    ):
        self.max_length = max_length
        self.transliterate = transliterate or to_safe_name

    def sanitize(self, name: str) -> str:
        name = collapse_double_dots(str(name))
        name = name.replace("/", "_")

        if is_safe_name(name):
            name = name[: self.max_length]
        else:
            name = self.transliterate(name, max_length=self.max_length, replacement="_")
            name = collapse_double_dots(name)

        return name.strip(TRIM_CHARS)
