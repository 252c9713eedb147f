"""Expiration timestamps and expiration conditions.

Expirations are whole epoch seconds. Conditions used by queries are strings
of the form ``"<operator> <date>"`` such as ``"<= 2023-03-08 03:00:01"``;
they are parsed once into :class:`ExpireCondition` tuples and then compared
against each entry's modification time.
"""

import time
from datetime import date, datetime, timedelta
from enum import Enum
from typing import Iterable, List, NamedTuple, Optional, Sequence, Tuple, Union

from dateutil import parser as date_parser

# Entries saved with this expiration are skipped by expire_all()
EXPIRE_NEVER = "2010-04-08 03:10:10"

# Entries saved with this expiration are skipped by delete_all()
EXPIRE_RESERVED = "2010-04-08 03:10:01"

DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

OPERATORS = ("=", ">", "<", ">=", "<=")
OPERATOR_CHARS = frozenset("<>=!")

TimeValue = Union[datetime, date, timedelta, int, float, str]


class ExpiresMode(str, Enum):
    """How multiple expiration conditions combine."""

    OR = "OR"
    AND = "AND"

    @classmethod
    def coerce(cls, value: Union[str, "ExpiresMode"]) -> "ExpiresMode":
        """Convert a mode string (case-insensitive) to ExpiresMode.

        Raises:
            ValueError: If the mode is neither 'OR' nor 'AND'
        """
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).upper())
        except ValueError:
            raise ValueError(
                f"Unsupported expires mode: {value!r} (expected 'OR' or 'AND')"
            ) from None


def time_matches(candidate: int, operator: str, reference: int) -> bool:
    """Compare a candidate time against a reference time.

    Args:
        candidate: Time being tested (e.g. a file's mtime)
        operator: One of '=', '>', '<', '>=', '<='
        reference: Time from the condition

    Returns:
        Result of the comparison; False for any other operator

    Examples:
        >>> time_matches(10, '>=', 10)
        True
        >>> time_matches(10, '!=', 5)
        False
    """
    if operator == "=":
        return candidate == reference
    if operator == ">":
        return candidate > reference
    if operator == "<":
        return candidate < reference
    if operator == ">=":
        return candidate >= reference
    if operator == "<=":
        return candidate <= reference
    return False


class ExpireCondition(NamedTuple):
    """A parsed ``(operator, timestamp)`` expiration condition."""

    operator: str
    timestamp: int

    def matches(self, candidate: int) -> bool:
        return time_matches(candidate, self.operator, self.timestamp)


def time_matches_expires(
    candidate: int,
    conditions: Sequence[ExpireCondition],
    mode: Union[str, ExpiresMode] = ExpiresMode.OR,
) -> bool:
    """Check a time against several conditions.

    In OR mode the first matching condition short-circuits; in AND mode every
    condition must match.
    """
    if ExpiresMode.coerce(mode) is ExpiresMode.AND:
        return all(condition.matches(candidate) for condition in conditions)
    return any(condition.matches(candidate) for condition in conditions)


def to_timestamp(value: TimeValue, now: Optional[float] = None) -> int:
    """Convert a time value to whole epoch seconds.

    Accepted values:
    - datetime (naive values are local time) or date (local midnight)
    - int/float epoch seconds
    - timedelta, relative to ``now``
    - strings: any date dateutil can parse, ``"now"``, or ``"@<epoch>"``

    Args:
        value: Time value to convert
        now: Current epoch time used for relative values (default: time.time())

    Returns:
        Epoch seconds

    Raises:
        ValueError: If a string cannot be parsed
        TypeError: If the value type is not supported
    """
    if isinstance(value, datetime):
        return int(value.timestamp())
    if isinstance(value, date):
        return int(datetime.combine(value, datetime.min.time()).timestamp())
    if isinstance(value, timedelta):
        base = now if now is not None else time.time()
        return int(base + value.total_seconds())
    if isinstance(value, bool):
        raise TypeError("Expiration cannot be a bool")
    if isinstance(value, (int, float)):
        return int(value)
    if isinstance(value, str):
        text = value.strip()
        if text.lower() == "now":
            return int(now if now is not None else time.time())
        if text.startswith("@"):
            try:
                return int(float(text[1:]))
            except ValueError:
                raise ValueError(f"Invalid epoch timestamp: '{value}'") from None
        try:
            parsed = date_parser.parse(text)
        except (ValueError, OverflowError) as e:
            raise ValueError(f"Cannot parse date '{value}': {e}") from e
        return int(parsed.timestamp())
    raise TypeError(f"Unsupported time value type: {type(value).__name__}")


def format_timestamp(timestamp: int) -> str:
    """Format epoch seconds as a local 'YYYY-MM-DD HH:MM:SS' string."""
    return datetime.fromtimestamp(timestamp).strftime(DATE_FORMAT)


def parse_expire_condition(
    condition: Union[str, Tuple[str, TimeValue]], now: Optional[float] = None
) -> ExpireCondition:
    """Parse a single expiration condition.

    The first token is taken as the operator when it consists only of
    comparison characters; otherwise the operator defaults to '='.

    Args:
        condition: ``"<operator> <date>"`` string, a bare date string, or an
            ``(operator, value)`` tuple
        now: Current epoch time for relative values

    Returns:
        ExpireCondition

    Examples:
        >>> parse_expire_condition('> @100')
        ExpireCondition(operator='>', timestamp=100)
        >>> parse_expire_condition('@100')
        ExpireCondition(operator='=', timestamp=100)
    """
    if isinstance(condition, tuple):
        operator, value = condition
        return ExpireCondition(operator, to_timestamp(value, now))

    text = condition.strip()
    operator = "="
    head, sep, rest = text.partition(" ")
    if sep and set(head) <= OPERATOR_CHARS:
        operator, text = head, rest.strip()
    return ExpireCondition(operator, to_timestamp(text, now))


def parse_expires(
    conditions: Iterable[Union[str, Tuple[str, TimeValue]]],
    now: Optional[float] = None,
) -> List[ExpireCondition]:
    """Parse a list of expiration conditions (see parse_expire_condition)."""
    return [parse_expire_condition(condition, now) for condition in conditions]
