"""
Field coercion for raw ledger tokens.
None of these helpers raise: unparsable input falls back to a zero default.
"""
import math
import re
from typing import List, Optional

from core.logger import setup_logger

logger = setup_logger(__name__)

# Leading numeric prefix, the way a lenient float/int parse reads it ("12.5円" -> 12.5)
_DECIMAL_PREFIX = re.compile(r"^[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")
_INTEGER_PREFIX = re.compile(r"^[+-]?\d+")

# Characters stripped from amounts before parsing (thousands separators, stray quotes)
_AMOUNT_NOISE = re.compile(r'[,"]')


def get_token(row: List[str], index: int, default: str = "") -> str:
    """
    Return the token at index, or default when the row is shorter or the token is empty.

    Args:
        row: Tokenized ledger row
        index: Column position
        default: Value for absent/empty tokens

    Returns:
        Token string or default
    """
    if index >= len(row):
        return default
    return row[index] or default


def parse_amount(value: Optional[str]) -> float:
    """
    Parse a monetary token.
    Removes commas and quote characters, then reads the leading decimal number.

    Args:
        value: Raw token (e.g. "-1,234", '"5,000"', "")

    Returns:
        Parsed float, or 0.0 when empty, not numeric or out of float range
    """
    if not value:
        return 0.0

    cleaned = _AMOUNT_NOISE.sub("", value).strip()
    match = _DECIMAL_PREFIX.match(cleaned)
    if not match:
        logger.debug(f"Non-numeric amount token defaulted to 0: {value!r}")
        return 0.0

    amount = float(match.group(0))
    if not math.isfinite(amount):
        logger.debug(f"Amount token out of range defaulted to 0: {value!r}")
        return 0.0
    return amount


def parse_quantity(value: Optional[str]) -> int:
    """
    Parse a quantity token as an integer (leading digits only, "2.0" -> 2).

    Args:
        value: Raw token

    Returns:
        Parsed integer, or 0 when empty or not numeric
    """
    if not value:
        return 0

    match = _INTEGER_PREFIX.match(value.strip())
    if not match:
        return 0
    return int(match.group(0))
