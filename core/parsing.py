"""
Settlement ledger parsing.
Turns the exported text into token rows, then into Transaction records.
"""
from enum import Enum
from typing import Iterator, List, Optional, Tuple, Union

from core.logger import setup_logger
from core.normalize import get_token, parse_amount, parse_quantity
from core.schema import ParseStats, Transaction

logger = setup_logger(__name__)

BYTE_ORDER_MARK = "\ufeff"

# 7 preamble lines, then the header on line 7; data starts on line 8 (0-based)
DATA_START_INDEX = 8

# Rows with fewer tokens are malformed and dropped
MIN_COLUMNS = 26

# Positional column order of the settlement export
LEDGER_COLUMNS: Tuple[str, ...] = (
    "date",
    "payment_id",
    "transaction_type",
    "order_id",
    "sku",
    "description",
    "quantity",
    "amazon_service",
    "fulfillment",
    "city",
    "prefecture",
    "postal_code",
    "tax_collection_type",
    "product_sales",
    "product_tax",
    "shipping_fee",
    "shipping_tax",
    "gift_wrapping_fee",
    "gift_wrapping_tax",
    "amazon_points_cost",
    "promotion_discount",
    "promotion_discount_tax",
    "marketplace_tax",
    "fees",
    "fba_fees",
    "other_transaction_fees",
    "other",
    "total",
)

AMOUNT_COLUMNS = frozenset(LEDGER_COLUMNS[13:])


class SkipReason(str, Enum):
    """Why a ledger line did not become a Transaction."""
    TOO_FEW_COLUMNS = "too_few_columns"
    BUILD_FAILURE = "build_failure"


def split_ledger_line(line: str) -> List[str]:
    """
    Split one ledger line on commas, honouring double-quoted fields.

    A double quote toggles the quoted state and is not emitted, unless it
    directly follows a backslash, in which case it is kept as a literal.

    Args:
        line: A single data line

    Returns:
        List of tokens (always at least one)
    """
    tokens: List[str] = []
    current: List[str] = []
    in_quotes = False
    previous = ""

    for char in line:
        if char == '"' and previous != "\\":
            in_quotes = not in_quotes
        elif char == "," and not in_quotes:
            tokens.append("".join(current))
            current = []
        else:
            current.append(char)
        previous = char

    tokens.append("".join(current))
    return tokens


def iter_data_lines(text: str) -> Iterator[Tuple[int, str]]:
    """
    Yield (line_index, stripped_line) for every non-blank data line.

    Args:
        text: Full ledger text, optionally starting with a BOM

    Yields:
        Line index within the ledger and the trimmed line
    """
    if text.startswith(BYTE_ORDER_MARK):
        text = text[len(BYTE_ORDER_MARK):]

    lines = text.split("\n")
    if len(lines) <= DATA_START_INDEX:
        return

    for index in range(DATA_START_INDEX, len(lines)):
        line = lines[index].strip()
        if line:
            yield index, line


def tokenize_ledger(text: str, stats: Optional[ParseStats] = None) -> List[List[str]]:
    """
    Tokenize ledger text into rows of string tokens.

    Preamble and header lines are ignored. Rows with fewer than
    MIN_COLUMNS tokens are dropped and, when stats is given, counted.

    Args:
        text: Full ledger text
        stats: Optional bookkeeping object updated in place

    Returns:
        Token rows in ledger order
    """
    rows: List[List[str]] = []
    for index, line in iter_data_lines(text):
        if stats is not None:
            stats.data_lines += 1
        tokens = split_ledger_line(line)
        if len(tokens) < MIN_COLUMNS:
            logger.debug(f"Line {index}: {len(tokens)} columns, dropped")
            if stats is not None:
                stats.record_skip(SkipReason.TOO_FEW_COLUMNS.value)
            continue
        rows.append(tokens)
    return rows


def build_transaction(row: List[str]) -> Union[Transaction, SkipReason]:
    """
    Map a token row positionally onto a Transaction.

    Never raises: a row that cannot be built comes back as
    SkipReason.BUILD_FAILURE.

    Args:
        row: Token row from tokenize_ledger

    Returns:
        Transaction, or the reason the row was skipped
    """
    try:
        values = {}
        for index, column in enumerate(LEDGER_COLUMNS):
            token = get_token(row, index)
            if column == "quantity":
                values[column] = parse_quantity(token)
            elif column in AMOUNT_COLUMNS:
                values[column] = parse_amount(token)
            else:
                values[column] = token
        return Transaction(**values)
    except Exception as e:
        logger.warning(f"Failed to build transaction from row: {e}")
        return SkipReason.BUILD_FAILURE


def parse_ledger(text: str) -> Tuple[List[Transaction], ParseStats]:
    """
    Parse full ledger text into Transactions.

    Args:
        text: Full ledger text

    Returns:
        Tuple of (transactions in ledger order, parse statistics)
    """
    stats = ParseStats()
    transactions: List[Transaction] = []

    for row in tokenize_ledger(text, stats):
        result = build_transaction(row)
        if isinstance(result, SkipReason):
            stats.record_skip(result.value)
            continue
        transactions.append(result)

    stats.transactions = len(transactions)
    logger.info(
        f"Parsed {stats.transactions} transactions from {stats.data_lines} data lines "
        f"(skipped {stats.skipped_total}: {stats.skipped})"
    )
    return transactions, stats


def parse_ledger_text(text: str) -> List[Transaction]:
    """Parse ledger text and return only the transactions."""
    transactions, _ = parse_ledger(text)
    return transactions
