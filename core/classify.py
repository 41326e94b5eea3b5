"""
Transaction classification.

Every Transaction is checked against an ordered table of independent rules.
Each matching rule emits postings: (dimension, field, amount) triples that
the aggregator adds into the summary, the SKU map or the monthly map.
A single row can therefore touch zero, one or several dimensions.
"""
from enum import Enum
from typing import Callable, Dict, List, NamedTuple, Optional, Tuple

from core.logger import setup_logger
from core.schema import Transaction

logger = setup_logger(__name__)


class TransactionCategory(str, Enum):
    """Ledger transaction types that drive aggregation."""
    ORDER = "order"
    REFUND = "refund"
    NON_ORDER_FEE = "non_order_fee"
    FBA_INVENTORY_FEE = "fba_inventory_fee"


# Exact transaction-type labels as they appear in settlement exports
TRANSACTION_TYPE_LABELS: Dict[str, TransactionCategory] = {
    "注文": TransactionCategory.ORDER,
    "Order": TransactionCategory.ORDER,
    "返金": TransactionCategory.REFUND,
    "Refund": TransactionCategory.REFUND,
    "注文外料金": TransactionCategory.NON_ORDER_FEE,
    "Out-of-order fee": TransactionCategory.NON_ORDER_FEE,
    "FBA 在庫関連の手数料": TransactionCategory.FBA_INVENTORY_FEE,
    "FBA inventory-related fee": TransactionCategory.FBA_INVENTORY_FEE,
}

# Description markers refining the fee categories
ADVERTISING_COST_MARKERS: Tuple[str, ...] = ("広告費用", "advertising cost")
FBA_STORAGE_FEE_MARKERS: Tuple[str, ...] = ("FBA在庫保管手数料", "FBA storage fee")


class Dimension(str, Enum):
    """Aggregate a posting lands in."""
    SUMMARY = "summary"
    SKU = "sku"
    MONTHLY = "monthly"


class Posting(NamedTuple):
    """One additive contribution of a transaction to one aggregate field."""
    dimension: Dimension
    field: str
    amount: float


class ClassificationRule(NamedTuple):
    name: str
    category: TransactionCategory
    applies: Callable[[Transaction], bool]
    postings: Callable[[Transaction], List[Posting]]


def categorize(transaction: Transaction) -> Optional[TransactionCategory]:
    """Look up the category of a transaction's type label, or None if unrecognized."""
    return TRANSACTION_TYPE_LABELS.get(transaction.transaction_type)


def _contains_any(text: str, markers: Tuple[str, ...]) -> bool:
    return any(marker in text for marker in markers)


def is_advertising_cost(transaction: Transaction) -> bool:
    """True when the description carries the advertising-cost marker."""
    return _contains_any(transaction.description, ADVERTISING_COST_MARKERS)


def is_fba_storage_fee(transaction: Transaction) -> bool:
    """True when the description carries the FBA storage-fee marker."""
    return _contains_any(transaction.description, FBA_STORAGE_FEE_MARKERS)


def _always(transaction: Transaction) -> bool:
    return True


# Summary and monthly fee fields take magnitudes; SKU fee fields keep the raw sign.

def _order_postings(t: Transaction) -> List[Posting]:
    fee_magnitude = abs(t.fees) + abs(t.fba_fees)
    return [
        Posting(Dimension.SUMMARY, "total_sales", t.product_sales),
        Posting(Dimension.SUMMARY, "total_profit", t.total),
        Posting(Dimension.SUMMARY, "total_orders", 1),
        Posting(Dimension.SUMMARY, "total_fees", fee_magnitude),
        Posting(Dimension.SUMMARY, "amazon_fees", abs(t.fees)),
        Posting(Dimension.SKU, "total_sales", t.product_sales),
        Posting(Dimension.SKU, "total_profit", t.total),
        Posting(Dimension.SKU, "total_quantity", t.quantity),
        Posting(Dimension.SKU, "sales_count", 1),
        Posting(Dimension.SKU, "amazon_fees", t.fees),
        Posting(Dimension.SKU, "fba_fees", t.fba_fees),
        Posting(Dimension.SKU, "other_fees", t.other_transaction_fees),
        Posting(Dimension.MONTHLY, "sales", t.product_sales),
        Posting(Dimension.MONTHLY, "profit", t.total),
        Posting(Dimension.MONTHLY, "fees", fee_magnitude),
        Posting(Dimension.MONTHLY, "amazon_fees", abs(t.fees)),
        Posting(Dimension.MONTHLY, "fba_fees", abs(t.fba_fees)),
        Posting(Dimension.MONTHLY, "other_fees", abs(t.other_transaction_fees)),
    ]


def _refund_postings(t: Transaction) -> List[Posting]:
    return [
        Posting(Dimension.SUMMARY, "return_amount", abs(t.total)),
        Posting(Dimension.SKU, "return_amount", t.total),
        Posting(Dimension.SKU, "return_count", 1),
        Posting(Dimension.MONTHLY, "profit", t.total),
    ]


def _advertising_postings(t: Transaction) -> List[Posting]:
    return [
        Posting(Dimension.SUMMARY, "advertising_costs", abs(t.other)),
        Posting(Dimension.SKU, "advertising_costs", t.other),
        Posting(Dimension.MONTHLY, "advertising_costs", abs(t.other)),
    ]


def _inventory_fee_postings(t: Transaction) -> List[Posting]:
    return [
        Posting(Dimension.SUMMARY, "fba_storage_fees", abs(t.other)),
        Posting(Dimension.SKU, "fba_storage_fees", t.other),
    ]


def _other_inventory_fee_postings(t: Transaction) -> List[Posting]:
    return [Posting(Dimension.SUMMARY, "other_fees", abs(t.other))]


CLASSIFICATION_RULES: Tuple[ClassificationRule, ...] = (
    ClassificationRule("order", TransactionCategory.ORDER, _always, _order_postings),
    ClassificationRule("refund", TransactionCategory.REFUND, _always, _refund_postings),
    ClassificationRule(
        "advertising_cost",
        TransactionCategory.NON_ORDER_FEE,
        is_advertising_cost,
        _advertising_postings,
    ),
    ClassificationRule(
        "fba_inventory_fee",
        TransactionCategory.FBA_INVENTORY_FEE,
        _always,
        _inventory_fee_postings,
    ),
    ClassificationRule(
        "fba_other_inventory_fee",
        TransactionCategory.FBA_INVENTORY_FEE,
        lambda t: not is_fba_storage_fee(t),
        _other_inventory_fee_postings,
    ),
)


def matching_rules(transaction: Transaction) -> List[ClassificationRule]:
    """Return every rule that applies to the transaction, in table order."""
    category = categorize(transaction)
    if category is None:
        return []
    return [
        rule for rule in CLASSIFICATION_RULES
        if rule.category is category and rule.applies(transaction)
    ]


def classify_transaction(transaction: Transaction) -> List[Posting]:
    """
    Compute all postings a transaction contributes.

    Args:
        transaction: Parsed ledger transaction

    Returns:
        Postings from every matching rule (empty for unrecognized types)
    """
    rules = matching_rules(transaction)
    if not rules:
        logger.debug(f"No rule for transaction type {transaction.transaction_type!r}")

    postings: List[Posting] = []
    for rule in rules:
        postings.extend(rule.postings(transaction))
    return postings
