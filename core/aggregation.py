"""
Aggregation and report assembly.

fold_transactions() applies classifier postings to a LedgerAccumulator;
build_report() derives ratios, sorts, and produces the DashboardReport.
"""
from typing import Iterable, List, Optional

from core.classify import Dimension, Posting, classify_transaction
from core.logger import setup_logger
from core.schema import (
    DashboardReport,
    FeeBreakdown,
    GlobalSummary,
    LedgerAccumulator,
    MonthlyAggregate,
    SkuAggregate,
    Summary,
    Transaction,
)

logger = setup_logger(__name__)

# Fields summed when two accumulators are merged
_SUMMARY_FIELDS = tuple(GlobalSummary.model_fields)
_SKU_FIELDS = tuple(
    name for name in SkuAggregate.model_fields
    if name not in ("sku", "description", "average_selling_price", "profit_margin")
)
_MONTHLY_FIELDS = tuple(name for name in MonthlyAggregate.model_fields if name != "month")


def _add(target, field: str, amount: float) -> None:
    setattr(target, field, getattr(target, field) + amount)


def _sku_aggregate(acc: LedgerAccumulator, transaction: Transaction) -> SkuAggregate:
    aggregate = acc.skus.get(transaction.sku)
    if aggregate is None:
        aggregate = SkuAggregate(sku=transaction.sku, description=transaction.description)
        acc.skus[transaction.sku] = aggregate
    return aggregate


def _monthly_aggregate(acc: LedgerAccumulator, transaction: Transaction) -> MonthlyAggregate:
    month = transaction.month
    aggregate = acc.months.get(month)
    if aggregate is None:
        aggregate = MonthlyAggregate(month=month)
        acc.months[month] = aggregate
    return aggregate


def apply_postings(
    acc: LedgerAccumulator,
    transaction: Transaction,
    postings: Iterable[Posting],
) -> None:
    """
    Add a transaction's postings into the accumulator in place.
    SKU postings are ignored when the transaction has no sku.
    """
    for posting in postings:
        if posting.dimension is Dimension.SUMMARY:
            _add(acc.summary, posting.field, posting.amount)
        elif posting.dimension is Dimension.SKU:
            if transaction.sku:
                _add(_sku_aggregate(acc, transaction), posting.field, posting.amount)
        elif posting.dimension is Dimension.MONTHLY:
            _add(_monthly_aggregate(acc, transaction), posting.field, posting.amount)


def fold_transactions(
    transactions: Iterable[Transaction],
    acc: Optional[LedgerAccumulator] = None,
) -> LedgerAccumulator:
    """
    Fold transactions, in order, into an accumulator.

    Args:
        transactions: Parsed transactions
        acc: Existing accumulator to extend; a fresh one is created if omitted

    Returns:
        The accumulator
    """
    if acc is None:
        acc = LedgerAccumulator()
    for transaction in transactions:
        apply_postings(acc, transaction, classify_transaction(transaction))
    return acc


def merge_accumulators(left: LedgerAccumulator, right: LedgerAccumulator) -> LedgerAccumulator:
    """
    Merge two partial accumulators by per-field summation.

    Folding consecutive partitions of a ledger and merging the results in
    partition order gives the same figures as folding the whole ledger.
    SKU descriptions and first-seen order come from the left side.

    Args:
        left: Accumulator of the earlier partition
        right: Accumulator of the later partition

    Returns:
        New accumulator; inputs are not modified
    """
    merged = left.model_copy(deep=True)

    for field in _SUMMARY_FIELDS:
        _add(merged.summary, field, getattr(right.summary, field))

    for sku, aggregate in right.skus.items():
        target = merged.skus.get(sku)
        if target is None:
            merged.skus[sku] = aggregate.model_copy()
            continue
        for field in _SKU_FIELDS:
            _add(target, field, getattr(aggregate, field))

    for month, aggregate in right.months.items():
        target = merged.months.get(month)
        if target is None:
            merged.months[month] = aggregate.model_copy()
            continue
        for field in _MONTHLY_FIELDS:
            _add(target, field, getattr(aggregate, field))

    return merged


def finalize_sku(aggregate: SkuAggregate) -> SkuAggregate:
    """Return a copy of the SKU aggregate with derived ratios filled in."""
    average_selling_price = (
        aggregate.total_sales / aggregate.total_quantity if aggregate.total_quantity > 0 else 0.0
    )
    profit_margin = (
        (aggregate.total_profit / aggregate.total_sales) * 100 if aggregate.total_sales > 0 else 0.0
    )
    return aggregate.model_copy(
        update={
            "average_selling_price": average_selling_price,
            "profit_margin": profit_margin,
        }
    )


def build_report(acc: LedgerAccumulator) -> DashboardReport:
    """
    Finalize an accumulator into the report.

    SKUs are ordered by total sales, highest first (ties keep first-seen
    order); months are ordered by their YYYY/MM key.
    """
    sku_analysis: List[SkuAggregate] = sorted(
        (finalize_sku(aggregate) for aggregate in acc.skus.values()),
        key=lambda aggregate: aggregate.total_sales,
        reverse=True,
    )
    monthly_trends = [
        aggregate.model_copy() for _, aggregate in sorted(acc.months.items(), key=lambda item: item[0])
    ]

    summary = acc.summary
    return DashboardReport(
        summary=Summary(
            total_sales=summary.total_sales,
            total_profit=summary.total_profit,
            total_orders=summary.total_orders,
            total_fees=summary.total_fees,
        ),
        sku_analysis=sku_analysis,
        monthly_trends=monthly_trends,
        fee_breakdown=FeeBreakdown(
            amazon_fees=summary.amazon_fees,
            advertising_costs=summary.advertising_costs,
            return_amount=summary.return_amount,
            fba_storage_fees=summary.fba_storage_fees,
            other_fees=summary.other_fees,
        ),
    )


def analyze_transactions(transactions: Iterable[Transaction]) -> DashboardReport:
    """
    Run the full fold-and-finalize pass over parsed transactions.

    Args:
        transactions: Parsed transactions in ledger order

    Returns:
        DashboardReport
    """
    acc = fold_transactions(transactions)
    report = build_report(acc)
    logger.info(
        f"Aggregated {report.summary.total_orders} orders across "
        f"{len(report.sku_analysis)} SKUs and {len(report.monthly_trends)} months"
    )
    return report
