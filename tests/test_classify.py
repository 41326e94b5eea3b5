"""
Unit tests for transaction classification rules.
"""
import pytest

from core.classify import (
    Dimension,
    Posting,
    TransactionCategory,
    categorize,
    classify_transaction,
    is_advertising_cost,
    is_fba_storage_fee,
    matching_rules,
)
from core.schema import Transaction


def _postings(transaction, dimension):
    return {p.field: p.amount for p in classify_transaction(transaction) if p.dimension is dimension}


@pytest.mark.parametrize("label,category", [
    ("注文", TransactionCategory.ORDER),
    ("Order", TransactionCategory.ORDER),
    ("返金", TransactionCategory.REFUND),
    ("Refund", TransactionCategory.REFUND),
    ("注文外料金", TransactionCategory.NON_ORDER_FEE),
    ("Out-of-order fee", TransactionCategory.NON_ORDER_FEE),
    ("FBA 在庫関連の手数料", TransactionCategory.FBA_INVENTORY_FEE),
    ("FBA inventory-related fee", TransactionCategory.FBA_INVENTORY_FEE),
])
def test_categorize_labels(label, category):
    """Test both native and English labels resolve to a category."""
    assert categorize(Transaction(transaction_type=label)) is category


@pytest.mark.parametrize("label", ["", "order", "注文 ", "振込み", "調整"])
def test_unknown_labels_have_no_postings(label):
    """Test exact matching: unrecognized labels contribute nothing."""
    transaction = Transaction(transaction_type=label, product_sales=100, total=90, other=-5)
    assert categorize(transaction) is None
    assert classify_transaction(transaction) == []


def test_order_postings():
    """Test an order fans out to summary, SKU and monthly."""
    order = Transaction(
        transaction_type="注文", sku="A1", quantity=2,
        product_sales=1000, fees=-150, fba_fees=-300, other_transaction_fees=-10, total=540,
    )
    summary = _postings(order, Dimension.SUMMARY)
    assert summary == {
        "total_sales": 1000,
        "total_profit": 540,
        "total_orders": 1,
        "total_fees": 450,
        "amazon_fees": 150,
    }
    sku = _postings(order, Dimension.SKU)
    assert sku["amazon_fees"] == -150
    assert sku["fba_fees"] == -300
    assert sku["other_fees"] == -10
    assert sku["total_quantity"] == 2
    assert sku["sales_count"] == 1
    monthly = _postings(order, Dimension.MONTHLY)
    assert monthly["fees"] == 450
    assert monthly["fba_fees"] == 300
    assert monthly["other_fees"] == 10


def test_refund_postings():
    """Test refunds keep the raw sign at SKU and monthly level."""
    refund = Transaction(transaction_type="返金", sku="A1", total=-100)
    assert classify_transaction(refund) == [
        Posting(Dimension.SUMMARY, "return_amount", 100),
        Posting(Dimension.SKU, "return_amount", -100),
        Posting(Dimension.SKU, "return_count", 1),
        Posting(Dimension.MONTHLY, "profit", -100),
    ]


def test_advertising_requires_marker():
    """Test non-order fees count only when marked as advertising cost."""
    ad = Transaction(transaction_type="注文外料金", description="広告費用 2024年1月", other=-3000)
    plain = Transaction(transaction_type="注文外料金", description="出品者サービス料", other=-3000)
    assert is_advertising_cost(ad)
    assert not is_advertising_cost(plain)
    assert _postings(ad, Dimension.SUMMARY) == {"advertising_costs": 3000}
    assert _postings(ad, Dimension.SKU) == {"advertising_costs": -3000}
    assert _postings(ad, Dimension.MONTHLY) == {"advertising_costs": 3000}
    assert classify_transaction(plain) == []


def test_english_advertising_marker():
    """Test the English description marker."""
    ad = Transaction(transaction_type="Out-of-order fee", description="Sponsored products advertising cost", other=-10)
    assert [rule.name for rule in matching_rules(ad)] == ["advertising_cost"]


def test_storage_fee_is_not_other_fee():
    """Test the storage marker suppresses the other-fee rule."""
    storage = Transaction(transaction_type="FBA 在庫関連の手数料", description="FBA在庫保管手数料", other=-800)
    assert is_fba_storage_fee(storage)
    assert [rule.name for rule in matching_rules(storage)] == ["fba_inventory_fee"]
    assert _postings(storage, Dimension.SUMMARY) == {"fba_storage_fees": 800}
    assert _postings(storage, Dimension.SKU) == {"fba_storage_fees": -800}
    assert _postings(storage, Dimension.MONTHLY) == {}


def test_other_inventory_fee_counts_twice():
    """Test unmarked inventory fees land in both storage and other fees."""
    removal = Transaction(transaction_type="FBA 在庫関連の手数料", description="FBA在庫の返送手数料", other=-200)
    assert [rule.name for rule in matching_rules(removal)] == ["fba_inventory_fee", "fba_other_inventory_fee"]
    assert _postings(removal, Dimension.SUMMARY) == {"fba_storage_fees": 200, "other_fees": 200}
