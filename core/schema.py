"""
Pydantic models for ledger transactions, accumulators and the report.
Python attributes are snake_case; the wire format uses camelCase aliases.
"""
from typing import Dict, List

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class Transaction(BaseModel):
    """One data row of a settlement ledger, coerced to typed fields."""
    model_config = ConfigDict(frozen=True)

    date: str = ""
    payment_id: str = ""
    transaction_type: str = ""
    order_id: str = ""
    sku: str = ""
    description: str = ""
    quantity: int = 0
    amazon_service: str = ""
    fulfillment: str = ""
    city: str = ""
    prefecture: str = ""
    postal_code: str = ""
    tax_collection_type: str = ""
    product_sales: float = 0.0
    product_tax: float = 0.0
    shipping_fee: float = 0.0
    shipping_tax: float = 0.0
    gift_wrapping_fee: float = 0.0
    gift_wrapping_tax: float = 0.0
    amazon_points_cost: float = 0.0
    promotion_discount: float = 0.0
    promotion_discount_tax: float = 0.0
    marketplace_tax: float = 0.0
    fees: float = 0.0
    fba_fees: float = 0.0
    other_transaction_fees: float = 0.0
    other: float = 0.0
    total: float = 0.0

    @property
    def month(self) -> str:
        """Year-month key (YYYY/MM) taken from the date prefix."""
        return self.date[:7]


class _CamelModel(BaseModel):
    """Base for models serialized with camelCase keys."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class GlobalSummary(_CamelModel):
    """Ledger-wide totals. Fee-like fields hold absolute magnitudes."""
    total_sales: float = 0.0
    total_profit: float = 0.0
    total_orders: int = 0
    total_fees: float = 0.0
    amazon_fees: float = 0.0
    advertising_costs: float = 0.0
    return_amount: float = 0.0
    fba_storage_fees: float = 0.0
    other_fees: float = 0.0


class SkuAggregate(_CamelModel):
    """
    Per-product running totals.

    Fee-like fields (amazon_fees, fba_fees, advertising_costs,
    fba_storage_fees, other_fees, return_amount) keep the ledger's raw sign,
    so deductions are negative here while GlobalSummary reports magnitudes.
    """
    sku: str
    description: str = ""
    total_sales: float = 0.0
    total_profit: float = 0.0
    total_quantity: int = 0
    sales_count: int = 0
    return_amount: float = 0.0
    return_count: int = 0
    amazon_fees: float = 0.0
    fba_fees: float = 0.0
    advertising_costs: float = 0.0
    fba_storage_fees: float = 0.0
    other_fees: float = 0.0
    average_selling_price: float = 0.0
    profit_margin: float = 0.0


class MonthlyAggregate(_CamelModel):
    """Per-month totals. Fee-like fields hold absolute magnitudes."""
    month: str
    sales: float = 0.0
    profit: float = 0.0
    fees: float = 0.0
    amazon_fees: float = 0.0
    fba_fees: float = 0.0
    other_fees: float = 0.0
    advertising_costs: float = 0.0


class LedgerAccumulator(BaseModel):
    """Mutable fold state for one ledger: the summary plus two keyed maps."""
    summary: GlobalSummary = Field(default_factory=GlobalSummary)
    skus: Dict[str, SkuAggregate] = Field(default_factory=dict)
    months: Dict[str, MonthlyAggregate] = Field(default_factory=dict)


class Summary(_CamelModel):
    """Headline figures of the report."""
    total_sales: float = 0.0
    total_profit: float = 0.0
    total_orders: int = 0
    total_fees: float = 0.0


class FeeBreakdown(_CamelModel):
    """Decomposition of ledger deductions."""
    amazon_fees: float = 0.0
    advertising_costs: float = 0.0
    return_amount: float = 0.0
    fba_storage_fees: float = 0.0
    other_fees: float = 0.0


class DashboardReport(_CamelModel):
    """Final analysis result for one ledger."""
    summary: Summary = Field(default_factory=Summary)
    sku_analysis: List[SkuAggregate] = Field(default_factory=list)
    monthly_trends: List[MonthlyAggregate] = Field(default_factory=list)
    fee_breakdown: FeeBreakdown = Field(default_factory=FeeBreakdown)


class ParseStats(BaseModel):
    """Row-level bookkeeping for one parse: what was kept and what was skipped."""
    data_lines: int = 0
    transactions: int = 0
    skipped: Dict[str, int] = Field(default_factory=dict)

    def record_skip(self, reason: str) -> None:
        """Increment the counter for a skip reason."""
        self.skipped[reason] = self.skipped.get(reason, 0) + 1

    @property
    def skipped_total(self) -> int:
        return sum(self.skipped.values())
