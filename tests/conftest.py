"""
Shared fixtures: builders for settlement ledger rows and full ledger text.
"""
import pytest

from core.config import reset_settings

PREAMBLE = [
    '"Includes Amazon Marketplace, Fulfillment by Amazon (FBA), and Amazon Webstore transactions"',
    '"All amounts in JPY, unless specified"',
    '"Definitions:"',
    '"Sales tax collected: Includes sales tax collected from buyers for product sales."',
    '"Selling fees: Includes variable closing fees and referral fees."',
    '"Other transaction fees: Includes shipping chargebacks and sales tax collection fees."',
    '"Other: Includes non-order transaction amounts."',
]

HEADER = (
    "date/time,settlement id,type,order id,sku,description,quantity,marketplace,fulfillment,"
    "order city,order state,order postal,tax collection model,product sales,product sales tax,"
    "shipping credits,shipping credits tax,gift wrap credits,giftwrap credits tax,"
    "Regulatory Fee,promotional rebates,promotional rebates tax,marketplace withheld tax,"
    "selling fees,fba fees,other transaction fees,other,total"
)


def _amount(value) -> str:
    """Render an amount the way exports do: quoted with thousands separators."""
    return f'"{value:,}"'


def build_row(
    transaction_type="注文",
    sku="A1",
    description="Widget",
    quantity=1,
    date="2024/01/15 10:00:00 JST",
    product_sales=0,
    fees=0,
    fba_fees=0,
    other_transaction_fees=0,
    other=0,
    total=0,
):
    """Build one 28-column data line. Text columns are quoted as in real exports."""
    columns = [
        date, "1234567890", transaction_type, "250-0000000-0000000", sku, f'"{description}"',
        str(quantity), "amazon.co.jp", "Amazon", "Shibuya", "Tokyo", "150-0001", "",
        _amount(product_sales), _amount(0), _amount(0), _amount(0), _amount(0), _amount(0),
        _amount(0), _amount(0), _amount(0), _amount(0),
        _amount(fees), _amount(fba_fees), _amount(other_transaction_fees), _amount(other),
        _amount(total),
    ]
    return ",".join(columns)


def build_ledger(*rows, bom=False):
    """Wrap data lines in the 7-line preamble and header."""
    text = "\n".join(PREAMBLE + [HEADER] + list(rows))
    return ("\ufeff" + text) if bom else text


@pytest.fixture
def ledger_row():
    """Factory for a single data line."""
    return build_row


@pytest.fixture
def ledger_text():
    """Factory for full ledger text."""
    return build_ledger


@pytest.fixture
def two_order_ledger():
    """Ledger with two orders: A1 (1000 sales, qty 2) and B1 (500 sales, qty 1)."""
    return build_ledger(
        build_row(sku="B1", description="Gadget", quantity=1, product_sales=500, fees=-50, total=450),
        build_row(sku="A1", description="Widget", quantity=2, product_sales=1000, fees=-100, total=900),
    )


@pytest.fixture(autouse=True)
def fresh_settings():
    """Each test starts from an unloaded settings singleton."""
    reset_settings()
    yield
    reset_settings()
