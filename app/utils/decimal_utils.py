# app/utils/decimal_utils.py
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

TWOPLACES = Decimal("0.01")

def to_decimal(value) -> Decimal:
    if value is None:
        return Decimal("0.00")
    if isinstance(value, Decimal):
        return value.quantize(TWOPLACES, rounding=ROUND_HALF_UP)
    try:
        return Decimal(str(value)).quantize(TWOPLACES, rounding=ROUND_HALF_UP)
    except InvalidOperation:
        return Decimal("0.00")


def _group_indian(digits: str) -> str:
    # 12345678 -> 1,23,45,678 (lakh / crore grouping)
    if len(digits) <= 3:
        return digits
    head, tail = digits[:-3], digits[-3:]
    groups = []
    while len(head) > 2:
        groups.insert(0, head[-2:])
        head = head[:-2]
    if head:
        groups.insert(0, head)
    return ",".join(groups) + "," + tail


def format_number(value) -> str:
    amount = to_decimal(value)
    if not amount.is_finite():
        amount = Decimal("0.00")
    sign = "-" if amount < 0 else ""
    whole, frac = f"{abs(amount):.2f}".split(".")
    return f"{sign}{_group_indian(whole)}.{frac}"


def format_currency(value) -> str:
    return f"Rs. {format_number(value)}"
