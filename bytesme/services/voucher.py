"""Voucher applicability checks and discount calculation for checkout."""
from datetime import date, datetime

from bytesme.core.config import settings
from bytesme.schemas import Voucher, VoucherEvaluation

REASON_EXPIRED = "expired"
REASON_FIRST_ORDER_ONLY = "firstOrderOnly"
REASON_MINIMUM_ORDER_VALUE = "minimumOrderValue"

# Display templates per locale; {value} is the formatted percent or amount
_VALUE_OFF = {
    "vi": "Giảm {value}",
    "en": "{value} off",
}
DEFAULT_LANG = "vi"


class FormatError(ValueError):
    """A voucher field that must be numeric could not be read as a number."""


def to_number(value: float | int | str | None, field: str = "voucher_value") -> float:
    """Numeric voucher field -> float. Numeric strings ("10", "20000.00") are accepted."""
    if isinstance(value, bool) or value is None:
        raise FormatError(f"{field} is not numeric: {value!r}")
    if isinstance(value, (int, float)):
        return float(value)
    try:
        return float(value.strip())
    except (AttributeError, ValueError):
        raise FormatError(f"{field} is not numeric: {value!r}") from None


def is_expired(expiry: date | datetime | None, now: datetime | None = None) -> bool:
    """True on/after the expiry moment. A plain date expires at the start of that day."""
    if expiry is None:
        return False
    if isinstance(expiry, datetime):
        if now is None:
            now = datetime.now(expiry.tzinfo)
        elif expiry.tzinfo is None and now.tzinfo is not None:
            now = now.astimezone().replace(tzinfo=None)
        elif expiry.tzinfo is not None and now.tzinfo is None:
            now = now.astimezone()
        return now >= expiry
    today = (now or datetime.now()).date()
    return today >= expiry


def calculate_discount(voucher: Voucher, order_subtotal: float) -> float:
    """
    Monetary discount of an applicable voucher.
    percentage: subtotal * value / 100; cash: value (not clamped to the subtotal);
    gift_product: 0, the reward is a free item fulfilled by the backend.
    A set max_discount caps the result.
    """
    if voucher.voucher_type == "percentage":
        percent = to_number(voucher.voucher_value)
        if not (0 <= percent <= 100):
            raise FormatError(f"percentage voucher value out of range: {percent}")
        discount = order_subtotal * percent / 100
    elif voucher.voucher_type == "cash":
        discount = to_number(voucher.voucher_value)
    else:
        discount = 0.0

    if voucher.max_discount is not None and discount > voucher.max_discount:
        discount = voucher.max_discount
    return discount


def evaluate(
    voucher: Voucher | None,
    order_subtotal: float,
    is_first_order: bool,
    now: datetime | None = None,
) -> VoucherEvaluation:
    """
    Checks the voucher against the order and returns the discount.
    Rules run in order and the first failure wins: expiry, first-order-only, minimum order value.
    No voucher means nothing to check: applicable with zero discount.
    """
    if voucher is None:
        return VoucherEvaluation(is_applicable=True, discount_amount=0)
    if order_subtotal < 0:
        raise ValueError("order_subtotal must not be negative")

    if is_expired(voucher.expiry_date, now):
        return VoucherEvaluation(is_applicable=False, reason_code=REASON_EXPIRED)
    if voucher.is_first_order_only and not is_first_order:
        return VoucherEvaluation(is_applicable=False, reason_code=REASON_FIRST_ORDER_ONLY)
    if voucher.min_order_value is not None and order_subtotal < voucher.min_order_value:
        return VoucherEvaluation(is_applicable=False, reason_code=REASON_MINIMUM_ORDER_VALUE)

    return VoucherEvaluation(
        is_applicable=True,
        discount_amount=calculate_discount(voucher, order_subtotal),
    )


def payable_total(order_subtotal: float, discount: float) -> float:
    """Amount due for the goods; a discount larger than the subtotal never goes negative."""
    return max(0.0, order_subtotal - discount)


def format_amount(value: float, locale: str | None = None) -> str:
    """Grouped number: vi -> 20.000 / 12,5, en -> 20,000 / 12.5. Trailing zero decimals dropped."""
    lang = (locale or settings.locale or DEFAULT_LANG)[:2].lower()
    text = f"{value:,.2f}".rstrip("0").rstrip(".")
    if lang == "vi":
        text = text.translate(str.maketrans(",.", ".,"))
    return text


def format_voucher_value(voucher: Voucher, locale: str | None = None) -> str:
    """Short label for the voucher card: "Giảm 10%", "Giảm 20.000đ" or the gift description."""
    lang = (locale or settings.locale or DEFAULT_LANG)[:2].lower()
    template = _VALUE_OFF.get(lang, _VALUE_OFF[DEFAULT_LANG])
    if voucher.voucher_type == "percentage":
        value = format_amount(to_number(voucher.voucher_value), lang) + "%"
        return template.format(value=value)
    if voucher.voucher_type == "cash":
        value = format_amount(to_number(voucher.voucher_value), lang) + settings.currency_suffix
        return template.format(value=value)
    return voucher.voucher_description or ""
