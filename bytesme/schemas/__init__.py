from .checkout import ApplyVoucherRequest, CheckoutSummary, VoucherOption
from .order import CartLine, PlaceOrderRequest
from .voucher import (
    ApplicabilityCheck,
    GiftProduct,
    Voucher,
    VoucherEvaluation,
    VoucherRule,
    VoucherType,
)

__all__ = [
    "ApplicabilityCheck",
    "ApplyVoucherRequest",
    "CartLine",
    "CheckoutSummary",
    "GiftProduct",
    "PlaceOrderRequest",
    "Voucher",
    "VoucherEvaluation",
    "VoucherOption",
    "VoucherRule",
    "VoucherType",
]
