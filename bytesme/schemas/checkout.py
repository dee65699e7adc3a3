from pydantic import BaseModel

from .voucher import Voucher, VoucherEvaluation


class CheckoutSummary(BaseModel):
    subtotal: float
    delivery_fee: float
    applied_voucher: Voucher | None = None
    evaluation: VoucherEvaluation
    discount: float = 0
    voucher_label: str | None = None
    total: float


class VoucherOption(BaseModel):
    """Voucher list entry for the selection screen."""
    voucher: Voucher
    evaluation: VoucherEvaluation
    label: str
    is_selected: bool = False


class ApplyVoucherRequest(BaseModel):
    code: str
    is_first_order: bool = False
