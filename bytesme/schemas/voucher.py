from datetime import date, datetime
from typing import Literal

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator

VoucherType = Literal["percentage", "cash", "gift_product"]


def _rule_flag(value: str | None) -> bool:
    # A bare rule row (no value) counts as on
    if value is None or not value.strip():
        return True
    return value.strip().lower() not in ("0", "false", "no")


class VoucherRule(BaseModel):
    """Backend rule row, e.g. min_bill_price=100000, max_discount=50000, first_order."""
    voucher_rule_id: int | None = None
    voucher_rule_type: str
    voucher_rule_value: str | None = None


class Voucher(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    voucher_id: int | str
    code: str = Field(validation_alias=AliasChoices("code", "voucher_code"))
    voucher_name: str | None = None
    voucher_type: VoucherType
    # percentage: 0-100, cash: amount in VND, gift_product: unused. Numeric check happens at calculation time.
    voucher_value: float | str | None = None
    voucher_description: str | None = None
    voucher_fields: str | None = None  # campaign tag: birthday_gift, loyal_customer, ...
    min_order_value: float | None = None
    max_discount: float | None = None
    is_first_order_only: bool = False
    voucher_start_date: datetime | date | None = None
    expiry_date: datetime | date | None = Field(
        default=None, validation_alias=AliasChoices("expiry_date", "voucher_end_date")
    )
    voucher_rules: list[VoucherRule] = Field(default_factory=list)
    # Server-side view, informational only
    is_applicable: bool | None = None
    discount_value: float | None = None

    @field_validator("voucher_start_date", "expiry_date", mode="before")
    @classmethod
    def parse_backend_date(cls, v):
        """Backend dates: 2025-12-31 stays a date, 2025-12-31 23:59:59 or ISO with Z becomes a datetime."""
        if not isinstance(v, str):
            return v
        v = v.strip()
        if not v:
            return None
        if len(v) == 10:
            return date.fromisoformat(v)
        return datetime.fromisoformat(v.replace("Z", "+00:00"))

    @model_validator(mode="after")
    def lift_rules(self) -> "Voucher":
        """Backend rule rows fill the flat eligibility fields when those are absent."""
        for rule in self.voucher_rules:
            if rule.voucher_rule_type == "min_bill_price" and self.min_order_value is None:
                self.min_order_value = float(rule.voucher_rule_value or 0)
            elif rule.voucher_rule_type == "max_discount" and self.max_discount is None:
                self.max_discount = float(rule.voucher_rule_value or 0)
            elif rule.voucher_rule_type == "first_order" and _rule_flag(rule.voucher_rule_value):
                self.is_first_order_only = True
        return self

    def matches_code(self, code: str) -> bool:
        return self.code.strip().casefold() == (code or "").strip().casefold()


class VoucherEvaluation(BaseModel):
    is_applicable: bool
    discount_amount: float = 0
    reason_code: str | None = None  # expired | firstOrderOnly | minimumOrderValue


class ApplicabilityCheck(BaseModel):
    """Answer of GET /voucher/is-applicable (authoritative server-side check)."""
    model_config = ConfigDict(extra="ignore")

    is_applicable: bool
    discount_value: float | None = None
    message: str | None = None


class GiftProduct(BaseModel):
    model_config = ConfigDict(extra="allow")

    product_id: int | str
    product_name: str | None = None
    quantity: int = 1
