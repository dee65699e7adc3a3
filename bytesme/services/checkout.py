"""Checkout flow: voucher selection and order placement against the backend."""
import logging
from datetime import datetime

from bytesme.core.config import settings
from bytesme.schemas import CartLine, CheckoutSummary, VoucherEvaluation, VoucherOption
from bytesme.services.backend import BackendClient, BackendValidationError
from bytesme.services.order import (
    EmptySelectionError,
    build_order_request,
    selected_item_ids,
    selected_subtotal,
)
from bytesme.services.voucher import evaluate, format_voucher_value, payable_total
from bytesme.services.voucher_store import AppliedVoucherStore

log = logging.getLogger("bytesme.checkout")


class VoucherNotFoundError(LookupError):
    def __init__(self, code: str):
        super().__init__(f"Voucher not found: {code}")
        self.code = code


class VoucherRejectedError(Exception):
    """Backend refused the order because of the applied voucher; pick another one."""

    def __init__(self, code: str, cause: BackendValidationError):
        super().__init__(f"Voucher {code} was rejected: {cause.message}")
        self.code = code
        self.cause = cause


def _is_voucher_rejection(error: BackendValidationError, code: str) -> bool:
    """True when the refusal names the voucher: a voucher_* field error or a message about it."""
    payload = error.payload if isinstance(error.payload, dict) else {}
    errors = payload.get("errors")
    if isinstance(errors, dict) and any(str(field).startswith("voucher") for field in errors):
        return True
    message = (error.message or "").casefold()
    return "voucher" in message or code.casefold() in message


class CheckoutService:
    def __init__(
        self,
        backend: BackendClient,
        voucher_store: AppliedVoucherStore,
        delivery_fee: float | None = None,
    ):
        self.backend = backend
        self.voucher_store = voucher_store
        self.delivery_fee = settings.delivery_fee if delivery_fee is None else delivery_fee

    def summarize(
        self,
        lines: list[CartLine],
        is_first_order: bool,
        now: datetime | None = None,
    ) -> CheckoutSummary:
        subtotal = selected_subtotal(lines)
        voucher = self.voucher_store.get_applied()
        evaluation = evaluate(voucher, subtotal, is_first_order, now)
        discount = evaluation.discount_amount if evaluation.is_applicable else 0
        return CheckoutSummary(
            subtotal=subtotal,
            delivery_fee=self.delivery_fee,
            applied_voucher=voucher,
            evaluation=evaluation,
            discount=discount,
            voucher_label=format_voucher_value(voucher) if voucher else None,
            total=payable_total(subtotal, discount) + self.delivery_fee,
        )

    def voucher_options(
        self,
        lines: list[CartLine],
        is_first_order: bool,
        offset: int = 0,
        limit: int | None = None,
        now: datetime | None = None,
    ) -> list[VoucherOption]:
        item_ids = selected_item_ids(lines)
        if not item_ids:
            raise EmptySelectionError("No cart items selected.")
        subtotal = selected_subtotal(lines)
        applied = self.voucher_store.get_applied()
        options = []
        for voucher in self.backend.list_vouchers(item_ids, offset=offset, limit=limit):
            options.append(
                VoucherOption(
                    voucher=voucher,
                    evaluation=evaluate(voucher, subtotal, is_first_order, now),
                    label=format_voucher_value(voucher),
                    is_selected=applied is not None and voucher.matches_code(applied.code),
                )
            )
        return options

    def apply_code(
        self,
        code: str,
        lines: list[CartLine],
        is_first_order: bool,
        now: datetime | None = None,
    ) -> VoucherEvaluation:
        """
        Looks the code up, checks it against the current selection and applies it.
        An inapplicable voucher is returned as an evaluation with reason_code and
        nothing is saved.
        """
        item_ids = selected_item_ids(lines)
        if not item_ids:
            raise EmptySelectionError("No cart items selected.")
        candidates = self.backend.list_vouchers(item_ids, voucher_code=code)
        voucher = next((v for v in candidates if v.matches_code(code)), None)
        if voucher is None:
            raise VoucherNotFoundError(code)

        evaluation = evaluate(voucher, selected_subtotal(lines), is_first_order, now)
        if not evaluation.is_applicable:
            log.info("Voucher %s not applicable: %s", voucher.code, evaluation.reason_code)
            return evaluation

        self.backend.apply_user_voucher(voucher.code)
        if not self.voucher_store.apply(voucher):
            log.warning("Voucher %s applied on account but not saved locally", voucher.code)
        return evaluation

    def remove_voucher(self) -> bool:
        """
        Clears the local slot first, then unregisters on the account. A backend
        refusal (nothing applied there) still counts as removed.
        """
        removed = self.voucher_store.remove()
        try:
            self.backend.remove_user_voucher()
        except BackendValidationError as e:
            log.warning("Backend refused voucher removal (%s): %s", e.status_code, e.message)
        return removed

    def place_order(
        self,
        address_id: int,
        payment_method_id: str,
        lines: list[CartLine],
    ) -> dict:
        """
        Submits the order. If the backend rejects it while a voucher is applied, the
        local selection is dropped and VoucherRejectedError asks for a new choice.
        """
        applied = self.voucher_store.get_applied()
        order_request = build_order_request(
            address_id, payment_method_id, applied, selected_item_ids(lines)
        )
        try:
            confirmation = self.backend.place_order(order_request)
        except BackendValidationError as e:
            if applied is None or not _is_voucher_rejection(e, applied.code):
                raise
            log.warning("Order rejected with voucher %s: %s", applied.code, e.message)
            self.voucher_store.remove()
            raise VoucherRejectedError(applied.code, e) from e

        # Voucher is consumed by the order
        if applied is not None:
            self.voucher_store.remove()
        return confirmation
