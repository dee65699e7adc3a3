"""Order placement payload: selected cart lines, address, payment method and applied voucher."""
from collections.abc import Iterable

from bytesme.schemas import CartLine, Voucher


class EmptySelectionError(ValueError):
    """An order needs at least one selected cart line."""


def selected_lines(lines: Iterable[CartLine]) -> list[CartLine]:
    return [line for line in lines if line.is_selected]


def selected_subtotal(lines: Iterable[CartLine]) -> float:
    """Sum of quantity * unit_price over selected lines only."""
    return sum((line.line_total for line in selected_lines(lines)), 0.0)


def selected_item_ids(lines: Iterable[CartLine]) -> list[int]:
    return [line.cart_item_id for line in selected_lines(lines)]


def build_order_request(
    address_id: int,
    payment_method_id: str,
    applied_voucher: Voucher | None,
    selected_item_ids: list[int],
) -> dict:
    """
    Wire body for POST /order/place.
    selected_item_ids goes out as "1,2,3" (a string even for one id). voucher_code is
    left out entirely without a voucher: the backend treats a missing key and an
    empty code differently.
    """
    if not selected_item_ids:
        raise EmptySelectionError("No cart items selected for the order.")
    payload = {
        "user_address_id": address_id,
        "payment_method_id": payment_method_id,
        "selected_item_ids": ",".join(str(int(item_id)) for item_id in selected_item_ids),
    }
    if applied_voucher is not None:
        payload["voucher_code"] = applied_voucher.code
    return payload
