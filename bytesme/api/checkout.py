from fastapi import APIRouter, Depends, HTTPException

from bytesme.api.deps import get_backend, get_checkout, get_items_store, get_voucher_store
from bytesme.schemas import (
    ApplicabilityCheck,
    ApplyVoucherRequest,
    CartLine,
    CheckoutSummary,
    GiftProduct,
    PlaceOrderRequest,
    Voucher,
    VoucherEvaluation,
    VoucherOption,
)
from bytesme.services.backend import BackendClient
from bytesme.services.checkout import CheckoutService
from bytesme.services.order import EmptySelectionError, selected_item_ids
from bytesme.services.voucher_store import AppliedVoucherStore, CheckoutItemsStore

router = APIRouter(prefix="/checkout", tags=["checkout"])


@router.get("/items", response_model=list[CartLine])
def get_items(items: CheckoutItemsStore = Depends(get_items_store)):
    return items.load()


@router.put("/items")
def save_items(lines: list[CartLine], items: CheckoutItemsStore = Depends(get_items_store)):
    return {"saved": items.save(lines)}


@router.get("/summary", response_model=CheckoutSummary)
def summary(
    is_first_order: bool = False,
    items: CheckoutItemsStore = Depends(get_items_store),
    checkout: CheckoutService = Depends(get_checkout),
):
    return checkout.summarize(items.load(), is_first_order)


@router.get("/vouchers", response_model=list[VoucherOption])
def voucher_options(
    is_first_order: bool = False,
    offset: int = 0,
    limit: int | None = None,
    items: CheckoutItemsStore = Depends(get_items_store),
    checkout: CheckoutService = Depends(get_checkout),
):
    return checkout.voucher_options(items.load(), is_first_order, offset=offset, limit=limit)


@router.get("/vouchers/{code}/gift-products", response_model=list[GiftProduct])
def gift_products(code: str, backend: BackendClient = Depends(get_backend)):
    return backend.list_gift_products(code)


@router.get("/vouchers/{code}/check", response_model=ApplicabilityCheck)
def check_voucher(
    code: str,
    items: CheckoutItemsStore = Depends(get_items_store),
    backend: BackendClient = Depends(get_backend),
):
    """Server-side applicability of a code for the current selection."""
    item_ids = selected_item_ids(items.load())
    if not item_ids:
        raise EmptySelectionError("No cart items selected.")
    return backend.check_voucher(code.strip(), item_ids)


@router.get("/voucher", response_model=Voucher | None)
def applied_voucher(vouchers: AppliedVoucherStore = Depends(get_voucher_store)):
    return vouchers.get_applied()


@router.post("/voucher", response_model=VoucherEvaluation)
def apply_voucher(
    body: ApplyVoucherRequest,
    items: CheckoutItemsStore = Depends(get_items_store),
    checkout: CheckoutService = Depends(get_checkout),
):
    code = (body.code or "").strip()
    if not code:
        raise HTTPException(status_code=422, detail="Voucher code is empty.")
    return checkout.apply_code(code, items.load(), body.is_first_order)


@router.delete("/voucher")
def remove_voucher(checkout: CheckoutService = Depends(get_checkout)):
    return {"removed": checkout.remove_voucher()}


@router.post("/orders")
def place_order(
    body: PlaceOrderRequest,
    items: CheckoutItemsStore = Depends(get_items_store),
    checkout: CheckoutService = Depends(get_checkout),
):
    confirmation = checkout.place_order(body.user_address_id, body.payment_method_id, items.load())
    items.clear()
    return confirmation
