"""Local persistence of the applied voucher and the checkout cart lines.

Both are single JSON slots in the key-value table. Reads are lenient: a missing or
unreadable slot reads as empty. Storage failures are logged and reported as a
False/empty result, never raised; checkout can always continue without them.
"""
import logging

from pydantic import TypeAdapter, ValidationError
from sqlalchemy.exc import SQLAlchemyError

from bytesme.core.storage import KeyValueStore
from bytesme.schemas import CartLine, Voucher

log = logging.getLogger("bytesme.storage")

APPLIED_VOUCHER_KEY = "APPLIED_VOUCHER"
CHECKOUT_ITEMS_KEY = "checkoutItems"

_cart_lines = TypeAdapter(list[CartLine])


class VoucherDecodeError(ValueError):
    """Stored applied-voucher entry is not a valid voucher document."""


class AppliedVoucherStore:
    """At most one applied voucher; applying another overwrites it (no stacking)."""

    def __init__(self, kv: KeyValueStore, key: str = APPLIED_VOUCHER_KEY):
        self._kv = kv
        self._key = key

    def apply(self, voucher: Voucher) -> bool:
        try:
            self._kv.set(self._key, voucher.model_dump_json())
        except SQLAlchemyError:
            log.exception("Saving applied voucher %s failed", voucher.code)
            return False
        log.info("Applied voucher saved: %s", voucher.code)
        return True

    def remove(self) -> bool:
        try:
            self._kv.delete(self._key)
        except SQLAlchemyError:
            log.exception("Removing applied voucher failed")
            return False
        return True

    def read(self) -> tuple[Voucher | None, VoucherDecodeError | None]:
        """
        (voucher, decode_error). Empty slot -> (None, None).
        Storage errors are not caught here.
        """
        raw = self._kv.get(self._key)
        if raw is None:
            return None, None
        try:
            return Voucher.model_validate_json(raw), None
        except ValidationError as e:
            return None, VoucherDecodeError(str(e))

    def get_applied(self) -> Voucher | None:
        try:
            voucher, error = self.read()
        except SQLAlchemyError:
            log.exception("Reading applied voucher failed")
            return None
        if error is not None:
            log.warning("Ignoring unreadable applied voucher: %s", error)
        return voucher


class CheckoutItemsStore:
    """Cart lines the user carried from the cart screen into checkout."""

    def __init__(self, kv: KeyValueStore, key: str = CHECKOUT_ITEMS_KEY):
        self._kv = kv
        self._key = key

    def save(self, lines: list[CartLine]) -> bool:
        try:
            self._kv.set(self._key, _cart_lines.dump_json(lines).decode())
        except SQLAlchemyError:
            log.exception("Saving checkout items failed")
            return False
        return True

    def load(self) -> list[CartLine]:
        try:
            raw = self._kv.get(self._key)
        except SQLAlchemyError:
            log.exception("Reading checkout items failed")
            return []
        if raw is None:
            return []
        try:
            return _cart_lines.validate_json(raw)
        except ValidationError as e:
            log.warning("Ignoring unreadable checkout items: %s", e)
            return []

    def clear(self) -> bool:
        try:
            self._kv.delete(self._key)
        except SQLAlchemyError:
            log.exception("Clearing checkout items failed")
            return False
        return True
