from collections.abc import Iterator

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from bytesme.core.config import settings
from bytesme.core.database import engine
from bytesme.core.storage import KeyValueStore
from bytesme.services.backend import BackendClient
from bytesme.services.checkout import CheckoutService
from bytesme.services.voucher_store import AppliedVoucherStore, CheckoutItemsStore

security = HTTPBearer(auto_error=False)


def get_access_token(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
) -> str | None:
    """Token from the auth collaborator, forwarded to the backend as-is."""
    if credentials:
        return credentials.credentials
    return settings.api_token or None


def get_backend(token: str | None = Depends(get_access_token)) -> Iterator[BackendClient]:
    with BackendClient(token=token) as client:
        yield client


def get_kv_store() -> KeyValueStore:
    return KeyValueStore(engine)


def get_voucher_store(kv: KeyValueStore = Depends(get_kv_store)) -> AppliedVoucherStore:
    return AppliedVoucherStore(kv)


def get_items_store(kv: KeyValueStore = Depends(get_kv_store)) -> CheckoutItemsStore:
    return CheckoutItemsStore(kv)


def get_checkout(
    backend: BackendClient = Depends(get_backend),
    voucher_store: AppliedVoucherStore = Depends(get_voucher_store),
) -> CheckoutService:
    return CheckoutService(backend, voucher_store)
