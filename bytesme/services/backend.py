"""Storefront backend REST client (vouchers, user voucher, order placement)."""
import logging
from typing import Any

import httpx
from pydantic import BaseModel, ValidationError

from bytesme.core.config import settings
from bytesme.schemas import ApplicabilityCheck, GiftProduct, Voucher

log = logging.getLogger("bytesme.backend")

_VALIDATION_STATUSES = (400, 409, 422)


class BackendError(Exception):
    """Non-2xx answer from the backend."""

    def __init__(self, message: str, status_code: int | None = None, payload: Any = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.payload = payload


class BackendValidationError(BackendError):
    """Backend refused the request content (400/409/422), e.g. voucher no longer valid."""


def _csv(ids: list[int]) -> str:
    return ",".join(str(int(i)) for i in ids)


def _extract_list(payload: Any, key: str) -> list:
    """
    List endpoints answer as a bare list, {"<key>": [...]} or a Laravel paginator
    ({"data": [...]}, possibly nested under <key>).
    """
    if isinstance(payload, list):
        return payload
    if not isinstance(payload, dict):
        return []
    for candidate in (payload.get(key), payload.get("data")):
        if isinstance(candidate, list):
            return candidate
        if isinstance(candidate, dict) and isinstance(candidate.get("data"), list):
            return candidate["data"]
    return []


def _parse_records(items: list, model: type[BaseModel], what: str) -> list:
    """Validates each record; a record the app cannot read is logged and skipped, the rest are kept."""
    records = []
    for item in items:
        try:
            records.append(model.model_validate(item))
        except ValidationError as e:
            log.warning("[API] Skipping unreadable %s record: %s", what, e.errors(include_url=False))
    return records


def _error_message(response: httpx.Response, payload: Any) -> str:
    if isinstance(payload, dict):
        for key in ("message", "error", "detail"):
            if isinstance(payload.get(key), str):
                return payload[key]
    return response.text or f"HTTP {response.status_code}"


class BackendClient:
    """
    Thin wrapper over the backend endpoints. Non-2xx answers raise BackendError;
    transport errors (httpx.HTTPError) propagate unchanged. No retries.
    """

    def __init__(
        self,
        base_url: str | None = None,
        token: str | None = None,
        timeout: float | None = None,
        transport: httpx.BaseTransport | None = None,
    ):
        headers = {
            "Content-Type": "application/json",
            "Accept": "application/json",
            "X-Requested-With": "XMLHttpRequest",
        }
        if token:
            headers["Authorization"] = f"Bearer {token}"
        self._client = httpx.Client(
            base_url=base_url or settings.api_base_url,
            headers=headers,
            timeout=timeout if timeout is not None else settings.api_timeout_seconds,
            transport=transport,
        )

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "BackendClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def _request(self, method: str, path: str, **kwargs) -> Any:
        log.info("[API] %s %s", method, path)
        response = self._client.request(method, path, **kwargs)
        if response.is_error:
            try:
                payload = response.json()
            except ValueError:
                payload = None
            message = _error_message(response, payload)
            log.error("[API] %s %s failed: %s %s", method, path, response.status_code, message)
            error_cls = BackendValidationError if response.status_code in _VALIDATION_STATUSES else BackendError
            raise error_cls(message, response.status_code, payload)
        if response.status_code == 204 or not response.content:
            return None
        return response.json()

    def list_vouchers(
        self,
        selected_item_ids: list[int],
        offset: int = 0,
        limit: int | None = None,
        voucher_code: str | None = None,
    ) -> list[Voucher]:
        params = {
            "selected_item_ids": _csv(selected_item_ids),
            "offset": offset,
            "limit": limit or settings.voucher_page_size,
        }
        if voucher_code:
            params["voucher_code"] = voucher_code.strip()
        data = self._request("GET", "/voucher", params=params)
        return _parse_records(_extract_list(data, "vouchers"), Voucher, "voucher")

    def check_voucher(self, voucher_code: str, selected_item_ids: list[int]) -> ApplicabilityCheck:
        data = self._request(
            "GET",
            "/voucher/is-applicable",
            params={"voucher_code": voucher_code, "selected_item_ids": _csv(selected_item_ids)},
        )
        return ApplicabilityCheck.model_validate(data or {"is_applicable": False})

    def list_gift_products(self, voucher_code: str) -> list[GiftProduct]:
        data = self._request("GET", "/voucher/gift-products", params={"voucher_code": voucher_code})
        return _parse_records(_extract_list(data, "gift_products"), GiftProduct, "gift product")

    def apply_user_voucher(self, code: str) -> Any:
        return self._request("POST", "/user/vouchers/apply", json={"code": code})

    def remove_user_voucher(self) -> Any:
        return self._request("POST", "/user/vouchers/remove")

    def place_order(self, order_request: dict) -> dict:
        log.info(
            "[API] Placing order: items=%s voucher=%s",
            order_request.get("selected_item_ids"),
            order_request.get("voucher_code", "-"),
        )
        return self._request("POST", "/order/place", json=order_request) or {}
