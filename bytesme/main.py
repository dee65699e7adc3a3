import logging
import time
import uuid
from contextlib import asynccontextmanager
from pathlib import Path

from dotenv import load_dotenv

# Load .env from the project root wherever uvicorn is started from
_PROJ_ROOT = Path(__file__).resolve().parent.parent
load_dotenv(_PROJ_ROOT / ".env")

import httpx
from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from bytesme.api.checkout import router as checkout_router
from bytesme.core.config import settings
from bytesme.core.database import init_db
from bytesme.logging import setup_logging
from bytesme.services.backend import BackendError, BackendValidationError
from bytesme.services.checkout import VoucherNotFoundError, VoucherRejectedError
from bytesme.services.order import EmptySelectionError
from bytesme.services.voucher import FormatError

setup_logging(level=logging.INFO)
log = logging.getLogger("bytesme")


def _cors_origins_list() -> list[str]:
    if not settings.cors_origins or settings.cors_origins.strip() == "*":
        return ["*"]
    return [o.strip() for o in settings.cors_origins.split(",") if o.strip()]


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    log.info("Backend API: %s (token configured: %s)", settings.api_base_url, "yes" if settings.api_token else "no")
    yield


app = FastAPI(
    title="Bytesme Checkout API",
    description="Voucher rules and order placement for the Bytesme storefront",
    lifespan=lifespan,
)


def _error_response(request: Request, status_code: int, detail: str, **extra) -> JSONResponse:
    rid = getattr(request.state, "request_id", None)
    body = {"error": detail, "status_code": status_code, **extra}
    if rid:
        body["request_id"] = rid
    return JSONResponse(status_code=status_code, content=body)


def _jsonable_errors(errs) -> list:
    # ctx may hold exception objects that JSONResponse cannot encode
    return [{k: v for k, v in e.items() if k != "ctx"} for e in errs]


@app.exception_handler(RequestValidationError)
def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errs = exc.errors()
    log.warning(
        "Request validation error (422): path=%s method=%s detail=%s",
        request.url.path,
        request.method,
        errs,
    )
    first = errs[0].get("msg") if errs else None
    return _error_response(request, 422, first or "Invalid request.", detail=_jsonable_errors(errs))


@app.exception_handler(HTTPException)
def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    return _error_response(request, exc.status_code, exc.detail if isinstance(exc.detail, str) else str(exc.detail))


@app.exception_handler(EmptySelectionError)
def empty_selection_handler(request: Request, exc: EmptySelectionError) -> JSONResponse:
    return _error_response(request, 400, str(exc))


@app.exception_handler(VoucherNotFoundError)
def voucher_not_found_handler(request: Request, exc: VoucherNotFoundError) -> JSONResponse:
    return _error_response(request, 404, str(exc), voucher_code=exc.code)


@app.exception_handler(VoucherRejectedError)
def voucher_rejected_handler(request: Request, exc: VoucherRejectedError) -> JSONResponse:
    return _error_response(request, 409, str(exc), voucher_code=exc.code, voucher_cleared=True)


@app.exception_handler(BackendError)
def backend_error_handler(request: Request, exc: BackendError) -> JSONResponse:
    if isinstance(exc, BackendValidationError):
        return _error_response(request, 422, exc.message, backend_status=exc.status_code)
    return _error_response(request, 502, exc.message, backend_status=exc.status_code)


@app.exception_handler(httpx.HTTPError)
def backend_unreachable_handler(request: Request, exc: httpx.HTTPError) -> JSONResponse:
    log.error("Backend unreachable: path=%s %s", request.url.path, exc)
    return _error_response(request, 503, "Backend is unreachable.")


@app.exception_handler(FormatError)
def format_error_handler(request: Request, exc: FormatError) -> JSONResponse:
    log.error("Malformed voucher data: path=%s %s", request.url.path, exc)
    return _error_response(request, 502, "Backend returned malformed voucher data.")


@app.exception_handler(Exception)
def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    log.exception("Unhandled exception: path=%s %s", request.url.path, exc, exc_info=True)
    return JSONResponse(status_code=500, content={"error": "Unexpected server error."})


@app.middleware("http")
async def request_id_and_latency(request: Request, call_next):
    request.state.request_id = str(uuid.uuid4())
    start = time.perf_counter()
    response = await call_next(request)
    latency_ms = (time.perf_counter() - start) * 1000
    response.headers["X-Request-ID"] = request.state.request_id
    log.info(
        "request_id=%s method=%s path=%s status=%s latency_ms=%.2f",
        request.state.request_id,
        request.method,
        request.url.path,
        response.status_code,
        latency_ms,
    )
    return response


app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins_list(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.include_router(checkout_router)


@app.get("/health")
def health():
    return {
        "status": "ok",
        "backend": settings.api_base_url,
        "environment": settings.environment,
    }
