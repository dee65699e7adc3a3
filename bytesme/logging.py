"""
Process-wide log setup for the checkout API.
Services log under bytesme.* (bytesme.backend, bytesme.storage, bytesme.checkout).
"""
import logging
import sys

DEFAULT_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

# Library loggers that would repeat what bytesme.backend already logs per call
_CHATTY = ("httpx", "httpcore")


def setup_logging(level: int | str = logging.INFO, format_string: str | None = None) -> None:
    logging.basicConfig(
        level=level,
        format=format_string or DEFAULT_FORMAT,
        stream=sys.stdout,
        force=True,
    )
    for name in ("bytesme", "uvicorn", "uvicorn.error", "uvicorn.access"):
        logging.getLogger(name).setLevel(level)
    for name in _CHATTY:
        logging.getLogger(name).setLevel(logging.WARNING)
