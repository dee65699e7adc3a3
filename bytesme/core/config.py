from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings

# .env at the project root: bytesme/core/config.py -> bytesme/core -> bytesme -> root
_ROOT = Path(__file__).resolve().parent.parent.parent
_ENV_FILE = _ROOT / ".env"


class Settings(BaseSettings):
    # Storefront REST backend (Laravel); orders and vouchers are authoritative there
    api_base_url: str = "http://18.139.224.28:8000"
    api_timeout_seconds: float = 10.0
    # Fallback bearer token when the caller does not forward one
    api_token: str = ""
    # Local key-value database (applied voucher, checkout items)
    database_url: str = "sqlite:///./bytesme.db"
    locale: str = "vi"  # "vi" | "en"
    currency_suffix: str = "đ"
    delivery_fee: int = 20000  # VND, flat
    voucher_page_size: int = 10
    cors_origins: str = "*"
    environment: str = "development"

    model_config = {
        "env_file": _ENV_FILE if _ENV_FILE.is_file() else ".env",
        "extra": "ignore",
    }

    @field_validator("api_base_url", mode="before")
    @classmethod
    def strip_base_url(cls, v: str | None) -> str:
        """Trailing slashes would double up with endpoint paths."""
        return (v or "").strip().rstrip("/")

    @field_validator("locale", mode="before")
    @classmethod
    def normalize_locale(cls, v: str | None) -> str:
        return (v or "vi").strip().lower()[:2] or "vi"


settings = Settings()
