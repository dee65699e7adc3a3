"""Local key-value slot: one JSON document per key (applied voucher, checkout items)."""
from datetime import datetime, timezone

from sqlmodel import Field, SQLModel


class StoredValue(SQLModel, table=True):
    key: str = Field(primary_key=True, max_length=64)  # e.g. APPLIED_VOUCHER
    value: str  # JSON text, decoded by the owning store
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
