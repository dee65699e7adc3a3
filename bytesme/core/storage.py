from datetime import datetime, timezone

from sqlalchemy.engine import Engine
from sqlmodel import Session

from bytesme.models import StoredValue


class KeyValueStore:
    """String slots in the local database. Storage errors (SQLAlchemyError) propagate."""

    def __init__(self, engine: Engine):
        self._engine = engine

    def get(self, key: str) -> str | None:
        with Session(self._engine) as db:
            row = db.get(StoredValue, key)
            return row.value if row else None

    def set(self, key: str, value: str) -> None:
        with Session(self._engine) as db:
            row = db.get(StoredValue, key)
            if row:
                row.value = value
                row.updated_at = datetime.now(timezone.utc)
            else:
                row = StoredValue(key=key, value=value)
            db.add(row)
            db.commit()

    def delete(self, key: str) -> None:
        with Session(self._engine) as db:
            row = db.get(StoredValue, key)
            if row:
                db.delete(row)
                db.commit()
