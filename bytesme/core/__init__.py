from .config import settings
from .database import init_db

__all__ = ["settings", "init_db"]
