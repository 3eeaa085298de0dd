import os
from enum import Enum
from pathlib import Path

_DEFAULT_DB_PATH = Path("data") / "draft_bot_database.json"


class Backend(str, Enum):
    IN_MEMORY = "in-memory"
    FILE_BACKED = "file-backed"


class Storage:
    def __init__(self, config: dict | None = None) -> None:
        cfg = (config or {}).get("draftbot", {}).get("storage", {})
        backend_raw = str(cfg.get("backend", os.getenv("STORAGE_BACKEND", Backend.FILE_BACKED.value)))
        try:
            self.BACKEND: Backend = Backend(backend_raw.strip().lower())
        except ValueError as exc:
            choices = ", ".join(b.value for b in Backend)
            raise ValueError(f"Unknown storage backend {backend_raw!r}; expected one of: {choices}") from exc

        self.DB_PATH: str = str(cfg.get("db_path", os.getenv("DB_PATH", str(_DEFAULT_DB_PATH))))
        self.SESSION_CACHE_SIZE: int = int(cfg.get("session_cache_size", os.getenv("SESSION_CACHE_SIZE", "5")))
        if self.SESSION_CACHE_SIZE < 1:
            raise ValueError("SESSION_CACHE_SIZE must be >= 1")
