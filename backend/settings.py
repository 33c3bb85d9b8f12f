import os
from pathlib import Path

# Basic settings helper to read environment configuration.

BACKEND_ROOT = Path(__file__).resolve().parent


def _as_bool(val: str | None, default: bool = False) -> bool:
    if val is None:
        return default
    return val.lower() in ("1", "true", "yes", "on")


def _as_int(val: str | None, default: int) -> int:
    if val is None or val.strip() == "":
        return default
    return int(val)


class Settings:
    def __init__(self) -> None:
        self.DATABASE_URL: str = os.getenv(
            "DATABASE_URL", f"sqlite:///{BACKEND_ROOT / 'library.db'}"
        )
        # Seconds a SQLite writer waits for the database lock
        self.DATABASE_TIMEOUT: int = _as_int(os.getenv("DATABASE_TIMEOUT"), 30)
        self.LOAN_PERIOD_DAYS: int = _as_int(os.getenv("LOAN_PERIOD_DAYS"), 30)
        self.MEDIA_ROOT: str = os.getenv("MEDIA_ROOT", "media")
        self.QR_CODES_ENABLED: bool = _as_bool(os.getenv("QR_CODES_ENABLED"), True)
        self.DEFAULT_OWNER_EMAIL: str = os.getenv(
            "DEFAULT_OWNER_EMAIL", "default_owner@example.com"
        )
        self.DEFAULT_OWNER_PASSWORD: str = os.getenv("DEFAULT_OWNER_PASSWORD", "password")
        self.BCRYPT_ROUNDS: int = _as_int(os.getenv("BCRYPT_ROUNDS"), 12)
        self.LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()


settings = Settings()
