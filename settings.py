import os
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field


class Settings(BaseModel):
    store_backend: str = Field("file", description="file | mongo")
    data_dir: Path = Field(Path("data"), description="Directory for JSON stores and saved workbooks")
    database_url: Optional[str] = None
    database_name: Optional[str] = None

    session_ttl_hours: float = 24 * 7

    manager_username: str = "manager"
    manager_password: str = "manager123"
    manager_full_name: str = "Shift Manager"

    smtp_host: Optional[str] = None
    smtp_port: Optional[int] = None
    smtp_user: Optional[str] = None
    smtp_pass: Optional[str] = None
    smtp_from: Optional[str] = None
    summary_recipient: str = "manager@example.com"

    celery_broker_url: str = "redis://localhost:6379/0"
    celery_result_backend: str = "redis://localhost:6379/1"
    summary_timezone: str = "UTC"

    log_level: str = "INFO"
    log_json: bool = True
    port: int = 8000

    @property
    def smtp_configured(self) -> bool:
        return bool(self.smtp_host and self.smtp_port and self.smtp_user and self.smtp_pass)


def _env_int(name: str) -> Optional[int]:
    raw = os.getenv(name)
    if not raw:
        return None
    try:
        return int(raw)
    except ValueError:
        return None


def load_settings() -> Settings:
    return Settings(
        store_backend=os.getenv("STORE_BACKEND", "file").lower(),
        data_dir=Path(os.getenv("DATA_DIR", "data")),
        database_url=os.getenv("DATABASE_URL"),
        database_name=os.getenv("DATABASE_NAME"),
        session_ttl_hours=float(os.getenv("SESSION_TTL_HOURS", 24 * 7)),
        manager_username=os.getenv("MANAGER_USERNAME", "manager"),
        manager_password=os.getenv("MANAGER_PASSWORD", "manager123"),
        manager_full_name=os.getenv("MANAGER_FULL_NAME", "Shift Manager"),
        smtp_host=os.getenv("SMTP_HOST"),
        smtp_port=_env_int("SMTP_PORT"),
        smtp_user=os.getenv("SMTP_USER"),
        smtp_pass=os.getenv("SMTP_PASS"),
        smtp_from=os.getenv("SMTP_FROM"),
        summary_recipient=os.getenv("SUMMARY_RECIPIENT", "manager@example.com"),
        celery_broker_url=os.getenv("CELERY_BROKER_URL", "redis://localhost:6379/0"),
        celery_result_backend=os.getenv("CELERY_RESULT_BACKEND", "redis://localhost:6379/1"),
        summary_timezone=os.getenv("SUMMARY_TIMEZONE", "UTC"),
        log_level=os.getenv("LOG_LEVEL", "INFO"),
        log_json=os.getenv("LOG_JSON", "true").lower() in ("1", "true", "yes"),
        port=int(os.getenv("PORT", 8000)),
    )
