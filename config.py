from typing import Optional

from pydantic_settings import BaseSettings


def url_scheme(database_url: str) -> str:
    """Driver part of a SQLAlchemy URL, e.g. 'sqlite+aiosqlite'."""
    return database_url.split(":", 1)[0].lower()


def is_sqlite_url(database_url: str) -> bool:
    return "sqlite" in url_scheme(database_url)


class Settings(BaseSettings):
    app_name: str = "Loan Origination Demo API"
    debug: bool = False
    log_level: str = "INFO"
    host: str = "0.0.0.0"
    port: int = 3005

    database_url: str = "sqlite+aiosqlite:///./loan_demo.db"
    cors_origins: str = "http://localhost:3000,http://127.0.0.1:3000"

    # Loan engine intake: submitted -> review this many seconds after submit (None disables)
    review_delay_seconds: Optional[float] = 2.0

    # Mock identity provider
    otp_code: str = "123456"
    secret_key: str = "CHANGE_ME_IN_PROD"
    access_token_expire_minutes: int = 60
    consent_version: str = "v1"

    max_document_bytes: int = 10 * 1024 * 1024

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }

    @property
    def is_sqlite(self) -> bool:
        return is_sqlite_url(self.database_url)

    @property
    def is_postgresql(self) -> bool:
        return "postgresql" in url_scheme(self.database_url)


settings = Settings()
