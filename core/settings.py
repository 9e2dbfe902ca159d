"""Application settings and shared constants."""

from functools import lru_cache
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    app_name: str = "Tooling Order Service"
    database_url: str = Field("sqlite:///./tooling_orders.db")
    # Ignored for SQLite; SERIALIZABLE is recommended for PostgreSQL.
    isolation_level: Optional[str] = Field(None)
    statement_timeout_ms: int = Field(30000, gt=0)

    store_retry_attempts: int = Field(2)
    store_retry_backoff_s: float = Field(0.1)

    log_level: str = Field("INFO")
    json_logs: bool = Field(False)

    purchased_source: str = Field("purchased")
    heat_treatment_remark: str = Field("Requires quench and temper")

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")

    @field_validator("store_retry_attempts")
    @classmethod
    def validate_retry_attempts(cls, v: int) -> int:
        if v < 1:
            raise ValueError("store_retry_attempts must be at least 1")
        return v

    @field_validator("store_retry_backoff_s")
    @classmethod
    def validate_backoff(cls, v: float) -> float:
        if v < 0:
            raise ValueError("store_retry_backoff_s must be zero or positive")
        return v

    @property
    def is_sqlite(self) -> bool:
        return self.database_url.startswith("sqlite")


@lru_cache
def get_settings() -> Settings:
    return Settings()
