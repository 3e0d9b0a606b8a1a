from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

load_dotenv()


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    app_name: str = "JobBoard"
    app_env: str = "development"
    app_host: str = "127.0.0.1"
    app_port: int = 8788
    log_level: str = "INFO"

    database_url: str = "sqlite:///./data/jobboard.db"
    data_dir: Path = Path("./data")

    cors_origins: str = "http://127.0.0.1:8788"

    default_user: str = "local"
    default_status: str = "saved"

    refresh_on_mutation_failure: bool = True
    rollback_failed_mutations: bool = False

    @field_validator("app_env")
    @classmethod
    def validate_env(cls, value: str) -> str:
        allowed = {"development", "staging", "production", "test"}
        if value not in allowed:
            raise ValueError(f"app_env must be one of {sorted(allowed)}")
        return value

    @field_validator("default_status")
    @classmethod
    def validate_default_status(cls, value: str) -> str:
        from jobboard.types import JOB_STATUSES

        if value not in JOB_STATUSES:
            raise ValueError(f"default_status must be one of {list(JOB_STATUSES)}")
        return value

    @property
    def cors_origin_list(self) -> list[str]:
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
