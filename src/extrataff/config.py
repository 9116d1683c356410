from __future__ import annotations

from decimal import Decimal
from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv
from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

load_dotenv()


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    app_name: str = "ExtraTaff"
    app_env: str = "development"
    app_host: str = "127.0.0.1"
    app_port: int = 8787
    timezone: str = "Europe/Paris"
    log_level: str = "INFO"

    database_url: str = "sqlite:///./data/extrataff.db"
    data_dir: Path = Path("./data")

    freemium_mission_quota: int = 1
    standard_mission_price: Decimal = Decimal("9.90")
    urgent_mission_price: Decimal = Decimal("19.90")
    club_mission_price: Decimal = Decimal("4.90")

    payment_base_url: str = "http://localhost:54321/functions/v1"
    payment_api_key: str = ""
    payment_timeout_sec: int = 15

    notify_on_new_mission: bool = True
    cors_origins: str = "http://127.0.0.1:8787"

    @field_validator("app_env")
    @classmethod
    def validate_env(cls, value: str) -> str:
        allowed = {"development", "staging", "production", "test"}
        if value not in allowed:
            raise ValueError(f"app_env must be one of {sorted(allowed)}")
        return value

    @field_validator("freemium_mission_quota")
    @classmethod
    def validate_quota(cls, value: int) -> int:
        if value < 0:
            raise ValueError("freemium_mission_quota must be >= 0")
        return value

    @model_validator(mode="after")
    def validate_price_order(self) -> "Settings":
        if not Decimal("0") < self.club_mission_price < self.standard_mission_price < self.urgent_mission_price:
            raise ValueError("mission prices must satisfy 0 < club < standard < urgent")
        return self

    @property
    def cors_origin_list(self) -> list[str]:
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
