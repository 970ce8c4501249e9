from pydantic_settings import BaseSettings
from pydantic import Field
import os
from pathlib import Path


PROJECT_ROOT = Path(__file__).parent.parent.parent


class Config(BaseSettings):
    # Local SQLite store (device-side)
    database_url: str = Field(
        default=f"sqlite+aiosqlite:///{PROJECT_ROOT / 'data' / 'sign_inventory.db'}",
        alias="DB_URL",
    )

    # Supabase (remote system of record)
    supabase_url: str = Field(default="", alias="SUPABASE_URL")
    supabase_anon_key: str = Field(default="", alias="SUPABASE_ANON_KEY")
    supabase_access_token: str = Field(default="", alias="SUPABASE_ACCESS_TOKEN")
    remote_timeout_seconds: float = Field(default=30.0, alias="REMOTE_TIMEOUT_SECONDS")

    # Offline behaviour
    catalog_ttl_hours: float = Field(default=24.0, alias="CATALOG_TTL_HOURS")
    background_sync_interval_seconds: float = Field(
        default=60.0, alias="BACKGROUND_SYNC_INTERVAL_SECONDS"
    )
    notification_buffer_size: int = Field(default=50, alias="NOTIFICATION_BUFFER_SIZE")

    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    is_production: bool = (
        os.getenv("ENVIRONMENT", "development").lower() == "production"
    )

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        populate_by_name = True


# Instantiate the settings
config = Config()
