# ssrstore/settings.py
from typing import List, Optional

from pydantic import SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Process-wide configuration, read once from SSRSTORE_* env vars (or .env)."""

    model_config = SettingsConfigDict(
        env_prefix="SSRSTORE_", env_file=".env", extra="ignore"
    )

    jwt_secret: SecretStr
    jwt_algorithm: str = "HS256"
    token_ttl_minutes: int = 60

    # no uri -> in-memory store
    mongo_uri: Optional[str] = None
    database_name: str = "ssrstore"
    db_connect_retries: int = 5
    db_connect_backoff_seconds: float = 0.5
    db_timeout_ms: int = 5000

    upload_dir: str = "upload/images"
    public_base_url: str = "http://localhost:5000"
    host: str = "0.0.0.0"
    port: int = 5000

    cart_slots: int = 100
    log_level: str = "INFO"
    cors_origins: List[str] = ["*"]
