"""Configuration management using pydantic-settings."""

from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Chain snapshot source (JSON document produced by an indexer/sidecar)
    snapshot_url: str = "http://127.0.0.1:8080/staking/snapshot.json"

    # IPFS HTTP API used for replica lookups
    ipfs_api_url: str = "http://127.0.0.1:5001"

    # Local persistence (favorites, address book, watch list)
    database_path: Path = Path.home() / ".crust-dashboard" / "dashboard.db"
    favorites_key: str = "staking:favorites"

    # Commission is stored per-billion; dividing by this gives a percentage
    commission_scale: int = 1_000_000_000
    commission_percent_divisor: int = 10_000_000

    # Balance display
    token_symbol: str = "CRU"
    token_decimals: int = 12

    # Cache / HTTP settings
    cache_ttl_seconds: int = 60
    http_timeout_seconds: float = 30.0

    # Watch list default ordering, applied once when the list is mounted
    watch_default_sort: str = "start_time"
    watch_default_ascending: bool = False

    class Config:
        env_prefix = "CRUST_"
        env_file = ".env"
        env_file_encoding = "utf-8"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
