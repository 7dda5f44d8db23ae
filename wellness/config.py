"""
Configuration management with environment variable support and validation.

Design principles:
- Environment-specific configs (dev, staging, prod)
- Validation at startup (fail fast)
- Type safety with Pydantic
- Secure defaults (no API keys in code)
"""

import os
from functools import lru_cache
from pathlib import Path
from typing import Literal, cast

from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator, model_validator

# Load environment variables from .env file
load_dotenv()


class StoreConfig(BaseModel):
    """Location of the patient document and its single backup."""

    data_dir: Path = Field(default=Path("./data"), description="Directory holding the document")
    data_file_name: str = Field(default="patient.json", description="Primary document file")
    backup_file_name: str = Field(
        default="patient.backup.json", description="Previous version of the document"
    )

    @property
    def data_file(self) -> Path:
        return self.data_dir / self.data_file_name

    @property
    def backup_file(self) -> Path:
        return self.data_dir / self.backup_file_name


class APIConfig(BaseModel):
    """API server configuration."""

    host: str = Field(default="0.0.0.0", description="API server host")
    port: int = Field(default=3001, gt=0, lt=65536, description="API server port")
    reload: bool = Field(default=False, description="Enable auto-reload for development")

    # Security settings
    allowed_origin: str = Field(
        default="https://howdoicheckit.github.io", description="Single origin allowed by CORS"
    )
    api_key: str = Field(..., description="Shared static credential for /api routes")
    api_key_header: str = Field(default="x-api-key", description="Header carrying the API key")

    @field_validator("api_key")
    def validate_api_key(cls, v):
        if not v or not v.strip():
            raise ValueError("API_KEY must be set in environment or .env file")
        return v


class ResolverConfig(BaseModel):
    """Side-effect lookup settings."""

    openfda_url: str = Field(
        default="https://api.fda.gov/drug/event.json", description="openFDA adverse event endpoint"
    )
    query_limit: int = Field(default=30, gt=0, description="Terms requested from openFDA")
    max_side_effects: int = Field(default=12, gt=0, description="Terms kept per medication")
    timeout_seconds: float = Field(default=15.0, gt=0.0, description="HTTP timeout per lookup")


class SyncConfig(BaseModel):
    """Client-side synchronization settings."""

    server_url: str = Field(default="http://localhost:3001", description="Base URL of the API")
    api_key: str = Field(default="", description="Credential sent with every request")
    debounce_seconds: float = Field(
        default=0.6, gt=0.0, description="Quiet period before a push fires"
    )
    saving_linger_seconds: float = Field(
        default=0.3, ge=0.0, description="Time the saving status lingers after a push"
    )
    legacy_cache_path: Path = Field(
        default=Path("./local-storage.json"), description="Legacy local cache file"
    )
    legacy_cache_key: str = Field(
        default="wellness-tracker-data", description="Key of the legacy document"
    )
    timeout_seconds: float = Field(default=10.0, gt=0.0, description="HTTP timeout for sync")


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO", description="Logging level"
    )
    format: Literal["json", "console"] = Field(default="json", description="Logging format")


class AppConfig(BaseModel):
    """Main application configuration combining all subsystems."""

    # Environment
    environment: Literal["development", "staging", "production"] = Field(
        default="development", description="Environment"
    )
    debug: bool = Field(default=False, description="Enable debug mode")

    # Component configs
    store: StoreConfig
    api: APIConfig
    resolver: ResolverConfig
    sync: SyncConfig
    logging: LoggingConfig

    @model_validator(mode="after")
    def debug_only_in_dev(self) -> "AppConfig":
        """Ensure debug mode is only allowed in development environment."""
        if self.debug and self.environment != "development":
            raise ValueError("debug mode is only allowed in development environment")
        return self


def load_config_from_env() -> AppConfig:
    """Load configuration from environment variables with validation."""

    def _env_to_literal(val: str) -> Literal["development", "staging", "production"]:
        v = val.strip().lower()
        if v in {"dev", "development"}:
            return "development"
        if v in {"stage", "staging"}:
            return "staging"
        return "production"

    def _level_to_literal(val: str) -> Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]:
        v = val.strip().upper()
        return cast(
            Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
            v if v in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"} else "INFO",
        )

    def _parse_bool(val: str | None, default: bool) -> bool:
        if val is None:
            return default
        return val.strip().lower() in {"1", "true", "yes", "on"}

    # Detect environment
    environment = _env_to_literal(os.getenv("ENVIRONMENT", "development"))
    debug = environment == "development"

    api_key = os.getenv("API_KEY", "")
    port = int(os.getenv("API_PORT", os.getenv("PORT", "3001")))

    store_config = StoreConfig(data_dir=Path(os.getenv("DATA_DIR", "./data")))

    api_config = APIConfig(
        host=os.getenv("API_HOST", "0.0.0.0"),
        port=port,
        reload=_parse_bool(os.getenv("API_RELOAD"), debug),
        allowed_origin=os.getenv("ALLOWED_ORIGIN", "https://howdoicheckit.github.io"),
        api_key=api_key,
    )

    resolver_config = ResolverConfig(
        openfda_url=os.getenv("OPENFDA_URL", "https://api.fda.gov/drug/event.json"),
        timeout_seconds=float(os.getenv("RESOLVER_TIMEOUT_SECONDS", "15.0")),
    )

    sync_config = SyncConfig(
        server_url=os.getenv("API_URL", f"http://localhost:{port}"),
        api_key=api_key,
        debounce_seconds=float(os.getenv("SYNC_DEBOUNCE_SECONDS", "0.6")),
        legacy_cache_path=Path(os.getenv("LEGACY_CACHE_PATH", "./local-storage.json")),
    )

    logging_config = LoggingConfig(
        level=_level_to_literal(os.getenv("LOG_LEVEL", "INFO")),
        format="console" if debug else "json",
    )

    return AppConfig(
        environment=environment,
        debug=debug,
        store=store_config,
        api=api_config,
        resolver=resolver_config,
        sync=sync_config,
        logging=logging_config,
    )


@lru_cache
def get_config() -> AppConfig:
    """Get cached application configuration."""
    return load_config_from_env()


def validate_config() -> None:
    """Validate configuration at startup."""
    try:
        config = get_config()
        print(f"Configuration loaded for {config.environment} environment")
    except Exception as e:
        print(f"Configuration validation failed: {e}")
        raise


def print_config_summary() -> None:
    """Print configuration summary for debugging."""
    config = get_config()

    print("\nCONFIGURATION SUMMARY")
    print(f"Environment: {config.environment}")
    print(f"Debug Mode: {config.debug}")
    print(f"Log Level: {config.logging.level}")

    print("\nSTORE")
    print(f"Data File: {config.store.data_file}")
    print(f"Backup File: {config.store.backup_file}")

    print("\nAPI")
    print(f"Host: {config.api.host}:{config.api.port}")
    print(f"Allowed Origin: {config.api.allowed_origin}")

    print("\nSYNC")
    print(f"Server: {config.sync.server_url}")
    print(f"Debounce: {config.sync.debounce_seconds}s")


if __name__ == "__main__":
    validate_config()
    print_config_summary()
