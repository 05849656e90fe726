from functools import lru_cache
from typing import Optional, Dict, Any
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import PostgresDsn, field_validator, Field

# Define the root directory of the ledger_sync package
SERVICE_ROOT_DIR = Path(__file__).parent.parent.resolve()
# Path to the repository root (two levels up from this settings.py)
PROJECT_ROOT_DIR = SERVICE_ROOT_DIR.parent


class Settings(BaseSettings):
    # Application settings
    APP_NAME: str = "LedgerSyncService"
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = False

    # Remote RPC settings
    RPC_URL: str = "http://localhost:9944"
    RPC_TIMEOUT_SECONDS: float = Field(default=30.0, gt=0)
    RPC_MAX_RETRIES: int = Field(default=0, ge=0)
    RPC_RETRY_BACKOFF_SECONDS: float = Field(default=1.0, ge=0)
    RPC_MAX_BACKOFF_SECONDS: float = Field(default=30.0, ge=0)
    TARGET_ID: str = "5FsXfPrUDqq6abYccExCTUxyzjYaaYTr5utLx2wwdBv1m8R8"

    # Database settings
    DB_HOST: str = "localhost"
    DB_PORT: int = 5432
    DB_USER: str = "postgres"
    DB_PASSWORD: str = "postgres"
    DB_NAME: str = "ve_db"
    DATABASE_URL: Optional[str] = Field(default=None, validate_default=True)
    CREATE_TABLES_ON_STARTUP: bool = True

    @field_validator("DATABASE_URL", mode='before')
    @classmethod
    def assemble_db_connection(cls, v: Optional[str], values: Dict[str, Any]) -> Any:
        if isinstance(v, str):
            return v
        # DB_* fields are declared above DATABASE_URL, so they are already in values.data
        db_user = values.data.get("DB_USER")
        db_password = values.data.get("DB_PASSWORD")
        db_host = values.data.get("DB_HOST")
        db_port = values.data.get("DB_PORT")
        db_name = values.data.get("DB_NAME")

        return str(PostgresDsn.build(
            scheme="postgresql+asyncpg",
            username=db_user,
            password=db_password,
            host=db_host,
            port=db_port,
            path=db_name or '',
        ))

    # Pipeline settings
    POLL_INTERVAL_SECONDS: float = Field(default=5.0, gt=0)
    QUEUE_MAXSIZE: int = Field(default=100, ge=1)

    # Logging configuration path (can be overridden by env var)
    LOGGING_CONFIG_PATH: str = str(SERVICE_ROOT_DIR / "config" / "logging_config.yaml")

    model_config = SettingsConfigDict(
        env_file=str(PROJECT_ROOT_DIR / ".env"),  # Load variables from project root .env
        env_file_encoding='utf-8',
        extra='ignore'
    )


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Built once per process; components receive it explicitly rather than
    importing a module-level instance.

    Returns:
        Settings: Application settings
    """
    return Settings()
