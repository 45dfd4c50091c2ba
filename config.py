"""
config.py — LandLedger Global Configuration
"""

from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache
from typing import List


class Settings(BaseSettings):

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # App
    APP_NAME: str = "LandLedger"
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = False
    ENVIRONMENT: str = "development"

    # API Server
    HOST: str = "0.0.0.0"
    PORT: int = 8000
    ALLOWED_ORIGINS: List[str] = [
        "http://localhost:3000",
        "http://localhost:5173",
        "http://127.0.0.1:5173",
    ]

    # Database (audit trail only — the ledger owns all land state)
    DATABASE_URL: str = "sqlite+aiosqlite:///./landledger.db"
    DB_POOL_SIZE: int = 10
    DB_MAX_OVERFLOW: int = 20

    # Ledger
    LEDGER_BACKEND: str = "simulation"
    LEDGER_TIMEOUT_SECONDS: float = 30.0
    WEB3_PROVIDER_URL: str = "http://127.0.0.1:8545"
    CHAIN_ID: int = 1337
    CONTRACT_ADDRESS: str = ""
    CONTRACT_ABI_PATH: str = "contracts/LandRegistry.abi.json"

    # Roles — ledger accounts allowed to act as registry administrators.
    # Empty list = trust the role claim in the caller's token.
    ADMIN_ACCOUNTS: List[str] = []

    # Tokens
    JWT_SECRET_KEY: str = "change-me-in-production"
    JWT_ALGORITHM: str = "HS256"
    JWT_EXPIRY_MINUTES: int = 30

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FILE: str = "landledger.log"


@lru_cache()
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
