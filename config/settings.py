"""Pydantic BaseSettings — process configuration for the trading agent."""

from __future__ import annotations

from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Central configuration loaded from env / .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # ── Application ─────────────────────────────────────────────
    APP_ENV: Literal["dev", "paper", "prod"] = "dev"
    APP_NAME: str = "yith-arb"
    LOG_LEVEL: str = "INFO"

    # ── Chain ───────────────────────────────────────────────────
    GETH_URL: str = "http://localhost:8545"
    CHAIN_ID: int = 1
    GAS_ORACLE_URL: str = "https://ethgasstation.info/json/ethgasAPI.json"
    DEFAULT_GAS_LIMIT: int = 310_240
    WETH_ADDRESS: str = "0xC02aaA39b223FE8D0A0e5C4F27eAD9083C756Cc2"
    WETH_GAS_LIMIT: int = 50_000

    # ── Network / API ───────────────────────────────────────────
    HTTP_TIMEOUT_SECONDS: float = 10.0
    HTTP_PROXY: str = ""
    VENUES_FILE: str = "venues.yaml"

    # ── Credentials (never commit real values) ──────────────────
    WALLET_PRIVATE_KEY: str = ""


settings = Settings()
