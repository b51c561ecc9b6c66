"""
Application configuration.

Loads settings from environment variables and .env file.
All configuration is centralized here; no scattered magic strings.
"""

from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment.

    Attributes:
        project_name: Display name for the API.
        version: Current API version string.
        debug: Enable debug mode. Must be False in production.
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR).
        rate_limit_enabled: Turn slowapi limits on or off (off in tests).
        rate_limit_default: Default rate limit for all endpoints.
        rate_limit_signal: Rate limit for the paid signal endpoint.
        cors_origins: Origins allowed to call the API from a browser.

    Recommendation model:
        gemini_api_key: API key. Empty means the model path is disabled
            and every signal comes from the rule-based fallback.
        model_timeout_seconds: Upper bound on one model round trip.

    Payment gate:
        signal_price_minor_units: Price per signal in token minor units
            (10000 = 0.01 USDC with 6 decimals).
        payment_address: Payee address. When unset, destination is not checked.
        payment_bypass: Single switch that disables the gate entirely.
            Must be False in production.
        payment_single_use: Reject a receipt that already released a signal.
        payment_verify_onchain: Confirm receipts through ``payment_rpc_url``.
    """

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    project_name: str = "HedgeSignal"
    version: str = "0.1.0"
    debug: bool = False
    log_level: str = "INFO"
    rate_limit_enabled: bool = True
    rate_limit_default: str = "60/minute"
    rate_limit_signal: str = "20/minute"
    cors_origins: list[str] = ["*"]

    # --- Recommendation model (Gemini) ---
    gemini_api_key: str = ""
    gemini_model: str = "gemini-1.5-flash"
    gemini_api_base: str = "https://generativelanguage.googleapis.com/v1beta"
    model_timeout_seconds: float = 10.0
    model_temperature: float = 0.3
    model_max_tokens: int = 512

    # --- Signal cache ---
    signal_cache_ttl_seconds: int = 900  # 15 minutes

    # --- Market snapshot ---
    market_base_price: float = 2150.50

    # --- Payment gate (x402) ---
    signal_price_minor_units: int = 10_000
    payment_token_decimals: int = 6
    payment_currency: str = "USDC"
    payment_network: str = "base-sepolia"
    payment_address: Optional[str] = None
    payment_token_address: str = ""
    payment_bypass: bool = False
    payment_single_use: bool = True
    payment_proof_ttl_seconds: int = 86_400
    payment_verify_onchain: bool = False
    payment_rpc_url: str = "https://sepolia.base.org"
    rpc_timeout_seconds: float = 5.0

    # --- Ledger ---
    ledger_seed_demo: bool = False


settings = Settings()
