"""
Configuration Management Module

Provides centralized configuration using pydantic-settings for environment-based configuration.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class LedgerConfig(BaseSettings):
    """Multi-currency ledger configuration"""

    model_config = SettingsConfigDict(
        env_prefix="FXLEDGER_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    # Business rules configuration
    max_accounts: int = 50  # Ledger capacity

    # Persistence configuration
    ledger_file: str = "accounts.txt"
    file_encoding: str = "utf-8"

    # Logging configuration
    log_level: str = "INFO"
    log_format: str = "json"  # json or text


# Global configuration instance
config = LedgerConfig()


def get_config() -> LedgerConfig:
    """Get global configuration instance"""
    return config


def reload_config() -> LedgerConfig:
    """Reload configuration from environment"""
    global config
    config = LedgerConfig()
    return config
