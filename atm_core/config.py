"""
Configuration Management Module

Provides centralized configuration using pydantic-settings for environment-based configuration.
"""

from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings


class SeedAccount(BaseModel):
    """Account created when the ledger starts"""
    account_id: str
    pin: str
    initial_balance: Decimal = Decimal("0.00")


def default_seed_accounts() -> List[SeedAccount]:
    return [
        SeedAccount(account_id="1001", pin="1234", initial_balance=Decimal("1000.00")),
        SeedAccount(account_id="1002", pin="2222", initial_balance=Decimal("500.00")),
        SeedAccount(account_id="1003", pin="3333", initial_balance=Decimal("2000.00")),
    ]


class AtmConfig(BaseSettings):
    """ATM service configuration"""

    # Business rules configuration
    currency: str = "USD"
    min_pin_length: int = 4
    mini_statement_size: int = 5
    timestamp_format: str = "%Y-%m-%d %H:%M"

    # Seed data, e.g. ATM_SEED_ACCOUNTS='[{"account_id": "2001", "pin": "9999", "initial_balance": "10"}]'
    seed_accounts: List[SeedAccount] = Field(default_factory=default_seed_accounts)

    # Logging configuration
    log_level: str = "WARNING"
    log_format: str = "json"  # json or text
    log_file: Optional[str] = None  # If None, logs to stderr

    class Config:
        env_prefix = "ATM_"
        env_file = ".env"
        case_sensitive = False


# Global configuration instance
config = AtmConfig()


def get_config() -> AtmConfig:
    """Get global configuration instance"""
    return config


def reload_config() -> AtmConfig:
    """Reload configuration from environment"""
    global config
    config = AtmConfig()
    return config
