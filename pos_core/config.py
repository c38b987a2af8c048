from typing import Optional
from pydantic_settings import BaseSettings, SettingsConfigDict

class AppConfig(BaseSettings):
    """Terminal configuration using Pydantic BaseSettings.

    Loads configuration from environment variables and .env file (if present).
    Shop-level values here only seed the default ShopSettings; once a terminal
    is running, the ShopSettings document (which is synced) is authoritative.
    """
    # Application
    app_env: str = "local"
    log_level: str = "INFO"

    # Terminal identity
    terminal_id: str = "POS-01"
    cashier_id: Optional[str] = None
    cashier_name: Optional[str] = None

    # Shop defaults
    shop_name: str = "My Coffee Shop"
    currency: str = "$"
    order_prefix: str = "ORD-"
    starting_order_number: int = 1001
    hide_out_of_stock: bool = False

    # Money
    payment_epsilon: float = 0.01

    # Loyalty defaults
    membership_enabled: bool = True
    default_earn_rate: float = 1.0
    default_redeem_rate: float = 100.0

    # Sync
    sync_enabled: bool = False
    sync_interval_seconds: float = 300.0

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", env_prefix="POS_")

_config: Optional[AppConfig] = None

def get_config() -> AppConfig:
    """Return the AppConfig instance (singleton pattern)."""
    global _config
    if _config is None:
        _config = AppConfig()
    return _config

def set_config_for_test(**kwargs):
    """For testing only: override the AppConfig instance with new values."""
    global _config
    _config = AppConfig(**kwargs)
