"""Configuration management using Pydantic Settings"""

from decimal import Decimal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables"""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Database (in-memory by default; point at PostgreSQL for a durable store)
    database_url: str = "sqlite+pysqlite:///:memory:"
    seed_default_pools: bool = True

    # External Services
    notification_webhook_url: str | None = None

    # Service
    service_name: str = "chainflow-credit"
    log_level: str = "INFO"

    # HTTP Client
    http_timeout_seconds: float = 5.0
    webhook_max_retries: int = 5
    webhook_backoff_base: float = 1.0  # Exponential backoff base in seconds

    # Simulated settlement
    scoring_delay_seconds: float = 2.0
    supplier_settlement_delay_seconds: float = 5.0
    scheduler_poll_interval_seconds: float = 1.0

    # Credit operations
    payment_tolerance: Decimal = Decimal("0.01")
    issue_charge_on_approval: bool = False


settings = Settings()
