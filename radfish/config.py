"""
Configuration for radfish adapters.

Reads from environment variables with sensible defaults. Adapter keyword
options override these per instance.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Adapter defaults loaded from environment."""

    model_config = SettingsConfigDict(env_prefix="RADFISH_")

    # BMC connection
    port: int = 443
    use_ssl: bool = True
    verify_ssl: bool = False  # BMCs ship self-signed certificates
    direct_mode: bool = False  # basic auth on every request instead of a session

    # Transport retries (connection errors only)
    retry_count: int = 3
    retry_delay: float = 1
    connect_timeout: int = 5
    read_timeout: int = 30

    # Power convergence polling
    power_poll_interval: float = 2
    power_poll_attempts: int = 30
    reboot_poll_attempts: int = 60
    power_cycle_settle: float = 5

    # Job polling
    job_poll_interval: float = 10
    job_timeout: int = 600

    # Logging
    log_level: str = "WARNING"


settings = Settings()
