"""Configuration management using Pydantic Settings"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables"""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Database
    database_url: str = "sqlite:///./bizcredit.db"  # postgresql+psycopg2://... in production

    # Service
    service_name: str = "bizcredit-engine"
    log_level: str = "INFO"

    # Loans
    application_number_prefix: str = "LA"


settings = Settings()
