"""
Configuration module for the repair shop dashboard backend.
Loads environment variables and provides typed configuration.
"""

from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load .env file
env_path = Path(__file__).parent / ".env"
load_dotenv(dotenv_path=env_path)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Supabase
    supabase_url: str = ""
    supabase_key: str = ""

    # Table names
    bookings_table: str = "bookings"
    transactions_table: str = "transactions"
    accounts_table: str = "accounts"
    employees_table: str = "employees"
    logs_table: str = "logs"

    # Shop locale
    timezone: str = "Asia/Manila"
    currency: str = "PHP"

    # Dashboard display
    arriving_today_limit: int = 5
    recent_logs_limit: int = 10
    default_page_size: int = 10
    max_records_fetch: int = 5000
    cache_ttl_minutes: int = 5

    # Server
    host: str = "0.0.0.0"
    port: int = 8000
    environment: str = "development"  # development, staging, production
    log_level: str = "INFO"
    log_dir: str = "logs"

    # Optional public URL of the dashboard frontend (CORS origin)
    frontend_origin: Optional[str] = None

    # NotificationAPI credentials; customer notifications are off when unset
    notification_client_id: Optional[str] = None
    notification_client_secret: Optional[str] = None
    notification_api_url: str = "https://api.notificationapi.com"
    notification_timeout_seconds: float = 10.0

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    def validate_all_required(self) -> None:
        """
        Validate that all required settings are present.

        Raises:
            ValueError: If required fields are missing or invalid
        """
        required_fields = ["supabase_url", "supabase_key"]

        missing = []
        for field in required_fields:
            value = getattr(self, field, None)

            if not value:
                missing.append(field)
                continue

            # Placeholder values such as "your_supabase_key"
            if str(value).lower().startswith("your_"):
                missing.append(field)

        if missing:
            raise ValueError(
                f"Missing or invalid required configuration: "
                f"{', '.join(missing)}. "
                f"Please check your .env file and ensure all required "
                f"values are set."
            )


# Global settings instance
settings = Settings()
