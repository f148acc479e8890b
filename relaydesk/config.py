from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings

# Project root (parent of relaydesk/) - used so .env is found regardless of cwd
_PROJECT_ROOT = Path(__file__).resolve().parent.parent

# Explicitly load .env into os.environ so it works in tests and subprocesses
load_dotenv(_PROJECT_ROOT / ".env")


class Settings(BaseSettings):
    app_name: str = "relaydesk"
    environment: str = Field(
        default="development",
        validation_alias=AliasChoices("ENV", "ENVIRONMENT"),
    )
    log_level: str = Field(default="INFO", json_schema_extra={"env": "LOG_LEVEL"})
    host: str = Field(default="0.0.0.0", json_schema_extra={"env": "HOST"})
    port: int = Field(default=3000, json_schema_extra={"env": "PORT"})
    cors_allow_origins: str = Field(
        default="*", json_schema_extra={"env": "CORS_ALLOW_ORIGINS"}
    )

    # Storage
    upload_dir: str = Field(
        default=str(_PROJECT_ROOT / "uploads"), json_schema_extra={"env": "UPLOAD_DIR"}
    )
    public_dir: str = Field(
        default=str(_PROJECT_ROOT / "public"), json_schema_extra={"env": "PUBLIC_DIR"}
    )
    bot_config_path: str = Field(
        default=str(_PROJECT_ROOT / "bot-config.json"),
        json_schema_extra={"env": "BOT_CONFIG_PATH"},
    )
    max_upload_bytes: int = Field(
        default=15 * 1024 * 1024, json_schema_extra={"env": "MAX_UPLOAD_BYTES"}
    )
    image_max_width: int = Field(
        default=800, json_schema_extra={"env": "IMAGE_MAX_WIDTH"}
    )
    image_jpeg_quality: int = Field(
        default=80, ge=1, le=95, json_schema_extra={"env": "IMAGE_JPEG_QUALITY"}
    )

    # Chat state
    chat_list_limit: int = Field(
        default=30, json_schema_extra={"env": "CHAT_LIST_LIMIT"}
    )
    history_default_limit: int = Field(
        default=50, json_schema_extra={"env": "HISTORY_DEFAULT_LIMIT"}
    )

    # Provider gateway (WhatsApp web automation)
    provider_enabled: bool = Field(
        default=False, json_schema_extra={"env": "PROVIDER_ENABLED"}
    )
    provider_base_url: Optional[str] = Field(
        default=None, json_schema_extra={"env": "PROVIDER_BASE_URL"}
    )
    provider_api_token: Optional[str] = Field(
        default=None, json_schema_extra={"env": "PROVIDER_API_TOKEN"}
    )
    provider_session_id: str = Field(
        default="guincho-wtz", json_schema_extra={"env": "PROVIDER_SESSION_ID"}
    )
    provider_webhook_secret: Optional[str] = Field(
        default=None, json_schema_extra={"env": "PROVIDER_WEBHOOK_SECRET"}
    )
    provider_timeout_seconds: float = Field(
        default=30.0, json_schema_extra={"env": "PROVIDER_TIMEOUT_SECONDS"}
    )
    session_retry_seconds: float = Field(
        default=10.0, json_schema_extra={"env": "SESSION_RETRY_SECONDS"}
    )
    session_reconnect_seconds: float = Field(
        default=5.0, json_schema_extra={"env": "SESSION_RECONNECT_SECONDS"}
    )

    # Public tunnel (development only)
    tunnel_enabled: bool = Field(
        default=True, json_schema_extra={"env": "TUNNEL_ENABLED"}
    )
    public_base_url: Optional[str] = Field(
        default=None, json_schema_extra={"env": "PUBLIC_BASE_URL"}
    )

    @property
    def is_production(self) -> bool:
        """Check if the current environment is production."""
        return self.environment.lower() == "production"

    @property
    def is_test(self) -> bool:
        """Check if the current environment is test."""
        return self.environment.lower() == "test"

    @property
    def cors_origins(self) -> list[str]:
        origins = [o.strip() for o in self.cors_allow_origins.split(",") if o.strip()]
        return origins or ["*"]

    class ConfigDict:
        env_file = str(_PROJECT_ROOT / ".env")
        env_file_encoding = "utf-8"
        extra = "allow"  # Allow extra environment variables


def get_settings() -> Settings:
    """Get application settings with required environment variables."""
    return Settings()
