from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional, List


class ConfigurationError(ValueError):
    """Raised at startup when a required setting is absent."""


class Settings(BaseSettings):
    # Supabase
    supabase_url: str = ""
    supabase_key: str = ""
    supabase_service_role_key: Optional[str] = None

    # AWS S3 (will read from uppercase env vars automatically)
    aws_access_key_id: Optional[str] = None
    aws_secret_access_key: Optional[str] = None
    aws_region: str = "us-east-1"
    s3_bucket_name: Optional[str] = None

    # Photos
    photo_key_prefix: str = "photos"
    photo_retention_days: int = 7
    presigned_url_ttl_seconds: int = 3600

    # Groups
    join_code_max_attempts: int = 10

    # App
    app_name: str = "groupsnap-backend"
    debug: bool = False
    environment: str = "development"  # development | staging | production
    log_level: str = "INFO"
    cors_origins: str = "http://localhost:8081,http://localhost:19006,http://127.0.0.1:8081"
    rate_limit: str = "100/minute"  # slowapi format, e.g. "100/minute"

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    def get_cors_origins_list(self) -> List[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    def missing_required(self) -> List[str]:
        required = {
            "supabase_url": self.supabase_url,
            "supabase_key": self.supabase_key,
            "aws_access_key_id": self.aws_access_key_id,
            "aws_secret_access_key": self.aws_secret_access_key,
            "s3_bucket_name": self.s3_bucket_name,
        }
        return [name for name, value in required.items() if not value]

    def validate_required(self) -> None:
        missing = self.missing_required()
        if missing:
            raise ConfigurationError(
                f"Missing required configuration: {', '.join(sorted(missing))}"
            )

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        env_prefix="",  # No prefix needed
        extra="ignore"
    )


settings = Settings()
