from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field
from functools import lru_cache


DEFAULT_PROFILE_PHOTO = "https://cdn.pixabay.com/photo/2017/02/25/22/04/user-icon-2098873_1280.png"


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")

    # Database
    database_url: str = Field(...)

    # Session tokens
    jwt_secret_key: str = Field(...)
    jwt_algorithm: str = Field(default="HS256")
    jwt_expire_days: int = Field(default=7)

    # Password reset
    otp_expire_minutes: int = Field(default=10)

    # Login throttling
    login_rate_limit: int = Field(default=5)
    login_rate_window_seconds: int = Field(default=60)

    # Gmail SMTP
    gmail_address: str = Field(default="")
    gmail_app_password: str = Field(default="")
    smtp_server: str = Field(default="smtp.gmail.com")
    smtp_port: int = Field(default=587)

    # Image host (S3 compatible)
    s3_endpoint_url: str = Field(default="")
    s3_access_key_id: str = Field(default="")
    s3_secret_access_key: str = Field(default="")
    s3_bucket_name: str = Field(default="medibook-profile-photos")
    s3_region: str = Field(default="auto")
    s3_public_base_url: str = Field(default="")
    default_profile_photo_url: str = Field(default=DEFAULT_PROFILE_PHOTO)

    # Server
    log_level: str = Field(default="INFO")
    cors_origins: list[str] = Field(default=["*"])


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
