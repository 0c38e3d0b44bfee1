"""
Core configuration module.
Organized into separate settings classes, one per concern, all read from the
environment (or a local .env file).
"""

import json
from typing import List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class APISettings(BaseSettings):
    """API configuration settings."""

    app_name: str = "BranchOps Dashboard API"
    app_version: str = "1.0.0"
    debug: bool = False
    api_prefix: str = "/api"

    model_config = SettingsConfigDict(
        env_prefix="API_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


class DatabaseSettings(BaseSettings):
    """Database configuration settings.

    Pool settings only apply to server databases (PostgreSQL/MySQL); SQLite
    engines are created without a sized pool.
    """

    url: str
    pool_size: int = 10
    max_overflow: int = 5
    pool_timeout: int = 30
    pool_recycle: int = 1800  # 30 minutes
    echo: bool = False

    model_config = SettingsConfigDict(
        env_prefix="DATABASE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @property
    def is_sqlite(self) -> bool:
        return self.url.startswith("sqlite")

    @property
    def is_postgres(self) -> bool:
        return self.url.startswith("postgresql")


class SecuritySettings(BaseSettings):
    """Security and JWT configuration settings."""

    secret_key: str
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 8 * 60  # one working day
    jwt_issuer: str = "branchops"
    jwt_audience: str = "branchops-dashboard"
    bcrypt_rounds: int = 12

    model_config = SettingsConfigDict(
        env_prefix="SECURITY_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


class CORSSettings(BaseSettings):
    """CORS configuration settings."""

    origins: List[str] = ["http://localhost:8080"]

    model_config = SettingsConfigDict(
        env_prefix="CORS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @field_validator("origins", mode="before")
    @classmethod
    def parse_origins(cls, v):
        """Parse origins from JSON array string or comma-separated list."""
        if isinstance(v, str):
            try:
                return json.loads(v)
            except json.JSONDecodeError:
                return [origin.strip() for origin in v.split(",") if origin.strip()]
        return v


class HeartbeatSettings(BaseSettings):
    """Thresholds used to turn heartbeat recency into a device status."""

    online_threshold_minutes: float = Field(
        default=5, gt=0, description="Age (minutes) up to which a device is online"
    )
    problematic_threshold_minutes: float = Field(
        default=15, gt=0, description="Age (minutes) up to which a device is problematic"
    )
    interval_seconds: int = Field(
        default=30, gt=0, description="Nominal seconds between two heartbeats"
    )
    uptime_window_hours: int = Field(
        default=24, gt=0, description="Trailing window used for the uptime estimate"
    )

    model_config = SettingsConfigDict(
        env_prefix="HEARTBEAT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


class RecordingSettings(BaseSettings):
    """Voice recording upload configuration settings."""

    upload_dir: str = "./uploads/audio"
    max_upload_size: int = 50 * 1024 * 1024  # 50MB
    allowed_extensions: List[str] = ["mp3", "wav"]
    playback_prefix: str = "/api/audio"

    @field_validator("allowed_extensions", mode="before")
    @classmethod
    def parse_allowed_extensions(cls, v):
        if isinstance(v, str):
            return [ext.strip().lower().lstrip(".") for ext in v.split(",") if ext.strip()]
        return v

    model_config = SettingsConfigDict(
        env_prefix="RECORDING_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


class EmailSettings(BaseSettings):
    """Email configuration settings.

    SECURITY: smtp_password has no default and must be configured via environment.
    """

    enabled: bool = False
    smtp_host: str = "smtp.example.com"
    smtp_port: int = 587
    smtp_user: str = ""
    smtp_password: str = Field(default="", description="SMTP password")
    smtp_from: str = "noreply@example.com"
    smtp_tls: bool = True
    timeout_seconds: int = 30

    model_config = SettingsConfigDict(
        env_prefix="EMAIL_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


class PasswordResetSettings(BaseSettings):
    """Password reset token configuration."""

    token_expire_minutes: int = 60
    frontend_reset_url: str = "http://localhost:8080/reset-password"

    model_config = SettingsConfigDict(
        env_prefix="PASSWORD_RESET_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


class RateLimitSettings(BaseSettings):
    """Rate Limiting configuration settings."""

    enabled: bool = True
    login: str = "10/minute"

    model_config = SettingsConfigDict(
        env_prefix="RATE_LIMIT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


class LoggingSettings(BaseSettings):
    """Logging configuration settings."""

    level: str = "INFO"
    enable_file_logging: bool = True
    log_dir: str = "logs"
    max_size: int = 10_485_760  # 10MB
    backup_count: int = 5
    enable_console_logging: bool = True
    enable_query_logging: bool = False

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @property
    def log_config(self) -> dict:
        """Get logging configuration."""
        return {
            "level": self.level,
            "enable_file_logging": self.enable_file_logging,
            "log_dir": self.log_dir,
            "max_file_size": self.max_size,
            "backup_count": self.backup_count,
            "enable_console": self.enable_console_logging,
            "enable_query_logging": self.enable_query_logging,
        }


class PaginationSettings(BaseSettings):
    """Pagination configuration settings."""

    default_page_size: int = 20
    max_page_size: int = 100

    model_config = SettingsConfigDict(
        env_prefix="PAGINATION_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


class AdminBootstrapSettings(BaseSettings):
    """First admin account, created at startup when no admin exists."""

    username: str = "admin"
    password: str = ""
    emp_name: str = "System Administrator"
    email: str = "admin@example.com"

    model_config = SettingsConfigDict(
        env_prefix="ADMIN_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


class Settings(BaseSettings):
    """Main application settings."""

    api: APISettings = APISettings()
    database: DatabaseSettings = DatabaseSettings()
    security: SecuritySettings = SecuritySettings()
    cors: CORSSettings = CORSSettings()
    heartbeat: HeartbeatSettings = HeartbeatSettings()
    recording: RecordingSettings = RecordingSettings()
    email: EmailSettings = EmailSettings()
    password_reset: PasswordResetSettings = PasswordResetSettings()
    rate_limit: RateLimitSettings = RateLimitSettings()
    logging: LoggingSettings = LoggingSettings()
    pagination: PaginationSettings = PaginationSettings()
    admin: AdminBootstrapSettings = AdminBootstrapSettings()

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


# Global settings instance
settings = Settings()


def get_settings() -> Settings:
    """Get the global settings instance."""
    return settings
