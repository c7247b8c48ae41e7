"""
Application configuration with Pydantic Settings for validation and type safety.
Supports environment-specific configurations and .env file loading.
"""

from enum import Enum
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field, field_validator


class Environment(str, Enum):
    """Application environment types"""

    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"
    TESTING = "testing"


class Settings(BaseSettings):
    """
    Application settings with validation.
    Settings are loaded from environment variables or .env file.
    """

    # Application settings
    app_name: str = Field(default="FeederSync", description="Application name")
    app_version: str = Field(default="1.0.0", description="Application version")
    environment: Environment = Field(
        default=Environment.DEVELOPMENT, description="Application environment"
    )
    debug: bool = Field(default=False, description="Debug mode")

    # Server settings
    host: str = Field(default="0.0.0.0", description="Server host")
    port: int = Field(default=8000, ge=1, le=65535, description="Server port")

    # Database settings
    database_url: str = Field(
        default="postgresql+psycopg2://feedersync@localhost:5432/feedersync",
        description="SQLAlchemy database URL",
    )
    db_echo: bool = Field(default=False, description="SQLAlchemy echo SQL statements")
    db_init_attempts: int = Field(
        default=8, ge=1, description="Database readiness check attempts"
    )
    db_init_delay_sec: float = Field(
        default=2.0, ge=0, description="Delay between readiness attempts"
    )

    # Device transport
    device_port: int = Field(
        default=8080, ge=1, le=65535, description="Port feeders listen on for commands"
    )
    device_command_path: str = Field(
        default="/command", description="Path feeders accept commands on"
    )
    device_command_timeout_sec: float = Field(
        default=5.0, gt=0, description="Upper bound on waiting for a device ack"
    )
    dispatcher_max_workers: int = Field(
        default=8, ge=1, description="Concurrent in-flight device commands"
    )

    # Registry and telemetry
    feeder_online_window_sec: int = Field(
        default=300, ge=1, description="A feeder is online if it checked in this recently"
    )
    quarantine_noise_signature: str = Field(
        default="9da114414f",
        description="Hex payload of the known incomplete firmware transmission",
    )
    unknown_type_max_length: int = Field(
        default=10, ge=1, le=32, description="Stored length of quarantined type tags (column is 32)"
    )

    # Logging
    log_level: str = Field(default="INFO", description="Logging level")
    log_format: str = Field(
        default="%(asctime)s %(levelname)s %(name)s: %(message)s",
        description="Log format string",
    )

    # CORS settings
    cors_origins: list[str] = Field(
        default=["http://localhost:3000", "http://localhost:8000"],
        description="Allowed CORS origins",
    )
    cors_allow_credentials: bool = Field(
        default=True, description="Allow CORS credentials"
    )
    cors_allow_methods: list[str] = Field(
        default=["*"], description="Allowed HTTP methods"
    )
    cors_allow_headers: list[str] = Field(
        default=["*"], description="Allowed HTTP headers"
    )

    # API settings
    api_prefix: str = Field(default="", description="API route prefix")
    api_title: str = Field(
        default="FeederSync API", description="API documentation title"
    )
    api_description: str = Field(
        default="Pet feeder coordination and schedule synchronization",
        description="API documentation description",
    )

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", case_sensitive=False, extra="ignore"
    )

    @field_validator("environment", mode="before")
    @classmethod
    def validate_environment(cls, v):
        """Validate and normalize environment value"""
        if isinstance(v, str):
            return Environment(v.lower())
        return v

    @field_validator("quarantine_noise_signature")
    @classmethod
    def validate_noise_signature(cls, v: str) -> str:
        """The signature is compared against hex-encoded payloads"""
        v = v.strip().lower()
        bytes.fromhex(v)
        return v

    def is_production(self) -> bool:
        """Check if running in production environment"""
        return self.environment == Environment.PRODUCTION

    def is_development(self) -> bool:
        """Check if running in development environment"""
        return self.environment == Environment.DEVELOPMENT


# Global settings instance
settings = Settings()
