# tutorbill/core/config.py - Centralized settings management using Pydantic
from pydantic import Field, field_validator, EmailStr
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List, Optional


class Settings(BaseSettings):
    """Application settings with validation and type safety"""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # Application Environment
    ENV: str = Field(default="dev", description="Environment: dev, staging, prod")
    DEBUG: bool = Field(default=False, description="Debug mode")
    API_HOST: str = Field(default="0.0.0.0", description="API host")
    API_PORT: int = Field(default=8000, ge=1, le=65535, description="API port")
    API_TITLE: str = Field(default="TutorBill API", description="API title")
    API_VERSION: str = Field(default="1.0.0", description="API version")

    # Database Configuration
    DATABASE_URL: str = Field(default="sqlite:///./tutorbill.db", description="Database connection URL")
    DATABASE_ECHO: bool = Field(default=False, description="Echo SQL queries")
    DATABASE_POOL_SIZE: int = Field(default=5, ge=1, le=100, description="Connection pool size")
    DATABASE_MAX_OVERFLOW: int = Field(default=10, ge=0, le=100, description="Max overflow connections")
    DATABASE_POOL_TIMEOUT: int = Field(default=30, ge=1, le=300, description="Pool timeout in seconds")
    DATABASE_POOL_RECYCLE: int = Field(default=3600, ge=300, description="Pool recycle time in seconds")

    # JWT Configuration
    JWT_SECRET: str = Field(..., min_length=32, description="JWT signing secret")
    JWT_ALGORITHM: str = Field(default="HS256", description="JWT algorithm")
    JWT_ACCESS_TOKEN_EXPIRE_MINUTES: int = Field(default=720, ge=1, le=10080, description="Access token expiry")
    JWT_ISSUER: str = Field(default="tutorbill", description="JWT issuer")
    JWT_AUDIENCE: str = Field(default="tutorbill-admin", description="JWT audience")

    # Admin identity (single tenant)
    ADMIN_EMAIL: EmailStr = Field(default="admin@tutorbill.app", description="Admin login email")
    ADMIN_PASSWORD_HASH: Optional[str] = Field(default=None, description="bcrypt hash of the admin password")
    BCRYPT_ROUNDS: int = Field(default=12, ge=4, le=15, description="BCrypt rounds")

    # CORS Configuration
    CORS_ORIGINS: List[str] = Field(
        default=[
            "http://localhost:3000",
            "http://127.0.0.1:3000",
            "http://localhost:5173",  # Vite dev server
            "http://127.0.0.1:5173"
        ],
        description="CORS allowed origins"
    )

    # Billing
    PUBLIC_BASE_URL: str = Field(default="http://localhost:5173/#", description="Base URL used in shared invoice links")
    WHATSAPP_COUNTRY_CODE: str = Field(default="91", description="Country prefix for wa.me links")
    DEFAULT_SESSION_LOCATION: str = Field(default="MAKER WORKS", description="Location stamped on synthesized sessions")
    INVOICE_DUE_DAYS: int = Field(default=7, ge=0, le=90, description="Days after creation an invoice falls due")

    # Logging Configuration
    LOG_LEVEL: str = Field(default="INFO", description="Logging level")

    @field_validator("ENV")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        allowed_envs = ["dev", "development", "test", "staging", "prod", "production"]
        if v.lower() not in allowed_envs:
            raise ValueError(f"ENV must be one of: {allowed_envs}")
        return v.lower()

    @field_validator("DATABASE_URL")
    @classmethod
    def validate_database_url(cls, v: str) -> str:
        allowed_prefixes = (
            "postgresql://",
            "postgresql+psycopg2://",
            "sqlite://",
        )
        if not v.startswith(allowed_prefixes):
            raise ValueError("DATABASE_URL must be a postgresql, postgresql+psycopg2 or sqlite connection string")
        return v

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        allowed_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in allowed_levels:
            raise ValueError(f"LOG_LEVEL must be one of: {allowed_levels}")
        return v.upper()

    @field_validator("WHATSAPP_COUNTRY_CODE")
    @classmethod
    def validate_country_code(cls, v: str) -> str:
        digits = v.strip().lstrip("+")
        if not digits.isdigit():
            raise ValueError("WHATSAPP_COUNTRY_CODE must be numeric")
        return digits

    @field_validator("CORS_ORIGINS", mode="before")
    @classmethod
    def parse_cors_origins(cls, v):
        if isinstance(v, str):
            # Handle comma-separated string
            return [origin.strip() for origin in v.split(",") if origin.strip()]
        return v

    @property
    def is_development(self) -> bool:
        """Check if running in development mode"""
        return self.ENV in ["dev", "development", "test"]

    @property
    def is_production(self) -> bool:
        """Check if running in production mode"""
        return self.ENV in ["prod", "production"]

    def get_cors_config(self) -> dict:
        """Get CORS configuration for FastAPI"""
        return {
            "allow_origins": self.CORS_ORIGINS,
            "allow_credentials": True,
            "allow_methods": ["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
            "allow_headers": ["Content-Type", "Authorization", "Accept", "Origin"],
        }


# Create settings instance with validation
try:
    settings = Settings()
except Exception as e:
    print(f"Configuration error: {e}")
    print("Please check your .env file and environment variables")
    raise


def validate_critical_settings():
    """Validate critical settings that must be present"""
    critical_errors = []

    if settings.is_production:
        if settings.DATABASE_URL.startswith("sqlite"):
            critical_errors.append("DATABASE_URL must point at PostgreSQL in production")
        if not settings.ADMIN_PASSWORD_HASH:
            critical_errors.append("ADMIN_PASSWORD_HASH is required in production")

    if not settings.ADMIN_PASSWORD_HASH and not settings.is_production:
        print("WARNING: ADMIN_PASSWORD_HASH is not set. Admin login is disabled.")

    if critical_errors:
        error_msg = "Critical configuration errors:\n" + "\n".join(f"  - {error}" for error in critical_errors)
        raise ValueError(error_msg)


# Validate on import
validate_critical_settings()

__all__ = ["settings", "Settings"]
