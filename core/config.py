"""
Centralized configuration management.
All environment variables and settings are defined here.
"""
import codecs
from typing import List, Optional

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from core.exceptions import ConfigurationError


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""
    
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )
    
    # Application
    app_name: str = Field(default="Settlement Analysis Service", alias="APP_NAME")
    host: str = Field(default="0.0.0.0", alias="HOST")
    port: int = Field(default=8000, alias="PORT")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    
    # Upload handling
    max_upload_mb: int = Field(default=10, alias="MAX_UPLOAD_MB")
    ledger_encoding: str = Field(default="utf-8", alias="LEDGER_ENCODING")
    cors_origins: List[str] = Field(default_factory=lambda: ["*"], alias="CORS_ORIGINS")
    
    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v):
        """Validate log level is one of the standard levels."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(f"Log level must be one of: {valid_levels}")
        return v_upper
    
    @field_validator("port")
    @classmethod
    def validate_port(cls, v):
        """Validate port is in valid range."""
        if not (1 <= v <= 65535):
            raise ValueError("Port must be between 1 and 65535")
        return v
    
    @field_validator("max_upload_mb")
    @classmethod
    def validate_max_upload(cls, v):
        """Validate upload ceiling."""
        if v < 1:
            raise ValueError("Max upload size must be at least 1 MB")
        if v > 100:
            raise ValueError("Max upload size should not exceed 100 MB")
        return v
    
    @field_validator("ledger_encoding")
    @classmethod
    def validate_encoding(cls, v):
        """Validate the ledger encoding is a known codec."""
        try:
            codecs.lookup(v)
        except LookupError:
            raise ValueError(f"Unknown ledger encoding: {v}")
        return v
    
    @property
    def max_upload_bytes(self) -> int:
        """Upload ceiling in bytes."""
        return self.max_upload_mb * 1024 * 1024


# Global settings instance
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """
    Get application settings singleton.
    
    Returns:
        Settings instance
    
    Raises:
        ConfigurationError: If environment values fail validation
    """
    global _settings
    if _settings is None:
        try:
            _settings = Settings()
        except ValidationError as e:
            raise ConfigurationError(
                "Invalid application settings",
                details={
                    "errors": [
                        {"field": ".".join(str(part) for part in err["loc"]), "message": err["msg"]}
                        for err in e.errors()
                    ]
                }
            ) from e
    return _settings


def reset_settings() -> None:
    """Reset settings singleton (useful for testing)."""
    global _settings
    _settings = None
