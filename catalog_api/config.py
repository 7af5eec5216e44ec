"""
API configuration settings.
"""

import secrets
from typing import Optional

from pydantic import AliasChoices, Field, PrivateAttr, field_validator, model_validator
from pydantic_settings import BaseSettings

MIN_SECRET_LENGTH = 32


class APIConfig(BaseSettings):
    """API configuration settings."""

    # API Settings
    api_title: str = "Book Catalog API"
    api_version: str = "1.0.0"
    api_description: str = "A simple API for managing books"

    # Server Settings
    host: str = "0.0.0.0"
    port: int = 3001
    debug: bool = False

    # Database Settings
    mongodb_url: str = Field(
        default="mongodb://localhost:27017",
        validation_alias=AliasChoices("MONGODB_URL", "MONGO_URI"),
    )
    mongodb_database: str = "book_catalog"

    # Security Settings
    secret_key: str = Field(
        default="",
        validation_alias=AliasChoices("SECRET_KEY", "JWT_SECRET"),
    )
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 60
    bcrypt_rounds: int = 10

    # CORS Settings
    cors_origins: list = ["*"]
    cors_allow_credentials: bool = True
    cors_allow_methods: list = ["*"]
    cors_allow_headers: list = ["*"]

    # Logging
    log_level: str = "INFO"
    log_format: str = "json"
    log_file: Optional[str] = None

    _secret_key_generated: bool = PrivateAttr(default=False)

    model_config = {
        "env_file": ".env",
        "extra": "ignore",
        "populate_by_name": True,
    }

    @field_validator("bcrypt_rounds")
    @classmethod
    def validate_bcrypt_rounds(cls, v):
        """bcrypt accepts cost factors between 4 and 31."""
        if v < 4 or v > 31:
            raise ValueError("bcrypt_rounds must be between 4 and 31")
        return v

    @field_validator("access_token_expire_minutes")
    @classmethod
    def validate_token_lifetime(cls, v):
        if v < 1:
            raise ValueError("access_token_expire_minutes must be positive")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v):
        """Ensure log level is valid."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"log_level must be one of: {valid_levels}")
        return v.upper()

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v):
        """Ensure log format is valid."""
        valid_formats = ["json", "console"]
        if v.lower() not in valid_formats:
            raise ValueError(f"log_format must be one of: {valid_formats}")
        return v.lower()

    @model_validator(mode="after")
    def resolve_secret_key(self):
        """
        Require a signing secret outside debug mode.

        Debug runs without a secret get a random one, which invalidates all
        tokens whenever the process restarts.
        """
        if not self.secret_key:
            if not self.debug:
                raise ValueError("SECRET_KEY (or JWT_SECRET) must be set when debug is off")
            self.secret_key = secrets.token_urlsafe(48)
            self._secret_key_generated = True
        elif len(self.secret_key) < MIN_SECRET_LENGTH:
            raise ValueError(f"secret_key must be at least {MIN_SECRET_LENGTH} characters")
        return self

    @property
    def secret_key_generated(self) -> bool:
        """True when secret_key was generated for a debug run."""
        return self._secret_key_generated

    @property
    def access_token_ttl_seconds(self) -> int:
        return self.access_token_expire_minutes * 60


# Global config instance
config = APIConfig()
