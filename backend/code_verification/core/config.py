"""Application configuration loaded from environment variables.

Settings for the database, verification code defaults and email
delivery. Uses pydantic-settings for validation and .env file support.
"""

from pydantic import AliasChoices, Field, SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Known insecure default password that must not be used in production
# Security: Runtime check in check_production_security() prevents use in production
_INSECURE_DEFAULT_PASSWORD = "code_verification_dev_password"  # nosec B105


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Database
    database_host: str = "localhost"
    database_port: int = 5432
    database_name: str = "code_verification"
    database_user: str = "code_verification_user"
    database_password: str = _INSECURE_DEFAULT_PASSWORD
    database_pool_size: int = 5
    database_max_overflow: int = 10
    database_echo: bool = False

    # Application
    environment: str = "development"

    # Verification codes; the CODEDIVE_-prefixed names are also accepted
    code_verification_code_length: int = Field(
        default=6,  # max 20 (code column width)
        validation_alias=AliasChoices(
            "code_verification_code_length",
            "codedive_code_verification_code_length",
        ),
    )
    code_verification_expires_in: int = Field(
        default=300,  # seconds
        validation_alias=AliasChoices(
            "code_verification_expires_in",
            "codedive_code_verification_expires_in",
        ),
    )
    code_verification_max_attempts: int = Field(
        default=3,
        validation_alias=AliasChoices(
            "code_verification_max_attempts",
            "codedive_code_verification_max_attempts",
        ),
    )

    # Email delivery of issued codes (Resend)
    email_from: str = "noreply@example.com"
    resend_api_key: SecretStr = SecretStr("")
    email_delivery_enabled: bool = False

    @property
    def database_url(self) -> str:
        """Async database URL for SQLAlchemy."""
        return (
            f"postgresql+asyncpg://{self.database_user}:{self.database_password}"
            f"@{self.database_host}:{self.database_port}/{self.database_name}"
        )

    @property
    def database_url_sync(self) -> str:
        """Sync database URL for Alembic."""
        return (
            f"postgresql://{self.database_user}:{self.database_password}"
            f"@{self.database_host}:{self.database_port}/{self.database_name}"
        )

    @model_validator(mode="after")
    def check_production_security(self) -> "Settings":
        """Validate production security requirements.

        Checks:
        - Database password must not be the default in production
        - RESEND_API_KEY must be set when email delivery is enabled in production
        """
        if self.environment == "production":
            if self.database_password == _INSECURE_DEFAULT_PASSWORD:
                msg = (
                    "Cannot use default database password in production. "
                    "Set DATABASE_PASSWORD environment variable to a secure value."
                )
                raise ValueError(msg)

            if (
                self.email_delivery_enabled
                and not self.resend_api_key.get_secret_value()
            ):
                msg = (
                    "RESEND_API_KEY must be set when EMAIL_DELIVERY_ENABLED=true "
                    "in production."
                )
                raise ValueError(msg)

        return self


settings = Settings()
