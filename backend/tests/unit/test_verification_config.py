"""Tests for CodeVerificationConfig and Settings-backed construction."""

import dataclasses
import os
from unittest.mock import patch

import pytest

from code_verification.core.config import Settings
from code_verification.core.errors import ConfigurationError
from code_verification.services.verification_config import CodeVerificationConfig


class TestDefaults:
    """Default values."""

    def test_defaults(self) -> None:
        """6 characters, 300 seconds, 3 attempts."""
        config = CodeVerificationConfig()
        assert config.code_length == 6
        assert config.expires_in_seconds == 300
        assert config.max_attempts == 3

    def test_is_immutable(self) -> None:
        """Config cannot be changed after construction."""
        config = CodeVerificationConfig()
        with pytest.raises(dataclasses.FrozenInstanceError):
            config.max_attempts = 10  # type: ignore[misc]


class TestValidation:
    """Invalid values raise ConfigurationError at construction."""

    @pytest.mark.parametrize("length", [0, 21])
    def test_code_length_bounds(self, length: int) -> None:
        """code_length must lie in 1..20."""
        with pytest.raises(ConfigurationError):
            CodeVerificationConfig(code_length=length)

    @pytest.mark.parametrize("seconds", [0, -5])
    def test_expires_in_must_be_positive(self, seconds: int) -> None:
        """expires_in_seconds must be > 0."""
        with pytest.raises(ConfigurationError, match="positive"):
            CodeVerificationConfig(expires_in_seconds=seconds)

    def test_max_attempts_cannot_be_negative(self) -> None:
        """max_attempts must be >= 0."""
        with pytest.raises(ConfigurationError, match="negative"):
            CodeVerificationConfig(max_attempts=-1)

    def test_zero_max_attempts_is_allowed(self) -> None:
        """max_attempts=0 is valid (first attempt revokes)."""
        assert CodeVerificationConfig(max_attempts=0).max_attempts == 0

    @pytest.mark.parametrize(
        "field", ["code_length", "expires_in_seconds", "max_attempts"]
    )
    def test_rejects_non_integers(self, field: str) -> None:
        """String values are rejected."""
        with pytest.raises(ConfigurationError, match="integer"):
            CodeVerificationConfig(**{field: "3"})  # type: ignore[arg-type]


class TestFromSettings:
    """CodeVerificationConfig.from_settings reads CODE_VERIFICATION_* settings."""

    def test_reads_environment(self) -> None:
        """Values come from CODE_VERIFICATION_* environment variables."""
        env = {
            "CODE_VERIFICATION_CODE_LENGTH": "8",
            "CODE_VERIFICATION_EXPIRES_IN": "900",
            "CODE_VERIFICATION_MAX_ATTEMPTS": "5",
        }
        with patch.dict(os.environ, env):
            config = CodeVerificationConfig.from_settings(Settings(_env_file=None))
        assert config == CodeVerificationConfig(
            code_length=8, expires_in_seconds=900, max_attempts=5
        )

    def test_invalid_setting_raises_configuration_error(self) -> None:
        """An out-of-range setting fails when the config is built."""
        with patch.dict(os.environ, {"CODE_VERIFICATION_CODE_LENGTH": "40"}):
            app_settings = Settings(_env_file=None)
        with pytest.raises(ConfigurationError):
            CodeVerificationConfig.from_settings(app_settings)
