"""Configuration settings and loading."""

from __future__ import annotations

from functools import lru_cache
from typing import Any

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from dynamotest.errors.retry import RetryConfig

# Unpinned; sandboxes track the newest emulator release.
DYNAMODB_LOCAL_REPOSITORY = "amazon/dynamodb-local"
DYNAMODB_LOCAL_TAG = "latest"


class DynamoTestSettings(BaseSettings):
    """Configuration for dynamotest sandboxes."""

    model_config = SettingsConfigDict(
        env_prefix="DYNAMOTEST_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    repository: str = DYNAMODB_LOCAL_REPOSITORY
    tag: str = DYNAMODB_LOCAL_TAG
    container_port: int = 8000
    host_ip: str = "127.0.0.1"
    docker_command: str = "docker"
    command_timeout: float = 60.0
    pull_timeout: float = 600.0

    region: str = "us-east-1"
    connect_max_attempts: int = 10
    connect_base_delay: float = 0.5
    connect_max_delay: float = 5.0
    connect_timeout: float = 5.0
    read_timeout: float = 30.0

    # botocore defaults to 3 attempts, too fragile when a busy CI daemon
    # runs many sandboxes at once.
    create_table_max_attempts: int = 10

    @field_validator("container_port")
    @classmethod
    def validate_port(cls, v: int) -> int:
        if not 1 <= v <= 65535:
            raise ValueError("container_port must be between 1 and 65535")
        return v

    @field_validator(
        "connect_max_attempts",
        "create_table_max_attempts",
        "command_timeout",
        "pull_timeout",
        "connect_timeout",
        "read_timeout",
    )
    @classmethod
    def validate_positive(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("must be greater than zero")
        return v

    @field_validator("connect_base_delay", "connect_max_delay")
    @classmethod
    def validate_delay(cls, v: float) -> float:
        if v < 0:
            raise ValueError("delay cannot be negative")
        return v

    @property
    def image(self) -> str:
        return f"{self.repository}:{self.tag}"

    def connect_retry_config(self) -> RetryConfig:
        """Retry configuration used while waiting for the emulator."""
        return RetryConfig(
            max_attempts=self.connect_max_attempts,
            base_delay=self.connect_base_delay,
            max_delay=self.connect_max_delay,
        )


@lru_cache(maxsize=1)
def get_settings() -> DynamoTestSettings:
    """Return the process-wide settings, read once from the environment."""
    return DynamoTestSettings()


def load_settings(**overrides: Any) -> DynamoTestSettings:
    """Build fresh settings from the environment plus explicit overrides.

    Priority: overrides > env vars > .env file > defaults
    """
    return DynamoTestSettings(**overrides)
