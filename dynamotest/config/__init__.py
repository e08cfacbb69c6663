"""Configuration for dynamotest.

Settings are read from ``DYNAMOTEST_*`` environment variables (or a
``.env`` file) through pydantic-settings.
"""

from dynamotest.config.settings import (
    DYNAMODB_LOCAL_REPOSITORY,
    DYNAMODB_LOCAL_TAG,
    DynamoTestSettings,
    get_settings,
    load_settings,
)

__all__ = [
    "DYNAMODB_LOCAL_REPOSITORY",
    "DYNAMODB_LOCAL_TAG",
    "DynamoTestSettings",
    "get_settings",
    "load_settings",
]
