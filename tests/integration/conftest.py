"""Shared helpers for tests that run against a real DynamoDB Local container.

These tests require a reachable Docker daemon. Skip if not available.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Any

import pytest

from dynamotest.infra.docker import DockerError, DockerRuntime


@lru_cache(maxsize=1)
def docker_available() -> bool:
    try:
        DockerRuntime(timeout=15.0).ping()
    except DockerError:
        return False
    return True


requires_docker = [
    pytest.mark.integration,
    pytest.mark.skipif(not docker_available(), reason="Docker daemon is not available"),
]


def hash_key_schema(name: str, attribute: str = "id") -> dict[str, Any]:
    return {
        "TableName": name,
        "AttributeDefinitions": [{"AttributeName": attribute, "AttributeType": "S"}],
        "KeySchema": [{"AttributeName": attribute, "KeyType": "HASH"}],
        "BillingMode": "PAY_PER_REQUEST",
    }
