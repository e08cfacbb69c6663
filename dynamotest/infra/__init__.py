"""Sandbox provisioning on the local Docker daemon."""

from dynamotest.infra.docker import (
    DockerError,
    DockerNotFoundError,
    DockerRuntime,
    Sandbox,
    SandboxStatus,
    provision,
)

__all__ = [
    "DockerError",
    "DockerNotFoundError",
    "DockerRuntime",
    "Sandbox",
    "SandboxStatus",
    "provision",
]
