"""dynamotest error handling.

- SandboxFault hierarchy for unrecoverable environment/setup faults
- LoadError hierarchy for per-table create/seed failures
- Retry policy with exponential backoff for connection establishment
"""

from dynamotest.errors.base import (
    ConnectError,
    DisposeError,
    ErrorCode,
    ErrorContext,
    LoadError,
    MarshalError,
    ProvisionError,
    RetryExhaustedError,
    RuntimeUnavailableError,
    SandboxFault,
    SeedWriteError,
    SessionError,
    SessionNotInitializedError,
    TableCreateError,
)
from dynamotest.errors.retry import RetryConfig, RetryPolicy

__all__ = [
    # Base
    "ErrorCode",
    "ErrorContext",
    # Faults
    "SandboxFault",
    "RuntimeUnavailableError",
    "ProvisionError",
    "DisposeError",
    "ConnectError",
    "SessionNotInitializedError",
    "SessionError",
    "MarshalError",
    "RetryExhaustedError",
    # Load errors
    "LoadError",
    "TableCreateError",
    "SeedWriteError",
    # Retry
    "RetryConfig",
    "RetryPolicy",
]
