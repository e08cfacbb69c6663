"""Exception hierarchies for dynamotest.

dynamotest separates failures into two channels:

- SandboxFault: environment or programmer setup faults (Docker daemon
  unreachable, container fails to start or be removed, emulator never
  answers, session used before it was started, unmarshalable seed rows).
  Nothing inside a test helper can meaningfully recover from these, so
  they are never retried and should abort the run loudly.
- LoadError: per-table database failures raised while creating tables or
  writing seed items. They carry the offending table name and the
  underlying cause so a single test fails with a precise message while
  sibling tests are unaffected.

The two do not share a base class beyond Exception; catching one never
catches the other.

Example:
    try:
        load(client, setup)
    except LoadError as e:
        print(f"Error [{e.error_code.value}]: {e.message}")
        for suggestion in e.suggestions:
            print(f"  - {suggestion}")
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from dynamotest.data.seeding import TableState


class ErrorCode(Enum):
    """Standardized error codes for dynamotest.

    Error codes are organized by category:
    - E0xx: Container runtime errors
    - E1xx: Connection errors
    - E2xx: Session errors
    - E3xx: Table load errors
    - E4xx: Marshaling errors
    - E5xx: Resilience errors
    - E9xx: Unknown/internal errors
    """

    # Container runtime errors (E0xx)
    RUNTIME_UNAVAILABLE = "E001"
    PROVISION_FAILED = "E002"
    DISPOSE_FAILED = "E003"

    # Connection errors (E1xx)
    CONNECTION_FAILED = "E101"

    # Session errors (E2xx)
    SESSION_NOT_INITIALIZED = "E201"
    SESSION_STATE = "E202"

    # Table load errors (E3xx)
    TABLE_CREATE_FAILED = "E301"
    SEED_WRITE_FAILED = "E302"

    # Marshaling errors (E4xx)
    MARSHAL_FAILED = "E401"

    # Resilience errors (E5xx)
    RETRY_EXHAUSTED = "E501"

    # Unknown/internal errors (E9xx)
    UNKNOWN = "E999"

    @property
    def category(self) -> str:
        """Get the error category name."""
        code_num = int(self.value[1:])
        if code_num < 100:
            return "runtime"
        elif code_num < 200:
            return "connection"
        elif code_num < 300:
            return "session"
        elif code_num < 400:
            return "load"
        elif code_num < 500:
            return "marshal"
        elif code_num < 600:
            return "resilience"
        else:
            return "unknown"


@dataclass
class ErrorContext:
    """Structured context describing where a failure happened.

    Attributes:
        container_id: Identifier of the sandbox container, if any.
        endpoint: host:port the emulator is published on, if known.
        table_name: Table being created or seeded, if any.
        command: Container runtime command line that failed.
        stderr: Captured stderr of the failed command.
        extra: Additional context-specific information.
        timestamp: When the error occurred.
    """

    container_id: str | None = None
    endpoint: str | None = None
    table_name: str | None = None
    command: list[str] | None = None
    stderr: str | None = None
    extra: dict[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> dict[str, Any]:
        """Convert context to dictionary for serialization."""
        result = {
            "container_id": self.container_id,
            "endpoint": self.endpoint,
            "table_name": self.table_name,
            "command": self.command,
            "stderr": self.stderr,
            "extra": self.extra,
            "timestamp": self.timestamp.isoformat(),
        }
        return {k: v for k, v in result.items() if v is not None}

    def format_location(self) -> str:
        """Format the error location as a readable string."""
        parts = []
        if self.container_id:
            parts.append(f"container={self.container_id[:12]}")
        if self.endpoint:
            parts.append(f"endpoint={self.endpoint}")
        if self.table_name:
            parts.append(f"table={self.table_name}")
        return " > ".join(parts) if parts else "unknown location"


class _ErrorDetails:
    """Shared presentation for both error channels."""

    error_code: ErrorCode = ErrorCode.UNKNOWN
    default_message: str = "An unexpected error occurred"
    default_suggestions: list[str] = []
    recoverable: bool = False

    message: str
    context: ErrorContext
    cause: BaseException | None
    _suggestions: list[str] | None

    def _init_details(
        self,
        message: str | None,
        error_code: ErrorCode | None,
        context: ErrorContext | None,
        cause: BaseException | None,
        suggestions: list[str] | None,
        extra_context: dict[str, Any],
    ) -> None:
        self.message = message or self.default_message
        self.error_code = error_code or self.error_code
        self.context = context or ErrorContext()
        self.cause = cause
        self._suggestions = suggestions

        if extra_context:
            self.context.extra.update(extra_context)

    @property
    def suggestions(self) -> list[str]:
        """Get actionable suggestions for resolving this error."""
        if self._suggestions is not None:
            return self._suggestions
        return self.default_suggestions.copy()

    def __str__(self) -> str:
        parts = [f"[{self.error_code.value}] {self.message}"]

        location = self.context.format_location()
        if location != "unknown location":
            parts.append(f"at {location}")

        if self.cause is not None:
            parts.append(f"cause: {self.cause}")

        return " | ".join(parts)

    def format_verbose(self) -> str:
        """Format error with full details including suggestions."""
        lines = [
            f"Error [{self.error_code.value}]: {self.message}",
            "",
        ]

        location = self.context.format_location()
        if location != "unknown location":
            lines.append(f"Location: {location}")

        if self.context.command:
            lines.append(f"Command: {' '.join(self.context.command)}")

        if self.context.stderr:
            lines.append(f"Stderr: {self.context.stderr.strip()}")

        if self.cause is not None:
            lines.append(f"Cause: {self.cause}")

        if self.suggestions:
            lines.append("")
            lines.append("Suggestions:")
            for suggestion in self.suggestions:
                lines.append(f"  - {suggestion}")

        return "\n".join(lines)

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for serialization."""
        return {
            "error_code": self.error_code.value,
            "error_type": self.__class__.__name__,
            "message": self.message,
            "recoverable": self.recoverable,
            "suggestions": self.suggestions,
            "context": self.context.to_dict(),
            "cause": str(self.cause) if self.cause else None,
        }


class SandboxFault(_ErrorDetails, Exception):
    """Unrecoverable environment or setup fault.

    Raised for problems no retry or fallback inside a test helper can fix.
    Test code should let these propagate so the run aborts with the full
    message rather than continuing against a degraded sandbox.
    """

    default_message = "Sandbox environment fault"
    recoverable = False

    def __init__(
        self,
        message: str | None = None,
        error_code: ErrorCode | None = None,
        context: ErrorContext | None = None,
        cause: BaseException | None = None,
        suggestions: list[str] | None = None,
        **extra_context: Any,
    ) -> None:
        self._init_details(message, error_code, context, cause, suggestions, extra_context)
        super().__init__(self.message)


class RuntimeUnavailableError(SandboxFault):
    """The container runtime control plane cannot be reached."""

    error_code = ErrorCode.RUNTIME_UNAVAILABLE
    default_message = "Could not connect to Docker"
    default_suggestions = [
        "Verify Docker is installed: docker --version",
        "Ensure the Docker daemon is running: docker info",
        "Check DOCKER_HOST if using a remote or rootless daemon",
    ]


class ProvisionError(SandboxFault):
    """The runtime rejected or failed to start the emulator container."""

    error_code = ErrorCode.PROVISION_FAILED
    default_message = "Could not start DynamoDB Local"
    default_suggestions = [
        "Check the image can be pulled: docker pull amazon/dynamodb-local:latest",
        "Verify there are free ephemeral ports on the loopback interface",
    ]


class DisposeError(SandboxFault):
    """The emulator container could not be removed."""

    error_code = ErrorCode.DISPOSE_FAILED
    default_message = "Could not purge DynamoDB Local"
    default_suggestions = [
        "Make sure each sandbox is disposed exactly once",
        "Remove leftover containers manually: docker rm -f <container_id>",
    ]


class ConnectError(SandboxFault):
    """The emulator never accepted connections within the retry budget."""

    error_code = ErrorCode.CONNECTION_FAILED
    default_message = "Could not connect to the Docker instance of DynamoDB Local"
    default_suggestions = [
        "Raise DYNAMOTEST_CONNECT_MAX_ATTEMPTS on slow CI machines",
        "Inspect the container logs: docker logs <container_id>",
    ]


class SessionNotInitializedError(SandboxFault):
    """The process-wide session was accessed before it was started."""

    error_code = ErrorCode.SESSION_NOT_INITIALIZED
    default_message = "DynamoDB session has not been started"
    default_suggestions = [
        "Wrap the test run in run_with_session(...)",
        "Or request the dynamo_session_client pytest fixture",
    ]


class SessionError(SandboxFault):
    """The process-wide session was driven through an invalid transition."""

    error_code = ErrorCode.SESSION_STATE
    default_message = "Invalid DynamoDB session transition"


class MarshalError(SandboxFault):
    """A seed row could not be converted to a DynamoDB item."""

    error_code = ErrorCode.MARSHAL_FAILED
    default_message = "Could not marshal seed row"
    default_suggestions = [
        "Use str, int, Decimal, bool, bytes, list, dict or set values",
        "Pass a dict, a dataclass instance or a pydantic model",
    ]


class RetryExhaustedError(SandboxFault):
    """All retry attempts exhausted."""

    error_code = ErrorCode.RETRY_EXHAUSTED
    default_message = "All retry attempts exhausted"

    def __init__(
        self,
        message: str | None = None,
        attempts: int = 0,
        last_error: BaseException | None = None,
        **kwargs: Any,
    ) -> None:
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(message=message, cause=last_error, **kwargs)

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        result["attempts"] = self.attempts
        return result


class LoadError(_ErrorDetails, Exception):
    """A table could not be created or seeded.

    Attributes:
        table_name: Name of the table that failed.
        state: Per-table state when the failure was raised (always FAILED).
    """

    default_message = "Could not load table"
    recoverable = True

    def __init__(
        self,
        table_name: str,
        cause: BaseException | None = None,
        message: str | None = None,
        error_code: ErrorCode | None = None,
        context: ErrorContext | None = None,
        state: TableState | None = None,
        suggestions: list[str] | None = None,
        **extra_context: Any,
    ) -> None:
        self.table_name = table_name
        self.state = state
        context = context or ErrorContext()
        context.table_name = table_name
        message = message or f"{self.default_message} '{table_name}'"
        self._init_details(message, error_code, context, cause, suggestions, extra_context)
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        result["table_name"] = self.table_name
        result["state"] = self.state.value if self.state is not None else None
        return result


class TableCreateError(LoadError):
    """CreateTable failed for a table."""

    error_code = ErrorCode.TABLE_CREATE_FAILED
    default_message = "Could not create table"
    default_suggestions = [
        "Check every KeySchema attribute has an AttributeDefinitions entry",
        "Use a unique table name when sharing a sandbox between tests",
    ]


class SeedWriteError(LoadError):
    """BatchWriteItem failed, or left items unprocessed, for a table."""

    error_code = ErrorCode.SEED_WRITE_FAILED
    default_message = "Could not write data to table"
    default_suggestions = [
        "Make sure every item contains the table's key attributes",
        "Check key attribute types match AttributeDefinitions",
    ]
