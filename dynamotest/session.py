"""Process-wide DynamoDB Local session.

Some suites prefer one sandbox shared by every test over one sandbox per
test. The session is a lazily created singleton: it is started once
before the tests run and stopped once after they finish. Reading the
client before the session has started raises immediately instead of
handing out an unusable client.

Tests sharing the session share one emulator, so they must use unique
table names (see ``create_single_table``).

Example:
    >>> import sys
    >>> import pytest
    >>> from dynamotest import run_with_session
    >>>
    >>> sys.exit(run_with_session(lambda: pytest.main(["tests"])))

and inside a test:

    >>> from dynamotest import current_client
    >>> client = current_client()
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Iterator
from contextlib import contextmanager

from dynamotest.client import Client, new_dynamodb
from dynamotest.config import DynamoTestSettings
from dynamotest.errors import SessionError, SessionNotInitializedError

logger = logging.getLogger(__name__)

SandboxFactory = Callable[[DynamoTestSettings | None], tuple[Client, Callable[[], None]]]


class SandboxSession:
    """Singleton holding the shared client and its disposer."""

    _instance: SandboxSession | None = None
    _lock = threading.Lock()

    def __init__(self, factory: SandboxFactory = new_dynamodb) -> None:
        self._factory = factory
        self._client: Client | None = None
        self._dispose: Callable[[], None] | None = None
        self._state_lock = threading.Lock()

    @classmethod
    def get_instance(cls) -> SandboxSession:
        """Get the singleton session instance."""
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = cls()
        return cls._instance

    @classmethod
    def reset_instance(cls) -> None:
        """Drop the singleton without disposing anything (useful for testing)."""
        with cls._lock:
            cls._instance = None

    @property
    def is_started(self) -> bool:
        return self._client is not None

    @property
    def client(self) -> Client:
        """The shared client.

        Raises:
            SessionNotInitializedError: If the session has not been started.
        """
        client = self._client
        if client is None:
            raise SessionNotInitializedError()
        return client

    def start(self, settings: DynamoTestSettings | None = None) -> Client:
        """Provision the shared sandbox and connect to it.

        Raises:
            SessionError: If the session is already started.
        """
        with self._state_lock:
            if self._client is not None:
                raise SessionError(
                    "DynamoDB session is already started",
                    container_id=self._client.container_id,
                )
            client, dispose = self._factory(settings)
            self._client = client
            self._dispose = dispose
        logger.info(f"Started DynamoDB session on {client.endpoint}")
        return client

    def stop(self) -> None:
        """Dispose the shared sandbox. Does nothing if not started."""
        with self._state_lock:
            dispose = self._dispose
            self._client = None
            self._dispose = None
        if dispose is not None:
            dispose()
            logger.info("Stopped DynamoDB session")

    @contextmanager
    def scope(self, settings: DynamoTestSettings | None = None) -> Iterator[Client]:
        """Start the session for the duration of the block, always stopping it."""
        client = self.start(settings)
        try:
            yield client
        finally:
            self.stop()


def run_with_session(
    runner: Callable[[], int],
    settings: DynamoTestSettings | None = None,
) -> int:
    """Run a whole test collection against one shared sandbox.

    The sandbox is disposed when ``runner`` returns or raises.

    Args:
        runner: Runs the tests and returns the exit code, e.g.
            ``lambda: pytest.main([...])``.

    Returns:
        The runner's exit code, unchanged.
    """
    with SandboxSession.get_instance().scope(settings):
        return runner()


def current_client() -> Client:
    """The shared session client.

    Raises:
        SessionNotInitializedError: If no session has been started.
    """
    return SandboxSession.get_instance().client
