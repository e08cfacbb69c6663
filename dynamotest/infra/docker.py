"""Docker backend for DynamoDB Local sandboxes."""

from __future__ import annotations

import logging
import subprocess
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum

from dynamotest.config import DynamoTestSettings, get_settings
from dynamotest.errors import (
    DisposeError,
    ErrorContext,
    ProvisionError,
    RuntimeUnavailableError,
)

logger = logging.getLogger(__name__)

_NOT_FOUND_MARKERS = ("no such object", "no such container")


class DockerError(Exception):
    """Base exception for Docker CLI operations."""

    def __init__(
        self,
        message: str,
        command: list[str] | None = None,
        stderr: str = "",
        returncode: int | None = None,
    ) -> None:
        super().__init__(message)
        self.command = command
        self.stderr = stderr
        self.returncode = returncode

    @property
    def is_not_found(self) -> bool:
        stderr = self.stderr.lower()
        return any(marker in stderr for marker in _NOT_FOUND_MARKERS)


class DockerNotFoundError(DockerError):
    """Raised when the Docker CLI is not installed or not on PATH."""

    pass


class SandboxStatus(Enum):
    """Container state as reported by ``docker inspect``."""

    CREATED = "created"
    RUNNING = "running"
    RESTARTING = "restarting"
    PAUSED = "paused"
    EXITED = "exited"
    DEAD = "dead"
    REMOVING = "removing"
    NOT_FOUND = "not_found"
    UNKNOWN = "unknown"

    @classmethod
    def from_state(cls, state: str) -> SandboxStatus:
        try:
            return cls(state.strip().lower())
        except ValueError:
            return cls.UNKNOWN


class DockerRuntime:
    """Thin wrapper over the ``docker`` CLI.

    Only the operations a sandbox needs are exposed: ping the daemon, pull
    a missing image, start a container with one published port, resolve
    that port, inspect the container state and remove it.
    """

    def __init__(self, command: str = "docker", timeout: float = 60.0) -> None:
        self.command = command
        self.timeout = timeout

    def _run_command(
        self, *args: str, check: bool = True, timeout: float | None = None
    ) -> subprocess.CompletedProcess[str]:
        """Run a docker command.

        ``timeout`` overrides the runtime's per-command timeout.

        Raises:
            DockerNotFoundError: If the docker executable cannot be found.
            DockerError: If the command times out, or fails and check=True.
        """
        cmd = [self.command, *args]
        logger.debug(f"Running docker command: {' '.join(cmd)}")

        try:
            result = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                check=False,
                timeout=self.timeout if timeout is None else timeout,
            )
        except FileNotFoundError as e:
            raise DockerNotFoundError(
                "Docker command not found. Please install Docker.",
                command=cmd,
            ) from e
        except subprocess.TimeoutExpired as e:
            raise DockerError(
                f"Docker command timed out: {' '.join(args)}",
                command=cmd,
            ) from e

        if check and result.returncode != 0:
            raise DockerError(
                f"Docker command failed: {' '.join(args)}",
                command=cmd,
                stderr=result.stderr,
                returncode=result.returncode,
            )

        return result

    def ping(self) -> str:
        """Return the daemon version, failing if the daemon is unreachable."""
        result = self._run_command("version", "--format", "{{.Server.Version}}")
        return result.stdout.strip()

    def has_image(self, image: str) -> bool:
        result = self._run_command("image", "inspect", "--format", "{{.Id}}", image, check=False)
        return result.returncode == 0

    def pull(self, image: str, timeout: float | None = None) -> None:
        """Pull ``image``, allowing ``timeout`` seconds instead of the per-command default."""
        self._run_command("pull", "--quiet", image, timeout=timeout)

    def run(self, image: str, container_port: int, host_ip: str) -> str:
        """Start a detached container publishing ``container_port`` on a free host port."""
        result = self._run_command(
            "run",
            "--detach",
            "--publish",
            f"{host_ip}::{container_port}/tcp",
            image,
        )
        container_id = result.stdout.strip().splitlines()[-1] if result.stdout.strip() else ""
        if not container_id:
            raise DockerError(
                "Docker run returned no container id",
                command=[self.command, "run", image],
                stderr=result.stderr,
            )
        return container_id

    def port(self, container_id: str, container_port: int) -> str:
        """Return the ``host:port`` a container port is published on."""
        result = self._run_command("port", container_id, f"{container_port}/tcp")
        for line in result.stdout.splitlines():
            line = line.strip()
            if line:
                return _normalize_host_port(line)
        raise DockerError(
            f"Container port {container_port}/tcp is not published",
            command=[self.command, "port", container_id],
            stderr=result.stderr,
        )

    def inspect_status(self, container_id: str) -> SandboxStatus:
        result = self._run_command(
            "inspect", "--format", "{{.State.Status}}", container_id, check=False
        )
        if result.returncode != 0:
            error = DockerError(
                f"Docker inspect failed for {container_id}",
                command=[self.command, "inspect", container_id],
                stderr=result.stderr,
                returncode=result.returncode,
            )
            if error.is_not_found:
                return SandboxStatus.NOT_FOUND
            raise error
        return SandboxStatus.from_state(result.stdout)

    def remove(self, container_id: str) -> None:
        """Force-remove a container together with its anonymous volumes.

        Raises:
            DockerError: If removal fails or the container does not exist.
        """
        result = self._run_command("rm", "--force", "--volumes", container_id)
        # --force turns "no such container" into a warning with exit code 0.
        error = DockerError(
            f"Docker rm found no container {container_id}",
            command=[self.command, "rm", "--force", "--volumes", container_id],
            stderr=result.stderr,
            returncode=result.returncode,
        )
        if error.is_not_found:
            raise error


def _normalize_host_port(value: str) -> str:
    host, _, port = value.rpartition(":")
    if host in ("0.0.0.0", "::", "[::]", ""):
        host = "localhost"
    return f"{host}:{port}"


@dataclass(frozen=True)
class Sandbox:
    """Handle to one running DynamoDB Local container.

    The container id is only meaningful between provisioning and disposal.
    Disposal is expected to happen exactly once; a second call fails like
    any other removal failure.
    """

    container_id: str
    endpoint: str
    runtime: DockerRuntime = field(repr=False, compare=False)

    @property
    def host(self) -> str:
        return self.endpoint.rpartition(":")[0]

    @property
    def port(self) -> int:
        return int(self.endpoint.rpartition(":")[2])

    @property
    def url(self) -> str:
        return f"http://{self.endpoint}"

    def status(self) -> SandboxStatus:
        return self.runtime.inspect_status(self.container_id)

    def dispose(self) -> None:
        """Remove the container and release its host port.

        Raises:
            DisposeError: If the runtime fails to remove the container.
        """
        try:
            self.runtime.remove(self.container_id)
        except DockerError as e:
            raise DisposeError(
                f"Could not purge DynamoDB Local container {self.container_id[:12]}",
                context=ErrorContext(
                    container_id=self.container_id,
                    endpoint=self.endpoint,
                    command=e.command,
                    stderr=e.stderr or None,
                ),
                cause=e,
            ) from e
        logger.info(f"Removed DynamoDB Local container {self.container_id[:12]}")


def provision(
    settings: DynamoTestSettings | None = None,
    runtime: DockerRuntime | None = None,
) -> tuple[Sandbox, Callable[[], None]]:
    """Start a DynamoDB Local container on a random loopback port.

    Returns:
        The sandbox handle and a disposer that removes the container.

    Raises:
        RuntimeUnavailableError: If the Docker daemon cannot be reached.
        ProvisionError: If the container cannot be started or its port resolved.
    """
    settings = settings or get_settings()
    runtime = runtime or DockerRuntime(settings.docker_command, settings.command_timeout)

    try:
        version = runtime.ping()
    except DockerError as e:
        raise RuntimeUnavailableError(
            f"Could not connect to docker: {e}",
            context=ErrorContext(command=e.command, stderr=e.stderr or None),
            cause=e,
        ) from e
    logger.debug(f"Docker daemon version {version}")

    if not runtime.has_image(settings.image):
        logger.info(f"Pulling {settings.image}")
        try:
            runtime.pull(settings.image, timeout=settings.pull_timeout)
        except DockerError as e:
            raise ProvisionError(
                f"Could not pull DynamoDB Local image {settings.image}",
                context=ErrorContext(command=e.command, stderr=e.stderr or None),
                cause=e,
                image=settings.image,
            ) from e

    try:
        container_id = runtime.run(settings.image, settings.container_port, settings.host_ip)
    except DockerError as e:
        raise ProvisionError(
            f"Could not start DynamoDB Local from {settings.image}",
            context=ErrorContext(command=e.command, stderr=e.stderr or None),
            cause=e,
            image=settings.image,
        ) from e

    try:
        endpoint = runtime.port(container_id, settings.container_port)
    except DockerError as e:
        # Do not leak a running container whose port we cannot reach.
        try:
            runtime.remove(container_id)
        except DockerError as cleanup_error:
            logger.warning(f"Could not remove container {container_id[:12]}: {cleanup_error}")
        raise ProvisionError(
            f"Could not resolve host port of DynamoDB Local container {container_id[:12]}",
            context=ErrorContext(
                container_id=container_id, command=e.command, stderr=e.stderr or None
            ),
            cause=e,
        ) from e

    logger.info(f"Using host:port of {endpoint}")
    sandbox = Sandbox(container_id=container_id, endpoint=endpoint, runtime=runtime)
    return sandbox, sandbox.dispose
