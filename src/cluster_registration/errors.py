"""Error kinds raised across the registration lifecycle."""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from cluster_registration.models import RegistrationRecord


class ErrorKind(str, Enum):
    """Stable discriminant assigned to backend failures at the client boundary."""

    DEPENDENCY_NOT_PROPAGATED = "dependency_not_propagated"
    NOT_FOUND = "not_found"
    ALREADY_EXISTS = "already_exists"
    INVALID_REQUEST = "invalid_request"
    ACCESS_DENIED = "access_denied"
    THROTTLED = "throttled"
    LIMIT_EXCEEDED = "limit_exceeded"
    SERVER = "server"
    TRANSPORT = "transport"
    UNKNOWN = "unknown"


class ClusterRegistrationError(Exception):
    """Base class for every failure surfaced by this package."""

    def __init__(self, message: str, *, name: str | None = None) -> None:
        super().__init__(message)
        self.name = name


class BackendRequestError(ClusterRegistrationError):
    """A control-plane request failed (transport, validation, or service error)."""

    def __init__(
        self,
        message: str,
        *,
        kind: ErrorKind = ErrorKind.UNKNOWN,
        name: str | None = None,
        code: str | None = None,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message, name=name)
        self.kind = kind
        self.code = code
        self.status_code = status_code

    def __str__(self) -> str:
        prefix = f"{self.code}: " if self.code else ""
        return f"{prefix}{self.args[0]}"


class DependencyNotPropagatedError(BackendRequestError):
    """A referenced dependency (e.g. an access role) is not visible to the backend yet."""

    def __init__(self, message: str, **kwargs) -> None:
        kwargs.setdefault("kind", ErrorKind.DEPENDENCY_NOT_PROPAGATED)
        super().__init__(message, **kwargs)


class RegistrationNotFoundError(BackendRequestError):
    """The backend has no registration under the requested name."""

    def __init__(self, message: str, **kwargs) -> None:
        kwargs.setdefault("kind", ErrorKind.NOT_FOUND)
        super().__init__(message, **kwargs)


def is_not_found(err: BaseException) -> bool:
    return isinstance(err, BackendRequestError) and err.kind == ErrorKind.NOT_FOUND


class WaitError(ClusterRegistrationError):
    """Waiting for a registration to settle did not succeed."""

    def __init__(
        self,
        message: str,
        *,
        name: str | None = None,
        last_record: RegistrationRecord | None = None,
    ) -> None:
        super().__init__(message, name=name)
        self.last_record = last_record

    @property
    def last_status(self) -> str | None:
        return self.last_record.status if self.last_record else None


class WaitTimeoutError(WaitError):
    """No terminal status was reached before the deadline."""


class BackendReportedFailureError(WaitError):
    """The backend moved the registration into a failure status."""


class OperationCancelledError(ClusterRegistrationError):
    """The caller aborted the operation."""


class OperationError(ClusterRegistrationError):
    """Terminal failure of a lifecycle operation, annotated with what was attempted."""

    def __init__(self, operation: str, name: str, cause: BaseException) -> None:
        super().__init__(f"error {operation} cluster registration ({name}): {cause}", name=name)
        self.operation = operation
        self.cause = cause
