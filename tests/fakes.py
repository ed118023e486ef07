"""In-memory control plane and virtual clock for exercising the lifecycle."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Callable

from cluster_registration.errors import (
    BackendRequestError,
    ErrorKind,
    OperationCancelledError,
    RegistrationNotFoundError,
)
from cluster_registration.models import (
    ConnectorConfig,
    RegistrationRecord,
    RegistrationRequest,
)
from cluster_registration.timing import CancelToken

ROLE_ARN = "arn:aws:iam::123456789012:role/eks-connector-agent"


class FakeClock:
    """Virtual monotonic clock; sleeping advances time instantly."""

    def __init__(self, start: float = 0.0) -> None:
        self.t = start
        self.sleeps: list[float] = []
        self.on_sleep: Callable[[float], None] | None = None

    def now(self) -> float:
        return self.t

    def sleep(self, seconds: float, cancel: CancelToken | None = None, name: str | None = None) -> None:
        if cancel:
            cancel.raise_if_cancelled(name)
        self.sleeps.append(seconds)
        if self.on_sleep:
            self.on_sleep(seconds)
        self.t += max(seconds, 0.0)
        if cancel and cancel.cancelled:
            raise OperationCancelledError("operation cancelled", name=name)


class FakeBackend:
    """
    Control plane double.

    `statuses` is consumed one entry per successful Describe; the last entry
    sticks. `register_errors` are raised by successive Register calls before
    any succeeds. `hidden_polls` makes the next N Describe calls answer
    not-found, as right after registration.
    """

    def __init__(
        self,
        statuses: list[str] | None = None,
        register_errors: list[BaseException] | None = None,
        hidden_polls: int = 0,
    ) -> None:
        self.clusters: dict[str, RegistrationRecord] = {}
        self.statuses = list(statuses or ["ACTIVE"])
        self.register_errors = list(register_errors or [])
        self.describe_errors: list[BaseException] = []
        self.hidden_polls = hidden_polls
        self.register_calls = 0
        self.describe_calls = 0
        self.deregister_calls = 0
        self.tokens: list[str | None] = []
        self.requests: list[RegistrationRequest] = []

    def seed(self, name: str, status: str = "PENDING") -> RegistrationRecord:
        record = RegistrationRecord(
            name=name,
            arn=f"arn:aws:eks:us-east-1:123456789012:cluster/{name}",
            status=status,
        )
        self.clusters[name] = record
        return record

    def register_cluster(
        self,
        request: RegistrationRequest,
        client_request_token: str | None = None,
    ) -> RegistrationRecord:
        self.register_calls += 1
        self.tokens.append(client_request_token)
        self.requests.append(request)
        if self.register_errors:
            raise self.register_errors.pop(0)
        if request.name in self.clusters:
            raise BackendRequestError(
                f"Cluster already exists with name: {request.name}",
                kind=ErrorKind.ALREADY_EXISTS,
                code="ResourceInUseException",
                status_code=409,
            )
        record = RegistrationRecord(
            name=request.name,
            arn=f"arn:aws:eks:us-east-1:123456789012:cluster/{request.name}",
            status="CREATING",
            connector_config=ConnectorConfig(
                provider=request.connector_config.provider.value,
                role_arn=request.connector_config.role_arn,
                activation_id="00000000-1111-2222-3333-444444444444",
                activation_code="activation-code",
                activation_expiry=datetime(2030, 1, 1, tzinfo=timezone.utc) + timedelta(days=3),
            ),
            tags=dict(request.tags),
        )
        self.clusters[request.name] = record
        return record.model_copy(deep=True)

    def describe_cluster(self, name: str) -> RegistrationRecord:
        self.describe_calls += 1
        if self.describe_errors:
            raise self.describe_errors.pop(0)
        if self.hidden_polls > 0:
            self.hidden_polls -= 1
            raise RegistrationNotFoundError(f"No cluster found for name: {name}.", code="ResourceNotFoundException")
        if name not in self.clusters:
            raise RegistrationNotFoundError(f"No cluster found for name: {name}.", code="ResourceNotFoundException")
        status = self.statuses.pop(0) if len(self.statuses) > 1 else self.statuses[0]
        record = self.clusters[name]
        record.status = status
        return record.model_copy(deep=True)

    def deregister_cluster(self, name: str) -> RegistrationRecord:
        self.deregister_calls += 1
        record = self.clusters.pop(name, None)
        if record is None:
            raise RegistrationNotFoundError(f"No cluster found for name: {name}.", code="ResourceNotFoundException")
        record.status = "DELETING"
        return record
