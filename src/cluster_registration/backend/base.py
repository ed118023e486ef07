"""Backend client contract consumed by the lifecycle components."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from cluster_registration.models import RegistrationRecord, RegistrationRequest


@runtime_checkable
class BackendClient(Protocol):
    """Remote control-plane operations.

    Implementations must be safe to share between concurrent callers and must
    raise :class:`~cluster_registration.errors.BackendRequestError` (or a
    subclass) with a classified ``kind`` for every failed request.
    """

    def register_cluster(
        self,
        request: RegistrationRequest,
        client_request_token: str | None = None,
    ) -> RegistrationRecord:
        """Register an external cluster and return the new record."""
        ...

    def describe_cluster(self, name: str) -> RegistrationRecord:
        """Return the current record; raise RegistrationNotFoundError if absent."""
        ...

    def deregister_cluster(self, name: str) -> RegistrationRecord:
        """Deregister the cluster and return its last record."""
        ...
