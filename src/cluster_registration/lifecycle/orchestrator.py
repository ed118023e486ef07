"""Orchestrator: register → wait → read, plus read, import and deregister."""

from __future__ import annotations

import logging
from typing import Callable

from cluster_registration.backend.base import BackendClient
from cluster_registration.config import Settings
from cluster_registration.errors import (
    BackendRequestError,
    ClusterRegistrationError,
    OperationCancelledError,
    OperationError,
    RegistrationNotFoundError,
    is_not_found,
)
from cluster_registration.lifecycle.reader import RecordReader
from cluster_registration.lifecycle.retry import PROPAGATION_TIMEOUT, register_with_retry
from cluster_registration.lifecycle.waiter import StatusPolicy, StatusWaiter
from cluster_registration.models import RegistrationRecord, RegistrationRequest
from cluster_registration.state import StateStore, TrackedRegistration
from cluster_registration.timing import SYSTEM_CLOCK, CancelToken, Clock

logger = logging.getLogger(__name__)

DEFAULT_CREATE_TIMEOUT = 20 * 60.0

TagPolicy = Callable[[dict[str, str]], dict[str, str]]


class ClusterRegistrationManager:
    """
    Externally visible create/read/import/delete operations for cluster registrations.

    Every failure is re-raised as OperationError naming the operation and the
    registration, with the original error chained. Cancellation propagates as
    OperationCancelledError. When a StateStore is given, it is kept in step: a
    registration is tracked only after a fully successful create or import, and
    dropped when a read finds it gone or it is deleted.
    """

    def __init__(
        self,
        client: BackendClient,
        waiter: StatusWaiter | None = None,
        reader: RecordReader | None = None,
        state: StateStore | None = None,
        create_timeout: float = DEFAULT_CREATE_TIMEOUT,
        propagation_timeout: float = PROPAGATION_TIMEOUT,
        delete_missing_ok: bool = True,
        tag_policy: TagPolicy | None = None,
        clock: Clock = SYSTEM_CLOCK,
    ) -> None:
        self._client = client
        self._clock = clock
        self.waiter = waiter or StatusWaiter(client, clock=clock)
        self.reader = reader or RecordReader(client)
        self.state = state
        self.create_timeout = create_timeout
        self.propagation_timeout = propagation_timeout
        self.delete_missing_ok = delete_missing_ok
        self.tag_policy = tag_policy

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        client: BackendClient,
        state: StateStore | None = None,
        clock: Clock = SYSTEM_CLOCK,
        **kwargs,
    ) -> ClusterRegistrationManager:
        waiter = StatusWaiter(
            client,
            policy=StatusPolicy.of(settings.target_statuses, settings.failure_statuses),
            poll_interval=settings.poll_interval,
            max_poll_interval=settings.max_poll_interval,
            not_found_checks=settings.not_found_checks,
            clock=clock,
        )
        return cls(
            client,
            waiter=waiter,
            state=state,
            create_timeout=settings.create_timeout,
            delete_missing_ok=settings.delete_missing_ok,
            clock=clock,
            **kwargs,
        )

    def create(
        self,
        request: RegistrationRequest,
        timeout: float | None = None,
        cancel: CancelToken | None = None,
    ) -> RegistrationRecord:
        """Register, wait for the registration to settle, and return its final record.

        A registration whose wait fails is left on the backend and is not tracked.
        """
        name = request.name
        if self.tag_policy is not None:
            request = request.model_copy(update={"tags": self.tag_policy(dict(request.tags))})
        logger.debug("Creating cluster registration: %s", request.model_dump(mode="json"))
        try:
            created = register_with_retry(
                self._client,
                request,
                propagation_timeout=self.propagation_timeout,
                clock=self._clock,
                cancel=cancel,
            )
            handle = created.handle
            logger.info("Registered %s; waiting for it to settle", handle)
            self.waiter.wait(handle, self.create_timeout if timeout is None else timeout, cancel)
            record = self.reader.read(handle, is_newly_created=True)
        except OperationCancelledError:
            raise
        except ClusterRegistrationError as e:
            raise OperationError("creating", name, e) from e

        if self.state is not None:
            self.state.put(TrackedRegistration(id=record.handle, record=record, request=request))
        return record

    def read(self, name: str) -> RegistrationRecord | None:
        """Return the current record, or None (and stop tracking it) if it no longer exists.

        Only registrations that are already tracked are refreshed; reading an
        untracked name leaves the state untouched.
        """
        try:
            record = self.reader.read(name, is_newly_created=False)
        except ClusterRegistrationError as e:
            raise OperationError("reading", name, e) from e

        if self.state is not None:
            tracked = self.state.get(name)
            if record is None:
                self.state.remove(name)
            elif tracked is not None:
                self.state.put(TrackedRegistration(id=name, record=record, request=tracked.request))
        return record

    def import_registration(self, name: str) -> RegistrationRecord:
        """Start tracking an existing registration by its identifier."""
        try:
            record = self.reader.read(name, is_newly_created=False)
            if record is None:
                raise RegistrationNotFoundError(
                    "cannot import non-existent cluster registration",
                    name=name,
                )
        except ClusterRegistrationError as e:
            raise OperationError("importing", name, e) from e

        if self.state is not None:
            self.state.put(TrackedRegistration(id=record.handle, record=record))
        return record

    def delete(self, name: str, cancel: CancelToken | None = None) -> None:
        """Deregister without waiting for the registration to disappear."""
        if cancel:
            cancel.raise_if_cancelled(name)
        logger.debug("Deleting cluster registration: %s", name)
        try:
            self._client.deregister_cluster(name)
        except BackendRequestError as e:
            if not (self.delete_missing_ok and is_not_found(e)):
                raise OperationError("deleting", name, e) from e
            logger.info("Cluster registration (%s) already deregistered", name)

        if self.state is not None:
            self.state.remove(name)
