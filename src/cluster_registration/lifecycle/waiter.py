"""Poll a registration until the control plane reports a stable status."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable

from cluster_registration.backend.base import BackendClient
from cluster_registration.errors import (
    BackendReportedFailureError,
    BackendRequestError,
    WaitTimeoutError,
    is_not_found,
)
from cluster_registration.models import ClusterStatus, RegistrationHandle, RegistrationRecord
from cluster_registration.timing import SYSTEM_CLOCK, CancelToken, Clock

logger = logging.getLogger(__name__)

# Floor for the delay between two Describe calls, to stay clear of rate limits
MIN_POLL_INTERVAL = 2.0
DEFAULT_POLL_INTERVAL = 10.0
DEFAULT_MAX_POLL_INTERVAL = 30.0
DEFAULT_NOT_FOUND_CHECKS = 20


class PollOutcome(str, Enum):
    PENDING = "pending"
    TARGET = "target"
    FAILURE = "failure"


@dataclass(frozen=True)
class StatusPolicy:
    """Splits backend statuses into target, failure and (everything else) pending."""

    target: frozenset[str] = field(default_factory=lambda: frozenset({ClusterStatus.ACTIVE.value}))
    failure: frozenset[str] = field(default_factory=lambda: frozenset({ClusterStatus.FAILED.value}))

    @classmethod
    def of(cls, target: Iterable[str], failure: Iterable[str]) -> StatusPolicy:
        return cls(target=frozenset(s.upper() for s in target), failure=frozenset(s.upper() for s in failure))

    def classify(self, status: str | None) -> PollOutcome:
        normalized = (status or "").upper()
        if normalized in self.target:
            return PollOutcome.TARGET
        if normalized in self.failure:
            return PollOutcome.FAILURE
        # Unrecognized statuses keep the wait going
        return PollOutcome.PENDING


class StatusWaiter:
    """Blocks until a registration reaches a terminal status or the timeout elapses."""

    def __init__(
        self,
        client: BackendClient,
        policy: StatusPolicy | None = None,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        max_poll_interval: float = DEFAULT_MAX_POLL_INTERVAL,
        not_found_checks: int = DEFAULT_NOT_FOUND_CHECKS,
        clock: Clock = SYSTEM_CLOCK,
    ) -> None:
        self._client = client
        self.policy = policy or StatusPolicy()
        self.poll_interval = max(poll_interval, MIN_POLL_INTERVAL)
        self.max_poll_interval = max(max_poll_interval, self.poll_interval)
        self.not_found_checks = not_found_checks
        self._clock = clock

    def wait(
        self,
        handle: RegistrationHandle,
        timeout: float,
        cancel: CancelToken | None = None,
    ) -> RegistrationRecord:
        """
        Poll Describe for `handle` and return the record once it reaches a target status.

        Raises BackendReportedFailureError on a failure status, WaitTimeoutError when
        `timeout` seconds pass first, and re-raises any other Describe error. A
        registration that is briefly invisible right after Register is tolerated for
        `not_found_checks` consecutive polls.
        """
        clock = self._clock
        deadline = clock.now() + timeout
        interval = self.poll_interval
        polls = 0
        not_found = 0
        last: RegistrationRecord | None = None

        while True:
            if cancel:
                cancel.raise_if_cancelled(handle)
            polls += 1
            try:
                record = self._client.describe_cluster(handle)
            except BackendRequestError as e:
                if not is_not_found(e) or not_found >= self.not_found_checks:
                    if e.name is None:
                        e.name = handle
                    raise
                not_found += 1
                logger.debug("Cluster registration %s not visible yet (check %d)", handle, not_found)
            else:
                not_found = 0
                last = record
                outcome = self.policy.classify(record.status)
                logger.debug("Cluster registration %s status=%s (poll %d)", handle, record.status, polls)
                if outcome == PollOutcome.TARGET:
                    return record
                if outcome == PollOutcome.FAILURE:
                    raise BackendReportedFailureError(
                        f"cluster registration ({handle}) failed: {record.failure_detail()}",
                        name=handle,
                        last_record=record,
                    )

            remaining = deadline - clock.now()
            if remaining <= 0:
                last_status = last.status if last else "not found"
                raise WaitTimeoutError(
                    f"timeout after {timeout:.0f}s waiting for cluster registration ({handle}) "
                    f"to become {'/'.join(sorted(self.policy.target))} (last status: {last_status})",
                    name=handle,
                    last_record=last,
                )
            clock.sleep(min(interval, remaining), cancel, handle)
            interval = min(interval * 2, self.max_poll_interval)
