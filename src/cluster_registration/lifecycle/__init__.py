"""Lifecycle layer: register with retry, wait until stable, read, deregister."""

from cluster_registration.lifecycle.orchestrator import ClusterRegistrationManager
from cluster_registration.lifecycle.reader import RecordReader
from cluster_registration.lifecycle.retry import PROPAGATION_TIMEOUT, register_with_retry
from cluster_registration.lifecycle.waiter import PollOutcome, StatusPolicy, StatusWaiter

__all__ = [
    "ClusterRegistrationManager",
    "PROPAGATION_TIMEOUT",
    "PollOutcome",
    "RecordReader",
    "StatusPolicy",
    "StatusWaiter",
    "register_with_retry",
]
