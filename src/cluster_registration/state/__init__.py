"""Tracked state: registrations this tool manages, persisted as JSON."""

from cluster_registration.state.store import StateStore, TrackedRegistration, TrackedState

__all__ = [
    "StateStore",
    "TrackedRegistration",
    "TrackedState",
]
