"""Backend layer: clients for the managed control-plane service."""

from cluster_registration.backend.base import BackendClient
from cluster_registration.backend.http import HttpBackendClient, classify_error

__all__ = [
    "BackendClient",
    "HttpBackendClient",
    "classify_error",
]
