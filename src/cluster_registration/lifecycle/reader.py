"""Read a registration, reconciling out-of-band deletion."""

from __future__ import annotations

import logging

from cluster_registration.backend.base import BackendClient
from cluster_registration.errors import BackendRequestError, is_not_found
from cluster_registration.models import RegistrationRecord

logger = logging.getLogger(__name__)


class RecordReader:
    """Describes registrations and decides whether a missing one is an error."""

    def __init__(self, client: BackendClient) -> None:
        self._client = client

    def read(self, name: str, is_newly_created: bool = False) -> RegistrationRecord | None:
        """
        Return the current record, or None when a tracked registration is gone.

        Right after creation a missing registration is an inconsistency and the
        not-found error is raised instead.
        """
        try:
            return self._client.describe_cluster(name)
        except BackendRequestError as e:
            if e.name is None:
                e.name = name
            if is_not_found(e) and not is_newly_created:
                logger.warning("Cluster registration (%s) not found, removing from state", name)
                return None
            raise
