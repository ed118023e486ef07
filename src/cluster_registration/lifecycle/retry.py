"""Register a cluster, retrying while a referenced role is still propagating."""

from __future__ import annotations

import logging
import uuid

from cluster_registration.backend.base import BackendClient
from cluster_registration.errors import BackendRequestError, DependencyNotPropagatedError
from cluster_registration.models import RegistrationRecord, RegistrationRequest
from cluster_registration.timing import SYSTEM_CLOCK, CancelToken, Clock

logger = logging.getLogger(__name__)

# Upper bound for cross-service identity propagation (not user-configurable)
PROPAGATION_TIMEOUT = 2 * 60.0
INITIAL_RETRY_DELAY = 0.5
MAX_RETRY_DELAY = 10.0


def _tag(err: BackendRequestError, name: str) -> BackendRequestError:
    if err.name is None:
        err.name = name
    return err


def register_with_retry(
    client: BackendClient,
    request: RegistrationRequest,
    *,
    propagation_timeout: float = PROPAGATION_TIMEOUT,
    clock: Clock = SYSTEM_CLOCK,
    cancel: CancelToken | None = None,
) -> RegistrationRecord:
    """
    Call Register until it stops failing with DependencyNotPropagatedError.

    Any other backend error aborts at once. When the propagation window is used
    up, one final unconditional attempt is made and its outcome is returned as-is;
    a dependency error from that attempt surfaces as a plain BackendRequestError.
    """
    name = request.name
    token = str(uuid.uuid4())
    deadline = clock.now() + propagation_timeout
    delay = INITIAL_RETRY_DELAY
    attempt = 0

    while True:
        if cancel:
            cancel.raise_if_cancelled(name)
        attempt += 1
        try:
            return client.register_cluster(request, token)
        except DependencyNotPropagatedError as e:
            if clock.now() >= deadline:
                break
            logger.debug(
                "Registering %s failed on attempt %d (%s); retrying in %.1fs",
                name,
                attempt,
                e,
                delay,
            )
        except BackendRequestError as e:
            raise _tag(e, name)

        clock.sleep(min(delay, max(deadline - clock.now(), 0.0)), cancel, name)
        delay = min(delay * 2, MAX_RETRY_DELAY)
        if clock.now() >= deadline:
            break

    if cancel:
        cancel.raise_if_cancelled(name)
    logger.info("Propagation window for %s elapsed after %d attempts; making a final attempt", name, attempt)
    try:
        return client.register_cluster(request, token)
    except DependencyNotPropagatedError as e:
        raise BackendRequestError(
            e.args[0],
            kind=e.kind,
            name=name,
            code=e.code,
            status_code=e.status_code,
        ) from e
    except BackendRequestError as e:
        raise _tag(e, name)
