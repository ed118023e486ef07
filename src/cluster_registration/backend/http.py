"""REST/JSON client for the managed control-plane service."""

from __future__ import annotations

import logging
import uuid
from typing import Any
from urllib.parse import quote

import httpx
from pydantic import ValidationError

from cluster_registration.config import Settings
from cluster_registration.errors import (
    BackendRequestError,
    DependencyNotPropagatedError,
    ErrorKind,
    RegistrationNotFoundError,
)
from cluster_registration.models import RegistrationRecord, RegistrationRequest

logger = logging.getLogger(__name__)

ERROR_TYPE_HEADER = "x-amzn-ErrorType"

# Service error codes -> stable kinds
ERROR_CODE_KINDS: dict[str, ErrorKind] = {
    "ResourceNotFoundException": ErrorKind.NOT_FOUND,
    "NotFoundException": ErrorKind.NOT_FOUND,
    "ResourceInUseException": ErrorKind.ALREADY_EXISTS,
    "InvalidRequestException": ErrorKind.INVALID_REQUEST,
    "InvalidParameterException": ErrorKind.INVALID_REQUEST,
    "ClientException": ErrorKind.INVALID_REQUEST,
    "AccessDeniedException": ErrorKind.ACCESS_DENIED,
    "ThrottlingException": ErrorKind.THROTTLED,
    "ResourceLimitExceededException": ErrorKind.LIMIT_EXCEEDED,
    "ServerException": ErrorKind.SERVER,
    "ServiceUnavailableException": ErrorKind.SERVER,
}

# InvalidRequestException: Not existing role: arn:aws:iam::12345678:role/xxx
ROLE_NOT_PROPAGATED_MESSAGE = "Not existing role"


def _error_code(response: httpx.Response, body: dict[str, Any]) -> str | None:
    """Extract the service error code from the error header or JSON body."""
    raw = response.headers.get(ERROR_TYPE_HEADER) or body.get("__type") or body.get("code")
    if not raw:
        return None
    # Header form is "Code:uri", body form may be "namespace#Code"
    return str(raw).split(":", 1)[0].rsplit("#", 1)[-1] or None


def classify_error(
    code: str | None,
    message: str,
    status_code: int | None = None,
) -> ErrorKind:
    """Map a service error onto an ErrorKind; the only place free text is inspected."""
    if code == "InvalidRequestException" and ROLE_NOT_PROPAGATED_MESSAGE in message:
        return ErrorKind.DEPENDENCY_NOT_PROPAGATED
    if code in ERROR_CODE_KINDS:
        return ERROR_CODE_KINDS[code]
    if status_code == 404:
        return ErrorKind.NOT_FOUND
    if status_code == 429:
        return ErrorKind.THROTTLED
    if status_code is not None and status_code >= 500:
        return ErrorKind.SERVER
    return ErrorKind.UNKNOWN


def _build_error(kind: ErrorKind, message: str, **kwargs: Any) -> BackendRequestError:
    if kind == ErrorKind.DEPENDENCY_NOT_PROPAGATED:
        return DependencyNotPropagatedError(message, **kwargs)
    if kind == ErrorKind.NOT_FOUND:
        return RegistrationNotFoundError(message, **kwargs)
    return BackendRequestError(message, kind=kind, **kwargs)


class HttpBackendClient:
    """Talks to the control plane over HTTPS; request signing is delegated to `auth`."""

    def __init__(
        self,
        endpoint_url: str,
        timeout: float = 30.0,
        auth: httpx.Auth | None = None,
        headers: dict[str, str] | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.endpoint_url = endpoint_url.rstrip("/")
        self._http = httpx.Client(
            base_url=self.endpoint_url,
            timeout=timeout,
            auth=auth,
            headers={"Content-Type": "application/json", **(headers or {})},
            transport=transport,
        )

    @classmethod
    def from_settings(cls, settings: Settings, **kwargs: Any) -> HttpBackendClient:
        return cls(settings.resolved_endpoint(), timeout=settings.request_timeout, **kwargs)

    def __enter__(self) -> HttpBackendClient:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def close(self) -> None:
        self._http.close()

    def register_cluster(
        self,
        request: RegistrationRequest,
        client_request_token: str | None = None,
    ) -> RegistrationRecord:
        body = request.to_wire()
        body["clientRequestToken"] = client_request_token or str(uuid.uuid4())
        data = self._call("POST", "/cluster-registrations", request.name, json=body)
        return self._record(data, request.name)

    def describe_cluster(self, name: str) -> RegistrationRecord:
        data = self._call("GET", f"/clusters/{quote(name, safe='')}", name)
        return self._record(data, name)

    def deregister_cluster(self, name: str) -> RegistrationRecord:
        data = self._call("DELETE", f"/cluster-registrations/{quote(name, safe='')}", name)
        return self._record(data, name)

    def _call(self, method: str, path: str, name: str, **kwargs: Any) -> dict[str, Any]:
        logger.debug("%s %s%s", method, self.endpoint_url, path)
        try:
            response = self._http.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            raise BackendRequestError(
                f"request to {self.endpoint_url} failed: {e}",
                kind=ErrorKind.TRANSPORT,
                name=name,
            ) from e

        try:
            body = response.json() if response.content else {}
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {}

        if response.is_success:
            return body

        code = _error_code(response, body)
        message = str(body.get("message") or body.get("Message") or response.reason_phrase)
        kind = classify_error(code, message, response.status_code)
        logger.debug("Request for %s failed: status=%s code=%s kind=%s", name, response.status_code, code, kind.value)
        raise _build_error(kind, message, name=name, code=code, status_code=response.status_code)

    def _record(self, data: dict[str, Any], name: str) -> RegistrationRecord:
        cluster = data.get("cluster")
        if not isinstance(cluster, dict):
            raise BackendRequestError(
                "response did not contain a cluster",
                kind=ErrorKind.UNKNOWN,
                name=name,
            )
        try:
            return RegistrationRecord.model_validate(cluster)
        except ValidationError as e:
            raise BackendRequestError(
                f"malformed cluster in response: {e.error_count()} validation error(s)",
                kind=ErrorKind.UNKNOWN,
                name=name,
            ) from e
