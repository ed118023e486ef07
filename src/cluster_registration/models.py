"""Structured models for cluster registrations exchanged with the control plane."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

CLUSTER_NAME_PATTERN = r"^[0-9A-Za-z][A-Za-z0-9\-_]*$"
ARN_PATTERN = r"^arn:aws[a-zA-Z-]*:[a-z0-9-]+:[a-z0-9-]*:\d{0,12}:.+$"

# Opaque backend-assigned identity of a registration.
RegistrationHandle = str


class ConnectorProvider(str, Enum):
    """Kinds of externally managed clusters the connector can front."""

    EKS_ANYWHERE = "EKS_ANYWHERE"
    ANTHOS = "ANTHOS"
    GKE = "GKE"
    AKS = "AKS"
    OPENSHIFT = "OPENSHIFT"
    TANZU = "TANZU"
    RANCHER = "RANCHER"
    EC2 = "EC2"
    OTHER = "OTHER"


class ClusterStatus(str, Enum):
    """Statuses the control plane is known to report."""

    CREATING = "CREATING"
    ACTIVE = "ACTIVE"
    DELETING = "DELETING"
    FAILED = "FAILED"
    UPDATING = "UPDATING"
    PENDING = "PENDING"


class WireModel(BaseModel):
    """Base for models that round-trip through the control plane's camelCase JSON."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


class ConnectorConfigRequest(WireModel):
    provider: ConnectorProvider
    role_arn: str = Field(..., pattern=ARN_PATTERN, description="Role the connector assumes")


class RegistrationRequest(WireModel):
    """User-supplied configuration for a new registration."""

    name: str = Field(..., min_length=1, max_length=100, pattern=CLUSTER_NAME_PATTERN)
    connector_config: ConnectorConfigRequest
    tags: dict[str, str] = Field(default_factory=dict)

    def to_wire(self) -> dict[str, Any]:
        body = self.model_dump(by_alias=True, mode="json")
        if not self.tags:
            body.pop("tags", None)
        return body


class ConnectorConfig(WireModel):
    """Connector configuration as reported back, including the one-time activation."""

    provider: str | None = None
    role_arn: str | None = None
    activation_id: str | None = None
    activation_code: str | None = None
    activation_expiry: datetime | None = None


class CertificateAuthority(WireModel):
    data: str | None = None


class Oidc(WireModel):
    issuer: str | None = None


class ClusterIdentity(WireModel):
    oidc: Oidc | None = None


class KubernetesNetworkConfig(WireModel):
    service_ipv4_cidr: str | None = None
    service_ipv6_cidr: str | None = None
    ip_family: str | None = None


class VpcConfig(WireModel):
    subnet_ids: list[str] = Field(default_factory=list)
    security_group_ids: list[str] = Field(default_factory=list)
    cluster_security_group_id: str | None = None
    vpc_id: str | None = None
    endpoint_public_access: bool | None = None
    endpoint_private_access: bool | None = None
    public_access_cidrs: list[str] = Field(default_factory=list)


class LogSetup(WireModel):
    types: list[str] = Field(default_factory=list)
    enabled: bool | None = None


class ClusterLogging(WireModel):
    cluster_logging: list[LogSetup] = Field(default_factory=list)

    def enabled_types(self) -> list[str]:
        return sorted({t for setup in self.cluster_logging if setup.enabled for t in setup.types})


class EncryptionProvider(WireModel):
    key_arn: str | None = None


class EncryptionConfig(WireModel):
    resources: list[str] = Field(default_factory=list)
    provider: EncryptionProvider | None = None


class HealthIssue(WireModel):
    code: str | None = None
    message: str | None = None
    resource_ids: list[str] = Field(default_factory=list)


class ClusterHealth(WireModel):
    issues: list[HealthIssue] = Field(default_factory=list)


class RegistrationRecord(WireModel):
    """A registration as described by the control plane."""

    name: str
    arn: str | None = None
    status: str | None = Field(default=None, description="Kept as text; new statuses must still parse")
    connector_config: ConnectorConfig | None = None
    tags: dict[str, str] = Field(default_factory=dict)
    created_at: datetime | None = None
    endpoint: str | None = None
    role_arn: str | None = None
    version: str | None = None
    platform_version: str | None = None
    certificate_authority: CertificateAuthority | None = None
    identity: ClusterIdentity | None = None
    kubernetes_network_config: KubernetesNetworkConfig | None = None
    resources_vpc_config: VpcConfig | None = None
    logging: ClusterLogging | None = None
    encryption_config: list[EncryptionConfig] = Field(default_factory=list)
    health: ClusterHealth | None = None

    @property
    def handle(self) -> RegistrationHandle:
        return self.name

    def failure_detail(self) -> str:
        """Backend-supplied explanation for a failed registration, if any."""
        if self.health and self.health.issues:
            return "; ".join(
                f"{issue.code}: {issue.message}" if issue.code else (issue.message or "")
                for issue in self.health.issues
            )
        return f"status {self.status}"
