"""Configuration and environment for cluster registration."""

from __future__ import annotations

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from cluster_registration.models import ClusterStatus


class Settings(BaseSettings):
    """Registration settings loaded from environment and .env."""

    model_config = SettingsConfigDict(
        env_prefix="CLUSTER_REGISTRATION_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Control plane
    region: str = Field(default="us-east-1", description="Region of the control-plane service")
    endpoint_url: str | None = Field(
        default=None,
        description="Control-plane base URL; derived from region if unset",
    )
    request_timeout: float = Field(default=30.0, gt=0, description="Per-request timeout in seconds")

    # Lifecycle
    create_timeout: float = Field(
        default=20 * 60,
        gt=0,
        description="Seconds to wait for a new registration to settle",
    )
    poll_interval: float = Field(
        default=10.0,
        ge=2.0,
        description="Initial delay between status polls in seconds",
    )
    max_poll_interval: float = Field(
        default=30.0,
        ge=2.0,
        description="Upper bound on the delay between status polls",
    )
    not_found_checks: int = Field(
        default=20,
        ge=0,
        description="Consecutive not-found answers tolerated right after registering",
    )
    target_statuses: list[str] = Field(
        default_factory=lambda: [ClusterStatus.ACTIVE.value],
        description="Statuses that end the wait successfully",
    )
    failure_statuses: list[str] = Field(
        default_factory=lambda: [ClusterStatus.FAILED.value],
        description="Statuses that end the wait with a failure",
    )
    delete_missing_ok: bool = Field(
        default=True,
        description="Treat an already-deregistered cluster as a successful delete",
    )

    # Tracked state
    state_file: Path = Field(
        default=Path("cluster-registrations.json"),
        description="JSON file holding tracked registrations",
    )

    def resolved_endpoint(self) -> str:
        return self.endpoint_url or f"https://eks.{self.region}.amazonaws.com"


def get_settings() -> Settings:
    """Return validated settings instance."""
    return Settings()
