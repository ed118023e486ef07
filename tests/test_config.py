from pathlib import Path

import pytest
from pydantic import ValidationError

from cluster_registration.config import Settings, get_settings


@pytest.fixture(autouse=True)
def _isolated(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)


def test_defaults():
    settings = get_settings()

    assert settings.create_timeout == 20 * 60
    assert settings.target_statuses == ["ACTIVE"]
    assert settings.failure_statuses == ["FAILED"]
    assert settings.delete_missing_ok is True
    assert settings.resolved_endpoint() == "https://eks.us-east-1.amazonaws.com"


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("CLUSTER_REGISTRATION_ENDPOINT_URL", "http://localhost:4566")
    monkeypatch.setenv("CLUSTER_REGISTRATION_CREATE_TIMEOUT", "300")
    monkeypatch.setenv("CLUSTER_REGISTRATION_TARGET_STATUSES", '["PENDING"]')
    monkeypatch.setenv("CLUSTER_REGISTRATION_STATE_FILE", "/tmp/regs.json")

    settings = get_settings()

    assert settings.resolved_endpoint() == "http://localhost:4566"
    assert settings.create_timeout == 300
    assert settings.target_statuses == ["PENDING"]
    assert settings.state_file == Path("/tmp/regs.json")


def test_dotenv_is_read(tmp_path):
    (tmp_path / ".env").write_text("CLUSTER_REGISTRATION_REGION=ap-south-1\n")

    assert get_settings().region == "ap-south-1"


def test_poll_interval_floor_is_validated():
    with pytest.raises(ValidationError):
        Settings(poll_interval=0.5)
