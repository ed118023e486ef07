import pytest

from cluster_registration.models import RegistrationRequest

from fakes import ROLE_ARN, FakeBackend, FakeClock


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def backend():
    return FakeBackend()


@pytest.fixture
def make_request():
    def _make(name="onprem-1", provider="OTHER", role_arn=ROLE_ARN, tags=None):
        return RegistrationRequest.model_validate(
            {
                "name": name,
                "connector_config": {"provider": provider, "role_arn": role_arn},
                "tags": tags or {},
            }
        )

    return _make
