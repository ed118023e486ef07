import pytest

from cluster_registration.errors import (
    BackendRequestError,
    ErrorKind,
    RegistrationNotFoundError,
)
from cluster_registration.lifecycle.reader import RecordReader


def test_returns_record_when_present(backend):
    backend.seed("onprem-1", status="ACTIVE")

    record = RecordReader(backend).read("onprem-1")

    assert record is not None
    assert record.name == "onprem-1"


def test_missing_registration_reads_as_absent(backend, caplog):
    assert RecordReader(backend).read("gone", is_newly_created=False) is None
    assert "removing from state" in caplog.text


def test_missing_registration_right_after_create_is_an_error(backend):
    with pytest.raises(RegistrationNotFoundError) as exc_info:
        RecordReader(backend).read("gone", is_newly_created=True)

    assert exc_info.value.name == "gone"


@pytest.mark.parametrize("is_newly_created", [True, False])
def test_other_errors_are_always_fatal(backend, is_newly_created):
    backend.describe_errors.append(
        BackendRequestError("Rate exceeded", kind=ErrorKind.THROTTLED, code="ThrottlingException")
    )

    with pytest.raises(BackendRequestError) as exc_info:
        RecordReader(backend).read("onprem-1", is_newly_created=is_newly_created)

    assert exc_info.value.kind == ErrorKind.THROTTLED
    assert exc_info.value.name == "onprem-1"
