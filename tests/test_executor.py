import asyncio

import pytest
from google.genai import errors

from generation.credentials import CredentialGate
from generation.executor import RequestExecutor, is_entity_not_found

from conftest import FakeAPIError, FakeClient, FakeClientFactory, FakeHost


def _flaky(*outcomes):
    """Operation that yields the given outcomes in order and records the clients it saw"""
    outcomes = list(outcomes)
    seen = []

    async def operation(bound):
        seen.append(bound)
        item = outcomes.pop(0)
        if isinstance(item, BaseException):
            raise item
        return item

    return operation, seen


def test_success_uses_current_credential():
    factory = FakeClientFactory(FakeClient())
    executor = RequestExecutor(CredentialGate(fallback_credential="key-1"), client_factory=factory)
    operation, seen = _flaky("ok")

    assert asyncio.run(executor.execute(operation)) == "ok"
    assert factory.credentials == ["key-1"]
    assert seen[0].credential == "key-1"


def test_not_found_once_reselects_and_retries_on_fresh_client():
    host = FakeHost("old-key", "new-key")
    factory = FakeClientFactory(FakeClient(), FakeClient())
    executor = RequestExecutor(CredentialGate(host=host), client_factory=factory)
    operation, seen = _flaky(FakeAPIError(404, "Requested entity was not found."), "ok")

    assert asyncio.run(executor.execute(operation)) == "ok"
    assert host.selections == 1
    assert factory.credentials == ["old-key", "new-key"]
    assert seen[0].client is not seen[1].client


def test_not_found_twice_fails_after_single_reselection():
    host = FakeHost("old-key", "new-key", "third-key")
    factory = FakeClientFactory(FakeClient(), FakeClient())
    executor = RequestExecutor(CredentialGate(host=host), client_factory=factory)
    second = FakeAPIError(404, "still not found")
    operation, seen = _flaky(FakeAPIError(404, "not found"), second)

    with pytest.raises(FakeAPIError) as exc_info:
        asyncio.run(executor.execute(operation))

    assert exc_info.value is second
    assert host.selections == 1
    assert len(seen) == 2


def test_other_failures_propagate_without_reselection():
    host = FakeHost("key")
    factory = FakeClientFactory(FakeClient())
    executor = RequestExecutor(CredentialGate(host=host), client_factory=factory)
    operation, seen = _flaky(FakeAPIError(500, "Internal error"))

    with pytest.raises(FakeAPIError):
        asyncio.run(executor.execute(operation))

    assert host.selections == 0
    assert len(seen) == 1


def test_not_found_without_selector_propagates():
    factory = FakeClientFactory(FakeClient())
    executor = RequestExecutor(CredentialGate(fallback_credential="key"), client_factory=factory)
    operation, seen = _flaky(FakeAPIError(404, "not found"))

    with pytest.raises(FakeAPIError):
        asyncio.run(executor.execute(operation))

    assert len(seen) == 1


def test_sdk_client_error_is_classified_as_not_found():
    error = errors.ClientError(
        404,
        {"error": {"code": 404, "message": "Requested entity was not found.", "status": "NOT_FOUND"}},
    )
    assert is_entity_not_found(error)


@pytest.mark.parametrize(
    "error, expected",
    [
        (FakeAPIError(404, "whatever"), True),
        (RuntimeError("Requested entity was not found."), True),
        (RuntimeError("HTTP 404 from upstream"), True),
        (FakeAPIError(403, "Permission denied"), False),
        (ConnectionError("connection reset by peer"), False),
    ],
)
def test_is_entity_not_found(error, expected):
    assert is_entity_not_found(error) is expected


def test_failed_reselection_keeps_original_error_as_cause():
    class ClosedStdinHost:
        def selected_credential(self):
            return "old-key"

        async def open_credential_selector(self):
            raise EOFError("no input available")

    factory = FakeClientFactory(FakeClient())
    executor = RequestExecutor(CredentialGate(host=ClosedStdinHost()), client_factory=factory)
    not_found = FakeAPIError(404, "Requested entity was not found.")
    operation, seen = _flaky(not_found)

    with pytest.raises(EOFError) as exc_info:
        asyncio.run(executor.execute(operation))

    assert exc_info.value.__cause__ is not_found
    assert len(seen) == 1
