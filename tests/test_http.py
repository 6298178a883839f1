"""Tests for the shared JSON POST helper."""

import asyncio
import json

import aiohttp
import pytest

from voice_translator.exceptions import AuthError, NetworkError, ServiceError
from voice_translator.services.http import post_json, require_credential


class FakeResponse:
    def __init__(self, status, body):
        self.status = status
        self._body = body

    async def text(self):
        return self._body

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        return False


class FakeSession:
    """Minimal stand-in for ``aiohttp.ClientSession.post``."""

    def __init__(self, status=200, body="{}", error=None):
        self.status = status
        self.body = body
        self.error = error
        self.requests = []

    def post(self, url, *, params=None, headers=None, json=None):
        self.requests.append({"url": url, "params": params, "headers": headers, "json": json})
        if self.error is not None:
            raise self.error
        return FakeResponse(self.status, self.body)


def _google_error(code, status, reason=None):
    error = {"code": code, "message": "API key not valid. Please pass a valid API key.", "status": status}
    if reason:
        error["details"] = [{"@type": "type.googleapis.com/google.rpc.ErrorInfo", "reason": reason}]
    return json.dumps({"error": error})


@pytest.mark.unit
class TestPostJson:

    def test_returns_decoded_object_and_sends_headers(self):
        session = FakeSession(body='{"results": []}')

        result = asyncio.run(
            post_json(
                "https://example.test/v1/op",
                {"a": 1},
                params={"key": "K"},
                headers={"X-goog-api-key": "K"},
                session=session,
            )
        )

        assert result == {"results": []}
        request = session.requests[0]
        assert request["params"] == {"key": "K"}
        assert request["json"] == {"a": 1}
        assert request["headers"]["Content-Type"] == "application/json"
        assert request["headers"]["X-goog-api-key"] == "K"

    def test_empty_body_is_empty_object(self):
        assert asyncio.run(post_json("https://example.test", {}, session=FakeSession(body=""))) == {}

    @pytest.mark.parametrize("status", [401, 403])
    def test_auth_statuses_raise_auth_error(self, status):
        session = FakeSession(status=status, body="denied")

        with pytest.raises(AuthError):
            asyncio.run(post_json("https://example.test", {}, session=session))

    def test_invalid_key_reason_on_400_raises_auth_error(self):
        session = FakeSession(status=400, body=_google_error(400, "INVALID_ARGUMENT", "API_KEY_INVALID"))

        with pytest.raises(AuthError, match="API key not valid"):
            asyncio.run(post_json("https://example.test", {}, session=session, service="Gemini"))

    def test_other_failures_raise_service_error_with_status(self):
        session = FakeSession(status=500, body=_google_error(500, "INTERNAL"))

        with pytest.raises(ServiceError) as excinfo:
            asyncio.run(post_json("https://example.test", {}, session=session))

        assert excinfo.value.status == 500
        assert not isinstance(excinfo.value, AuthError)

    def test_transport_failure_raises_network_error(self):
        session = FakeSession(error=aiohttp.ClientConnectionError("connection refused"))

        with pytest.raises(NetworkError, match="could not reach"):
            asyncio.run(post_json("https://example.test", {}, session=session))

    @pytest.mark.parametrize("body", ["not json", "[1, 2]"])
    def test_unreadable_body_raises_service_error(self, body):
        with pytest.raises(ServiceError):
            asyncio.run(post_json("https://example.test", {}, session=FakeSession(body=body)))


@pytest.mark.unit
class TestRequireCredential:

    @pytest.mark.parametrize("value", [None, "", "   "])
    def test_missing_credential(self, value):
        with pytest.raises(AuthError):
            require_credential(value)

    def test_present_credential_is_stripped(self):
        assert require_credential(" KEY ") == "KEY"
