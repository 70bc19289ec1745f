"""FirebaseAnonymousAuthProvider のユニットテスト

httpx.MockTransport で Identity Toolkit REST API を差し替え、
実際のネットワーク通信なしで検証する。
"""

import asyncio
import json

import httpx
import pytest
from advent.adapters.firebase_auth import FirebaseAnonymousAuthProvider
from advent.domain.errors import IdentityProviderError

_API_KEY = "test-api-key"


def _make_provider(handler, **kwargs) -> FirebaseAnonymousAuthProvider:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return FirebaseAnonymousAuthProvider(_API_KEY, http_client=client, **kwargs)


def _ok(request: httpx.Request) -> httpx.Response:
    return httpx.Response(
        200,
        json={
            "localId": "anon-uid",
            "idToken": "id-token",
            "refreshToken": "refresh-token",
            "expiresIn": "3600",
        },
    )


class TestSignInAnonymously:
    """sign_in_anonymously() のテスト"""

    def test_success_returns_identity(self):
        # Arrange
        requests = []

        def handler(request):
            requests.append(request)
            return _ok(request)

        provider = _make_provider(handler)

        # Act
        identity = asyncio.run(provider.sign_in_anonymously())

        # Assert
        assert identity.uid == "anon-uid"
        assert identity.is_anonymous is True
        assert identity.id_token == "id-token"
        assert provider.current_identity() == identity

        request = requests[0]
        assert request.method == "POST"
        assert request.url.host == "identitytoolkit.googleapis.com"
        assert request.url.path == "/v1/accounts:signUp"
        assert request.url.params["key"] == _API_KEY
        assert json.loads(request.content) == {"returnSecureToken": True}

    def test_emulator_host(self):
        urls = []

        def handler(request):
            urls.append(str(request.url))
            return _ok(request)

        provider = _make_provider(handler, emulator_host="localhost:9099")
        asyncio.run(provider.sign_in_anonymously())

        assert urls[0].startswith(
            "http://localhost:9099/identitytoolkit.googleapis.com/v1/accounts:signUp"
        )

    def test_error_response_raises(self):
        def handler(request):
            return httpx.Response(
                400, json={"error": {"code": 400, "message": "ADMIN_ONLY_OPERATION"}}
            )

        provider = _make_provider(handler)

        with pytest.raises(IdentityProviderError, match="ADMIN_ONLY_OPERATION") as exc_info:
            asyncio.run(provider.sign_in_anonymously())

        assert isinstance(exc_info.value.__cause__, httpx.HTTPStatusError)
        assert provider.current_identity() is None

    def test_transport_error_raises(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        provider = _make_provider(handler)

        with pytest.raises(IdentityProviderError):
            asyncio.run(provider.sign_in_anonymously())

    def test_non_json_success_body_raises(self):
        provider = _make_provider(
            lambda request: httpx.Response(200, text="<html>proxy error</html>")
        )

        with pytest.raises(IdentityProviderError, match="not valid JSON") as exc_info:
            asyncio.run(provider.sign_in_anonymously())

        assert isinstance(exc_info.value.__cause__, ValueError)
        assert provider.current_identity() is None

    def test_non_object_json_body_raises(self):
        provider = _make_provider(lambda request: httpx.Response(200, json=["x"]))

        with pytest.raises(IdentityProviderError):
            asyncio.run(provider.sign_in_anonymously())

    def test_response_without_local_id_returns_none(self):
        provider = _make_provider(lambda request: httpx.Response(200, json={}))

        assert asyncio.run(provider.sign_in_anonymously()) is None
        assert provider.current_identity() is None


class TestStateListeners:
    """状態リスナーのテスト"""

    def test_listeners_notified_on_sign_in_and_out(self):
        provider = _make_provider(_ok)
        seen = []
        provider.add_state_listener(seen.append)

        identity = asyncio.run(provider.sign_in_anonymously())
        provider.sign_out()

        assert seen == [identity, None]
        assert provider.current_identity() is None

    def test_removed_listener_not_notified(self):
        provider = _make_provider(_ok)
        seen = []
        handle = provider.add_state_listener(seen.append)

        provider.remove_state_listener(handle)
        provider.sign_out()

        assert seen == []

    def test_failing_listener_does_not_block_others(self):
        provider = _make_provider(_ok)
        seen = []

        def broken(identity):
            raise RuntimeError("boom")

        provider.add_state_listener(broken)
        provider.add_state_listener(seen.append)

        provider.sign_out()

        assert seen == [None]
