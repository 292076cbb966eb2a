from unittest.mock import patch

import pytest
import requests

from accounts.identity import (
    IdentityProviderError,
    InvalidCredentials,
    refresh_session,
    sign_in_with_password,
)
from conftest import make_response


class TestSignIn:
    def test_success(self):
        payload = {
            "localId": "uid-1",
            "email": "Warden@Campus.edu",
            "idToken": "id-tok",
            "refreshToken": "ref-tok",
            "expiresIn": "3600",
        }
        with patch("accounts.identity.requests.post", return_value=make_response(payload=payload)) as post:
            identity = sign_in_with_password("warden@campus.edu", "pw")
        assert identity == {
            "uid": "uid-1",
            "email": "warden@campus.edu",
            "id_token": "id-tok",
            "refresh_token": "ref-tok",
            "expires_in": 3600,
        }
        assert post.call_args.args[0] == "https://identity.test/v1/accounts:signInWithPassword"
        assert post.call_args.kwargs["params"] == {"key": "test-api-key"}
        assert post.call_args.kwargs["json"]["returnSecureToken"] is True

    @pytest.mark.parametrize("code", ["INVALID_PASSWORD", "EMAIL_NOT_FOUND", "INVALID_LOGIN_CREDENTIALS"])
    def test_rejected_credentials(self, code):
        resp = make_response(status_code=400, payload={"error": {"message": code}})
        with patch("accounts.identity.requests.post", return_value=resp):
            with pytest.raises(InvalidCredentials):
                sign_in_with_password("warden@campus.edu", "bad")

    def test_rate_limit_is_not_a_credential_error(self):
        resp = make_response(
            status_code=400,
            payload={"error": {"message": "TOO_MANY_ATTEMPTS_TRY_LATER : Access disabled"}},
        )
        with patch("accounts.identity.requests.post", return_value=resp):
            with pytest.raises(IdentityProviderError) as exc:
                sign_in_with_password("warden@campus.edu", "pw")
        assert not isinstance(exc.value, InvalidCredentials)

    def test_transport_failure(self):
        with patch("accounts.identity.requests.post", side_effect=requests.Timeout("slow")):
            with pytest.raises(IdentityProviderError):
                sign_in_with_password("warden@campus.edu", "pw")

    def test_missing_api_key(self, settings):
        settings.FIREBASE_API_KEY = ""
        with patch("accounts.identity.requests.post") as post:
            with pytest.raises(IdentityProviderError):
                sign_in_with_password("warden@campus.edu", "pw")
        post.assert_not_called()


class TestRefreshSession:
    def test_success(self):
        payload = {"user_id": "uid-1", "id_token": "new-id", "refresh_token": "new-ref", "expires_in": "3600"}
        with patch("accounts.identity.requests.post", return_value=make_response(payload=payload)) as post:
            identity = refresh_session("old-ref")
        assert identity["refresh_token"] == "new-ref"
        assert post.call_args.args[0] == "https://token.test/v1/token"
        assert post.call_args.kwargs["data"] == {"grant_type": "refresh_token", "refresh_token": "old-ref"}

    def test_missing_token(self):
        with patch("accounts.identity.requests.post") as post:
            with pytest.raises(InvalidCredentials):
                refresh_session("")
        post.assert_not_called()

    def test_revoked_token(self):
        resp = make_response(status_code=400, payload={"error": {"message": "TOKEN_EXPIRED"}})
        with patch("accounts.identity.requests.post", return_value=resp):
            with pytest.raises(InvalidCredentials):
                refresh_session("old-ref")
