import logging
import requests
from django.conf import settings


logger = logging.getLogger(__name__)

# Provider error codes that mean "wrong e-mail or password" rather than an outage
CREDENTIAL_ERRORS = {
    "EMAIL_NOT_FOUND",
    "INVALID_PASSWORD",
    "INVALID_EMAIL",
    "INVALID_LOGIN_CREDENTIALS",
    "USER_DISABLED",
    "MISSING_PASSWORD",
    "TOKEN_EXPIRED",
    "INVALID_REFRESH_TOKEN",
    "USER_NOT_FOUND",
}


class IdentityProviderError(Exception):
    pass


class InvalidCredentials(IdentityProviderError):
    pass


def _api_key():
    if not settings.FIREBASE_API_KEY:
        logger.error("Identity provider API key is not configured")
        raise IdentityProviderError("FIREBASE_API_KEY is not configured")
    return settings.FIREBASE_API_KEY


def _error_code(response):
    try:
        message = response.json().get("error", {}).get("message", "")
    except ValueError:
        return ""
    # messages look like "INVALID_PASSWORD" or "TOO_MANY_ATTEMPTS_TRY_LATER : ..."
    return message.split(":")[0].strip()


def _post(url, **kwargs):
    try:
        r = requests.post(url, params={"key": _api_key()}, timeout=20, **kwargs)
    except requests.RequestException as e:
        logger.error("Identity provider POST %s failed: %s", url, e)
        raise IdentityProviderError(str(e)) from e
    if r.status_code == 400:
        code = _error_code(r)
        if code in CREDENTIAL_ERRORS:
            logger.info("Identity provider rejected credentials: %s", code)
            raise InvalidCredentials(code)
    if not r.ok:
        logger.error(
            "Identity provider POST %s failed: %s %s", url, r.status_code, r.text[:500]
        )
        raise IdentityProviderError(f"{r.status_code}: {_error_code(r)}")
    return r.json()


def sign_in_with_password(email: str, password: str) -> dict:
    """Verify an e-mail/password pair with the identity provider.

    Returns the provider uid, e-mail and the session tokens. Raises
    InvalidCredentials when the provider rejects the pair.
    """
    data = _post(
        f"{settings.IDENTITY_TOOLKIT_URL}/accounts:signInWithPassword",
        json={"email": email, "password": password, "returnSecureToken": True},
    )
    return {
        "uid": data.get("localId", ""),
        "email": (data.get("email") or email).lower(),
        "id_token": data["idToken"],
        "refresh_token": data.get("refreshToken", ""),
        "expires_in": int(data.get("expiresIn", 3600)),
    }


def refresh_session(refresh_token: str) -> dict:
    """Exchange a refresh token for a fresh ID token."""
    if not refresh_token:
        raise InvalidCredentials("MISSING_REFRESH_TOKEN")
    data = _post(
        f"{settings.SECURE_TOKEN_URL}/token",
        data={"grant_type": "refresh_token", "refresh_token": refresh_token},
    )
    return {
        "uid": data.get("user_id", ""),
        "id_token": data["id_token"],
        "refresh_token": data.get("refresh_token", refresh_token),
        "expires_in": int(data.get("expires_in", 3600)),
    }
