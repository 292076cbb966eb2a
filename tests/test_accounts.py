import time
from unittest.mock import patch

import pytest
from django.urls import reverse

from accounts.backends import IdentityProviderBackend
from accounts.identity import IdentityProviderError, InvalidCredentials
from accounts.middleware import IDENTITY_SESSION_KEY
from accounts.models import User
from accounts.views import LOGIN_ERROR

pytestmark = pytest.mark.django_db


def _identity(email="warden@campus.edu", uid="uid-warden"):
    return {"uid": uid, "email": email, "id_token": "id-tok", "refresh_token": "ref-tok", "expires_in": 3600}


class TestIdentityProviderBackend:
    def test_creates_local_user(self, rf):
        with patch("accounts.backends.sign_in_with_password", return_value=_identity()):
            user = IdentityProviderBackend().authenticate(rf.post("/"), username="Warden@Campus.edu ", password="pw")
        assert user.email == "warden@campus.edu"
        assert user.external_uid == "uid-warden"
        assert user.last_verified_at is not None
        assert not user.has_usable_password()
        assert user.provider_session["refresh_token"] == "ref-tok"

    def test_links_existing_user_by_email(self, rf):
        existing = User.objects.create_user(email="warden@campus.edu")
        with patch("accounts.backends.sign_in_with_password", return_value=_identity()):
            user = IdentityProviderBackend().authenticate(rf.post("/"), username="warden@campus.edu", password="pw")
        assert user.pk == existing.pk
        existing.refresh_from_db()
        assert existing.external_uid == "uid-warden"

    def test_follows_email_change_by_uid(self, rf, admin_user):
        with patch("accounts.backends.sign_in_with_password", return_value=_identity(email="chief.warden@campus.edu")):
            user = IdentityProviderBackend().authenticate(rf.post("/"), username="chief.warden@campus.edu", password="pw")
        assert user.pk == admin_user.pk
        assert user.email == "chief.warden@campus.edu"

    def test_rejected_credentials(self, rf):
        with patch("accounts.backends.sign_in_with_password", side_effect=InvalidCredentials("INVALID_PASSWORD")):
            assert IdentityProviderBackend().authenticate(rf.post("/"), username="warden@campus.edu", password="bad") is None
        assert not User.objects.exists()

    def test_missing_password_skips_provider(self, rf):
        with patch("accounts.backends.sign_in_with_password") as sign_in:
            assert IdentityProviderBackend().authenticate(rf.post("/"), username="warden@campus.edu", password="") is None
        sign_in.assert_not_called()

    def test_provider_outage_returns_none(self, rf):
        with patch("accounts.backends.sign_in_with_password", side_effect=IdentityProviderError("503")):
            assert IdentityProviderBackend().authenticate(rf.post("/"), username="warden@campus.edu", password="pw") is None

    def test_allow_list(self, rf, settings):
        settings.TRIAGE_ALLOWED_EMAILS = ["dean@campus.edu"]
        with patch("accounts.backends.sign_in_with_password", return_value=_identity()):
            assert IdentityProviderBackend().authenticate(rf.post("/"), username="warden@campus.edu", password="pw") is None

    def test_inactive_local_user(self, rf, admin_user):
        admin_user.is_active = False
        admin_user.save()
        with patch("accounts.backends.sign_in_with_password", return_value=_identity()):
            assert IdentityProviderBackend().authenticate(rf.post("/"), username="warden@campus.edu", password="pw") is None


class TestLoginView:
    def test_form(self, client):
        resp = client.get(reverse("accounts:login"))
        assert resp.status_code == 200
        assert b"Admin Login" in resp.content

    def test_success_starts_a_lease(self, client):
        with patch("accounts.backends.sign_in_with_password", return_value=_identity()):
            resp = client.post(reverse("accounts:login"), {"email": "warden@campus.edu", "password": "pw"})
        assert resp.status_code == 302
        assert resp["Location"] == reverse("triage:dashboard")
        lease = client.session[IDENTITY_SESSION_KEY]
        assert lease["refresh_token"] == "ref-tok"
        assert lease["verified_at"] <= time.time()

    def test_next_is_honoured(self, client):
        case_url = reverse("triage:case_detail", args=["CSHLD-000001"])
        with patch("accounts.backends.sign_in_with_password", return_value=_identity()):
            resp = client.post(
                reverse("accounts:login"),
                {"email": "warden@campus.edu", "password": "pw", "next": case_url},
            )
        assert resp["Location"] == case_url

    def test_offsite_next_is_ignored(self, client):
        with patch("accounts.backends.sign_in_with_password", return_value=_identity()):
            resp = client.post(
                reverse("accounts:login"),
                {"email": "warden@campus.edu", "password": "pw", "next": "https://evil.test/"},
            )
        assert resp["Location"] == reverse("triage:dashboard")

    def test_bad_credentials(self, client):
        with patch("accounts.backends.sign_in_with_password", side_effect=InvalidCredentials("INVALID_PASSWORD")):
            resp = client.post(reverse("accounts:login"), {"email": "warden@campus.edu", "password": "bad"})
        assert resp.status_code == 200
        assert resp.context["error"] == LOGIN_ERROR
        assert IDENTITY_SESSION_KEY not in client.session

    def test_provider_outage_shows_the_same_message(self, client):
        with patch("accounts.backends.sign_in_with_password", side_effect=IdentityProviderError("503")):
            resp = client.post(reverse("accounts:login"), {"email": "warden@campus.edu", "password": "pw"})
        assert resp.context["error"] == LOGIN_ERROR

    def test_local_superuser_signs_in_during_provider_outage(self, client, django_user_model):
        django_user_model.objects.create_superuser(email="root@campus.edu", password="S3cure-pass-123")
        with patch("accounts.backends.sign_in_with_password", side_effect=IdentityProviderError("503")):
            resp = client.post(
                reverse("accounts:login"), {"email": "root@campus.edu", "password": "S3cure-pass-123"}
            )
        assert resp.status_code == 302
        assert resp["Location"] == reverse("triage:dashboard")
        assert IDENTITY_SESSION_KEY not in client.session

    def test_invalid_email_never_reaches_provider(self, client):
        with patch("accounts.backends.sign_in_with_password") as sign_in:
            resp = client.post(reverse("accounts:login"), {"email": "warden", "password": "pw"})
        assert resp.context["error"] == LOGIN_ERROR
        sign_in.assert_not_called()

    def test_signed_in_admin_is_redirected(self, admin_client):
        resp = admin_client.get(reverse("accounts:login"))
        assert resp["Location"] == reverse("triage:dashboard")

    def test_repeated_failures_lock_out(self, client):
        with patch("accounts.backends.sign_in_with_password", side_effect=InvalidCredentials("INVALID_PASSWORD")) as sign_in:
            for _ in range(6):
                client.post(reverse("accounts:login"), {"email": "warden@campus.edu", "password": "bad"})
        assert sign_in.call_count == 5


class TestLogout:
    def test_post_logs_out(self, admin_client):
        resp = admin_client.post(reverse("accounts:logout"))
        assert resp["Location"] == reverse("accounts:login")
        assert "_auth_user_id" not in admin_client.session

    def test_get_is_not_allowed(self, admin_client):
        assert admin_client.get(reverse("accounts:logout")).status_code == 405


class TestSessionLease:
    def _set_lease(self, client, verified_at):
        session = client.session
        session[IDENTITY_SESSION_KEY] = {"refresh_token": "ref-tok", "verified_at": verified_at}
        session.save()

    def test_fresh_lease_is_not_rechecked(self, admin_client):
        self._set_lease(admin_client, time.time())
        with patch("accounts.middleware.refresh_session") as refresh, patch(
            "triage.views.list_complaints", return_value=[]
        ):
            resp = admin_client.get(reverse("triage:dashboard"))
        assert resp.status_code == 200
        refresh.assert_not_called()

    def test_expired_lease_is_renewed(self, admin_client, admin_user):
        self._set_lease(admin_client, time.time() - 7200)
        renewed = {"uid": "uid-warden", "id_token": "new", "refresh_token": "ref-2", "expires_in": 3600}
        with patch("accounts.middleware.refresh_session", return_value=renewed) as refresh, patch(
            "triage.views.list_complaints", return_value=[]
        ):
            resp = admin_client.get(reverse("triage:dashboard"))
        assert resp.status_code == 200
        refresh.assert_called_once_with("ref-tok")
        assert admin_client.session[IDENTITY_SESSION_KEY]["refresh_token"] == "ref-2"
        admin_user.refresh_from_db()
        assert admin_user.last_verified_at is not None

    def test_revoked_lease_ends_the_session(self, admin_client):
        self._set_lease(admin_client, time.time() - 7200)
        with patch("accounts.middleware.refresh_session", side_effect=InvalidCredentials("TOKEN_EXPIRED")):
            resp = admin_client.get(reverse("triage:dashboard"))
        assert resp.status_code == 302
        assert resp["Location"].startswith(reverse("accounts:login"))
        assert "_auth_user_id" not in admin_client.session
