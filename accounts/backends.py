import logging
from django.conf import settings
from django.contrib.auth.backends import ModelBackend
from django.utils import timezone
from .identity import IdentityProviderError, InvalidCredentials, sign_in_with_password
from .models import User

logger = logging.getLogger(__name__)


class IdentityProviderBackend(ModelBackend):
    """Authenticate triage admins against the hosted identity provider.

    A local User row is created or refreshed on every successful sign-in so
    Django sessions, permissions and lockouts have something to hang off.
    The provider tokens are attached to the returned user as
    ``provider_session`` for the login view to keep in the session.
    """

    def authenticate(self, request, username=None, password=None, **kwargs):
        email = (username or kwargs.get("email") or "").strip().lower()
        if not email or not password:
            return None
        try:
            identity = sign_in_with_password(email, password)
        except InvalidCredentials:
            return None
        except IdentityProviderError as e:
            # leave the chain running so local superusers can still sign in
            logger.error("Identity provider unavailable during sign-in: %s", e)
            return None
        allowed = getattr(settings, "TRIAGE_ALLOWED_EMAILS", [])
        if allowed and identity["email"] not in allowed:
            logger.warning("Sign-in refused: %s is not on the triage allow-list", identity["email"])
            return None
        user = self._sync_user(identity)
        if not self.user_can_authenticate(user):
            logger.warning("Sign-in refused: local account %s is inactive", user.pk)
            return None
        user.provider_session = identity
        return user

    def _sync_user(self, identity):
        user = None
        if identity["uid"]:
            user = User.objects.filter(external_uid=identity["uid"]).first()
        if not user:
            user = User.objects.filter(email__iexact=identity["email"]).first()
        if not user:
            user = User.objects.create_user(email=identity["email"])
            logger.info("Created local account %s for provider user", user.pk)
        update_fields = ["last_verified_at"]
        if identity["uid"] and user.external_uid != identity["uid"]:
            user.external_uid = identity["uid"]
            update_fields.append("external_uid")
        if user.email != identity["email"]:
            user.email = identity["email"]
            update_fields.append("email")
        user.last_verified_at = timezone.now()
        user.save(update_fields=update_fields)
        return user
