import logging
import time
from django.conf import settings
from django.contrib.auth import logout
from django.utils import timezone
from .identity import IdentityProviderError, refresh_session

IDENTITY_SESSION_KEY = "identity_lease"
logger = logging.getLogger(__name__)


def start_lease(request, identity):
    request.session[IDENTITY_SESSION_KEY] = {
        "refresh_token": identity.get("refresh_token", ""),
        "verified_at": time.time(),
    }


def renew_lease(request, lease) -> bool:
    try:
        identity = refresh_session(lease.get("refresh_token", ""))
    except IdentityProviderError as e:
        logger.warning("Admin session re-verification failed for user %s: %s", request.user.pk, e)
        return False
    start_lease(request, identity)
    request.user.last_verified_at = timezone.now()
    request.user.save(update_fields=["last_verified_at"])
    return True


class AdminSessionLeaseMiddleware:
    """Re-verify provider-backed sessions once the lease TTL has passed.

    Sessions without a lease (local superusers for the Django admin) are left
    alone; a lease that cannot be renewed ends the session.
    """

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        user = getattr(request, "user", None)
        if user and user.is_authenticated:
            lease = request.session.get(IDENTITY_SESSION_KEY)
            ttl = getattr(settings, "ADMIN_SESSION_TTL_SECONDS", 3600)
            if lease and time.time() - lease.get("verified_at", 0) > ttl:
                if not renew_lease(request, lease):
                    logout(request)
        return self.get_response(request)
