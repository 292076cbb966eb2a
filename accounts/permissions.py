import logging
from django.conf import settings

logger = logging.getLogger(__name__)


def can_triage(user) -> bool:
    if not getattr(user, "is_authenticated", False) or not user.is_active:
        return False
    if user.is_superuser:
        return True
    allowed = getattr(settings, "TRIAGE_ALLOWED_EMAILS", [])
    if allowed and (user.email or "").lower() not in allowed:
        logger.warning("Permission denied: user %s is not on the triage allow-list", user.pk)
        return False
    return True
