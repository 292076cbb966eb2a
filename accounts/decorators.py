from functools import wraps
from django.contrib.auth.views import redirect_to_login
from django.http import HttpResponseForbidden
from .permissions import can_triage


def triage_admin_required(view_func):
    """
    Guard for dashboard and case views.
    Anonymous visitors go to the admin login page; signed-in users who may
    not triage get a 403.
    """
    @wraps(view_func)
    def _wrapped(request, *args, **kwargs):
        if not request.user.is_authenticated:
            return redirect_to_login(request.get_full_path())
        if not can_triage(request.user):
            return HttpResponseForbidden("Not authorized")
        return view_func(request, *args, **kwargs)
    return _wrapped
