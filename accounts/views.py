from django.contrib.auth import authenticate, login, logout
from django.shortcuts import redirect, render
from django.utils.http import url_has_allowed_host_and_scheme
from django.views.decorators.http import require_http_methods, require_POST
from .forms import AdminLoginForm
from .middleware import start_lease
from .permissions import can_triage


LOGIN_ERROR = "Invalid email or password"


def _safe_next(request):
    nxt = request.POST.get("next") or request.GET.get("next")
    if nxt and url_has_allowed_host_and_scheme(
        nxt, allowed_hosts={request.get_host()}, require_https=request.is_secure()
    ):
        return nxt
    return None


@require_http_methods(["GET", "POST"])
def admin_login(request):
    if can_triage(request.user):
        return redirect(_safe_next(request) or "triage:dashboard")
    form = AdminLoginForm(request.POST or None)
    error = ""
    if request.method == "POST":
        user = None
        if form.is_valid():
            # provider outages come back as None, like bad credentials
            user = authenticate(
                request,
                username=form.cleaned_data["email"],
                password=form.cleaned_data["password"],
            )
        if user is not None:
            login(request, user)
            identity = getattr(user, "provider_session", None)
            if identity:
                start_lease(request, identity)
            return redirect(_safe_next(request) or "triage:dashboard")
        error = LOGIN_ERROR
    return render(
        request,
        "accounts/login.html",
        {"form": form, "error": error, "next": _safe_next(request) or ""},
    )


@require_POST
def admin_logout(request):
    logout(request)
    return redirect("accounts:login")
