import logging
from django.shortcuts import render
from django.views.decorators.http import require_GET, require_http_methods
from store.client import DocumentStoreError
from .constants import CATEGORY_CHOICES, CATEGORY_DESCRIPTIONS, STATUS_CHOICES, STATUS_DESCRIPTIONS
from .forms import ComplaintForm, TrackForm
from .service import find_by_ticket, submit_complaint
from .uploads import UploadError, upload_attachment

logger = logging.getLogger(__name__)

SUBMIT_ERROR = "We could not submit your complaint. Please try again."
UPLOAD_ERROR = "We could not upload your attachment. Please try again."
FETCH_ERROR = "Error fetching complaint"


@require_GET
def home(request):
    categories = [
        {"value": value, "label": label, "description": CATEGORY_DESCRIPTIONS[value]}
        for value, label in CATEGORY_CHOICES
    ]
    return render(request, "home.html", {"categories": categories, "active_nav": "home"})


@require_http_methods(["GET", "POST"])
def submit(request):
    ctx = {"active_nav": "submit"}
    if request.method == "POST":
        form = ComplaintForm(request.POST, request.FILES)
        if form.is_valid():
            data = form.cleaned_data
            file_url = ""
            error = ""
            if data.get("attachment"):
                try:
                    file_url = upload_attachment(data["attachment"])
                except UploadError:
                    error = UPLOAD_ERROR
            if not error:
                try:
                    ticket_id = submit_complaint(
                        category=data["category"],
                        description=data["description"],
                        contact_email=data.get("email", ""),
                        contact_phone=data.get("phone", ""),
                        file_url=file_url,
                    )
                except DocumentStoreError:
                    error = SUBMIT_ERROR
                else:
                    ctx.update({"submitted": True, "ticket_id": ticket_id})
                    return render(request, "complaints/submit.html", ctx)
            ctx["error"] = error
    else:
        form = ComplaintForm()
    ctx["form"] = form
    return render(request, "complaints/submit.html", ctx)


@require_http_methods(["GET", "POST"])
def track(request):
    ctx = {
        "active_nav": "track",
        "status_guide": [
            {"value": value, "label": label, "description": STATUS_DESCRIPTIONS[value]}
            for value, label in STATUS_CHOICES
        ],
    }
    form = TrackForm(request.POST or None)
    if form.is_bound and form.is_valid():
        ticket_id = form.cleaned_data["ticket_id"]
        ctx["searched"] = ticket_id
        try:
            complaint = find_by_ticket(ticket_id)
        except DocumentStoreError:
            ctx["error"] = FETCH_ERROR
        else:
            ctx["complaint"] = complaint
            ctx["not_found"] = complaint is None
    ctx["form"] = form
    return render(request, "complaints/track.html", ctx)
