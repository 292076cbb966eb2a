import logging
from urllib.parse import urlencode
from django.contrib import messages
from django.http import FileResponse
from django.shortcuts import redirect, render
from django.views.decorators.http import require_GET, require_http_methods
from accounts.decorators import triage_admin_required
from complaints.constants import STATUS_CHOICES, STATUS_PENDING
from complaints.export import build_complaints_workbook, workbook_bytes
from complaints.service import (
    apply_case_update,
    ensure_timeline,
    filter_complaints,
    find_by_ticket,
    list_complaints,
    status_counts,
)
from store.client import DocumentStoreError
from .forms import CaseUpdateForm, ComplaintFilterForm

logger = logging.getLogger(__name__)

FETCH_ERROR = "Error fetching complaint"
LIST_ERROR = "Error fetching complaints"
SAVE_ERROR = "Failed to update case. Please try again."
XLSX_CONTENT_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


@triage_admin_required
@require_GET
def dashboard(request):
    filter_form = ComplaintFilterForm(request.GET or None)
    category, status = filter_form.filters()
    try:
        complaints = list_complaints()
    except DocumentStoreError:
        messages.error(request, LIST_ERROR)
        complaints = []
    counts = status_counts(complaints)
    filtered = filter_complaints(complaints, category, status)
    selected = None
    selected_id = request.GET.get("selected")
    if selected_id:
        selected = next((c for c in filtered if c["ticket_id"] == selected_id), None)
    filter_query = urlencode({"category": category, "status": status})
    return render(
        request,
        "triage/dashboard.html",
        {
            "active_nav": "admin",
            "filter_form": filter_form,
            "complaints": filtered,
            "total": len(complaints),
            "counters": [
                {"status": value, "label": label, "count": counts[value]}
                for value, label in STATUS_CHOICES
            ],
            "selected": selected,
            "filter_query": filter_query,
        },
    )


@triage_admin_required
@require_GET
def export_complaints(request):
    category, status = ComplaintFilterForm(request.GET or None).filters()
    try:
        complaints = filter_complaints(list_complaints(), category, status)
    except DocumentStoreError:
        messages.error(request, LIST_ERROR)
        return redirect("triage:dashboard")
    logger.info(
        "User %s exported %d complaints (category=%s, status=%s)",
        request.user.pk,
        len(complaints),
        category,
        status,
    )
    return FileResponse(
        workbook_bytes(build_complaints_workbook(complaints)),
        as_attachment=True,
        filename="complaints.xlsx",
        content_type=XLSX_CONTENT_TYPE,
    )


@triage_admin_required
@require_http_methods(["GET", "POST"])
def case_detail(request, ticket_id):
    ctx = {"active_nav": "admin", "ticket_id": ticket_id}
    try:
        complaint = find_by_ticket(ticket_id, allow_document_id=True)
    except DocumentStoreError:
        ctx["error"] = FETCH_ERROR
        return render(request, "triage/case_detail.html", ctx, status=503)
    if complaint is None:
        ctx["not_found"] = True
        return render(request, "triage/case_detail.html", ctx, status=404)

    # a save writes the whole timeline itself
    complaint = ensure_timeline(complaint, persist=request.method != "POST")
    if request.method == "POST":
        form = CaseUpdateForm(request.POST)
        if form.is_valid():
            try:
                apply_case_update(
                    complaint,
                    form.cleaned_data["status"],
                    form.cleaned_data["admin_notes"],
                    admin_id=request.user.email,
                )
            except DocumentStoreError:
                messages.error(request, SAVE_ERROR)
            else:
                messages.success(request, "Case updated successfully!")
                return redirect("triage:dashboard")
    else:
        known = dict(STATUS_CHOICES)
        form = CaseUpdateForm(
            initial={
                "status": complaint["status"] if complaint["status"] in known else STATUS_PENDING,
                "admin_notes": complaint["admin_notes"],
            }
        )
    ctx.update(
        {
            "complaint": complaint,
            "form": form,
            "notes_history": list(reversed(complaint["admin_notes_history"])),
        }
    )
    return render(request, "triage/case_detail.html", ctx)
