from __future__ import annotations

import logging
from datetime import datetime, timezone as dt_timezone
from typing import Any, Dict, Iterable, List, Optional

from django.conf import settings
from django.utils import timezone
from django.utils.dateparse import parse_datetime

from jobs.tasks import schedule_timeline_backfill
from store.client import store_create, store_get, store_list, store_patch, store_query_equal
from .constants import (
    CATEGORY_CHOICES,
    FILTER_ALL,
    STATUS_CHOICES,
    STATUS_PENDING,
    TIMELINE_ADMIN_NOTE,
    TIMELINE_CASE_CREATED,
    TIMELINE_STATUS_CHANGE,
)
from .tickets import clean_ticket_id, generate_ticket_id

logger = logging.getLogger(__name__)

CASE_CREATED_ACTION = "Case Created"
CASE_CREATED_NOTES = "Complaint submitted and case opened"
# documents have carried both spellings of the ticket field
TICKET_FIELDS = ("ticketId", "ticketID")
_OLDEST = datetime.min.replace(tzinfo=dt_timezone.utc)

Complaint = Dict[str, Any]


def _collection() -> str:
    return settings.COMPLAINTS_COLLECTION


def normalize_status(value: Any) -> str:
    """'Pending', 'In Review' and 'in-review' all compare equal after this."""
    return str(value or "").strip().lower().replace("_", "-").replace(" ", "-")


def status_label(value: Any) -> str:
    status = normalize_status(value)
    labels = dict(STATUS_CHOICES)
    if status in labels:
        return labels[status]
    return status.replace("-", " ").capitalize()


def category_label(value: Any) -> str:
    category = str(value or "").strip().lower()
    return dict(CATEGORY_CHOICES).get(category, str(value or ""))


def _to_datetime(value: Any) -> Optional[datetime]:
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, str) and value.strip():
        try:
            dt = parse_datetime(value.strip())
        except ValueError:
            dt = None
    else:
        dt = None
    if dt is not None and timezone.is_naive(dt):
        dt = timezone.make_aware(dt, dt_timezone.utc)
    return dt


def _iso(value: Optional[datetime]) -> str:
    return (value or timezone.now()).isoformat()


def _normalize_event(entry: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "date": _to_datetime(entry.get("date")),
        "action": entry.get("action") or "",
        "notes": entry.get("notes") or "",
        "type": entry.get("type") or "",
    }


def _normalize_note(entry: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "note": entry.get("note") or "",
        "timestamp": _to_datetime(entry.get("timestamp")),
        "admin_id": entry.get("adminId") or "Admin",
    }


def _event_payload(event: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "date": _iso(event["date"]),
        "action": event["action"],
        "notes": event["notes"],
        "type": event["type"],
    }


def _note_payload(note: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "note": note["note"],
        "timestamp": _iso(note["timestamp"]),
        "adminId": note["admin_id"],
    }


def _case_created_event(when: Optional[datetime]) -> Dict[str, Any]:
    return {
        "date": when or timezone.now(),
        "action": CASE_CREATED_ACTION,
        "notes": CASE_CREATED_NOTES,
        "type": TIMELINE_CASE_CREATED,
    }


def normalize_complaint(document: Dict[str, Any]) -> Complaint:
    """Turn a decoded store document into the dict every view renders.

    Absorbs the data-hygiene drift of older documents: either ticket field
    spelling, mixed-case statuses, the single ``optionalContact`` field and
    string or timestamp submission dates.
    """
    data = document.get("data") or {}
    ticket_id = data.get("ticketID") or data.get("ticketId") or document.get("id", "")

    contact_email = (data.get("contactEmail") or "").strip()
    contact_phone = (data.get("contactPhone") or "").strip()
    legacy_contact = (data.get("optionalContact") or "").strip()
    if legacy_contact and not (contact_email or contact_phone):
        if "@" in legacy_contact:
            contact_email = legacy_contact
        else:
            contact_phone = legacy_contact

    file_url = (data.get("fileURL") or "").strip()
    raw_status = data.get("status") or STATUS_PENDING
    status = normalize_status(raw_status)
    category = str(data.get("category") or "").strip().lower()

    submitted_at = (
        _to_datetime(data.get("timestamp"))
        or _to_datetime(data.get("dateSubmitted"))
        or document.get("create_time")
    )
    timeline = [
        _normalize_event(e) for e in (data.get("timeline") or []) if isinstance(e, dict)
    ]
    history = [
        _normalize_note(n)
        for n in (data.get("adminNotesHistory") or [])
        if isinstance(n, dict)
    ]
    return {
        "doc_id": document.get("id", ""),
        "update_time": document.get("update_time") or "",
        "ticket_id": ticket_id,
        "category": category,
        "category_label": category_label(category),
        "description": data.get("description") or "",
        "contact_email": contact_email,
        "contact_phone": contact_phone,
        "file_url": file_url,
        "has_attachment": bool(file_url) or bool(data.get("hasAttachment")),
        "raw_status": raw_status,
        "status": status,
        "status_label": status_label(status),
        "admin_notes": data.get("adminNotes") or "",
        "admin_notes_history": history,
        "timeline": timeline,
        "submitted_at": submitted_at,
        "last_updated": _to_datetime(data.get("lastUpdated")),
    }


def submit_complaint(
    category: str,
    description: str,
    contact_email: str = "",
    contact_phone: str = "",
    file_url: str = "",
) -> str:
    """Persist a new complaint and return its ticket id."""
    ticket_id = generate_ticket_id()
    store_create(
        _collection(),
        {
            "ticketId": ticket_id,
            "category": category,
            "description": description,
            "contactEmail": contact_email or "",
            "contactPhone": contact_phone or "",
            "fileURL": file_url or "",
            "status": STATUS_PENDING,
            "timestamp": timezone.now(),
        },
    )
    logger.info("Complaint %s submitted (category=%s)", ticket_id, category)
    return ticket_id


def find_by_ticket(ticket_id: str, allow_document_id: bool = False) -> Optional[Complaint]:
    """Look a complaint up by ticket id.

    Documents with no ticket field are listed under their store id; admin
    pages pass ``allow_document_id`` so those can still be opened.
    """
    raw_id = (ticket_id or "").strip()
    ticket_id = clean_ticket_id(raw_id)
    if not ticket_id:
        return None
    for field in TICKET_FIELDS:
        docs = store_query_equal(_collection(), field, ticket_id)
        if docs:
            return normalize_complaint(docs[0])
    if allow_document_id:
        doc = store_get(_collection(), raw_id)
        if doc is not None:
            return normalize_complaint(doc)
    logger.info("No complaint found with ticket id %s", ticket_id)
    return None


def list_complaints() -> List[Complaint]:
    complaints = [normalize_complaint(d) for d in store_list(_collection())]
    complaints.sort(key=lambda c: c["submitted_at"] or _OLDEST, reverse=True)
    return complaints


def ensure_timeline(complaint: Complaint, persist: bool = True) -> Complaint:
    """Give a complaint without a timeline its synthesized "Case Created" entry.

    With ``persist`` the entry is written back in the background; the page
    never waits on it. The write is conditional on the document being
    unchanged since this read, so it never replaces a timeline saved in the
    meantime. Callers about to save the whole timeline pass False.
    """
    if complaint["timeline"]:
        return complaint
    event = _case_created_event(complaint["submitted_at"])
    if persist and complaint["doc_id"] and complaint["update_time"]:
        schedule_timeline_backfill(
            complaint["doc_id"], [_event_payload(event)], complaint["update_time"]
        )
    return {**complaint, "timeline": [event]}


def apply_case_update(
    complaint: Complaint, status: str, admin_notes: str, admin_id: str = ""
) -> Complaint:
    """Save an admin's status and notes, appending timeline/history entries.

    A status change adds a ``status_change`` event; a non-blank note that
    differs from the stored one adds a notes-history entry and an
    ``admin_note`` event. Existing entries are never rewritten.
    """
    status = normalize_status(status)
    if status not in dict(STATUS_CHOICES):
        raise ValueError(f"unknown status {status!r}")
    admin_notes = admin_notes or ""
    now = timezone.now()

    timeline = list(complaint["timeline"])
    history = list(complaint["admin_notes_history"])
    if complaint["status"] != status:
        timeline.append(
            {
                "date": now,
                "action": f"Status changed to {status_label(status)}",
                "notes": f"Case status updated from {complaint['raw_status']} to {status}",
                "type": TIMELINE_STATUS_CHANGE,
            }
        )
    if admin_notes.strip() and admin_notes != complaint["admin_notes"]:
        history.append({"note": admin_notes, "timestamp": now, "admin_id": admin_id or "Admin"})
        timeline.append(
            {
                "date": now,
                "action": "Admin notes updated",
                "notes": admin_notes,
                "type": TIMELINE_ADMIN_NOTE,
            }
        )

    store_patch(
        _collection(),
        complaint["doc_id"],
        {
            "status": status,
            "adminNotes": admin_notes,
            "adminNotesHistory": [_note_payload(n) for n in history],
            "timeline": [_event_payload(e) for e in timeline],
            "lastUpdated": now.isoformat(),
        },
    )
    logger.info("Complaint %s updated by %s", complaint["ticket_id"], admin_id or "admin")
    return {
        **complaint,
        "raw_status": status,
        "status": status,
        "status_label": status_label(status),
        "admin_notes": admin_notes,
        "admin_notes_history": history,
        "timeline": timeline,
        "last_updated": now,
    }


def filter_complaints(
    complaints: Iterable[Complaint], category: str = FILTER_ALL, status: str = FILTER_ALL
) -> List[Complaint]:
    """Both filters must match; ``all`` (or empty) switches a filter off."""
    category = (category or FILTER_ALL).strip().lower()
    status = normalize_status(status) or FILTER_ALL
    return [
        c
        for c in complaints
        if (category == FILTER_ALL or c["category"] == category)
        and (status == FILTER_ALL or c["status"] == status)
    ]


def status_counts(complaints: Iterable[Complaint]) -> Dict[str, int]:
    counts = {value: 0 for value, _ in STATUS_CHOICES}
    for c in complaints:
        if c["status"] in counts:
            counts[c["status"]] += 1
    return counts
