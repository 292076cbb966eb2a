"""
Shared fixtures for CampusShield tests.

No test talks to the hosted services: the store, identity and upload clients
are exercised against mocked ``requests`` calls, and views run against
patched service functions.
"""
from datetime import datetime, timezone
from unittest.mock import MagicMock

import pytest
from django.core.cache import cache

from store.values import encode_fields


@pytest.fixture(autouse=True)
def service_settings(settings):
    settings.FIRESTORE_PROJECT_ID = "campus-test"
    settings.FIRESTORE_DATABASE = "(default)"
    settings.FIRESTORE_BASE_URL = "https://store.test/v1"
    settings.COMPLAINTS_COLLECTION = "complaints"
    settings.STORE_SERVICE_EMAIL = ""
    settings.STORE_SERVICE_PASSWORD = ""
    settings.FIREBASE_API_KEY = "test-api-key"
    settings.IDENTITY_TOOLKIT_URL = "https://identity.test/v1"
    settings.SECURE_TOKEN_URL = "https://token.test/v1"
    settings.CLOUDINARY_CLOUD_NAME = "campus"
    settings.CLOUDINARY_UPLOAD_PRESET = "unsigned"
    settings.CLOUDINARY_UPLOAD_URL = "https://upload.test/v1_1"
    settings.TRIAGE_ALLOWED_EMAILS = []
    settings.TIMELINE_BACKFILL_ASYNC = False
    cache.clear()
    yield
    cache.clear()


def make_response(status_code=200, payload=None, text=""):
    """A stand-in for ``requests.Response`` with the attributes the clients read."""
    resp = MagicMock()
    resp.status_code = status_code
    resp.ok = status_code < 400
    resp.json.return_value = payload if payload is not None else {}
    resp.content = b"{}" if payload is not None else b""
    resp.text = text
    return resp


def make_document(doc_id="doc1", create_time="2024-03-01T10:00:00Z", **data):
    """A store REST document as returned by the documents API."""
    return {
        "name": f"projects/campus-test/databases/(default)/documents/complaints/{doc_id}",
        "fields": encode_fields(data),
        "createTime": create_time,
        "updateTime": create_time,
    }


def make_complaint(**overrides):
    """A normalized complaint dict, as views receive it from the service layer."""
    complaint = {
        "doc_id": "doc1",
        "update_time": "2024-03-01T10:00:00.123456789Z",
        "ticket_id": "CSHLD-3FA09C",
        "category": "ragging",
        "category_label": "Ragging",
        "description": "Seniors blocked the hostel corridor.",
        "contact_email": "",
        "contact_phone": "",
        "file_url": "",
        "has_attachment": False,
        "raw_status": "pending",
        "status": "pending",
        "status_label": "Pending",
        "admin_notes": "",
        "admin_notes_history": [],
        "timeline": [],
        "submitted_at": datetime(2024, 3, 1, 10, 0, tzinfo=timezone.utc),
        "last_updated": None,
    }
    complaint.update(overrides)
    return complaint


@pytest.fixture
def admin_user(django_user_model):
    return django_user_model.objects.create_user(
        email="warden@campus.edu", external_uid="uid-warden"
    )


@pytest.fixture
def admin_client(client, admin_user):
    client.force_login(admin_user, backend="accounts.backends.IdentityProviderBackend")
    return client
