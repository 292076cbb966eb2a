import time
import logging
from urllib.parse import quote
import requests
from django.conf import settings
from django.core.cache import cache
from accounts.identity import IdentityProviderError, sign_in_with_password
from .values import decode_document, encode_fields, encode_value


TOKEN_CACHE_KEY = "store_service_token"
PAGE_SIZE = 300
logger = logging.getLogger(__name__)


class DocumentStoreError(Exception):
    pass


class DocumentNotFound(DocumentStoreError):
    pass


def get_service_token():
    """Bearer token for the store, or None when no service user is configured."""
    if not settings.STORE_SERVICE_EMAIL:
        return None
    cached = cache.get(TOKEN_CACHE_KEY)
    if cached and cached.get("expires_at", 0) > time.time() + 30:
        return cached["id_token"]
    if not settings.STORE_SERVICE_PASSWORD:
        logger.error("Store service user configured without a password")
        raise DocumentStoreError("STORE_SERVICE_PASSWORD is not configured")
    try:
        identity = sign_in_with_password(
            settings.STORE_SERVICE_EMAIL, settings.STORE_SERVICE_PASSWORD
        )
    except IdentityProviderError as e:
        # Do not log secrets; the provider error code is enough
        logger.error("Store service sign-in failed: %s", e)
        raise DocumentStoreError(f"service sign-in failed: {e}") from e
    cache.set(
        TOKEN_CACHE_KEY,
        {
            "id_token": identity["id_token"],
            "expires_at": time.time() + identity["expires_in"] - 30,
        },
        identity["expires_in"],
    )
    return identity["id_token"]


def _headers():
    h = {"Accept": "application/json"}
    token = get_service_token()
    if token:
        h["Authorization"] = f"Bearer {token}"
    return h


def _documents_url(path=""):
    if not settings.FIRESTORE_PROJECT_ID:
        logger.error("Document store project is not configured")
        raise DocumentStoreError("FIRESTORE_PROJECT_ID is not configured")
    base = (
        f"{settings.FIRESTORE_BASE_URL}/projects/{settings.FIRESTORE_PROJECT_ID}"
        f"/databases/{settings.FIRESTORE_DATABASE}/documents"
    )
    return f"{base}{path}"


def _request(method, url, **kwargs):
    try:
        r = requests.request(
            method,
            url,
            headers=_headers(),
            timeout=settings.STORE_TIMEOUT_SECONDS,
            **kwargs,
        )
        r.raise_for_status()
        return r.json() if r.content else None
    except requests.HTTPError as e:
        body = e.response.text if e.response is not None else ""
        if getattr(e.response, "status_code", None) == 404:
            logger.info("Store %s %s: not found", method, url)
            raise DocumentNotFound(str(e)) from e
        logger.error(
            "Store %s %s failed: %s %s",
            method,
            url,
            getattr(e.response, "status_code", ""),
            body[:500],
        )
        raise DocumentStoreError(str(e)) from e
    except requests.RequestException as e:
        logger.error("Store %s %s failed: %s", method, url, e)
        raise DocumentStoreError(str(e)) from e


def store_create(collection: str, data: dict):
    """Add a document with a store-generated id; returns the decoded document."""
    doc = _request(
        "POST", _documents_url(f"/{collection}"), json={"fields": encode_fields(data)}
    )
    return decode_document(doc)


def store_list(collection: str):
    """Every document in the collection, following page tokens."""
    documents = []
    params = {"pageSize": PAGE_SIZE}
    while True:
        res = _request("GET", _documents_url(f"/{collection}"), params=params) or {}
        documents.extend(decode_document(d) for d in res.get("documents", []))
        token = res.get("nextPageToken")
        if not token:
            return documents
        params = {"pageSize": PAGE_SIZE, "pageToken": token}


def store_query_equal(collection: str, field: str, value, limit: int = 1):
    query = {
        "structuredQuery": {
            "from": [{"collectionId": collection}],
            "where": {
                "fieldFilter": {
                    "field": {"fieldPath": field},
                    "op": "EQUAL",
                    "value": encode_value(value),
                }
            },
            "limit": limit,
        }
    }
    rows = _request("POST", _documents_url(":runQuery"), json=query) or []
    # an empty result is a single row carrying only readTime
    return [decode_document(row["document"]) for row in rows if row.get("document")]


def store_get(collection: str, doc_id: str):
    """A single document by id, or None when it does not exist."""
    path = f"/{collection}/" + quote(doc_id, safe="")
    try:
        doc = _request("GET", _documents_url(path))
    except DocumentNotFound:
        return None
    return decode_document(doc)


def store_patch(collection: str, doc_id: str, data: dict, update_time: str = ""):
    """Update only the given top-level fields of an existing document.

    With ``update_time`` the write only lands if the document is unchanged
    since it was read; otherwise it only needs to exist.
    """
    params = {"updateMask.fieldPaths": list(data.keys())}
    if update_time:
        params["currentDocument.updateTime"] = update_time
    else:
        params["currentDocument.exists"] = "true"
    doc = _request(
        "PATCH",
        _documents_url(f"/{collection}/{doc_id}"),
        params=params,
        json={"fields": encode_fields(data)},
    )
    return decode_document(doc)
