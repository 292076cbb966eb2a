import logging
from django.conf import settings
from django_rq import job
from redis.exceptions import RedisError
from store.client import DocumentStoreError, store_patch

logger = logging.getLogger(__name__)


@job("default")
def persist_timeline(doc_id: str, timeline: list, update_time: str):
    """Write a synthesized timeline unless the document changed since it was read.

    A failed precondition means an admin save (or another backfill) got there
    first and already wrote a timeline; it is skipped, not retried.
    """
    try:
        store_patch(
            settings.COMPLAINTS_COLLECTION,
            doc_id,
            {"timeline": timeline},
            update_time=update_time,
        )
    except DocumentStoreError as e:
        logger.warning("Timeline backfill skipped for document %s: %s", doc_id, e)


def schedule_timeline_backfill(doc_id: str, timeline: list, update_time: str):
    """Best-effort write of a synthesized timeline; failures are only logged."""
    try:
        if settings.TIMELINE_BACKFILL_ASYNC:
            persist_timeline.delay(doc_id, timeline, update_time)
        else:
            persist_timeline(doc_id, timeline, update_time)
    except RedisError as e:
        logger.warning("Could not queue timeline backfill for document %s: %s", doc_id, e)
