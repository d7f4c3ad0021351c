# core/tasks.py
import logging
from typing import Iterable, Optional

from celery import shared_task
from django.conf import settings
from django.db import transaction

from .storage import STORES, LOGBOOK_ATTACHMENTS, PROJECT_RESULTS, get_store

logger = logging.getLogger("collab.storage")


@shared_task(
    bind=True,
    autoretry_for=(OSError,),
    retry_backoff=True,
    retry_backoff_max=600,
    max_retries=5,
)
def release_attachments(self, store_name: str, handles: list):
    """
    Remove files that no entity references any more.

    Handles already gone count as released. Backend errors retry with
    backoff; whatever still fails is picked up by the orphan collector.
    """
    store = get_store(store_name)
    removed = 0
    for handle in handles:
        if store.delete(handle):
            removed += 1
    logger.info(f"Released {removed}/{len(handles)} attachment(s) from {store.location}")
    return removed


def release_after_commit(store_name: str, handles: Iterable[str]) -> None:
    """Queue attachment removal once the surrounding transaction commits."""
    handles = [h for h in handles if h]
    if not handles:
        return
    transaction.on_commit(lambda: release_attachments.delay(store_name, handles))


def referenced_handles(store_name: str) -> set:
    # Imported lazily: the domain apps import this module
    from projects.models import Project
    from logbooks.models import Logbook

    referenced = set()
    if store_name == PROJECT_RESULTS:
        for results in Project.objects.values_list("results", flat=True):
            referenced.update(results or [])
    elif store_name == LOGBOOK_ATTACHMENTS:
        for attachments in Logbook.objects.values_list("attachments", flat=True):
            referenced.update(attachments or [])
    return referenced


def collect_orphans(grace_seconds: Optional[int] = None) -> dict:
    """
    Delete stored files that no Project or Logbook references.

    Files younger than the grace period are skipped: an upload is written
    before the row that references it is committed.
    """
    if grace_seconds is None:
        grace_seconds = settings.ATTACHMENT_ORPHAN_GRACE_SECONDS

    report = {}
    for store_name, store in STORES.items():
        referenced = referenced_handles(store_name)
        removed = 0
        for handle in store.list_handles():
            if handle in referenced:
                continue
            try:
                if store.age_seconds(handle) < grace_seconds:
                    continue
                if store.delete(handle):
                    removed += 1
            except OSError as e:
                logger.warning(f"Orphan collector could not remove {store.path_for(handle)}: {e}")
        report[store_name] = removed
        if removed:
            logger.info(f"Orphan collector removed {removed} file(s) from {store.location}")
    return report


@shared_task
def collect_orphaned_attachments():
    return collect_orphans()
