# engagement/ledger.py
"""
Derived engagement counters.

Every reaction event triggers a fresh count of that kind of reaction for
the project, written back onto ``Project.<kind>_count``. Recounting makes
each call idempotent: replaying it yields the same value, and any stale
counter heals on the project's next reaction change.

Two concurrent recounts may land out of order; the counter can then lag
the true count until the next change (no locking is taken). A failed
write-back is logged and never undoes the reaction.
"""
import logging
from typing import Dict, Optional

from django.db import DatabaseError, transaction
from django.dispatch import receiver

from projects.models import Project
from .events import reaction_created, reaction_deleted
from .models import Bookmark, Comment, Like

logger = logging.getLogger('collab.engagement')


def _write_back(project_id, field_name: str, value: int) -> int:
    """Persist one counter; returns the number of projects updated."""
    with transaction.atomic():
        return Project.objects.filter(pk=project_id).update(**{field_name: value})


class EngagementLedger:
    # kind -> (reaction model, counter field on Project)
    COUNTERS = {
        Like.KIND: (Like, "like_count"),
        Bookmark.KIND: (Bookmark, "bookmark_count"),
        Comment.KIND: (Comment, "comment_count"),
    }

    @classmethod
    def count(cls, kind: str, project_id) -> int:
        model, _ = cls._counter(kind)
        return model.objects.filter(project_id=project_id).count()

    @classmethod
    def on_reaction_changed(cls, kind: str, project_id) -> Optional[int]:
        """
        Recount ``kind`` reactions on ``project_id`` and store the result.

        Returns the stored value, or None when the write-back failed.
        """
        _, field_name = cls._counter(kind)
        value = cls.count(kind, project_id)

        try:
            updated = _write_back(project_id, field_name, value)
        except DatabaseError:
            logger.exception(
                f"Counter write-back failed: project={project_id}, {field_name}={value}. "
                f"It will be corrected by the next {kind} change or recount_engagement."
            )
            return None

        if not updated:
            # Project deleted between the reaction change and the recount
            logger.debug(f"Counter write-back skipped, project={project_id} no longer exists")
        return value

    @classmethod
    def recount_project(cls, project_id) -> Dict[str, Optional[int]]:
        return {kind: cls.on_reaction_changed(kind, project_id) for kind in cls.COUNTERS}

    @classmethod
    def _counter(cls, kind: str):
        try:
            return cls.COUNTERS[kind]
        except KeyError:
            raise ValueError(f"Unknown reaction kind: {kind!r}")


@receiver(reaction_created, dispatch_uid="engagement_ledger_on_created")
def recount_on_created(sender, kind, project_id, **kwargs):
    EngagementLedger.on_reaction_changed(kind, project_id)


@receiver(reaction_deleted, dispatch_uid="engagement_ledger_on_deleted")
def recount_on_deleted(sender, kind, project_id, **kwargs):
    EngagementLedger.on_reaction_changed(kind, project_id)
