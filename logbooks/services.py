# logbooks/services.py
"""
Logbook workflow: entries written by a project's team against its current
active project, validated by the project's mentor teacher.

Attachment files are stored before the row is written and released after
the row change commits.
"""
import logging
from typing import List

from django.db import DatabaseError, transaction
from django.db.models import Q

from core.exceptions import (
    AmbiguousActiveProject,
    AttachmentNotFound,
    Forbidden,
    NoActiveProject,
    NotFound,
    ValidationFailed,
)
from core.sanitizers import require_text, sanitize_text, validate_activity_date, validate_minutes
from core.storage import LOGBOOK_ATTACHMENTS, get_store
from core.tasks import release_after_commit
from projects.models import Project
from projects.policies import ProjectPolicy
from projects.state_machine import validate_action_for_status
from .models import Logbook

logger = logging.getLogger('collab.logbooks')

ACTIVITY_MAX_LENGTH = 5000

# Only these keys of an update payload are ever applied
EDITABLE_FIELDS = ("date", "time", "activity")


def _sanitize_activity(value):
    return sanitize_text(value, max_length=ACTIVITY_MAX_LENGTH)


def _store_files(project: Project, files) -> List[str]:
    store = get_store(LOGBOOK_ATTACHMENTS)
    return store.put_many(list(files), prefix=f"logbook-{project.pk}")


def _discard_files(handles) -> None:
    store = get_store(LOGBOOK_ATTACHMENTS)
    for handle in handles:
        store.delete(handle, missing_ok=True)


class LogbookWorkflow:

    @staticmethod
    def resolve_current_project(user) -> Project:
        """
        The caller's single active project:
        - student: active project they chair or belong to
        - mentor: active project they oversee

        More than one match means the single-active invariant was broken;
        refuse instead of picking one.
        """
        if getattr(user, "role", None) == "mentor":
            qs = Project.objects.filter(teacher=user, active=True)
        else:
            qs = Project.objects.filter(Q(chairman=user) | Q(members=user), active=True).distinct()

        matches = list(qs.select_related("chairman", "teacher")[:2])
        if not matches:
            raise NoActiveProject()
        if len(matches) > 1:
            logger.error(f"More than one active project for user={user.id}: {[p.pk for p in matches]}")
            raise AmbiguousActiveProject()
        return matches[0]

    @staticmethod
    def get(logbook_id) -> Logbook:
        try:
            return Logbook.objects.select_related("project", "project__chairman", "project__teacher").get(pk=logbook_id)
        except (Logbook.DoesNotExist, ValueError, TypeError):
            raise NotFound("No logbook entry found.")

    @classmethod
    def _require_current(cls, actor, project_id, action):
        """The caller's current project, which must be ``project_id``."""
        project = cls.resolve_current_project(actor)
        if project_id is not None and str(project.pk) != str(project_id):
            raise Forbidden(f"You can only {action} logbook entries of your current active project.")
        return project

    # ---- create ----------------------------------------------------------

    @classmethod
    def create(cls, actor, data, files, project_id=None) -> Logbook:
        project = cls._require_current(actor, project_id, "write")
        ProjectPolicy.require_participant(actor, project, "write logbook entries for this project")

        allowed, reason = validate_action_for_status(project, "write_logbook")
        if not allowed:
            raise ValidationFailed(reason)

        entry_date = validate_activity_date(data.get("date"))
        minutes = validate_minutes(data.get("time"))
        activity = require_text(data.get("activity"), "activity", _sanitize_activity)

        files = list(files or [])
        if not files:
            raise ValidationFailed("Please attach at least one file.")

        handles = _store_files(project, files)
        try:
            entry = Logbook.objects.create(
                project=project,
                date=entry_date,
                time=minutes,
                activity=activity,
                attachments=handles,
            )
        except DatabaseError:
            _discard_files(handles)
            raise

        logger.info(f"Logbook created: entry={entry.id}, project={project.id}, files={len(handles)}, actor={actor.id}")
        return entry

    # ---- update ----------------------------------------------------------

    @classmethod
    def update(cls, actor, logbook_id, data, files=None) -> Logbook:
        """Edit date/time/activity; new files are appended to the attachments."""
        entry = cls.get(logbook_id)
        ProjectPolicy.require_participant(actor, entry.project, "edit this logbook entry")
        cls._require_current(actor, entry.project_id, "edit")

        changed = []
        if "date" in data:
            entry.date = validate_activity_date(data.get("date"))
            changed.append("date")
        if "time" in data:
            entry.time = validate_minutes(data.get("time"))
            changed.append("time")
        if "activity" in data:
            entry.activity = require_text(data.get("activity"), "activity", _sanitize_activity)
            changed.append("activity")

        files = list(files or [])
        new_handles = _store_files(entry.project, files) if files else []
        if new_handles:
            entry.attachments = list(entry.attachments) + new_handles
            changed.append("attachments")

        if not changed:
            return entry

        try:
            entry.save(update_fields=changed + ["updated_at"])
        except DatabaseError:
            _discard_files(new_handles)
            raise

        logger.info(f"Logbook updated: entry={entry.id}, fields={changed}, actor={actor.id}")
        return entry

    # ---- validate --------------------------------------------------------

    @classmethod
    def validate(cls, actor, logbook_id) -> Logbook:
        """Mark an entry valid. Only the project's teacher; never reversed."""
        entry = cls.get(logbook_id)
        ProjectPolicy.require_teacher(actor, entry.project, "validate logbook entries of")

        if not entry.valid:
            entry.valid = True
            entry.save(update_fields=["valid", "updated_at"])
            logger.info(f"Logbook validated: entry={entry.id}, teacher={actor.id}")
        return entry

    # ---- delete ----------------------------------------------------------

    @classmethod
    def delete_entry(cls, actor, logbook_id) -> None:
        entry = cls.get(logbook_id)
        ProjectPolicy.require_participant(actor, entry.project, "delete this logbook entry")

        handles = list(entry.attachments)
        entry_pk = entry.pk
        with transaction.atomic():
            entry.delete()
            release_after_commit(LOGBOOK_ATTACHMENTS, handles)

        logger.info(f"Logbook deleted: entry={entry_pk}, released_files={len(handles)}, actor={actor.id}")

    @classmethod
    def delete_attachments(cls, actor, logbook_id, filenames) -> Logbook:
        """
        Remove one or more named attachments from the entry and storage.

        Every name is checked; if any is not on the entry nothing is removed
        and ``AttachmentNotFound`` lists the missing ones.
        """
        entry = cls.get(logbook_id)
        ProjectPolicy.require_participant(actor, entry.project, "change this logbook entry")

        if isinstance(filenames, str):
            filenames = [filenames]
        names = []
        for name in filenames or []:
            name = str(name).strip()
            if name and name not in names:
                names.append(name)
        if not names:
            raise ValidationFailed("Please provide the file name to delete.")

        missing = [name for name in names if name not in entry.attachments]
        if missing:
            raise AttachmentNotFound(f"There is no file named {', '.join(missing)} on this entry.")

        with transaction.atomic():
            entry.attachments = [h for h in entry.attachments if h not in names]
            entry.save(update_fields=["attachments", "updated_at"])
            release_after_commit(LOGBOOK_ATTACHMENTS, names)

        logger.info(f"Logbook attachments removed: entry={entry.id}, files={names}, actor={actor.id}")
        return entry
