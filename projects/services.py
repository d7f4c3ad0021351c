# projects/services.py
"""
Project lifecycle: create, activate, update, submit results, publish, delete.

Every operation takes the acting user first and raises the domain errors
from ``core.exceptions``; nothing here knows about HTTP.
"""
import logging
from typing import Iterable, Optional

from django.db import DatabaseError, IntegrityError, transaction
from django.db.models import F, Q, QuerySet
from django.utils.text import slugify

from core.exceptions import Conflict, NotFound, ValidationFailed
from core.sanitizers import require_text, sanitize_description, sanitize_title
from core.storage import LOGBOOK_ATTACHMENTS, PROJECT_RESULTS, get_store
from core.tasks import release_after_commit
from .models import Project
from .policies import MembershipPolicy, ProjectPolicy, normalize_ids
from .state_machine import apply_flags, validate_action_for_status

logger = logging.getLogger('collab.projects')


ACTIVE_PROJECT_CONFLICT = "You already have an active project."


def _save(project: Project, fields: Iterable[str]) -> Project:
    """Persist only ``fields`` (last write wins per field) and bump the version."""
    project.version = F("version") + 1
    project.save(update_fields=sorted(set(fields) | {"version", "updated_at"}))
    project.refresh_from_db(fields=["version"])
    return project


class ProjectService:
    # Only these keys of an update payload are ever applied
    EDITABLE_FIELDS = ("name", "topic", "description", "teacher", "members")

    @staticmethod
    def get(project_id) -> Project:
        try:
            return Project.objects.select_related("chairman", "teacher").get(pk=project_id)
        except (Project.DoesNotExist, ValueError, TypeError):
            raise NotFound("No project found.")

    @staticmethod
    def active_projects_for(user) -> QuerySet:
        """Active projects where ``user`` is chairman or member."""
        return Project.objects.filter(
            Q(chairman=user) | Q(members=user),
            active=True,
        ).distinct()

    @staticmethod
    def visible_projects(user, public: bool = False) -> QuerySet:
        """
        Listing scope:
        - public: every published project
        - mentor: projects they oversee
        - student: projects they chair or belong to
        """
        qs = Project.objects.select_related("chairman", "teacher")
        if public:
            return qs.filter(published=True)
        if getattr(user, "role", None) == "mentor":
            return qs.filter(teacher=user)
        return qs.filter(Q(chairman=user) | Q(members=user)).distinct()

    # ---- create ----------------------------------------------------------

    @classmethod
    def create(cls, actor, data) -> Project:
        ProjectPolicy.require_student(actor)

        if cls.active_projects_for(actor).exists():
            logger.warning(f"Project creation refused: user={actor.id} already has an active project")
            raise Conflict(ACTIVE_PROJECT_CONFLICT)

        name = require_text(data.get("name"), "name", sanitize_title)
        topic = require_text(data.get("topic"), "topic", sanitize_title)
        description = sanitize_description(data.get("description"))

        try:
            with transaction.atomic():
                project = Project.objects.create(
                    name=name,
                    topic=topic,
                    description=description,
                    chairman=actor,
                    active=True,
                )
        except IntegrityError:
            # A concurrent create/activate won the single-active-project constraint
            raise Conflict(ACTIVE_PROJECT_CONFLICT)

        logger.info(f"Project created: project={project.id}, chairman={actor.id}")
        return project

    # ---- activate --------------------------------------------------------

    @classmethod
    def activate(cls, actor, project_id) -> Project:
        """
        Make ``project_id`` the chairman's only active project.

        Deactivating the siblings and activating the target happen in one
        transaction, with all of the chairman's projects row-locked in id
        order, so no reader ever sees two active projects.
        """
        project = cls.get(project_id)
        ProjectPolicy.require_chairman(actor, project, "activate")

        try:
            with transaction.atomic():
                locked = list(
                    Project.objects.select_for_update()
                    .filter(chairman_id=project.chairman_id)
                    .order_by("pk")
                )
                target = next((p for p in locked if p.pk == project.pk), None)
                if target is None:
                    raise NotFound("No project found.")

                # The chairman's own projects are about to be switched off
                participants = [target.chairman_id, *target.members.values_list("pk", flat=True)]
                busy = MembershipPolicy.active_elsewhere(
                    participants, exclude={"chairman_id": target.chairman_id}
                )
                if busy:
                    logger.warning(
                        f"Project activation refused: project={target.id}, busy_users={sorted(busy)}"
                    )
                    raise Conflict(
                        "Someone in this project already belongs to another active project."
                    )

                deactivated = (
                    Project.objects.filter(chairman_id=project.chairman_id, active=True)
                    .exclude(pk=target.pk)
                    .update(active=False, version=F("version") + 1)
                )
                changed = apply_flags(target, actor, active=True)
                if changed:
                    _save(target, changed)
        except IntegrityError:
            raise Conflict(ACTIVE_PROJECT_CONFLICT)

        logger.info(
            f"Project activated: project={target.id}, chairman={actor.id}, deactivated={deactivated}"
        )
        target.chairman = project.chairman
        return target

    # ---- update ----------------------------------------------------------

    @classmethod
    def update(cls, actor, project_id, data) -> Project:
        project = cls.get(project_id)
        ProjectPolicy.require_chairman(actor, project, "update")

        payload = {key: data[key] for key in cls.EDITABLE_FIELDS if key in data}
        chairman_school = project.chairman.school
        changed = []

        if "name" in payload:
            project.name = require_text(payload["name"], "name", sanitize_title)
            changed.append("name")
        if "topic" in payload:
            project.topic = require_text(payload["topic"], "topic", sanitize_title)
            changed.append("topic")
        if "description" in payload:
            project.description = sanitize_description(payload["description"])
            changed.append("description")

        if "teacher" in payload:
            teacher_id = payload["teacher"]
            if teacher_id in (None, ""):
                project.teacher = None
            else:
                MembershipPolicy.check_teacher(teacher_id, chairman_school)
                project.teacher_id = int(teacher_id)
            changed.append("teacher")

        new_members = normalize_ids(payload.get("members"))
        if new_members:
            existing = set(project.members.values_list("pk", flat=True))
            existing.add(project.chairman_id)
            MembershipPolicy.check_members(new_members, chairman_school, existing, project.pk)

        if not changed and not new_members:
            return project

        with transaction.atomic():
            _save(project, changed)
            if new_members:
                project.members.add(*new_members)

        logger.info(
            f"Project updated: project={project.id}, fields={changed}, "
            f"added_members={new_members}, actor={actor.id}"
        )
        return cls.get(project.pk)

    # ---- results ---------------------------------------------------------

    @classmethod
    def upload_results(cls, actor, project_id, files) -> Project:
        """
        Replace the project's results and mark it finished.

        New files are stored first; the old ones are released only after the
        database write commits, in the background.
        """
        project = cls.get(project_id)
        ProjectPolicy.require_chairman(actor, project, "submit results for")

        files = list(files or [])
        if not files:
            raise ValidationFailed("Please provide a result image.")

        store = get_store(PROJECT_RESULTS)
        handles = store.put_many(files, prefix=f"result-{slugify(project.name) or project.pk}")
        old_handles = [h for h in project.results if h not in handles]

        try:
            with transaction.atomic():
                project.results = handles
                changed = ["results"] + apply_flags(project, actor, finished=True)
                _save(project, changed)
        except DatabaseError:
            for handle in handles:
                store.delete(handle, missing_ok=True)
            raise

        release_after_commit(PROJECT_RESULTS, old_handles)
        logger.info(f"Results submitted: project={project.id}, files={len(handles)}, actor={actor.id}")
        return project

    # ---- publish ---------------------------------------------------------

    @classmethod
    def publish(cls, actor, project_id) -> Project:
        project = cls.get(project_id)
        ProjectPolicy.require_teacher(actor, project, "publish")

        allowed, reason = validate_action_for_status(project, "publish")
        if not allowed:
            logger.warning(f"Publish refused: project={project.id}, actor={actor.id}. Reason: {reason}")
            raise ValidationFailed(reason)

        changed = apply_flags(project, actor, published=True)
        if changed:
            _save(project, changed)
        return project

    # ---- delete ----------------------------------------------------------

    @classmethod
    def delete(cls, actor, project_id) -> None:
        """
        Delete a project together with its logbook entries and reactions.

        Every attachment they referenced is released after commit.
        """
        project = cls.get(project_id)
        ProjectPolicy.require_chairman(actor, project, "delete")

        result_handles = list(project.results)
        logbook_handles = [
            handle
            for attachments in project.logbooks.values_list("attachments", flat=True)
            for handle in (attachments or [])
        ]

        with transaction.atomic():
            project_pk = project.pk
            project.delete()
            release_after_commit(PROJECT_RESULTS, result_handles)
            release_after_commit(LOGBOOK_ATTACHMENTS, logbook_handles)

        logger.info(
            f"Project deleted: project={project_pk}, actor={actor.id}, "
            f"released_results={len(result_handles)}, released_logbook_files={len(logbook_handles)}"
        )

    @staticmethod
    def detail(project_id) -> Project:
        try:
            return (
                Project.objects.select_related("chairman", "teacher")
                .prefetch_related("members", "logbooks")
                .get(pk=project_id)
            )
        except (Project.DoesNotExist, ValueError, TypeError):
            raise NotFound("No project found.")
