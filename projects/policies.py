# projects/policies.py
"""
Centralized project policy layer.

``MembershipPolicy`` is a pure validation gate for member/teacher changes;
``ProjectPolicy`` answers ownership questions. Neither mutates anything.
"""
from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence

from django.contrib.auth import get_user_model
from django.db.models import Q

from core.exceptions import Conflict, Forbidden, ValidationFailed
from .models import Project

User = get_user_model()


@dataclass(frozen=True)
class Rejection:
    SCHOOL_MISMATCH = "school_mismatch"
    ALREADY_MEMBER = "already_member"
    ACTIVE_ELSEWHERE = "active_elsewhere"
    UNKNOWN_USER = "unknown_user"
    NOT_A_MENTOR = "not_a_mentor"

    reason: str
    user_id: object
    message: str

    def as_error(self):
        if self.reason in (self.ALREADY_MEMBER, self.ACTIVE_ELSEWHERE):
            return Conflict(self.message)
        return ValidationFailed(self.message)


def normalize_ids(value) -> List[object]:
    """
    Accept one id or a list of ids (ints or numeric strings).

    Order is kept and duplicates are dropped; anything non-numeric is
    passed through unchanged so the policy can reject it by name.
    """
    if value is None or value == "":
        return []
    if not isinstance(value, (list, tuple)):
        value = [value]

    seen = []
    for raw in value:
        try:
            candidate = int(str(raw).strip())
        except (TypeError, ValueError):
            candidate = raw
        if candidate not in seen:
            seen.append(candidate)
    return seen


class MembershipPolicy:

    @staticmethod
    def active_elsewhere(user_ids: Iterable, exclude=None) -> set:
        """Ids among ``user_ids`` that chair or belong to an active project."""
        user_ids = list(user_ids)
        if not user_ids:
            return set()
        projects = Project.objects.filter(
            Q(chairman_id__in=user_ids) | Q(members__in=user_ids),
            active=True,
        )
        if exclude is not None:
            projects = projects.exclude(**exclude)

        taken = set()
        for chairman_id, member_id in projects.values_list("chairman_id", "members"):
            taken.update(pk for pk in (chairman_id, member_id) if pk in user_ids)
        return taken

    @classmethod
    def validate_members(
        cls,
        candidate_ids: Sequence,
        chairman_school: str,
        existing_member_ids: Iterable,
        project_id=None,
    ) -> Optional[Rejection]:
        """
        Check every candidate independently and return the first rejection,
        or None when all of them may join.

        One lookup covers all candidates, so a missing user never stops
        the others from being checked. A student already in an active
        project other than ``project_id`` is refused.
        """
        existing = set(existing_member_ids)
        numeric = [c for c in candidate_ids if isinstance(c, int)]
        users = {u.pk: u for u in User.objects.filter(pk__in=numeric)}
        busy = cls.active_elsewhere(
            users.keys(), exclude={"pk": project_id} if project_id is not None else None
        )

        rejections = []
        for candidate in candidate_ids:
            user = users.get(candidate)
            if user is None:
                rejections.append(Rejection(
                    Rejection.UNKNOWN_USER, candidate,
                    f"This user ({candidate}) does not exist.",
                ))
            elif user.school != chairman_school:
                rejections.append(Rejection(
                    Rejection.SCHOOL_MISMATCH, candidate,
                    f"This user ({user.full_name}) is not in the same school as the chairman.",
                ))
            elif candidate in existing:
                rejections.append(Rejection(
                    Rejection.ALREADY_MEMBER, candidate,
                    f"This user ({user.full_name}) is already a member of this project.",
                ))
            elif candidate in busy:
                rejections.append(Rejection(
                    Rejection.ACTIVE_ELSEWHERE, candidate,
                    f"This user ({user.full_name}) already has another active project.",
                ))

        return rejections[0] if rejections else None

    @staticmethod
    def validate_teacher(teacher_id, chairman_school: str) -> Optional[Rejection]:
        try:
            teacher = User.objects.get(pk=teacher_id)
        except (User.DoesNotExist, TypeError, ValueError):
            return Rejection(Rejection.UNKNOWN_USER, teacher_id, f"This user ({teacher_id}) does not exist.")

        if teacher.role != User.ROLE_MENTOR:
            return Rejection(
                Rejection.NOT_A_MENTOR, teacher_id,
                f"This user ({teacher.full_name}) is not a mentor teacher.",
            )
        if teacher.school != chairman_school:
            return Rejection(
                Rejection.SCHOOL_MISMATCH, teacher_id,
                f"This teacher ({teacher.full_name}) is not in the same school as the chairman.",
            )
        return None

    @classmethod
    def check_members(cls, candidate_ids, chairman_school, existing_member_ids, project_id=None):
        rejection = cls.validate_members(candidate_ids, chairman_school, existing_member_ids, project_id)
        if rejection is not None:
            raise rejection.as_error()

    @classmethod
    def check_teacher(cls, teacher_id, chairman_school):
        rejection = cls.validate_teacher(teacher_id, chairman_school)
        if rejection is not None:
            raise rejection.as_error()


class ProjectPolicy:
    """
    Ownership checks for project actions.
    All ``require_*`` methods raise ``Forbidden`` with a reason.
    """

    @staticmethod
    def require_student(user):
        if getattr(user, "role", None) != User.ROLE_STUDENT:
            raise Forbidden("Only students can start a project.")

    @staticmethod
    def require_chairman(user, project, action="manage"):
        if not project.is_chairman(user):
            raise Forbidden(
                f"You are not allowed to {action} this project because you are not its chairman. "
                f"Please ask your team leader ({project.chairman.full_name})."
            )

    @staticmethod
    def require_teacher(user, project, action="manage"):
        if not project.is_teacher(user):
            raise Forbidden(f"You are not allowed to {action} this project because you are not its mentor teacher.")

    @staticmethod
    def require_participant(user, project, action="manage"):
        if not project.is_participant(user):
            raise Forbidden(f"You are not allowed to {action} because you are not part of this project.")
