# engagement/services.py
"""
Reaction entry points: likes, bookmarks and comments.

Each mutation commits first, then sends ``reaction_created`` /
``reaction_deleted`` so the ledger recounts the project's counters.
"""
import logging

from django.db import IntegrityError, transaction

from core.exceptions import Conflict, Forbidden, NotFound, ValidationFailed
from core.sanitizers import require_text, sanitize_text
from projects.models import Project
from .events import reaction_created, reaction_deleted
from .models import Bookmark, Comment, Like

logger = logging.getLogger('collab.engagement')

COMMENT_MAX_LENGTH = 2000

COUNTER_FIELDS = ["like_count", "bookmark_count", "comment_count"]


def _sanitize_comment(value):
    return sanitize_text(value, max_length=COMMENT_MAX_LENGTH)


class ReactionService:
    # kind -> (model, past-tense verb for messages)
    TOGGLES = {
        Like.KIND: (Like, "liked"),
        Bookmark.KIND: (Bookmark, "bookmarked"),
    }

    @staticmethod
    def get_project(project_id) -> Project:
        if project_id in (None, ""):
            raise ValidationFailed("Please provide a project.")
        try:
            return Project.objects.get(pk=project_id)
        except (Project.DoesNotExist, ValueError, TypeError):
            raise NotFound("No project found.")

    @classmethod
    def _toggle(cls, kind):
        try:
            return cls.TOGGLES[kind]
        except KeyError:
            raise ValueError(f"Unknown reaction kind: {kind!r}")

    @classmethod
    def add(cls, kind, actor, project_id):
        """Create the caller's like/bookmark; a second one is a Conflict."""
        model, verb = cls._toggle(kind)
        project = cls.get_project(project_id)

        try:
            with transaction.atomic():
                reaction = model.objects.create(project=project, user=actor)
        except IntegrityError:
            raise Conflict(f"You have already {verb} this project.")

        logger.info(f"{kind} created: project={project.id}, user={actor.id}")
        reaction_created.send(sender=model, kind=kind, project_id=project.pk, reaction=reaction)
        # the response embeds the project, so pick up the recounted totals
        reaction.project.refresh_from_db(fields=COUNTER_FIELDS)
        return reaction

    @classmethod
    def remove(cls, kind, actor, project_id):
        model, verb = cls._toggle(kind)
        if project_id in (None, ""):
            raise ValidationFailed("Please provide a project.")

        try:
            deleted, _ = model.objects.filter(project_id=project_id, user=actor).delete()
        except (ValueError, TypeError):
            raise NotFound("No project found.")
        if not deleted:
            raise NotFound(f"You have not {verb} this project.")

        logger.info(f"{kind} deleted: project={project_id}, user={actor.id}")
        reaction_deleted.send(sender=model, kind=kind, project_id=int(project_id))

    @classmethod
    def add_comment(cls, actor, project_id, content) -> Comment:
        project = cls.get_project(project_id)
        text = require_text(content, "comment", _sanitize_comment)

        comment = Comment.objects.create(project=project, user=actor, content=text)

        logger.info(f"comment created: project={project.id}, user={actor.id}, comment={comment.id}")
        reaction_created.send(sender=Comment, kind=Comment.KIND, project_id=project.pk, reaction=comment)
        return comment

    @classmethod
    def delete_comment(cls, actor, comment_id) -> None:
        """The comment's author or the project's chairman may delete it."""
        try:
            comment = Comment.objects.select_related("project").get(pk=comment_id)
        except (Comment.DoesNotExist, ValueError, TypeError):
            raise NotFound("No comment found.")

        if comment.user_id != actor.id and not comment.project.is_chairman(actor):
            raise Forbidden("You can only delete your own comments or comments on your project.")

        project_id = comment.project_id
        comment.delete()

        logger.info(f"comment deleted: project={project_id}, comment={comment_id}, actor={actor.id}")
        reaction_deleted.send(sender=Comment, kind=Comment.KIND, project_id=project_id)
