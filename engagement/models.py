from django.db import models
from django.conf import settings


class Reaction(models.Model):
    """
    Common shape of likes, bookmarks and comments:
    one user reacting to one project.

    Reverse accessors are ``project.likes``, ``user.bookmarks`` and so on.
    """
    project = models.ForeignKey(
        "projects.Project",
        on_delete=models.CASCADE,
        related_name="%(class)ss",
    )
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="%(class)ss",
    )
    created_at = models.DateTimeField(auto_now_add=True)

    # Ledger key; matches the ``<kind>_count`` field on Project
    KIND = None

    class Meta:
        abstract = True


class Like(Reaction):
    KIND = "like"

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=["project", "user"], name="like_unique_project_user"),
        ]

    def __str__(self):
        return f"{self.user} likes {self.project_id}"


class Bookmark(Reaction):
    KIND = "bookmark"

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=["project", "user"], name="bookmark_unique_project_user"),
        ]

    def __str__(self):
        return f"{self.user} bookmarked {self.project_id}"


class Comment(Reaction):
    """A user may comment on the same project any number of times."""
    KIND = "comment"

    content = models.TextField()

    class Meta:
        indexes = [
            models.Index(fields=["project", "-created_at"], name="comment_project_created_idx"),
        ]

    def __str__(self):
        return f"{self.user} on {self.project_id}: {self.content[:40]}"
