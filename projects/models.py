from django.db import models
from django.db.models import Q
from django.conf import settings


class Project(models.Model):
    """
    A student team's project, overseen by a mentor teacher.

    Lifecycle flags are independent booleans:
    1. ``active``: the chairman's single in-progress project (toggle)
    2. ``finished``: set when results are submitted
    3. ``published``: one-way gate set by the teacher after ``finished``

    ``like_count``/``bookmark_count``/``comment_count`` are denormalized and
    only written by the engagement ledger.
    """
    STATUS_DRAFT = "draft"
    STATUS_ACTIVE = "active"
    STATUS_FINISHED = "finished"
    STATUS_PUBLISHED = "published"

    STATUS_CHOICES = [
        (STATUS_DRAFT, "Draft"),
        (STATUS_ACTIVE, "Active"),
        (STATUS_FINISHED, "Finished"),
        (STATUS_PUBLISHED, "Published"),
    ]

    name = models.CharField(max_length=255)
    topic = models.CharField(max_length=255)
    description = models.TextField(blank=True, default="")

    chairman = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="chaired_projects"
    )
    members = models.ManyToManyField(
        settings.AUTH_USER_MODEL,
        blank=True,
        related_name="member_projects"
    )
    teacher = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="mentored_projects"
    )

    # Attachment handles (filenames) of the submitted results
    results = models.JSONField(default=list, blank=True)

    active = models.BooleanField(default=True)
    finished = models.BooleanField(default=False)
    published = models.BooleanField(default=False)

    like_count = models.PositiveIntegerField(default=0)
    bookmark_count = models.PositiveIntegerField(default=0)
    comment_count = models.PositiveIntegerField(default=0)

    # Bumped by every lifecycle write; never exposed to clients
    version = models.PositiveIntegerField(default=0)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(
                fields=["chairman"],
                condition=Q(active=True),
                name="project_single_active_per_chairman",
            ),
        ]
        indexes = [
            models.Index(fields=["chairman", "active"], name="project_chairman_active_idx"),
            models.Index(fields=["teacher", "active"], name="project_teacher_active_idx"),
            models.Index(fields=["published"], name="project_published_idx"),
        ]

    @property
    def status(self):
        if self.published:
            return self.STATUS_PUBLISHED
        if self.finished:
            return self.STATUS_FINISHED
        if self.active:
            return self.STATUS_ACTIVE
        return self.STATUS_DRAFT

    def is_chairman(self, user):
        return user is not None and self.chairman_id == getattr(user, "id", None)

    def is_teacher(self, user):
        return user is not None and self.teacher_id is not None and self.teacher_id == getattr(user, "id", None)

    def is_participant(self, user):
        """Chairman or member."""
        if self.is_chairman(user):
            return True
        return self.members.filter(pk=getattr(user, "id", None)).exists()

    def __str__(self):
        return f"{self.name} ({self.chairman})"
