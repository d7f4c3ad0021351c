from django.db import models


class Logbook(models.Model):
    """
    A dated activity record of a project.

    ``attachments`` holds storage handles (at least one at creation).
    ``valid`` only ever goes from False to True, set by the project's teacher.
    """
    project = models.ForeignKey(
        "projects.Project",
        on_delete=models.CASCADE,
        related_name="logbooks"
    )
    date = models.DateField()
    activity = models.TextField()
    # Minutes spent
    time = models.PositiveIntegerField()
    attachments = models.JSONField(default=list, blank=True)
    valid = models.BooleanField(default=False)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        indexes = [
            models.Index(fields=["project", "-date"], name="logbook_project_date_idx"),
        ]

    def __str__(self):
        return f"{self.project_id} @ {self.date}: {self.activity[:40]}"
