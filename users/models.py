# users/models.py
from django.contrib.auth.models import AbstractUser
from django.db import models

class User(AbstractUser):
    ROLE_STUDENT = 'student'
    ROLE_MENTOR = 'mentor'

    ROLE_CHOICES = (
        (ROLE_STUDENT, 'Student'),
        (ROLE_MENTOR, 'Mentor'),
    )

    role = models.CharField(
        max_length=30,
        choices=ROLE_CHOICES,
        default=ROLE_STUDENT
    )

    # National school id (NPSN); members of a project must share the chairman's
    school = models.CharField(max_length=32, db_index=True, help_text="School identifier (NPSN)")

    photo = models.CharField(max_length=1024, blank=True, default="default.png")

    @property
    def full_name(self):
        return f"{self.first_name} {self.last_name}".strip() or self.username

    @property
    def is_student(self):
        return self.role == self.ROLE_STUDENT

    @property
    def is_mentor(self):
        return self.role == self.ROLE_MENTOR

    def __str__(self):
        return self.username
