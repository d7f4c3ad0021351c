from datetime import date

from django.test import TestCase

from core.exceptions import (
    AmbiguousActiveProject,
    AttachmentNotFound,
    Forbidden,
    NoActiveProject,
    ValidationFailed,
)
from core.storage import LOGBOOK_ATTACHMENTS, get_store
from core.tests.utils import TempMediaMixin, image, pdf
from logbooks.models import Logbook
from logbooks.services import LogbookWorkflow
from projects.models import Project
from users.models import User


class LogbookTestCase(TempMediaMixin, TestCase):
    def setUp(self):
        super().setUp()
        self.chairman = User.objects.create_user(username="sari", password="pass", role="student", school="1")
        self.member = User.objects.create_user(username="rina", password="pass", role="student", school="1")
        self.outsider = User.objects.create_user(username="joko", password="pass", role="student", school="1")
        self.mentor = User.objects.create_user(username="budi", password="pass", role="mentor", school="1")
        self.other_mentor = User.objects.create_user(username="andi", password="pass", role="mentor", school="1")

        self.project = Project.objects.create(
            name="Solar", topic="Energy", chairman=self.chairman, teacher=self.mentor, active=True
        )
        self.project.members.add(self.member)
        self.store = get_store(LOGBOOK_ATTACHMENTS)

    def write_entry(self, user=None, time=45, files=None):
        return LogbookWorkflow.create(
            user or self.chairman,
            {"date": "2024-03-01", "activity": "Assembled the frame", "time": str(time)},
            files if files is not None else [image()],
        )


class ResolveCurrentProjectTests(LogbookTestCase):
    def test_student_and_mentor_resolve_the_active_project(self):
        self.assertEqual(LogbookWorkflow.resolve_current_project(self.chairman), self.project)
        self.assertEqual(LogbookWorkflow.resolve_current_project(self.member), self.project)
        self.assertEqual(LogbookWorkflow.resolve_current_project(self.mentor), self.project)

    def test_no_active_project(self):
        with self.assertRaises(NoActiveProject):
            LogbookWorkflow.resolve_current_project(self.outsider)

        self.project.active = False
        self.project.save()
        with self.assertRaises(NoActiveProject):
            LogbookWorkflow.resolve_current_project(self.chairman)

    def test_more_than_one_match_fails_loudly(self):
        other = Project.objects.create(name="Wind", topic="T", chairman=self.outsider, active=True)
        other.members.add(self.member)
        with self.assertRaises(AmbiguousActiveProject):
            LogbookWorkflow.resolve_current_project(self.member)


class CreateTests(LogbookTestCase):
    def test_create_stores_attachments_and_starts_invalid(self):
        entry = self.write_entry(files=[image(), pdf()])

        self.assertEqual(entry.project, self.project)
        self.assertEqual(entry.date, date(2024, 3, 1))
        self.assertEqual(entry.time, 45)
        self.assertFalse(entry.valid)
        self.assertEqual(len(entry.attachments), 2)
        for handle in entry.attachments:
            self.assertTrue(self.store.exists(handle))

    def test_members_may_write(self):
        self.assertEqual(self.write_entry(user=self.member).project, self.project)

    def test_attachment_required(self):
        with self.assertRaises(ValidationFailed):
            self.write_entry(files=[])

    def test_required_fields(self):
        for data in (
            {"activity": "x", "time": "5"},
            {"date": "2024-03-01", "activity": "x"},
            {"date": "2024-03-01", "time": "5", "activity": "  "},
            {"date": "yesterday", "time": "5", "activity": "x"},
            {"date": "2024-02-30", "time": "5", "activity": "x"},
            {"date": "2024-03-01", "time": "0", "activity": "x"},
        ):
            with self.assertRaises(ValidationFailed):
                LogbookWorkflow.create(self.chairman, data, [image()])
        self.assertEqual(self.store.list_handles(), [])

    def test_other_project_is_forbidden(self):
        other = Project.objects.create(name="Wind", topic="T", chairman=self.outsider, active=True)
        with self.assertRaises(Forbidden):
            LogbookWorkflow.create(
                self.chairman,
                {"date": "2024-03-01", "activity": "x", "time": "5"},
                [image()],
                project_id=other.pk,
            )

    def test_without_active_project(self):
        with self.assertRaises(NoActiveProject):
            self.write_entry(user=self.outsider)


class UpdateTests(LogbookTestCase):
    def test_fields_change_and_new_files_are_appended(self):
        entry = self.write_entry()
        first = list(entry.attachments)

        updated = LogbookWorkflow.update(
            self.member, entry.pk, {"time": "90", "activity": "Painted", "valid": "true"}, [pdf()]
        )

        self.assertEqual(updated.time, 90)
        self.assertEqual(updated.activity, "Painted")
        self.assertFalse(updated.valid)
        self.assertEqual(updated.attachments[:1], first)
        self.assertEqual(len(updated.attachments), 2)

    def test_impossible_date_is_rejected(self):
        entry = self.write_entry()
        with self.assertRaises(ValidationFailed):
            LogbookWorkflow.update(self.chairman, entry.pk, {"date": "2023-02-29"})
        entry.refresh_from_db()
        self.assertEqual(entry.date, date(2024, 3, 1))

    def test_entry_of_another_project_is_forbidden(self):
        entry = self.write_entry()
        Project.objects.create(name="Wind", topic="T", chairman=self.outsider, active=True)
        with self.assertRaises(Forbidden):
            LogbookWorkflow.update(self.outsider, entry.pk, {"time": "5"})

    def test_teacher_cannot_edit(self):
        entry = self.write_entry()
        with self.assertRaises(Forbidden):
            LogbookWorkflow.update(self.mentor, entry.pk, {"time": "5"})
        entry.refresh_from_db()
        self.assertEqual(entry.time, 45)


class ValidateTests(LogbookTestCase):
    def test_teacher_validates_once_and_for_all(self):
        entry = self.write_entry()

        LogbookWorkflow.validate(self.mentor, entry.pk)
        entry.refresh_from_db()
        self.assertTrue(entry.valid)

        # repeating is harmless; editing never resets it
        LogbookWorkflow.validate(self.mentor, entry.pk)
        LogbookWorkflow.update(self.chairman, entry.pk, {"time": "10", "valid": False})
        entry.refresh_from_db()
        self.assertTrue(entry.valid)

    def test_mentor_who_is_not_the_teacher_is_forbidden(self):
        entry = self.write_entry()
        with self.assertRaises(Forbidden):
            LogbookWorkflow.validate(self.other_mentor, entry.pk)
        entry.refresh_from_db()
        self.assertFalse(entry.valid)

    def test_students_cannot_validate(self):
        entry = self.write_entry()
        with self.assertRaises(Forbidden):
            LogbookWorkflow.validate(self.chairman, entry.pk)


class DeleteTests(LogbookTestCase):
    def test_delete_entry_releases_attachments(self):
        entry = self.write_entry(files=[image(), pdf()])
        handles = list(entry.attachments)

        with self.captureOnCommitCallbacks(execute=True):
            LogbookWorkflow.delete_entry(self.member, entry.pk)

        self.assertFalse(Logbook.objects.filter(pk=entry.pk).exists())
        for handle in handles:
            self.assertFalse(self.store.exists(handle))

    def test_outsider_cannot_delete(self):
        entry = self.write_entry()
        with self.assertRaises(Forbidden):
            LogbookWorkflow.delete_entry(self.outsider, entry.pk)

    def test_delete_named_attachments(self):
        entry = self.write_entry(files=[image("a.png"), image("b.png"), pdf("c.pdf")])
        a, b, c = entry.attachments

        with self.captureOnCommitCallbacks(execute=True):
            updated = LogbookWorkflow.delete_attachments(self.chairman, entry.pk, [a, c])

        self.assertEqual(updated.attachments, [b])
        self.assertFalse(self.store.exists(a))
        self.assertTrue(self.store.exists(b))
        self.assertFalse(self.store.exists(c))

    def test_single_name_is_accepted(self):
        entry = self.write_entry(files=[image("a.png"), image("b.png")])
        updated = LogbookWorkflow.delete_attachments(self.chairman, entry.pk, entry.attachments[0])
        self.assertEqual(len(updated.attachments), 1)

    def test_unknown_name_removes_nothing(self):
        entry = self.write_entry(files=[image("a.png"), image("b.png")])
        before = list(entry.attachments)

        with self.assertRaises(AttachmentNotFound) as ctx:
            LogbookWorkflow.delete_attachments(self.chairman, entry.pk, [before[0], "ghost.png"])

        self.assertIn("ghost.png", str(ctx.exception.detail))
        entry.refresh_from_db()
        self.assertEqual(entry.attachments, before)
        self.assertTrue(self.store.exists(before[0]))

    def test_name_required(self):
        entry = self.write_entry()
        with self.assertRaises(ValidationFailed):
            LogbookWorkflow.delete_attachments(self.chairman, entry.pk, [])
