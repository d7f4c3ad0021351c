from io import StringIO
from unittest import mock

from django.core.management import call_command
from django.db import DatabaseError
from django.test import TestCase

from core.exceptions import Conflict, Forbidden, NotFound, ValidationFailed
from engagement.events import reaction_created, reaction_deleted
from engagement.ledger import EngagementLedger
from engagement.models import Bookmark, Comment, Like
from engagement.services import ReactionService
from projects.models import Project
from users.models import User


class EngagementTestCase(TestCase):
    def setUp(self):
        self.chairman = User.objects.create_user(username="sari", password="pass", role="student", school="1")
        self.fans = [
            User.objects.create_user(username=f"fan{i}", password="pass", role="student", school="1")
            for i in range(3)
        ]
        self.project = Project.objects.create(name="Solar", topic="Energy", chairman=self.chairman)

    def counters(self):
        self.project.refresh_from_db()
        return (self.project.like_count, self.project.bookmark_count, self.project.comment_count)


class CounterConvergenceTests(EngagementTestCase):
    def test_counters_follow_reactions(self):
        for fan in self.fans:
            ReactionService.add("like", fan, self.project.pk)
        ReactionService.add("bookmark", self.fans[0], self.project.pk)
        ReactionService.add_comment(self.fans[1], self.project.pk, "Great work")
        ReactionService.add_comment(self.fans[1], self.project.pk, "Again!")

        self.assertEqual(self.counters(), (3, 1, 2))

        ReactionService.remove("like", self.fans[2], self.project.pk)
        self.assertEqual(self.counters(), (2, 1, 2))
        self.assertEqual(self.project.like_count, Like.objects.filter(project=self.project).count())

    def test_recount_heals_a_stale_counter(self):
        Project.objects.filter(pk=self.project.pk).update(like_count=42)

        ReactionService.add("like", self.fans[0], self.project.pk)

        self.assertEqual(self.counters()[0], 1)

    def test_created_reaction_carries_fresh_totals(self):
        ReactionService.add("like", self.fans[0], self.project.pk)
        like = ReactionService.add("like", self.fans[1], self.project.pk)
        self.assertEqual(like.project.like_count, 2)

    def test_replaying_an_event_is_idempotent(self):
        ReactionService.add("like", self.fans[0], self.project.pk)
        EngagementLedger.on_reaction_changed("like", self.project.pk)
        EngagementLedger.on_reaction_changed("like", self.project.pk)
        self.assertEqual(self.counters()[0], 1)

    def test_reactions_signal_the_ledger(self):
        received = []

        def listener(sender, kind, project_id, **kwargs):
            received.append((sender, kind, project_id))

        reaction_created.connect(listener)
        reaction_deleted.connect(listener)
        self.addCleanup(reaction_created.disconnect, listener)
        self.addCleanup(reaction_deleted.disconnect, listener)

        ReactionService.add("bookmark", self.fans[0], self.project.pk)
        ReactionService.remove("bookmark", self.fans[0], self.project.pk)

        self.assertEqual(
            received,
            [(Bookmark, "bookmark", self.project.pk), (Bookmark, "bookmark", self.project.pk)],
        )

    def test_unknown_kind(self):
        with self.assertRaises(ValueError):
            EngagementLedger.on_reaction_changed("share", self.project.pk)


class LedgerFailureTests(EngagementTestCase):
    def test_write_back_failure_keeps_the_reaction(self):
        with mock.patch("engagement.ledger._write_back", side_effect=DatabaseError("locked")):
            with self.assertLogs("collab.engagement", level="ERROR") as logs:
                like = ReactionService.add("like", self.fans[0], self.project.pk)

        self.assertTrue(Like.objects.filter(pk=like.pk).exists())
        self.assertEqual(self.counters()[0], 0)
        self.assertIn("Counter write-back failed", logs.output[0])

        # the next change on the project heals the counter
        ReactionService.add("like", self.fans[1], self.project.pk)
        self.assertEqual(self.counters()[0], 2)

    def test_failed_write_back_returns_none(self):
        with mock.patch("engagement.ledger._write_back", side_effect=DatabaseError("locked")):
            with self.assertLogs("collab.engagement", level="ERROR"):
                self.assertIsNone(EngagementLedger.on_reaction_changed("comment", self.project.pk))


class ReactionUniquenessTests(EngagementTestCase):
    def test_second_like_conflicts_and_recreate_after_delete_succeeds(self):
        fan = self.fans[0]
        ReactionService.add("like", fan, self.project.pk)

        with self.assertRaises(Conflict):
            ReactionService.add("like", fan, self.project.pk)
        self.assertEqual(self.counters()[0], 1)

        ReactionService.remove("like", fan, self.project.pk)
        ReactionService.add("like", fan, self.project.pk)
        self.assertEqual(Like.objects.filter(project=self.project, user=fan).count(), 1)

    def test_bookmark_uniqueness(self):
        ReactionService.add("bookmark", self.fans[0], self.project.pk)
        with self.assertRaises(Conflict):
            ReactionService.add("bookmark", self.fans[0], self.project.pk)

    def test_remove_without_reaction(self):
        with self.assertRaises(NotFound):
            ReactionService.remove("like", self.fans[0], self.project.pk)

    def test_missing_project(self):
        with self.assertRaises(NotFound):
            ReactionService.add("like", self.fans[0], 999999)
        with self.assertRaises(ValidationFailed):
            ReactionService.add("like", self.fans[0], None)


class CommentTests(EngagementTestCase):
    def test_empty_comment_rejected(self):
        with self.assertRaises(ValidationFailed):
            ReactionService.add_comment(self.fans[0], self.project.pk, "   ")

    def test_author_or_chairman_may_delete(self):
        mine = ReactionService.add_comment(self.fans[0], self.project.pk, "first")
        theirs = ReactionService.add_comment(self.fans[1], self.project.pk, "second")

        with self.assertRaises(Forbidden):
            ReactionService.delete_comment(self.fans[0], theirs.pk)

        ReactionService.delete_comment(self.fans[0], mine.pk)
        ReactionService.delete_comment(self.chairman, theirs.pk)

        self.assertEqual(Comment.objects.count(), 0)
        self.assertEqual(self.counters()[2], 0)

    def test_missing_comment(self):
        with self.assertRaises(NotFound):
            ReactionService.delete_comment(self.fans[0], 999999)


class RecountCommandTests(EngagementTestCase):
    def test_recount_engagement_fixes_idle_projects(self):
        Like.objects.create(project=self.project, user=self.fans[0])
        Comment.objects.create(project=self.project, user=self.fans[1], content="hi")
        self.assertEqual(self.counters(), (0, 0, 0))

        out = StringIO()
        call_command("recount_engagement", stdout=out)

        self.assertEqual(self.counters(), (1, 0, 1))
        self.assertIn("Recounted 1 project(s), 0 failed", out.getvalue())

    def test_recount_single_project(self):
        Bookmark.objects.create(project=self.project, user=self.fans[0])
        call_command("recount_engagement", "--project", str(self.project.pk), stdout=StringIO())
        self.assertEqual(self.counters(), (0, 1, 0))
