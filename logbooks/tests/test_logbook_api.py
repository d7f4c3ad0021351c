from django.test import TestCase
from rest_framework.test import APIClient
from rest_framework import status

from core.tests.utils import TempMediaMixin, image, pdf
from logbooks.models import Logbook
from projects.models import Project
from users.models import User


class LogbookApiTestCase(TempMediaMixin, TestCase):
    def setUp(self):
        super().setUp()
        self.client = APIClient()
        self.chairman = User.objects.create_user(username="sari", password="pass", role="student", school="1")
        self.mentor = User.objects.create_user(username="budi", password="pass", role="mentor", school="1")
        self.other_mentor = User.objects.create_user(username="andi", password="pass", role="mentor", school="1")
        self.project = Project.objects.create(
            name="Solar", topic="Energy", chairman=self.chairman, teacher=self.mentor, active=True
        )

    def auth(self, user):
        self.client.force_authenticate(user=user)

    def post_entry(self, time, day="2024-03-01", url="/api/logbooks/"):
        resp = self.client.post(
            url,
            {"date": day, "activity": f"worked {time} minutes", "time": str(time), "attachments": [image()]},
            format="multipart",
        )
        self.assertEqual(resp.status_code, status.HTTP_201_CREATED, resp.content)
        return resp.json()

    def test_create_and_filter_by_time(self):
        self.auth(self.chairman)
        for minutes in (3, 5, 8):
            self.post_entry(minutes)

        resp = self.client.get("/api/logbooks/?filter[time][gte]=5")
        self.assertEqual(resp.status_code, 200)
        body = resp.json()
        self.assertEqual(body["count"], 2)
        self.assertEqual([e["time"] for e in body["items"]], [8, 5])

        everything = self.client.get("/api/logbooks/").json()
        self.assertEqual([e["time"] for e in everything["items"]], [8, 5, 3])

    def test_nested_project_listing_and_pagination(self):
        self.auth(self.chairman)
        for minutes in range(1, 6):
            self.post_entry(minutes, url=f"/api/projects/{self.project.id}/logbooks/")

        resp = self.client.get(f"/api/projects/{self.project.id}/logbooks/?limit=2&page=2&sort=time")
        body = resp.json()
        self.assertEqual(body["count"], 5)
        self.assertEqual((body["page"], body["limit"]), (2, 2))
        self.assertEqual([e["time"] for e in body["items"]], [3, 4])

    def test_missing_attachment_is_400(self):
        self.auth(self.chairman)
        resp = self.client.post(
            "/api/logbooks/", {"date": "2024-03-01", "activity": "x", "time": "5"}, format="multipart"
        )
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)

    def test_no_active_project_is_404(self):
        self.project.active = False
        self.project.save()
        self.auth(self.chairman)
        resp = self.client.get("/api/logbooks/")
        self.assertEqual(resp.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(resp.json()["errors"]["code"], "no_active_project")

    def test_validate_by_teacher_only(self):
        self.auth(self.chairman)
        entry = self.post_entry(30)

        self.auth(self.other_mentor)
        resp = self.client.patch(f"/api/logbooks/{entry['id']}/validate/")
        self.assertEqual(resp.status_code, status.HTTP_403_FORBIDDEN)

        self.auth(self.mentor)
        resp = self.client.patch(f"/api/logbooks/{entry['id']}/validate/")
        self.assertEqual(resp.status_code, 200)
        self.assertTrue(resp.json()["valid"])

    def test_update_appends_files(self):
        self.auth(self.chairman)
        entry = self.post_entry(30)

        resp = self.client.patch(
            f"/api/logbooks/{entry['id']}/",
            {"time": "40", "attachments": [pdf()]},
            format="multipart",
        )
        self.assertEqual(resp.status_code, 200, resp.content)
        self.assertEqual(resp.json()["time"], 40)
        self.assertEqual(len(resp.json()["attachments"]), 2)

    def test_delete_attachment_and_entry(self):
        self.auth(self.chairman)
        entry = self.post_entry(30)
        handle = entry["attachments"][0]

        resp = self.client.delete(
            f"/api/logbooks/{entry['id']}/attachments/", {"filename": "ghost.png"}, format="json"
        )
        self.assertEqual(resp.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(resp.json()["errors"]["code"], "attachment_not_found")

        with self.captureOnCommitCallbacks(execute=True):
            resp = self.client.delete(
                f"/api/logbooks/{entry['id']}/attachments/", {"filename": [handle]}, format="json"
            )
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["attachments"], [])

        resp = self.client.delete(f"/api/logbooks/{entry['id']}/")
        self.assertEqual(resp.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(Logbook.objects.exists())

    def test_project_detail_embeds_entries(self):
        self.auth(self.chairman)
        entry = self.post_entry(30)
        resp = self.client.get(f"/api/projects/{self.project.id}/")
        self.assertEqual([e["id"] for e in resp.json()["logbooks"]], [entry["id"]])
