from django.test import TestCase
from rest_framework.test import APIClient
from rest_framework import status

from core.tests.utils import TempMediaMixin, image
from projects.models import Project
from users.models import User


class ProjectApiTestCase(TempMediaMixin, TestCase):
    def setUp(self):
        super().setUp()
        self.client = APIClient()
        self.chairman = User.objects.create_user(
            username="sari", password="pass", role="student", school="20100001", first_name="Sari"
        )
        self.member = User.objects.create_user(
            username="rina", password="pass", role="student", school="20100001", first_name="Rina"
        )
        self.mentor = User.objects.create_user(
            username="budi", password="pass", role="mentor", school="20100001", first_name="Budi"
        )
        self.stranger = User.objects.create_user(
            username="joko", password="pass", role="student", school="20100002"
        )

    def auth(self, user):
        self.client.force_authenticate(user=user)

    def create_project(self, name="Solar Dryer"):
        self.auth(self.chairman)
        resp = self.client.post("/api/projects/", {"name": name, "topic": "Energy"}, format="json")
        self.assertEqual(resp.status_code, status.HTTP_201_CREATED, resp.content)
        return resp.json()

    def test_create_and_list_own_projects(self):
        created = self.create_project()
        self.assertEqual(created["chairman"]["id"], self.chairman.id)
        self.assertEqual(created["status"], "active")
        self.assertNotIn("version", created)

        resp = self.client.get("/api/projects/")
        self.assertEqual(resp.status_code, 200)
        data = resp.json()
        self.assertEqual(data["count"], 1)
        self.assertEqual(data["items"][0]["id"], created["id"])

        self.auth(self.stranger)
        self.assertEqual(self.client.get("/api/projects/").json()["count"], 0)

    def test_second_project_conflicts(self):
        self.create_project()
        resp = self.client.post("/api/projects/", {"name": "Other", "topic": "T"}, format="json")
        self.assertEqual(resp.status_code, status.HTTP_409_CONFLICT)
        body = resp.json()
        self.assertFalse(body["success"])
        self.assertEqual(body["errors"]["code"], "conflict")

    def test_mentor_cannot_create(self):
        self.auth(self.mentor)
        resp = self.client.post("/api/projects/", {"name": "X", "topic": "T"}, format="json")
        self.assertEqual(resp.status_code, status.HTTP_403_FORBIDDEN)

    def test_requires_authentication(self):
        resp = self.client.get("/api/projects/")
        self.assertIn(resp.status_code, (status.HTTP_401_UNAUTHORIZED, status.HTTP_403_FORBIDDEN))

    def test_update_members_and_teacher(self):
        project = self.create_project()
        resp = self.client.patch(
            f"/api/projects/{project['id']}/",
            {"members": [self.member.id], "teacher": self.mentor.id},
            format="json",
        )
        self.assertEqual(resp.status_code, 200, resp.content)
        self.assertEqual([m["id"] for m in resp.json()["members"]], [self.member.id])
        self.assertEqual(resp.json()["teacher"]["id"], self.mentor.id)

        # member sees the project, mentor sees it in their own listing
        self.auth(self.member)
        self.assertEqual(self.client.get("/api/projects/").json()["count"], 1)
        self.auth(self.mentor)
        self.assertEqual(self.client.get("/api/projects/").json()["count"], 1)

    def test_school_mismatch_is_400(self):
        project = self.create_project()
        resp = self.client.patch(
            f"/api/projects/{project['id']}/", {"members": [self.stranger.id]}, format="json"
        )
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)

    def test_activate_switches_projects(self):
        old = Project.objects.create(name="Old", topic="T", chairman=self.chairman, active=False)
        current = self.create_project()

        resp = self.client.patch(f"/api/projects/{old.id}/activate/")
        self.assertEqual(resp.status_code, 200)
        self.assertTrue(resp.json()["active"])
        self.assertFalse(Project.objects.get(pk=current["id"]).active)

    def test_results_then_publish(self):
        project = self.create_project()
        self.client.patch(f"/api/projects/{project['id']}/", {"teacher": self.mentor.id}, format="json")

        self.auth(self.mentor)
        resp = self.client.patch(f"/api/projects/{project['id']}/publish/")
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)

        self.auth(self.chairman)
        resp = self.client.patch(
            f"/api/projects/{project['id']}/results/", {"results": [image()]}, format="multipart"
        )
        self.assertEqual(resp.status_code, 200, resp.content)
        self.assertTrue(resp.json()["finished"])
        self.assertEqual(len(resp.json()["result_urls"]), 1)

        self.auth(self.mentor)
        resp = self.client.patch(f"/api/projects/{project['id']}/publish/")
        self.assertEqual(resp.status_code, 200)
        self.assertTrue(resp.json()["published"])

        self.auth(self.stranger)
        public = self.client.get("/api/projects/?public=true").json()
        self.assertEqual([p["id"] for p in public["items"]], [project["id"]])

    def test_list_filters_and_projection(self):
        project = self.create_project()
        resp = self.client.get("/api/projects/?filter[active]=true&fields=name,version")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["items"], [{"id": project["id"], "name": "Solar Dryer"}])

    def test_malformed_query_is_400(self):
        self.create_project()
        resp = self.client.get("/api/projects/?filter[name][regex]=x")
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(resp.json()["errors"]["code"], "malformed_query")

    def test_detail_includes_logbooks(self):
        project = self.create_project()
        resp = self.client.get(f"/api/projects/{project['id']}/")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["logbooks"], [])

    def test_missing_project_is_404(self):
        self.auth(self.chairman)
        self.assertEqual(self.client.get("/api/projects/999999/").status_code, 404)

    def test_delete(self):
        project = self.create_project()
        self.auth(self.member)
        self.assertEqual(self.client.delete(f"/api/projects/{project['id']}/").status_code, 403)

        self.auth(self.chairman)
        with self.captureOnCommitCallbacks(execute=True):
            resp = self.client.delete(f"/api/projects/{project['id']}/")
        self.assertEqual(resp.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(Project.objects.filter(pk=project["id"]).exists())
