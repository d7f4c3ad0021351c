from django.test import TestCase
from rest_framework.test import APIClient
from rest_framework import status

from projects.models import Project
from users.models import User


class SearchApiTestCase(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.sari = User.objects.create_user(
            username="sari", password="pass", role="student", school="1", first_name="Sari", last_name="Wulan"
        )
        self.budi = User.objects.create_user(
            username="budi", password="pass", role="mentor", school="1", first_name="Budi", last_name="Santoso"
        )
        Project.objects.create(name="Solar Dryer", topic="Energy", chairman=self.sari)
        Project.objects.create(name="Rain (100%) Catcher", topic="Water", chairman=self.budi, active=False)
        self.client.force_authenticate(user=self.sari)

    def test_project_search_is_case_insensitive(self):
        body = self.client.get("/api/search/?project=solar").json()
        self.assertEqual([p["name"] for p in body["items"]], ["Solar Dryer"])

    def test_search_text_is_literal(self):
        body = self.client.get("/api/search/", {"project": "(100%)"}).json()
        self.assertEqual(body["count"], 1)
        self.assertEqual(self.client.get("/api/search/", {"project": ".*"}).json()["count"], 0)

    def test_user_search_matches_first_or_last_name(self):
        body = self.client.get("/api/search/?user=santo").json()
        self.assertEqual([u["username"] for u in body["items"]], ["budi"])

    def test_search_combines_with_filters(self):
        body = self.client.get("/api/search/?user=a&filter[role]=student&fields=username").json()
        self.assertEqual(body["items"], [{"id": self.sari.id, "username": "sari"}])

    def test_search_term_required(self):
        resp = self.client.get("/api/search/")
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
