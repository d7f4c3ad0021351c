import time

from django.conf import settings
from django.contrib.auth import get_user_model
from django.db import connections
from django.db.models import Q
from django.db.utils import OperationalError
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from projects.models import Project
from projects.serializers import PROJECT_QUERY_FIELDS, ProjectSerializer
from users.serializers import USER_QUERY_FIELDS, UserSerializer
from .exceptions import ValidationFailed
from .generics import paginated_response
from .query import translator_for

User = get_user_model()

SEARCH_KEYS = ("project", "user")

project_search_query = translator_for(PROJECT_QUERY_FIELDS, reserved=SEARCH_KEYS)
user_search_query = translator_for(USER_QUERY_FIELDS, reserved=SEARCH_KEYS)


class SearchView(APIView):
    """
    GET /api/search/?project=<text>   projects whose name contains the text
    GET /api/search/?user=<text>      users whose first or last name contains it

    Matching is a case-insensitive literal substring; the other query
    parameters go through the usual filter/sort/page handling.
    """
    permission_classes = [IsAuthenticated]

    def get(self, request):
        project_text = request.query_params.get("project")
        user_text = request.query_params.get("user")

        if project_text is not None:
            qs = Project.objects.select_related("chairman", "teacher").prefetch_related("members")
            qs = qs.filter(name__icontains=project_text.strip())
            return paginated_response(request, qs, project_search_query, ProjectSerializer)

        if user_text is not None:
            text = user_text.strip()
            qs = User.objects.filter(is_active=True).filter(
                Q(first_name__icontains=text) | Q(last_name__icontains=text)
            )
            return paginated_response(request, qs, user_search_query, UserSerializer)

        raise ValidationFailed("Please provide a 'project' or 'user' search term.")


class HealthCheckView(APIView):
    """
    Lightweight health endpoint for uptime checks.
    - Checks DB connectivity
    - Returns env and simple latency
    """
    permission_classes = [AllowAny]
    authentication_classes = []  # public endpoint

    def get(self, request, *args, **kwargs):
        start = time.time()

        db_ok = True
        try:
            connections["default"].cursor()
        except OperationalError:
            db_ok = False

        duration_ms = int((time.time() - start) * 1000)

        return Response(
            {
                "status": "ok" if db_ok else "degraded",
                "db": db_ok,
                "env": getattr(settings, "ENV", "unknown"),
                "latency_ms": duration_ms,
            }
        )
