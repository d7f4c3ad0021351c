# projects/views.py
from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from rest_framework.parsers import FormParser, JSONParser, MultiPartParser
from rest_framework import status

from core.generics import paginated_response
from core.permissions import IsMentor, IsStudent
from core.query import as_bool, translator_for
from .serializers import (
    PROJECT_QUERY_FIELDS,
    ProjectDetailSerializer,
    ProjectSerializer,
    ProjectWriteSerializer,
)
from .services import ProjectService

project_query = translator_for(PROJECT_QUERY_FIELDS, reserved=("public",))


def _public_flag(request) -> bool:
    try:
        return as_bool(request.query_params.get("public", "false"))
    except ValueError:
        return False


class ProjectListCreateView(APIView):
    """
    GET  /api/projects/?filter[active]=true&sort=-created_at
    GET  /api/projects/?public=true
    POST /api/projects/   (students only, becomes chairman)
    """

    def get_permissions(self):
        if self.request.method == "POST":
            return [IsAuthenticated(), IsStudent()]
        return [IsAuthenticated()]

    def get(self, request):
        qs = ProjectService.visible_projects(request.user, public=_public_flag(request))
        qs = qs.prefetch_related("members")
        return paginated_response(request, qs, project_query, ProjectSerializer)

    def post(self, request):
        payload = ProjectWriteSerializer(data=request.data)
        payload.is_valid(raise_exception=True)

        project = ProjectService.create(request.user, payload.validated_data)
        return Response(
            ProjectSerializer(project, context={"request": request}).data,
            status=status.HTTP_201_CREATED,
        )


class ProjectDetailView(APIView):
    """
    GET    /api/projects/<id>/   (with logbook entries)
    PATCH  /api/projects/<id>/   (chairman)
    DELETE /api/projects/<id>/   (chairman, cascades)
    """

    def get_permissions(self):
        if self.request.method in ("PATCH", "DELETE"):
            return [IsAuthenticated(), IsStudent()]
        return [IsAuthenticated()]

    def get(self, request, project_id):
        project = ProjectService.detail(project_id)
        return Response(ProjectDetailSerializer(project, context={"request": request}).data)

    def patch(self, request, project_id):
        payload = ProjectWriteSerializer(data=request.data, partial=True)
        payload.is_valid(raise_exception=True)

        project = ProjectService.update(request.user, project_id, payload.validated_data)
        return Response(ProjectSerializer(project, context={"request": request}).data)

    def delete(self, request, project_id):
        ProjectService.delete(request.user, project_id)
        return Response(status=status.HTTP_204_NO_CONTENT)


class ProjectActivateView(APIView):
    """
    PATCH /api/projects/<id>/activate/
    """
    permission_classes = [IsAuthenticated, IsStudent]

    def patch(self, request, project_id):
        project = ProjectService.activate(request.user, project_id)
        return Response(ProjectSerializer(project, context={"request": request}).data)


class ProjectResultsView(APIView):
    """
    PATCH /api/projects/<id>/results/   multipart, one or more ``results`` images
    """
    permission_classes = [IsAuthenticated, IsStudent]
    parser_classes = [MultiPartParser, FormParser, JSONParser]

    def patch(self, request, project_id):
        files = request.FILES.getlist("results")
        project = ProjectService.upload_results(request.user, project_id, files)
        return Response(ProjectSerializer(project, context={"request": request}).data)


class ProjectPublishView(APIView):
    """
    PATCH /api/projects/<id>/publish/   (the project's mentor teacher)
    """
    permission_classes = [IsAuthenticated, IsMentor]

    def patch(self, request, project_id):
        project = ProjectService.publish(request.user, project_id)
        return Response(ProjectSerializer(project, context={"request": request}).data)
