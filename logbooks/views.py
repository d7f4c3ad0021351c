# logbooks/views.py
from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from rest_framework.parsers import FormParser, JSONParser, MultiPartParser
from rest_framework import status

from core.generics import paginated_response
from core.permissions import IsMentor, IsStudent
from core.query import translator_for
from projects.services import ProjectService
from .models import Logbook
from .serializers import LOGBOOK_QUERY_FIELDS, LogbookSerializer
from .services import LogbookWorkflow

logbook_query = translator_for(LOGBOOK_QUERY_FIELDS)


def _student_writes(request):
    if request.method in ("POST", "PATCH", "DELETE"):
        return [IsAuthenticated(), IsStudent()]
    return [IsAuthenticated()]


class LogbookListCreateView(APIView):
    """
    GET  /api/logbooks/?filter[time][gte]=30&sort=-date   (caller's current project)
    POST /api/logbooks/   multipart: date, time, activity, attachments[]
    """
    parser_classes = [MultiPartParser, FormParser, JSONParser]

    def get_permissions(self):
        return _student_writes(self.request)

    def get(self, request):
        project = LogbookWorkflow.resolve_current_project(request.user)
        qs = Logbook.objects.filter(project=project)
        return paginated_response(request, qs, logbook_query, LogbookSerializer)

    def post(self, request):
        entry = LogbookWorkflow.create(request.user, request.data, request.FILES.getlist("attachments"))
        return Response(
            LogbookSerializer(entry, context={"request": request}).data,
            status=status.HTTP_201_CREATED,
        )


class ProjectLogbookListView(APIView):
    """
    GET  /api/projects/<id>/logbooks/
    POST /api/projects/<id>/logbooks/   (must be the caller's current project)
    """
    parser_classes = [MultiPartParser, FormParser, JSONParser]

    def get_permissions(self):
        return _student_writes(self.request)

    def get(self, request, project_id):
        project = ProjectService.get(project_id)
        qs = Logbook.objects.filter(project=project)
        return paginated_response(request, qs, logbook_query, LogbookSerializer)

    def post(self, request, project_id):
        entry = LogbookWorkflow.create(
            request.user,
            request.data,
            request.FILES.getlist("attachments"),
            project_id=project_id,
        )
        return Response(
            LogbookSerializer(entry, context={"request": request}).data,
            status=status.HTTP_201_CREATED,
        )


class LogbookDetailView(APIView):
    """
    GET    /api/logbooks/<id>/
    PATCH  /api/logbooks/<id>/   date/time/activity, extra ``attachments`` appended
    DELETE /api/logbooks/<id>/
    """
    parser_classes = [MultiPartParser, FormParser, JSONParser]

    def get_permissions(self):
        return _student_writes(self.request)

    def get(self, request, logbook_id):
        entry = LogbookWorkflow.get(logbook_id)
        return Response(LogbookSerializer(entry, context={"request": request}).data)

    def patch(self, request, logbook_id):
        entry = LogbookWorkflow.update(
            request.user,
            logbook_id,
            request.data,
            request.FILES.getlist("attachments"),
        )
        return Response(LogbookSerializer(entry, context={"request": request}).data)

    def delete(self, request, logbook_id):
        LogbookWorkflow.delete_entry(request.user, logbook_id)
        return Response(status=status.HTTP_204_NO_CONTENT)


class LogbookValidateView(APIView):
    """
    PATCH /api/logbooks/<id>/validate/   (the project's mentor teacher)
    """
    permission_classes = [IsAuthenticated, IsMentor]

    def patch(self, request, logbook_id):
        entry = LogbookWorkflow.validate(request.user, logbook_id)
        return Response(LogbookSerializer(entry, context={"request": request}).data)


class LogbookAttachmentView(APIView):
    """
    DELETE /api/logbooks/<id>/attachments/   {"filename": "a.png"} or {"filename": ["a.png", "b.pdf"]}
    """
    permission_classes = [IsAuthenticated, IsStudent]

    def delete(self, request, logbook_id):
        filenames = request.data.get("filename")
        if hasattr(request.data, "getlist") and len(request.data.getlist("filename")) > 1:
            filenames = request.data.getlist("filename")
        entry = LogbookWorkflow.delete_attachments(request.user, logbook_id, filenames)
        return Response(LogbookSerializer(entry, context={"request": request}).data)
