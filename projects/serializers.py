from rest_framework import serializers

from core.query import FieldSpec, as_bool, as_datetime, as_int
from core.serializers import DynamicFieldsModelSerializer
from core.storage import PROJECT_RESULTS, get_store
from users.serializers import UserSummarySerializer
from .models import Project


PROJECT_QUERY_FIELDS = {
    "id": FieldSpec("id", as_int),
    "name": FieldSpec("name"),
    "topic": FieldSpec("topic"),
    "description": FieldSpec("description", sortable=False),
    "status": FieldSpec("published", filterable=False, sortable=False),
    "chairman": FieldSpec("chairman_id", as_int),
    "members": FieldSpec("members__id", as_int, sortable=False, many=True),
    "teacher": FieldSpec("teacher_id", as_int),
    "results": FieldSpec("results", filterable=False, sortable=False),
    "result_urls": FieldSpec("results", filterable=False, sortable=False),
    "active": FieldSpec("active", as_bool),
    "finished": FieldSpec("finished", as_bool),
    "published": FieldSpec("published", as_bool),
    "like_count": FieldSpec("like_count", as_int),
    "bookmark_count": FieldSpec("bookmark_count", as_int),
    "comment_count": FieldSpec("comment_count", as_int),
    "created_at": FieldSpec("created_at", as_datetime),
    "updated_at": FieldSpec("updated_at", as_datetime),
}


def attachment_urls(request, store_name, handles):
    store = get_store(store_name)
    urls = []
    for handle in handles or []:
        url = store.storage.url(store.path_for(handle))
        urls.append(request.build_absolute_uri(url) if request else url)
    return urls


class ProjectSerializer(DynamicFieldsModelSerializer):
    """
    Read representation of a project.
    ``version`` is internal and never rendered.
    """
    status = serializers.CharField(read_only=True)
    chairman = UserSummarySerializer(read_only=True)
    teacher = UserSummarySerializer(read_only=True, allow_null=True)
    members = UserSummarySerializer(many=True, read_only=True)
    result_urls = serializers.SerializerMethodField()

    class Meta:
        model = Project
        fields = [
            'id',
            'name',
            'topic',
            'description',
            'status',
            'chairman',
            'members',
            'teacher',
            'results',
            'result_urls',
            'active',
            'finished',
            'published',
            'like_count',
            'bookmark_count',
            'comment_count',
            'created_at',
            'updated_at',
        ]
        read_only_fields = fields

    def get_result_urls(self, obj):
        return attachment_urls(self.context.get("request"), PROJECT_RESULTS, obj.results)


class ProjectSummarySerializer(serializers.ModelSerializer):
    """Embedded in reaction listings."""

    class Meta:
        model = Project
        fields = ['id', 'name', 'topic', 'like_count', 'bookmark_count', 'comment_count']


class ProjectDetailSerializer(ProjectSerializer):
    logbooks = serializers.SerializerMethodField()

    class Meta(ProjectSerializer.Meta):
        fields = ProjectSerializer.Meta.fields + ['logbooks']
        read_only_fields = fields

    def get_logbooks(self, obj):
        from logbooks.serializers import LogbookSerializer

        entries = sorted(obj.logbooks.all(), key=lambda entry: entry.pk, reverse=True)
        return LogbookSerializer(entries, many=True, context=self.context).data


class ProjectWriteSerializer(serializers.Serializer):
    """
    Shape check for create/update payloads.
    Sanitizing and ownership rules live in ``ProjectService``.
    """
    name = serializers.CharField(required=False, allow_blank=True)
    topic = serializers.CharField(required=False, allow_blank=True)
    description = serializers.CharField(required=False, allow_blank=True)
    teacher = serializers.IntegerField(required=False, allow_null=True)
    # One id or a list of ids
    members = serializers.JSONField(required=False)
