from rest_framework import serializers

from core.query import FieldSpec, as_bool, as_date, as_datetime, as_int
from core.serializers import DynamicFieldsModelSerializer
from core.storage import LOGBOOK_ATTACHMENTS
from .models import Logbook


LOGBOOK_QUERY_FIELDS = {
    "id": FieldSpec("id", as_int),
    "project": FieldSpec("project_id", as_int),
    "date": FieldSpec("date", as_date),
    "activity": FieldSpec("activity"),
    "time": FieldSpec("time", as_int),
    "valid": FieldSpec("valid", as_bool),
    "attachments": FieldSpec("attachments", filterable=False, sortable=False),
    "attachment_urls": FieldSpec("attachments", filterable=False, sortable=False),
    "created_at": FieldSpec("created_at", as_datetime),
}


class LogbookSerializer(DynamicFieldsModelSerializer):
    attachment_urls = serializers.SerializerMethodField()

    class Meta:
        model = Logbook
        fields = [
            'id',
            'project',
            'date',
            'activity',
            'time',
            'attachments',
            'attachment_urls',
            'valid',
            'created_at',
        ]
        read_only_fields = fields

    def get_attachment_urls(self, obj):
        from projects.serializers import attachment_urls

        return attachment_urls(self.context.get("request"), LOGBOOK_ATTACHMENTS, obj.attachments)
