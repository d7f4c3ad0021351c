from rest_framework import serializers

from core.query import FieldSpec, as_datetime, as_int
from core.serializers import DynamicFieldsModelSerializer
from projects.serializers import ProjectSummarySerializer
from users.serializers import UserSummarySerializer
from .models import Bookmark, Comment, Like


REACTION_QUERY_FIELDS = {
    "id": FieldSpec("id", as_int),
    "project": FieldSpec("project_id", as_int),
    "created_at": FieldSpec("created_at", as_datetime),
}

COMMENT_QUERY_FIELDS = {
    **REACTION_QUERY_FIELDS,
    "user": FieldSpec("user_id", as_int),
    "content": FieldSpec("content", sortable=False),
}


class LikeSerializer(DynamicFieldsModelSerializer):
    project = ProjectSummarySerializer(read_only=True)

    class Meta:
        model = Like
        fields = ['id', 'project', 'created_at']


class BookmarkSerializer(DynamicFieldsModelSerializer):
    project = ProjectSummarySerializer(read_only=True)

    class Meta:
        model = Bookmark
        fields = ['id', 'project', 'created_at']


class CommentSerializer(DynamicFieldsModelSerializer):
    user = UserSummarySerializer(read_only=True)

    class Meta:
        model = Comment
        fields = ['id', 'project', 'user', 'content', 'created_at']
        read_only_fields = fields


class ReactionInputSerializer(serializers.Serializer):
    project = serializers.IntegerField()


class CommentInputSerializer(serializers.Serializer):
    project = serializers.IntegerField()
    content = serializers.CharField(allow_blank=True, trim_whitespace=False)
