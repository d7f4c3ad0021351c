from rest_framework import serializers

from core.query import FieldSpec, as_int, as_datetime
from core.serializers import DynamicFieldsModelSerializer
from .models import User


USER_QUERY_FIELDS = {
    "id": FieldSpec("id", as_int),
    "username": FieldSpec("username"),
    "first_name": FieldSpec("first_name"),
    "last_name": FieldSpec("last_name"),
    "full_name": FieldSpec("first_name", filterable=False, sortable=False),
    "role": FieldSpec("role"),
    "school": FieldSpec("school"),
    "photo": FieldSpec("photo", filterable=False, sortable=False),
    "date_joined": FieldSpec("date_joined", as_datetime),
}


class UserSerializer(DynamicFieldsModelSerializer):
    full_name = serializers.CharField(read_only=True)

    class Meta:
        model = User
        fields = [
            'id',
            'username',
            'first_name',
            'last_name',
            'full_name',
            'role',
            'school',
            'photo',
            'date_joined',
        ]


class UserSummarySerializer(serializers.ModelSerializer):
    full_name = serializers.CharField(read_only=True)

    class Meta:
        model = User
        fields = ['id', 'username', 'full_name', 'role']


class MeSerializer(serializers.ModelSerializer):
    full_name = serializers.CharField(read_only=True)

    class Meta:
        model = User
        fields = [
            'id',
            'username',
            'email',
            'first_name',
            'last_name',
            'full_name',
            'role',
            'school',
            'photo',
            'date_joined',
        ]
