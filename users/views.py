# users/views.py
from django.contrib.auth import get_user_model
from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated

from core.generics import paginated_response
from core.query import translator_for
from .serializers import UserSerializer, MeSerializer, USER_QUERY_FIELDS

User = get_user_model()

user_query = translator_for(USER_QUERY_FIELDS)


class UserListView(APIView):
    """
    GET /api/users/?filter[school]=20100001&sort=last_name
    """
    permission_classes = [IsAuthenticated]

    def get(self, request):
        qs = User.objects.filter(is_active=True)
        return paginated_response(request, qs, user_query, UserSerializer)


class MeView(APIView):
    """
    GET /api/users/me/
    Return current user info
    """
    permission_classes = [IsAuthenticated]

    def get(self, request):
        return Response(MeSerializer(request.user).data)
