import logging

from django.db import transaction
from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework.throttling import ScopedRateThrottle
from rest_framework import status
from rest_framework_simplejwt.tokens import RefreshToken

from users.serializers import MeSerializer
from .serializers import SignupSerializer, LoginSerializer
from .tasks import send_welcome_email_task

logger = logging.getLogger('collab.auth')


class SignupView(APIView):
    # allow unauthenticated
    permission_classes = []
    authentication_classes = []
    throttle_classes = [ScopedRateThrottle]
    throttle_scope = "signup"

    def post(self, request):
        serializer = SignupSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        with transaction.atomic():
            user = serializer.save()
            # Fire-and-forget; delivery problems never fail the signup
            transaction.on_commit(lambda: send_welcome_email_task.delay(user.id))

        logger.info(f"User signed up: user={user.id}, role={user.role}, school={user.school}")
        return Response(
            {"message": "User created successfully", "user": MeSerializer(user).data},
            status=status.HTTP_201_CREATED
        )


class LoginView(APIView):
    # allow unauthenticated
    permission_classes = []
    authentication_classes = []

    def post(self, request):
        serializer = LoginSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        user = serializer.validated_data['user']
        refresh = RefreshToken.for_user(user)
        return Response(
            {
                "access": str(refresh.access_token),
                "refresh": str(refresh),
            },
            status=status.HTTP_200_OK
        )
