# authx/views.py
from rest_framework import status
from rest_framework.parsers import FormParser, JSONParser, MultiPartParser
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from users.serializers import MeSerializer
from . import services
from .serializers import (
    ChangePasswordSerializer,
    CheckEmailSerializer,
    ForgotPasswordSerializer,
    LoginSerializer,
    RegisterSerializer,
    ResetPasswordSerializer,
)


class RegisterView(APIView):
    # allow unauthenticated
    permission_classes = [AllowAny]
    authentication_classes = []
    parser_classes = [JSONParser, MultiPartParser, FormParser]
    throttle_scope = "auth-register"

    def post(self, request):
        serializer = RegisterSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = dict(serializer.validated_data)
        document = data.pop("document", None)

        user = services.register(data, document=document)

        if user.verified:
            message = "Account created and verified. You can log in now."
        else:
            message = "Account created. An admin will verify it shortly."

        return Response(
            {"message": message, "verified": user.verified, "user": MeSerializer(user).data},
            status=status.HTTP_201_CREATED,
        )


class LoginView(APIView):
    # allow unauthenticated
    permission_classes = [AllowAny]
    authentication_classes = []
    throttle_scope = "auth-login"

    def post(self, request):
        serializer = LoginSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user, tokens = services.login(
            serializer.validated_data["email"],
            serializer.validated_data["password"],
        )
        return Response({**tokens, "user": MeSerializer(user).data}, status=status.HTTP_200_OK)


class CheckEmailView(APIView):
    """
    POST /api/auth/check-email/  ->  {"available": bool}
    """
    permission_classes = [AllowAny]
    authentication_classes = []
    throttle_scope = "auth-register"

    def post(self, request):
        serializer = CheckEmailSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        return Response({"available": services.email_available(serializer.validated_data["email"])})


class ChangePasswordView(APIView):
    permission_classes = [IsAuthenticated]

    def post(self, request):
        serializer = ChangePasswordSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        services.change_password(
            request.user,
            serializer.validated_data["current_password"],
            serializer.validated_data["new_password"],
        )
        return Response({"message": "Password updated."})


class ForgotPasswordView(APIView):
    permission_classes = [AllowAny]
    authentication_classes = []
    throttle_scope = "auth-login"

    def post(self, request):
        serializer = ForgotPasswordSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        services.request_password_reset(serializer.validated_data["email"])
        # same answer whether or not the account exists
        return Response({"message": "If that account exists, a reset link has been sent."})


class ResetPasswordView(APIView):
    permission_classes = [AllowAny]
    authentication_classes = []
    throttle_scope = "auth-login"

    def post(self, request):
        serializer = ResetPasswordSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        services.reset_password(data["uid"], data["token"], data["password"])
        return Response({"message": "Password has been reset. You can log in now."})
