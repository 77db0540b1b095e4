"""Views for authentication flows (register, login, token refresh, password reset, email verification)."""

from __future__ import annotations

import logging
from functools import partial

from django.db import transaction
from rest_framework import status
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView
from rest_framework_simplejwt.tokens import RefreshToken  # type: ignore

from apps.notifications.services import send_email_verification_email, send_password_reset_email

from .auth_serializers import (
    LoginSerializer,
    PasswordResetConfirmSerializer,
    PasswordResetRequestSerializer,
    RegisterSerializer,
    issue_email_verification,
)
from .models import EmailVerificationToken
from .serializers import UserSerializer

logger = logging.getLogger(__name__)


def _tokens_for_user(user) -> dict[str, str]:
    refresh = RefreshToken.for_user(user)
    return {"refresh": str(refresh), "access": str(refresh.access_token)}


def _send_verification(user) -> None:
    verification = issue_email_verification(user)
    transaction.on_commit(partial(send_email_verification_email, verification))


class RegisterView(APIView):
    permission_classes = [AllowAny]
    authentication_classes: list = []

    def post(self, request):  # type: ignore
        serializer = RegisterSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = serializer.save()
        _send_verification(user)
        logger.info("Registered user %s", user.pk)
        data = {
            "user": UserSerializer(user).data,
            "tokens": _tokens_for_user(user),
            "detail": "Registration successful. Check your email to verify your address.",
        }
        return Response(data, status=status.HTTP_201_CREATED)


class LoginView(APIView):
    permission_classes = [AllowAny]
    authentication_classes: list = []

    def post(self, request):  # type: ignore
        serializer = LoginSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = serializer.validated_data["user"]
        data = {
            "user": UserSerializer(user).data,
            "tokens": _tokens_for_user(user),
        }
        return Response(data, status=status.HTTP_200_OK)


class PasswordResetRequestView(APIView):
    permission_classes = [AllowAny]
    authentication_classes: list = []

    def post(self, request):  # type: ignore
        serializer = PasswordResetRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        reset_token = serializer.save()
        if reset_token is not None:
            transaction.on_commit(partial(send_password_reset_email, reset_token))
            logger.info("Password reset requested for user %s", reset_token.user_id)
        return Response(
            {"detail": "If that email is registered, a password reset link has been sent."},
            status=status.HTTP_202_ACCEPTED,
        )


class PasswordResetConfirmView(APIView):
    permission_classes = [AllowAny]
    authentication_classes: list = []

    def post(self, request):  # type: ignore
        serializer = PasswordResetConfirmSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = serializer.save()
        logger.info("Password reset completed for user %s", user.pk)
        return Response({"detail": "Password has been reset. You can now log in."}, status=status.HTTP_200_OK)


class VerifyEmailView(APIView):
    permission_classes = [AllowAny]
    authentication_classes: list = []

    def get(self, request):  # type: ignore
        token = request.query_params.get("token", "")
        if not token:
            return Response({"detail": "Verification token is required."}, status=status.HTTP_400_BAD_REQUEST)

        verification = EmailVerificationToken.find_valid(token)
        if verification is None:
            used = EmailVerificationToken.objects.select_related("user").filter(token=token, is_used=True).first()
            if used is not None and used.user.is_email_verified:
                return Response(
                    {"detail": "Email already verified.", "user": UserSerializer(used.user).data},
                    status=status.HTTP_200_OK,
                )
            return Response(
                {"detail": "Verification link is invalid or has expired."},
                status=status.HTTP_400_BAD_REQUEST,
            )

        user = verification.user
        with transaction.atomic():
            if user.email != verification.email:
                verification.mark_used()
                return Response(
                    {"detail": "Verification link was issued for a different email address."},
                    status=status.HTTP_400_BAD_REQUEST,
                )
            if not user.is_email_verified:
                user.mark_email_verified()
            verification.mark_used()
        logger.info("Email verified for user %s", user.pk)
        return Response({"detail": "Email verified successfully.", "user": UserSerializer(user).data})


class ResendVerificationView(APIView):
    permission_classes = [IsAuthenticated]

    def post(self, request):  # type: ignore
        user = request.user
        if user.is_email_verified:
            return Response({"detail": "Email is already verified."}, status=status.HTTP_400_BAD_REQUEST)
        with transaction.atomic():
            _send_verification(user)
        return Response({"detail": "Verification email sent."}, status=status.HTTP_202_ACCEPTED)
