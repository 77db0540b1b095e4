"""Serializers for authentication flows (register, login, password reset, email verification)."""

from __future__ import annotations

from datetime import timedelta
from typing import Any

from django.conf import settings  # type: ignore
from django.contrib.auth import get_user_model  # type: ignore
from django.db import transaction  # type: ignore
from rest_framework import serializers  # type: ignore

from .models import PHONE_VALIDATOR, EmailVerificationToken, PasswordResetToken


User = get_user_model()


class RegisterSerializer(serializers.Serializer):
    username = serializers.CharField(max_length=150)
    email = serializers.EmailField()
    phone = serializers.CharField(required=False, allow_blank=True, validators=[PHONE_VALIDATOR])
    password = serializers.CharField(min_length=8, write_only=True)
    password_confirm = serializers.CharField(min_length=8, write_only=True)
    first_name = serializers.CharField(required=False, allow_blank=True)
    last_name = serializers.CharField(required=False, allow_blank=True)

    def validate(self, attrs: dict[str, Any]) -> dict[str, Any]:  # type: ignore
        if attrs.get("password") != attrs.get("password_confirm"):
            raise serializers.ValidationError({"password_confirm": "Passwords do not match."})
        if User.objects.filter(username__iexact=attrs.get("username")).exists():
            raise serializers.ValidationError({"username": "A user with that username already exists."})
        if User.objects.filter(email__iexact=attrs.get("email")).exists():
            raise serializers.ValidationError({"email": "A user with that email already exists."})
        if not attrs.get("phone"):
            attrs.pop("phone", None)
        return attrs

    @transaction.atomic
    def create(self, validated_data: dict[str, Any]):  # type: ignore
        password = validated_data.pop("password")
        validated_data.pop("password_confirm", None)
        username = validated_data.pop("username")
        return User.objects.create_user(username, password=password, **validated_data)


class LoginSerializer(serializers.Serializer):
    login = serializers.CharField()
    password = serializers.CharField(write_only=True)

    def validate(self, attrs: dict[str, Any]) -> dict[str, Any]:  # type: ignore
        login = attrs.get("login", "")
        password = attrs.get("password", "")

        # Email or username
        try:
            if "@" in login:
                user = User.objects.get(email__iexact=login)
            else:
                user = User.objects.get(username__iexact=login)
        except User.DoesNotExist:
            raise serializers.ValidationError({"login": "Invalid login or password."})

        if getattr(user, "is_locked", False):
            raise serializers.ValidationError(
                {"non_field_errors": ["Account is temporarily locked. Try again later."]}
            )

        if not user.is_active or not user.check_password(password):
            if hasattr(user, "register_failed_attempt"):
                user.register_failed_attempt(threshold=5)
            raise serializers.ValidationError({"login": "Invalid login or password."})

        if hasattr(user, "unlock") and (user.failed_login_attempts or user.locked_until):
            user.unlock()

        attrs["user"] = user
        return attrs


class PasswordResetRequestSerializer(serializers.Serializer):
    email = serializers.EmailField()

    def validate(self, attrs: dict[str, Any]) -> dict[str, Any]:  # type: ignore
        # Unknown addresses pass validation so the response does not reveal them.
        attrs["user"] = User.objects.filter(email__iexact=attrs["email"], is_active=True).first()
        return attrs

    @transaction.atomic
    def create(self, validated_data: dict[str, Any]):  # type: ignore
        user = validated_data["user"]
        if user is None:
            return None
        ttl = timedelta(minutes=settings.PASSWORD_RESET_TOKEN_TTL_MINUTES)
        return PasswordResetToken.issue_for(user, ttl)


class PasswordResetConfirmSerializer(serializers.Serializer):
    token = serializers.CharField()
    new_password = serializers.CharField(min_length=8, write_only=True)
    new_password_confirm = serializers.CharField(min_length=8, write_only=True)

    def validate(self, attrs: dict[str, Any]) -> dict[str, Any]:  # type: ignore
        if attrs.get("new_password") != attrs.get("new_password_confirm"):
            raise serializers.ValidationError({"new_password_confirm": "Passwords do not match."})
        reset_token = PasswordResetToken.find_valid(attrs.get("token", ""))
        if reset_token is None:
            raise serializers.ValidationError({"token": "Password reset link is invalid or has expired."})
        attrs["reset_token"] = reset_token
        return attrs

    @transaction.atomic
    def create(self, validated_data: dict[str, Any]):  # type: ignore
        reset_token = validated_data["reset_token"]
        user = reset_token.user
        user.set_password(validated_data["new_password"])
        user.failed_login_attempts = 0
        user.locked_until = None
        user.save(update_fields=["password", "failed_login_attempts", "locked_until", "updated_at"])
        reset_token.mark_used()
        PasswordResetToken.objects.filter(user=user, is_used=False).update(is_used=True, used_at=reset_token.used_at)
        return user


def issue_email_verification(user) -> EmailVerificationToken:
    ttl = timedelta(hours=settings.EMAIL_VERIFICATION_TOKEN_TTL_HOURS)
    return EmailVerificationToken.issue_for(user, ttl)
