"""API tests for authentication endpoints."""

from __future__ import annotations

from datetime import timedelta

from django.urls import reverse
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APITestCase

from apps.users.models import User


class AuthAPITests(APITestCase):
    def test_register_returns_tokens(self) -> None:
        payload = {
            "username": "camper",
            "email": "camper@example.com",
            "first_name": "Happy",
            "last_name": "Camper",
            "password": "StrongPass123",
            "password_confirm": "StrongPass123",
        }

        response = self.client.post(reverse("auth:register"), payload, format="json")
        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)
        self.assertIn("tokens", response.data)
        self.assertEqual(response.data["user"]["email"], payload["email"])
        self.assertEqual(response.data["user"]["role"], User.RoleChoices.GUEST)
        self.assertTrue(User.objects.filter(username="camper").exists())

    def test_register_rejects_duplicate_email(self) -> None:
        User.objects.create_user("first", email="taken@example.com", password="StrongPass123")
        payload = {
            "username": "second",
            "email": "TAKEN@example.com",
            "password": "StrongPass123",
            "password_confirm": "StrongPass123",
        }

        response = self.client.post(reverse("auth:register"), payload, format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("email", response.data)

    def test_login_with_username_or_email(self) -> None:
        User.objects.create_user("hiker", email="hiker@example.com", password="CorrectPassword1")
        url = reverse("auth:login")

        by_username = self.client.post(url, {"login": "hiker", "password": "CorrectPassword1"}, format="json")
        by_email = self.client.post(url, {"login": "hiker@example.com", "password": "CorrectPassword1"}, format="json")

        self.assertEqual(by_username.status_code, status.HTTP_200_OK, by_username.data)
        self.assertEqual(by_email.status_code, status.HTTP_200_OK, by_email.data)
        self.assertIn("access", by_email.data["tokens"])

    def test_login_limited_attempts(self) -> None:
        user = User.objects.create_user("lock", email="lock@example.com", password="CorrectPassword1")

        url = reverse("auth:login")
        wrong_payload = {"login": user.email, "password": "wrong"}
        for _ in range(5):
            response = self.client.post(url, wrong_payload, format="json")

        user.refresh_from_db()
        self.assertTrue(user.is_locked)
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

        # After lock expires user can login again
        user.locked_until = timezone.now() - timedelta(minutes=1)
        user.save(update_fields=["locked_until"])
        response = self.client.post(url, {"login": user.email, "password": "CorrectPassword1"})
        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)

    def test_me_requires_authentication(self) -> None:
        response = self.client.get(reverse("user-me"))
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

        user = User.objects.create_user("me", email="me@example.com", password="StrongPass123")
        self.client.force_authenticate(user)
        response = self.client.get(reverse("user-me"))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["username"], "me")
