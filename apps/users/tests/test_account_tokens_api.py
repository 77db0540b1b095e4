"""API tests for password reset and email verification links."""

from __future__ import annotations

from datetime import timedelta

from django.core import mail
from django.urls import reverse
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APITestCase

from apps.users.models import EmailVerificationToken, PasswordResetToken, User


class PasswordResetAPITests(APITestCase):
    def setUp(self) -> None:
        self.user = User.objects.create_user("resetme", email="reset@example.com", password="OldPassword1")

    def _request_reset(self, email: str):
        with self.captureOnCommitCallbacks(execute=True):
            return self.client.post(reverse("auth:password-reset-request"), {"email": email}, format="json")

    def _confirm(self, token: str, password: str = "NewPassword1"):
        return self.client.post(
            reverse("auth:password-reset-confirm"),
            {"token": token, "new_password": password, "new_password_confirm": password},
            format="json",
        )

    def test_password_reset_flow(self) -> None:
        response = self._request_reset("RESET@example.com")
        self.assertEqual(response.status_code, status.HTTP_202_ACCEPTED, response.data)

        token = PasswordResetToken.objects.get(user=self.user)
        self.assertEqual(len(mail.outbox), 1)
        self.assertIn(f"/reset-password?token={token.token}", mail.outbox[0].body)

        confirm = self._confirm(token.token)
        self.assertEqual(confirm.status_code, status.HTTP_200_OK, confirm.data)
        self.user.refresh_from_db()
        self.assertTrue(self.user.check_password("NewPassword1"))

        # The link works once.
        again = self._confirm(token.token, "OtherPassword1")
        self.assertEqual(again.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("token", again.data)

    def test_unknown_email_gets_the_same_answer(self) -> None:
        known = self._request_reset("reset@example.com")
        unknown = self._request_reset("nobody@example.com")

        self.assertEqual(unknown.status_code, status.HTTP_202_ACCEPTED)
        self.assertEqual(unknown.data, known.data)
        self.assertEqual(PasswordResetToken.objects.count(), 1)
        self.assertEqual(len(mail.outbox), 1)

    def test_new_request_invalidates_earlier_link(self) -> None:
        self._request_reset("reset@example.com")
        first = PasswordResetToken.objects.get()
        self._request_reset("reset@example.com")

        self.assertEqual(self._confirm(first.token).status_code, status.HTTP_400_BAD_REQUEST)
        latest = PasswordResetToken.objects.get(is_used=False)
        self.assertEqual(self._confirm(latest.token).status_code, status.HTTP_200_OK)

    def test_expired_link_is_rejected(self) -> None:
        self._request_reset("reset@example.com")
        token = PasswordResetToken.objects.get()
        token.expires_at = timezone.now() - timedelta(seconds=1)
        token.save(update_fields=["expires_at"])

        response = self._confirm(token.token)

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.user.refresh_from_db()
        self.assertTrue(self.user.check_password("OldPassword1"))

    def test_mismatched_passwords_are_rejected(self) -> None:
        self._request_reset("reset@example.com")
        token = PasswordResetToken.objects.get()

        response = self.client.post(
            reverse("auth:password-reset-confirm"),
            {"token": token.token, "new_password": "NewPassword1", "new_password_confirm": "NewPassword2"},
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("new_password_confirm", response.data)

    def test_reset_unlocks_the_account(self) -> None:
        self.user.lock()
        self._request_reset("reset@example.com")

        self._confirm(PasswordResetToken.objects.get().token)

        response = self.client.post(
            reverse("auth:login"), {"login": "resetme", "password": "NewPassword1"}, format="json"
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)


class EmailVerificationAPITests(APITestCase):
    def _register(self):
        payload = {
            "username": "verifier",
            "email": "verifier@example.com",
            "password": "StrongPass123",
            "password_confirm": "StrongPass123",
        }
        with self.captureOnCommitCallbacks(execute=True):
            return self.client.post(reverse("auth:register"), payload, format="json")

    def test_registration_sends_verification_link(self) -> None:
        response = self._register()

        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)
        self.assertFalse(response.data["user"]["is_email_verified"])
        token = EmailVerificationToken.objects.get(user__username="verifier")
        self.assertEqual(len(mail.outbox), 1)
        self.assertEqual(mail.outbox[0].to, ["verifier@example.com"])
        self.assertIn(f"/verify-email?token={token.token}", mail.outbox[0].body)

    def test_verify_email_flow(self) -> None:
        self._register()
        token = EmailVerificationToken.objects.get()
        url = reverse("auth:verify-email")

        response = self.client.get(url, {"token": token.token})
        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertTrue(response.data["user"]["is_email_verified"])
        user = User.objects.get(username="verifier")
        self.assertTrue(user.is_email_verified)
        self.assertIsNotNone(user.email_verified_at)

        again = self.client.get(url, {"token": token.token})
        self.assertEqual(again.status_code, status.HTTP_200_OK)
        self.assertEqual(again.data["detail"], "Email already verified.")

    def test_missing_or_unknown_token_is_rejected(self) -> None:
        url = reverse("auth:verify-email")

        self.assertEqual(self.client.get(url).status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(self.client.get(url, {"token": "nope"}).status_code, status.HTTP_400_BAD_REQUEST)

    def test_login_is_allowed_before_verification(self) -> None:
        self._register()

        response = self.client.post(
            reverse("auth:login"), {"login": "verifier", "password": "StrongPass123"}, format="json"
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(response.data["user"]["is_email_verified"])

    def test_resend_replaces_the_link(self) -> None:
        self._register()
        user = User.objects.get(username="verifier")
        first = EmailVerificationToken.objects.get()
        self.client.force_authenticate(user)

        with self.captureOnCommitCallbacks(execute=True):
            response = self.client.post(reverse("auth:verify-email-resend"))

        self.assertEqual(response.status_code, status.HTTP_202_ACCEPTED)
        self.assertEqual(len(mail.outbox), 2)
        first.refresh_from_db()
        self.assertTrue(first.is_used)
        self.assertEqual(
            self.client.get(reverse("auth:verify-email"), {"token": first.token}).status_code,
            status.HTTP_400_BAD_REQUEST,
        )

    def test_resend_for_verified_user_is_rejected(self) -> None:
        user = User.objects.create_user("done", email="done@example.com", password="StrongPass123")
        user.mark_email_verified()
        self.client.force_authenticate(user)

        response = self.client.post(reverse("auth:verify-email-resend"))

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_changing_email_requires_verification_again(self) -> None:
        user = User.objects.create_user("mover", email="old@example.com", password="StrongPass123")
        user.mark_email_verified()
        self.client.force_authenticate(user)

        response = self.client.patch(reverse("user-me"), {"email": "new@example.com"}, format="json")

        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertFalse(response.data["is_email_verified"])
