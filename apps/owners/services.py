"""Owner application review workflow."""

from __future__ import annotations

import logging
from functools import partial

from django.db import transaction  # type: ignore
from django.utils import timezone  # type: ignore

from apps.notifications.services import send_owner_application_decision_email

from .models import OwnerApplication

logger = logging.getLogger(__name__)


class OwnerApplicationError(Exception):
    status_code = 400


def _decide(application: OwnerApplication, *, reviewer, status: str, notes: str) -> OwnerApplication:
    with transaction.atomic():
        locked = OwnerApplication.objects.select_for_update().select_related("user").get(pk=application.pk)
        if locked.status == OwnerApplication.Status.APPROVED:
            raise OwnerApplicationError("Application has already been approved.")
        if locked.status == status:
            raise OwnerApplicationError(f"Application is already {locked.get_status_display().lower()}.")
        locked.status = status
        locked.review_notes = notes
        locked.reviewed_by = reviewer
        locked.reviewed_at = timezone.now()
        locked.save(update_fields=["status", "review_notes", "reviewed_by", "reviewed_at", "updated_at"])
        if status == OwnerApplication.Status.APPROVED:
            locked.user.promote_to_owner()
        transaction.on_commit(partial(send_owner_application_decision_email, locked))

    logger.info("Owner application %s %s by %s", locked.pk, status, getattr(reviewer, "pk", None))
    return locked


def approve_application(application: OwnerApplication, *, reviewer, notes: str = "") -> OwnerApplication:
    return _decide(application, reviewer=reviewer, status=OwnerApplication.Status.APPROVED, notes=notes)


def reject_application(application: OwnerApplication, *, reviewer, notes: str = "") -> OwnerApplication:
    return _decide(application, reviewer=reviewer, status=OwnerApplication.Status.REJECTED, notes=notes)


def mark_under_review(application: OwnerApplication, *, reviewer) -> OwnerApplication:
    if application.status != OwnerApplication.Status.PENDING:
        raise OwnerApplicationError("Only pending applications can be taken under review.")
    application.status = OwnerApplication.Status.UNDER_REVIEW
    application.reviewed_by = reviewer
    application.save(update_fields=["status", "reviewed_by", "updated_at"])
    return application
