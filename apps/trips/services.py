"""Trip sharing workflows."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import partial

from django.conf import settings  # type: ignore
from django.contrib.auth import get_user_model  # type: ignore
from django.db import transaction  # type: ignore

from apps.notifications.services import send_trip_invite_email

from .models import Trip, TripInvite

logger = logging.getLogger(__name__)


class TripError(Exception):
    status_code = 400

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


@dataclass(frozen=True)
class InviteOutcome:
    collaborator_added: bool
    invite: TripInvite | None = None


@transaction.atomic
def create_trip(serializer, user) -> Trip:
    trip = serializer.save(user=user)
    trip.create_days()
    logger.info("Trip %s created by user %s with %s days", trip.pk, user.pk, trip.days.count())
    return trip


def invite_to_trip(trip: Trip, inviter, email: str, message: str = "") -> InviteOutcome:
    """Share a trip by email.

    A registered address becomes a collaborator straight away; any other
    address gets a pending invite whose token leads to sign-up.
    """
    invited = get_user_model().objects.filter(email__iexact=email).first()
    with transaction.atomic():
        if invited is not None:
            if trip.is_owner(invited):
                raise TripError("You cannot invite yourself to your own trip")
            if trip.collaborators.filter(pk=invited.pk).exists():
                raise TripError("User is already a collaborator")
            trip.collaborators.add(invited)
            invite = None
            recipient = invited.email
            invite_url = f"{settings.CLIENT_URL}/trips/{trip.pk}"
        else:
            if trip.invites.filter(email__iexact=email, status=TripInvite.Status.PENDING).exists():
                raise TripError("Invite already sent to this email for this trip")
            invite = TripInvite.objects.create(trip=trip, email=email, inviter=inviter)
            recipient = email
            invite_url = f"{settings.CLIENT_URL}/register?invite={invite.token}"
        transaction.on_commit(
            partial(
                send_trip_invite_email,
                recipient_email=recipient,
                inviter=inviter,
                trip=trip,
                invite_url=invite_url,
                message=message,
            )
        )
    logger.info("User %s invited %s to trip %s", inviter.pk, "a registered user" if invited else "a new user", trip.pk)
    return InviteOutcome(collaborator_added=invited is not None, invite=invite)


def accept_invite(trip: Trip, user) -> None:
    if trip.is_member(user):
        return
    with transaction.atomic():
        invite = (
            trip.invites.select_for_update()
            .filter(email__iexact=user.email, status=TripInvite.Status.PENDING)
            .first()
        )
        if invite is None:
            raise TripError("You are not invited to this trip", status_code=403)
        trip.collaborators.add(user)
        invite.status = TripInvite.Status.ACCEPTED
        invite.save(update_fields=["status"])
    logger.info("User %s accepted invite to trip %s", user.pk, trip.pk)
