"""Deprecated unversioned booking routes.

Every route answers ``308 Permanent Redirect`` to its ``/api/v1/bookings/``
equivalent so old clients keep the method and body on retry.
"""

from __future__ import annotations

from django.http import JsonResponse  # type: ignore
from django.urls import re_path  # type: ignore
from django.views.decorators.csrf import csrf_exempt  # type: ignore

V1_PREFIX = "/api/v1/bookings/"


@csrf_exempt
def redirect_to_v1(request, rest: str = ""):
    target = f"{V1_PREFIX}{rest}"
    query = request.META.get("QUERY_STRING", "")
    if query:
        target = f"{target}?{query}"
    response = JsonResponse(
        {
            "message": "This endpoint is deprecated. Please use the versioned API at /api/v1/bookings.",
            "redirectTo": target,
        },
        status=308,
    )
    response["Location"] = target
    return response


urlpatterns = [
    re_path(r"^(?P<rest>.*)$", redirect_to_v1, name="legacy-booking-redirect"),
]
