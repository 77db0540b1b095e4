"""Models for the review domain.

Defines the ``Review`` entity: a rating from 1 to 5 with a comment left by
a user on a campground.
"""

from __future__ import annotations

from django.conf import settings  # type: ignore
from django.core.validators import MaxValueValidator, MinValueValidator  # type: ignore
from django.db import models  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore


class Review(models.Model):
    """Represents a review left by a user for a campground."""

    campground = models.ForeignKey(
        'campgrounds.Campground', on_delete=models.CASCADE, related_name='reviews'
    )
    author = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='reviews'
    )
    rating = models.PositiveSmallIntegerField(
        validators=[MinValueValidator(1), MaxValueValidator(5)],
        help_text=_('Rating from 1 to 5'),
    )
    body = models.TextField()
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _('Review')
        verbose_name_plural = _('Reviews')
        ordering = ['-created_at']

    def __str__(self) -> str:
        return f'{self.rating}/5 by {self.author_id} on {self.campground_id}'
