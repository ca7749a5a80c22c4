"""Fleet models."""

from __future__ import annotations

from datetime import date

from django.db import models  # type: ignore
from django.utils.text import slugify  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore


class YachtQuerySet(models.QuerySet):
    def bookable(self):  # type: ignore
        return self.filter(booking_mode=Yacht.BookingMode.POLICY_V2)


class Yacht(models.Model):
    """A yacht offered for hourly charters."""

    class BookingMode(models.TextChoices):
        LEGACY_EMBED = "legacy_embed", _("Legacy half-day embed")
        POLICY_V2 = "policy_v2", _("Hourly policy")

    name = models.CharField(max_length=150)
    slug = models.SlugField(max_length=160, unique=True, blank=True)
    vessel_type = models.CharField(max_length=60, blank=True)
    capacity = models.PositiveSmallIntegerField(default=1)
    booking_mode = models.CharField(
        max_length=20,
        choices=BookingMode.choices,
        default=BookingMode.POLICY_V2,
    )
    booking_public_enabled = models.BooleanField(
        default=False,
        help_text=_("Allow anonymous guests to see availability and book."),
    )
    booking_v2_live_from = models.DateField(
        null=True,
        blank=True,
        help_text=_("Dates before this day are closed for hourly bookings."),
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = YachtQuerySet.as_manager()

    class Meta:
        verbose_name = _("Yacht")
        verbose_name_plural = _("Yachts")
        ordering = ["name"]
        indexes = [
            models.Index(fields=["booking_mode", "booking_public_enabled"], name="yacht_booking_mode_idx"),
        ]

    def __str__(self) -> str:
        return self.name

    @property
    def uses_hourly_policy(self) -> bool:
        return self.booking_mode == self.BookingMode.POLICY_V2

    def is_closed_on(self, day: date) -> bool:
        """True for days before the hourly policy went live for this yacht."""
        return self.booking_v2_live_from is not None and day < self.booking_v2_live_from

    def save(self, *args, **kwargs):  # type: ignore
        if not self.slug:
            base_slug = slugify(self.name)[:150] or "yacht"
            candidate = base_slug
            counter = 1
            while self.__class__.objects.filter(slug=candidate).exclude(pk=self.pk).exists():
                counter += 1
                candidate = f"{base_slug}-{counter}"
            self.slug = candidate
        super().save(*args, **kwargs)
