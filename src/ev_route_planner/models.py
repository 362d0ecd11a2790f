from __future__ import annotations

from django.conf import settings
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models


class Account(models.Model):
    class Role(models.TextChoices):
        USER = "user", "User"
        OWNER = "owner", "Station owner"
        ADMIN = "admin", "Administrator"

    objects = models.Manager["Account"]()

    user = models.OneToOneField(
        settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="account"
    )
    role = models.CharField(max_length=10, choices=Role.choices, default=Role.USER)
    created_at = models.DateTimeField(auto_now_add=True)

    @property
    def effective_role(self) -> str:
        if self.user.is_superuser:
            return str(self.Role.ADMIN)
        return str(self.role)

    def __str__(self) -> str:
        return f"{self.user.email} ({self.effective_role})"


class ChargingStation(models.Model):
    objects = models.Manager["ChargingStation"]()

    name = models.CharField(max_length=255)
    address = models.CharField(max_length=255)
    city = models.CharField(max_length=100, blank=True, default="")
    state = models.CharField(max_length=50, blank=True, default="")
    latitude = models.FloatField(
        validators=[MinValueValidator(-90.0), MaxValueValidator(90.0)]
    )
    longitude = models.FloatField(
        validators=[MinValueValidator(-180.0), MaxValueValidator(180.0)]
    )
    power_kw = models.FloatField()
    cost_per_kwh = models.FloatField(default=0.0)
    connector_type = models.CharField(max_length=50, blank=True, default="")
    verified = models.BooleanField(default=False)
    rating = models.FloatField(null=True, blank=True)
    review_count = models.PositiveIntegerField(default=0)
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="stations",
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ("id",)
        indexes = (
            models.Index(fields=["latitude", "longitude"], name="station_lat_lon_idx"),
            models.Index(fields=["verified"], name="station_verified_idx"),
        )

    def __str__(self) -> str:
        return f"{self.name} ({self.address})"


class StationReview(models.Model):
    objects = models.Manager["StationReview"]()

    station = models.ForeignKey(
        ChargingStation, on_delete=models.CASCADE, related_name="reviews"
    )
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="station_reviews"
    )
    rating = models.PositiveSmallIntegerField(
        validators=[MinValueValidator(1), MaxValueValidator(5)]
    )
    comment = models.TextField(blank=True, default="")
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ("-created_at", "-id")

    def __str__(self) -> str:
        return f"{self.rating}/5 for station {self.station_id}"


class StationRegistration(models.Model):
    """An owner's station submission awaiting admin review."""

    class Status(models.TextChoices):
        PENDING = "pending", "Pending"
        APPROVED = "approved", "Approved"
        REJECTED = "rejected", "Rejected"

    objects = models.Manager["StationRegistration"]()

    owner = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="registrations"
    )
    business_name = models.CharField(max_length=255)
    station_name = models.CharField(max_length=255)
    station_address = models.CharField(max_length=255)
    latitude = models.FloatField()
    longitude = models.FloatField()
    power_kw = models.FloatField()
    cost_per_kwh = models.FloatField()
    connector_type = models.CharField(max_length=50)
    status = models.CharField(max_length=10, choices=Status.choices, default=Status.PENDING)
    station = models.OneToOneField(
        ChargingStation,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="registration",
    )
    submitted_at = models.DateTimeField(auto_now_add=True)
    reviewed_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ("submitted_at", "id")
        indexes = (models.Index(fields=["status"], name="registration_status_idx"),)

    def __str__(self) -> str:
        return f"{self.station_name} [{self.status}]"
