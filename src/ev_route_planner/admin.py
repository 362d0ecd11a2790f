from django.contrib import admin, messages

from ev_route_planner.exceptions import InvalidRequestError
from ev_route_planner.models import Account, ChargingStation, StationRegistration, StationReview
from ev_route_planner.services.registration import approve_registration


@admin.register(ChargingStation)
class ChargingStationAdmin(admin.ModelAdmin):
    list_display = (
        "name",
        "city",
        "state",
        "power_kw",
        "cost_per_kwh",
        "connector_type",
        "verified",
        "rating",
        "review_count",
    )
    list_filter = ("verified", "connector_type", "state")
    search_fields = ("name", "address", "city", "state")
    ordering = ("id",)


@admin.register(StationReview)
class StationReviewAdmin(admin.ModelAdmin):
    list_display = ("station", "user", "rating", "created_at")
    list_filter = ("rating",)


@admin.register(StationRegistration)
class StationRegistrationAdmin(admin.ModelAdmin):
    list_display = ("station_name", "business_name", "owner", "status", "submitted_at")
    list_filter = ("status",)
    search_fields = ("station_name", "business_name", "station_address")
    actions = ("approve_selected",)

    @admin.action(description="Approve selected registrations")
    def approve_selected(self, request, queryset):
        approved = 0
        for registration in queryset:
            try:
                approve_registration(registration.pk)
            except InvalidRequestError as exc:
                self.message_user(request, str(exc), level=messages.WARNING)
                continue
            approved += 1
        self.message_user(request, f"Approved {approved} registration(s)")


@admin.register(Account)
class AccountAdmin(admin.ModelAdmin):
    list_display = ("user", "role", "created_at")
    list_filter = ("role",)
