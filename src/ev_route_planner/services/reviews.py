from __future__ import annotations

from django.db import transaction
from django.db.models import Avg, Count

from ev_route_planner.models import ChargingStation, StationReview


@transaction.atomic
def add_review(station: ChargingStation, user, rating: int, comment: str = "") -> StationReview:
    """Store a review and refresh the station's average rating and review count."""
    review = StationReview.objects.create(
        station=station, user=user, rating=rating, comment=comment
    )

    summary = StationReview.objects.filter(station=station).aggregate(
        average=Avg("rating"), total=Count("id")
    )
    station.rating = round(float(summary["average"]), 1)
    station.review_count = summary["total"]
    station.save(update_fields=["rating", "review_count", "updated_at"])
    return review
