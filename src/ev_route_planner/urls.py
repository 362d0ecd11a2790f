from django.urls import path

from ev_route_planner import views

urlpatterns = [
    path("api/v1/health", views.health_view, name="health"),
    path("api/v1/auth/register", views.register_view, name="auth-register"),
    path("api/v1/auth/login", views.login_view, name="auth-login"),
    path("api/v1/profile", views.profile_view, name="profile"),
    path("api/v1/users", views.users_view, name="users"),
    path("api/v1/stations", views.stations_view, name="stations"),
    path("api/v1/stations/nearby", views.nearby_stations_view, name="stations-nearby"),
    path("api/v1/stations/<int:station_id>", views.station_detail_view, name="station-detail"),
    path(
        "api/v1/stations/<int:station_id>/reviews",
        views.station_reviews_view,
        name="station-reviews",
    ),
    path("api/v1/routes/plan", views.route_plan_view, name="route-plan"),
    path("api/v1/maps/geocode", views.geocode_view, name="maps-geocode"),
    path("api/v1/registrations", views.registrations_view, name="registrations"),
    path(
        "api/v1/registrations/<int:registration_id>/approve",
        views.registration_approve_view,
        name="registration-approve",
    ),
    path(
        "api/v1/registrations/<int:registration_id>/reject",
        views.registration_reject_view,
        name="registration-reject",
    ),
]
