"""Bearer-token authentication for the JSON API.

Tokens are ``django.core.signing`` payloads carrying the user id and role,
timestamped so they expire after ``AUTH_TOKEN_MAX_AGE_SECONDS``.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from functools import wraps
from typing import Any

from django.conf import settings
from django.contrib.auth import get_user_model
from django.core import signing
from django.http import HttpRequest, HttpResponse, JsonResponse

from ev_route_planner.models import Account

logger = logging.getLogger(__name__)


def issue_token(account: Account) -> str:
    return signing.dumps(
        {"uid": account.user_id, "role": account.effective_role},
        salt=settings.AUTH_TOKEN_SALT,
        compress=True,
    )


def resolve_token(token: str) -> Account | None:
    try:
        payload = signing.loads(
            token,
            salt=settings.AUTH_TOKEN_SALT,
            max_age=settings.AUTH_TOKEN_MAX_AGE_SECONDS,
        )
    except signing.BadSignature:
        return None

    user_id = payload.get("uid") if isinstance(payload, dict) else None
    if user_id is None:
        return None

    user = get_user_model().objects.filter(pk=user_id, is_active=True).first()
    if user is None:
        return None
    account, _ = Account.objects.get_or_create(user=user)
    return account


def bearer_token(request: HttpRequest) -> str | None:
    header = request.headers.get("Authorization", "")
    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def require_auth(roles: Iterable[str] | None = None) -> Callable:
    """Reject requests without a valid bearer token (401) or the wrong role (403).

    The resolved account is attached as ``request.account``.
    """
    allowed = frozenset(str(role) for role in roles) if roles is not None else None

    def decorator(view: Callable[..., HttpResponse]) -> Callable[..., HttpResponse]:
        @wraps(view)
        def wrapper(request: HttpRequest, *args: Any, **kwargs: Any) -> HttpResponse:
            token = bearer_token(request)
            if token is None:
                return _auth_error("unauthorized", "Access token required", status=401)

            account = resolve_token(token)
            if account is None:
                logger.info("Rejected invalid or expired token on %s", request.path)
                return _auth_error("unauthorized", "Invalid or expired token", status=401)

            if allowed is not None and account.effective_role not in allowed:
                return _auth_error("forbidden", "Insufficient permissions", status=403)

            request.account = account
            return view(request, *args, **kwargs)

        return wrapper

    return decorator


def _auth_error(code: str, message: str, status: int) -> JsonResponse:
    return JsonResponse({"error": {"code": code, "message": message}}, status=status)
