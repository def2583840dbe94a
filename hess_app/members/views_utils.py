"""Shared helpers for the JSON endpoints."""

import json
import logging
from collections.abc import Callable
from functools import wraps
from typing import Any

from django.http import Http404, HttpRequest, JsonResponse

from members.errors import PipelineError, ValidationError

logger = logging.getLogger(__name__)


def require_post_or_404(request: HttpRequest, *, message: str = "Not found") -> None:
    """Raise a 404 when an endpoint is accessed with a non-POST method."""

    if request.method != "POST":
        raise Http404(message)


def post_only_404[**P, R](view_func: Callable[P, R]) -> Callable[P, R]:
    """Decorator variant of ``require_post_or_404`` for view functions."""

    @wraps(view_func)
    def _wrapped(*args: P.args, **kwargs: P.kwargs) -> R:
        request = args[0]
        require_post_or_404(request)
        return view_func(*args, **kwargs)

    return _wrapped


def get_username(request: HttpRequest) -> str:
    """Acting admin's username, or "" for anonymous requests."""

    user = getattr(request, "user", None)
    if user is None or not user.is_authenticated:
        return ""
    return str(user.get_username() or "").strip()


def read_json_body(request: HttpRequest) -> dict[str, Any]:
    """Parse a JSON object body; form-encoded posts are accepted as a fallback."""

    content_type = str(request.content_type or "")
    if content_type.startswith("application/json"):
        try:
            payload = json.loads(request.body or b"{}")
        except (ValueError, UnicodeDecodeError) as exc:
            raise ValidationError("Request body is not valid JSON") from exc
        if not isinstance(payload, dict):
            raise ValidationError("Request body must be a JSON object")
        return payload
    return {key: request.POST.get(key) for key in request.POST}


def pipeline_error_response(exc: PipelineError) -> JsonResponse:
    return JsonResponse(exc.as_payload(), status=exc.http_status)
