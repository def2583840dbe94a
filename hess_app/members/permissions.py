from collections.abc import Callable, Collection
from functools import wraps

from django.http import HttpRequest, HttpResponse, JsonResponse

HESS_REVIEW_REGISTRATION_UPDATES = "members.review_registrationupdaterequest"
HESS_UNAPPROVE_ORGANIZATION = "members.unapprove_organization"
HESS_SEND_TEST_EMAIL = "members.send_test_email"


def json_permission_required[**P, R: HttpResponse](
    permission: str,
) -> Callable[[Callable[P, R]], Callable[P, HttpResponse]]:
    """Decorator for JSON endpoints that require a single Django permission.

    Anonymous users get a JSON 401 and users without the permission a JSON
    403, instead of a redirect to the login page.
    """
    return json_permission_required_any({permission})


def json_permission_required_any[**P, R: HttpResponse](
    permissions: Collection[str],
) -> Callable[[Callable[P, R]], Callable[P, HttpResponse]]:
    """Decorator for JSON endpoints that accept any one of several permissions."""

    perms = tuple(permissions)
    if not perms:
        raise ValueError("permissions must not be empty")

    def decorator(view_func: Callable[P, R]) -> Callable[P, HttpResponse]:
        @wraps(view_func)
        def wrapper(*args: P.args, **kwargs: P.kwargs) -> HttpResponse:
            request = args[0] if args else None
            if not isinstance(request, HttpRequest):
                return JsonResponse({"error": "Permission denied."}, status=403)

            if not request.user.is_authenticated:
                return JsonResponse({"error": "Authentication required."}, status=401)

            if not any(request.user.has_perm(perm) for perm in perms):
                return JsonResponse({"error": "Permission denied."}, status=403)

            return view_func(*args, **kwargs)

        return wrapper

    return decorator

