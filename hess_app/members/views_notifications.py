from django.http import HttpRequest, JsonResponse

from members.errors import PipelineError
from members.notifications import send_notification
from members.permissions import HESS_SEND_TEST_EMAIL, json_permission_required
from members.views_utils import get_username, pipeline_error_response, post_only_404, read_json_body


@post_only_404
@json_permission_required(HESS_SEND_TEST_EMAIL)
def send_test_email(request: HttpRequest) -> JsonResponse:
    """Send the test template; unlike workflow notifications, failures surface."""

    try:
        payload = read_json_body(request)
        result = send_notification(
            email_type="test",
            recipients=str(payload.get("to") or ""),
            template_data={
                "user_name": str(payload.get("user_name") or get_username(request) or "Member"),
                "message": str(payload.get("message") or ""),
            },
            subject=str(payload.get("subject") or "") or None,
        )
    except PipelineError as exc:
        return pipeline_error_response(exc)

    return JsonResponse({"success": True, "emailId": result.email_id})
