import logging

from django.http import HttpRequest, JsonResponse

from members.errors import PipelineError
from members.permissions import HESS_UNAPPROVE_ORGANIZATION, json_permission_required
from members.unapprove import unapprove_organization
from members.views_utils import get_username, pipeline_error_response, post_only_404

logger = logging.getLogger(__name__)


@post_only_404
@json_permission_required(HESS_UNAPPROVE_ORGANIZATION)
def unapprove(request: HttpRequest, organization_id: int) -> JsonResponse:
    try:
        outcome = unapprove_organization(organization_id=organization_id, actor_username=get_username(request))
    except PipelineError as exc:
        return pipeline_error_response(exc)

    # Database steps stay committed on partial failure.
    return JsonResponse(outcome.as_dict(), status=200 if outcome.succeeded else 207)
