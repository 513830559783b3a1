"""
Pending Action Endpoints.

Write actions proposed by an agent are only executed through these
endpoints, after the user who received the proposal confirms it.
"""

from fastapi import APIRouter

from copilot_ai.agent_core.schemas.api import CancelActionResponse, ConfirmActionRequest, ConfirmActionResponse
from copilot_ai.server.services.deps import AuthDep, CopilotServiceDep

router = APIRouter()


@router.post(
    "/actions/confirm",
    response_model=ConfirmActionResponse,
    summary="Confirm Pending Action",
    description="Execute a proposed action on behalf of the user who received it.",
    responses={
        403: {"description": "ACTION_MISMATCH: the action belongs to another user or tenant"},
        404: {"description": "ACTION_NOT_FOUND"},
        409: {"description": "ACTION_STATE_INVALID: already executed, cancelled or being executed"},
        410: {"description": "ACTION_EXPIRED"},
    },
)
async def confirm_action(body: ConfirmActionRequest, service: CopilotServiceDep, auth: AuthDep):
    return await service.confirm_action(body.action_id, auth)


@router.post(
    "/actions/{action_id}/cancel",
    response_model=CancelActionResponse,
    summary="Cancel Pending Action",
)
async def cancel_action(action_id: str, service: CopilotServiceDep, auth: AuthDep):
    """Dismiss a proposed action. Terminal actions cannot be cancelled."""
    return service.cancel_action(action_id, auth)
