"""Program interview provisioning endpoint.

Thin adapter: builds a ProvisioningRequest from path and body, delegates to
the provisioning logic and returns its result. Errors propagate to the
problem+json handlers registered on the app.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from interview_provisioning.logic.deadline import Deadline
from interview_provisioning.logic.provisioning import InterviewProvisioner
from interview_provisioning.models.provisioning import CreateInterviewsBody, ProvisioningRequest

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post(
    "/api/v1/programs/{program_id}/phases/{phase_id}/interviews",
    summary="Provision interviews for a program phase",
    operation_id="createProgramInterviews",
    status_code=201,
)
def create_program_interviews(program_id: int, phase_id: int, body: CreateInterviewsBody, http_request: Request):
    cfg = http_request.app.state.config
    provisioning_request = ProvisioningRequest(
        program_id=program_id,
        phase_id=phase_id,
        interview_type=body.interview_type,
        is_public=body.is_public,
        role_ids=tuple(body.role_ids),
        contact_ids=tuple(body.contact_ids),
        created_by=body.created_by,
    )
    seconds = body.deadline_seconds or cfg.provisioning.deadline_seconds
    provisioner = InterviewProvisioner(http_request.app.state.gateway, cfg.provisioning)
    result = provisioner.provision(provisioning_request, deadline=Deadline.after(seconds))
    logger.info(
        "create_program_interviews program_id=%s phase_id=%s created=%d",
        program_id,
        phase_id,
        result.interviews_created,
    )
    return JSONResponse(result.model_dump(), status_code=201)


__all__ = ["router", "create_program_interviews"]
