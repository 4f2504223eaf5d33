"""Program interview provisioning.

Entry point for turning a `ProvisioningRequest` into interview aggregates:

1. validate the request (selection, program, phase, questionnaire config)
2. resolve the questionnaire into an ordered question-id list
3. find or create the phase assessment
4. fan out into saga runs, one per interview

Steps 1 and 2 perform no writes, so validation errors never need cleanup.
"""

from __future__ import annotations

import functools
import logging
from typing import List, Optional

from interview_provisioning.config import ProvisioningConfig
from interview_provisioning.db.gateway import StorageGateway
from interview_provisioning.logic.assessments import ensure_assessment
from interview_provisioning.logic.deadline import Deadline
from interview_provisioning.logic.fan_out import plan_units, run_batch
from interview_provisioning.logic.interview_saga import InterviewPlan, create_interview
from interview_provisioning.logic.questionnaire_resolver import resolve_questionnaire
from interview_provisioning.logic.validator import validate_request
from interview_provisioning.models.provisioning import ProvisioningRequest, ProvisioningResult

logger = logging.getLogger(__name__)


class InterviewProvisioner:
    def __init__(self, gateway: StorageGateway, settings: ProvisioningConfig | None = None) -> None:
        self.gateway = gateway
        self.settings = settings or ProvisioningConfig()

    def provision(self, request: ProvisioningRequest, *, deadline: Optional[Deadline] = None) -> ProvisioningResult:
        if deadline is None:
            deadline = Deadline.after(self.settings.deadline_seconds)

        validated = validate_request(self.gateway, request)
        resolved = resolve_questionnaire(self.gateway, validated.questionnaire_id)
        if deadline is not None:
            deadline.check("assessment")
        assessment = ensure_assessment(self.gateway, validated)

        template = InterviewPlan(
            program_id=request.program_id,
            phase_id=request.phase_id,
            questionnaire_id=resolved.questionnaire_id,
            company_id=validated.company_id,
            created_by=request.created_by,
            interview_type=request.interview_type.value,
            is_public=request.is_public,
            role_ids=request.role_ids,
            question_ids=resolved.question_ids,
            assessment_id=int(assessment["id"]),
        )
        units = plan_units(template, request.contact_ids)
        create = functools.partial(
            create_interview,
            self.gateway,
            access_code_max_attempts=self.settings.access_code_max_attempts,
            deadline=deadline,
            atomic=self.settings.atomic_mode == "transaction",
        )
        aggregates = run_batch(units, create, deadline=deadline)

        count = len(aggregates)
        warnings: List[str] = [w for a in aggregates for w in a.warnings]
        logger.info(
            "provisioning.completed program_id=%s phase_id=%s type=%s interviews=%d",
            request.program_id,
            request.phase_id,
            request.interview_type.value,
            count,
        )
        return ProvisioningResult(
            success=True,
            message=f"Successfully created {count} {request.interview_type.value} interview(s)",
            interviews_created=count,
            interview_ids=[a.id for a in aggregates],
            warnings=warnings,
        )


def provision_interviews(
    request: ProvisioningRequest,
    *,
    gateway: StorageGateway | None = None,
    settings: ProvisioningConfig | None = None,
    deadline: Optional[Deadline] = None,
) -> ProvisioningResult:
    """Provision the interviews a request asks for.

    Raises a ProvisioningError subclass or a storage error; never returns a
    result that counts a failed aggregate.
    """
    return InterviewProvisioner(gateway or StorageGateway(), settings).provision(request, deadline=deadline)


__all__ = ["InterviewProvisioner", "provision_interviews"]
