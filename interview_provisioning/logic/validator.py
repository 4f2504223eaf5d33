"""Pre-condition checks for a provisioning request.

Checks run in a fixed order and stop at the first failure. Selection checks
need no storage access, so an empty role selection is rejected before any
lookup. Nothing here writes.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict

from interview_provisioning.db.gateway import StorageGateway
from interview_provisioning.logic.errors import (
    MissingQuestionnaireConfiguration,
    NoContactsForPublicInterview,
    NoRolesSelected,
)
from interview_provisioning.models.provisioning import InterviewType, ProvisioningRequest

logger = logging.getLogger(__name__)

QUESTIONNAIRE_COLUMN = {
    InterviewType.ONSITE: "onsite_questionnaire_id",
    InterviewType.PRESITE: "presite_questionnaire_id",
}


@dataclass(frozen=True)
class ValidatedRequest:
    request: ProvisioningRequest
    program: Dict[str, Any]
    phase: Dict[str, Any]
    questionnaire_id: int

    @property
    def company_id(self) -> str:
        return str(self.program["company_id"])


def check_selection(request: ProvisioningRequest) -> None:
    if not request.role_ids:
        raise NoRolesSelected()
    if request.is_public and not request.contact_ids:
        raise NoContactsForPublicInterview()


def validate_request(gateway: StorageGateway, request: ProvisioningRequest) -> ValidatedRequest:
    """Run every pre-condition and return the rows later stages need.

    Program and phase lookups raise RecordNotFound/StorageError unchanged.
    """
    check_selection(request)

    program = gateway.find_one("programs", {"id": request.program_id})
    phase = gateway.find_one("program_phases", {"id": request.phase_id})

    questionnaire_id = program.get(QUESTIONNAIRE_COLUMN[request.interview_type])
    if not questionnaire_id:
        raise MissingQuestionnaireConfiguration(request.program_id, request.interview_type.value)

    logger.info(
        "provisioning.validated program_id=%s phase_id=%s questionnaire_id=%s",
        request.program_id,
        request.phase_id,
        questionnaire_id,
    )
    return ValidatedRequest(
        request=request,
        program=program,
        phase=phase,
        questionnaire_id=int(questionnaire_id),
    )


__all__ = ["ValidatedRequest", "QUESTIONNAIRE_COLUMN", "check_selection", "validate_request"]
