"""Find or create the assessment that groups a phase's interviews."""

from __future__ import annotations

import logging
from typing import Any, Dict

from interview_provisioning.db.gateway import StorageGateway
from interview_provisioning.logic.validator import ValidatedRequest

logger = logging.getLogger(__name__)


def assessment_name(interview_type: str, sequence_number: Any) -> str:
    return f"{interview_type} Assessment - Phase {sequence_number}"


def ensure_assessment(gateway: StorageGateway, validated: ValidatedRequest) -> Dict[str, Any]:
    """Return the phase's assessment for the questionnaire, creating it once.

    The assessment is shared by every interview of the phase; interview
    compensation never removes it.
    """
    request = validated.request
    existing = gateway.find_one_or_none(
        "assessments",
        {
            "program_phase_id": request.phase_id,
            "questionnaire_id": validated.questionnaire_id,
            "is_deleted": False,
        },
    )
    if existing is not None:
        logger.info("assessment.reused assessment_id=%s phase_id=%s", existing["id"], request.phase_id)
        return existing

    created = gateway.insert_one(
        "assessments",
        {
            "name": assessment_name(request.interview_type.value, validated.phase.get("sequence_number")),
            "type": request.interview_type.value,
            "program_phase_id": request.phase_id,
            "questionnaire_id": validated.questionnaire_id,
            "company_id": validated.company_id,
        },
    )
    logger.info("assessment.created assessment_id=%s phase_id=%s", created["id"], request.phase_id)
    return created


__all__ = ["assessment_name", "ensure_assessment"]
