"""Flatten a questionnaire's section/step/question tree into question ids."""

from __future__ import annotations

import logging
from typing import List

from interview_provisioning.db.gateway import StorageGateway
from interview_provisioning.logic.errors import EmptyQuestionnaire
from interview_provisioning.models.provisioning import ResolvedQuestionnaire

logger = logging.getLogger(__name__)

_LIVE = {"is_deleted": False}


def resolve_questionnaire(gateway: StorageGateway, questionnaire_id: int) -> ResolvedQuestionnaire:
    """Return question ids in section, then step, then question order.

    Soft-deleted sections, steps and questions are skipped, and so is
    everything beneath a deleted parent. Order within each level is storage
    order (ascending id). Raises EmptyQuestionnaire when nothing is left.
    """
    gateway.find_one("questionnaires", {"id": questionnaire_id})

    question_ids: List[int] = []
    sections = gateway.find_many("questionnaire_sections", {"questionnaire_id": questionnaire_id, **_LIVE})
    for section in sections:
        steps = gateway.find_many("questionnaire_steps", {"questionnaire_section_id": section["id"], **_LIVE})
        for step in steps:
            questions = gateway.find_many("questionnaire_questions", {"questionnaire_step_id": step["id"], **_LIVE})
            question_ids.extend(int(q["id"]) for q in questions)

    if not question_ids:
        raise EmptyQuestionnaire(questionnaire_id)

    logger.info(
        "questionnaire.resolved questionnaire_id=%s sections=%d questions=%d",
        questionnaire_id,
        len(sections),
        len(question_ids),
    )
    return ResolvedQuestionnaire(questionnaire_id=questionnaire_id, question_ids=tuple(question_ids))


__all__ = ["resolve_questionnaire"]
