"""Typed errors raised by interview provisioning.

Each error carries a stable `code`; HTTP status and title for a code are
looked up in `interview_provisioning.http.error_mapping`, never hardcoded here.
Validation errors are raised before any write and never trigger compensation.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional


class ProvisioningError(Exception):
    code = "PROVISIONING_ERROR"

    def to_problem_fields(self) -> Dict[str, Any]:
        """Extension members merged into the problem+json body."""
        return {}


class NoRolesSelected(ProvisioningError):
    code = "NO_ROLES_SELECTED"

    def __init__(self) -> None:
        super().__init__("At least one role must be selected")


class NoContactsForPublicInterview(ProvisioningError):
    code = "NO_CONTACTS_FOR_PUBLIC_INTERVIEW"

    def __init__(self) -> None:
        super().__init__("At least one contact must be selected for public interviews")


class MissingQuestionnaireConfiguration(ProvisioningError):
    code = "MISSING_QUESTIONNAIRE_CONFIGURATION"

    def __init__(self, program_id: int, interview_type: str) -> None:
        self.program_id = program_id
        self.interview_type = interview_type
        super().__init__(f"No {interview_type} questionnaire configured for program {program_id}")

    def to_problem_fields(self) -> Dict[str, Any]:
        return {"program_id": self.program_id, "interview_type": self.interview_type}


class EmptyQuestionnaire(ProvisioningError):
    code = "EMPTY_QUESTIONNAIRE"

    def __init__(self, questionnaire_id: int) -> None:
        self.questionnaire_id = questionnaire_id
        super().__init__(f"No questions found in questionnaire {questionnaire_id}")

    def to_problem_fields(self) -> Dict[str, Any]:
        return {"questionnaire_id": self.questionnaire_id}


class AccessCodeExhausted(ProvisioningError):
    code = "ACCESS_CODE_EXHAUSTED"

    def __init__(self, attempts: int) -> None:
        self.attempts = attempts
        super().__init__(f"Could not allocate a unique access code after {attempts} attempts")


class ProvisioningTimeout(ProvisioningError):
    code = "PROVISIONING_TIMEOUT"

    def __init__(self, stage: str) -> None:
        self.stage = stage
        super().__init__(f"Provisioning deadline exceeded before {stage}")

    def to_problem_fields(self) -> Dict[str, Any]:
        return {"stage": self.stage}


class BatchAborted(ProvisioningError):
    """A public batch stopped at one contact.

    Interviews created for earlier contacts are kept; `cause` is the error
    raised while provisioning `failed_contact_id`.
    """

    code = "BATCH_ABORTED"

    def __init__(
        self,
        cause: Exception,
        *,
        failed_contact_id: Optional[int],
        interview_ids: List[int],
    ) -> None:
        self.cause = cause
        self.failed_contact_id = failed_contact_id
        self.interview_ids = list(interview_ids)
        super().__init__(
            f"Batch aborted at contact {failed_contact_id} after "
            f"{len(self.interview_ids)} interview(s) created: {cause}"
        )

    @property
    def interviews_created(self) -> int:
        return len(self.interview_ids)

    @property
    def cause_code(self) -> str:
        return str(getattr(self.cause, "code", "INTERNAL_ERROR"))

    def to_problem_fields(self) -> Dict[str, Any]:
        return {
            "interviews_created": self.interviews_created,
            "interview_ids": self.interview_ids,
            "failed_contact_id": self.failed_contact_id,
            "cause_code": self.cause_code,
        }


__all__ = [
    "ProvisioningError",
    "NoRolesSelected",
    "NoContactsForPublicInterview",
    "MissingQuestionnaireConfiguration",
    "EmptyQuestionnaire",
    "AccessCodeExhausted",
    "ProvisioningTimeout",
    "BatchAborted",
]
