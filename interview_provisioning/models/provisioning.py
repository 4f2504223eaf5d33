"""Pydantic value objects for interview provisioning."""

from __future__ import annotations

from enum import Enum
from typing import List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator


class InterviewType(str, Enum):
    ONSITE = "onsite"
    PRESITE = "presite"


def _dedupe(values: Tuple[int, ...]) -> Tuple[int, ...]:
    seen: set[int] = set()
    out: list[int] = []
    for v in values:
        if v not in seen:
            seen.add(v)
            out.append(v)
    return tuple(out)


class ProvisioningRequest(BaseModel):
    """Input for one provisioning call. Immutable once built.

    `role_ids` behaves as a set (duplicates dropped) whose iteration order is
    the order supplied by the caller; "first role" always means the first id
    given. Emptiness is checked by the validator, not here, so an empty
    selection surfaces as NoRolesSelected.
    """

    model_config = ConfigDict(frozen=True)

    program_id: int
    phase_id: int
    interview_type: InterviewType
    is_public: bool = False
    role_ids: Tuple[int, ...] = ()
    contact_ids: Tuple[int, ...] = ()
    created_by: str = Field(min_length=1)

    @field_validator("role_ids")
    @classmethod
    def roles_as_ordered_set(cls, v: Tuple[int, ...]) -> Tuple[int, ...]:
        return _dedupe(v)


class ResolvedQuestionnaire(BaseModel):
    model_config = ConfigDict(frozen=True)

    questionnaire_id: int
    question_ids: Tuple[int, ...]


class ProvisioningResult(BaseModel):
    success: bool = True
    message: str
    interviews_created: int
    interview_ids: List[int] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)


class CreateInterviewsBody(BaseModel):
    """HTTP body for the create-interviews route; path carries program/phase."""

    interview_type: InterviewType
    is_public: bool = False
    role_ids: List[int] = Field(default_factory=list)
    contact_ids: List[int] = Field(default_factory=list)
    created_by: str = Field(min_length=1)
    deadline_seconds: Optional[float] = Field(default=None, gt=0)


__all__ = [
    "InterviewType",
    "ProvisioningRequest",
    "ResolvedQuestionnaire",
    "ProvisioningResult",
    "CreateInterviewsBody",
]
