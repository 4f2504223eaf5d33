"""Creation of one interview aggregate.

An aggregate is the interview header plus the rows it owns: role links, one
response placeholder per question and, for single-role public interviews,
response-role links. Steps run as a `Saga`:

    header -> role_links -> responses -> [response_roles]

Each step registers a compensator that deletes what the step wrote, so a
failure anywhere after the header leaves no row referencing the interview.
In transaction mode the same steps run inside one storage transaction and a
failure is undone by rollback instead.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Tuple

from interview_provisioning.db.gateway import StorageGateway
from interview_provisioning.logic.deadline import Deadline
from interview_provisioning.logic.naming import (
    allocate_access_code,
    generate_access_code,
    interview_name,
)
from interview_provisioning.logic.saga import Context, Saga, SagaStep

logger = logging.getLogger(__name__)

Row = Dict[str, Any]


@dataclass(frozen=True)
class InterviewPlan:
    """Everything one saga run needs; built by the fan-out controller."""

    program_id: int
    phase_id: int
    questionnaire_id: int
    company_id: str
    created_by: str
    interview_type: str
    is_public: bool
    role_ids: Tuple[int, ...]
    question_ids: Tuple[int, ...]
    contact_id: Optional[int] = None
    assessment_id: Optional[int] = None


@dataclass
class InterviewAggregate:
    interview: Row
    role_links: List[Row] = field(default_factory=list)
    responses: List[Row] = field(default_factory=list)
    response_role_links: List[Row] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    @property
    def id(self) -> int:
        return int(self.interview["id"])


def effective_roles(plan: InterviewPlan) -> Tuple[Tuple[int, ...], Optional[str]]:
    """Apply the single-role policy for public individual interviews.

    Returns the roles to link and a warning when the set was reduced. Group
    and non-public interviews keep every role.
    """
    if plan.is_public and plan.contact_id is not None and len(plan.role_ids) > 1:
        warning = (
            f"Public interview for contact {plan.contact_id} was given "
            f"{len(plan.role_ids)} roles; only role {plan.role_ids[0]} was kept"
        )
        return plan.role_ids[:1], warning
    return plan.role_ids, None


class InterviewCreationSaga:
    def __init__(
        self,
        gateway: StorageGateway,
        plan: InterviewPlan,
        *,
        access_code_max_attempts: int = 5,
        deadline: Deadline | None = None,
        atomic: bool = False,
        generate_code: Callable[[], str] = generate_access_code,
    ) -> None:
        self.gateway = gateway
        self.plan = plan
        self.access_code_max_attempts = access_code_max_attempts
        self.deadline = deadline
        self.atomic = atomic
        self.generate_code = generate_code
        self.roles, self.role_warning = effective_roles(plan)

    # -- steps ------------------------------------------------------------

    def _owned(self, ctx: Context, extra: Optional[Row] = None) -> Row:
        row: Row = {
            "interview_id": ctx["interview"]["id"],
            "company_id": self.plan.company_id,
            "created_by": self.plan.created_by,
        }
        if extra:
            row.update(extra)
        return row

    def create_header(self, ctx: Context) -> None:
        plan = self.plan
        access_code = None
        if plan.is_public:
            access_code = allocate_access_code(self.gateway, self.access_code_max_attempts, self.generate_code)
        ctx["interview"] = self.gateway.insert_one(
            "interviews",
            {
                "name": interview_name(plan.interview_type, plan.contact_id, plan.is_public),
                "program_id": plan.program_id,
                "phase_id": plan.phase_id,
                "assessment_id": plan.assessment_id,
                "questionnaire_id": plan.questionnaire_id,
                "contact_id": plan.contact_id,
                "company_id": plan.company_id,
                "is_public": plan.is_public,
                "enabled": True,
                "access_code": access_code,
                "status": "pending",
                "created_by": plan.created_by,
            },
        )

    def delete_header(self, ctx: Context) -> None:
        interview = ctx.get("interview")
        if interview is not None:
            self.gateway.delete_one("interviews", interview["id"], company_id=self.plan.company_id)

    def link_roles(self, ctx: Context) -> None:
        rows = [self._owned(ctx, {"role_id": role_id}) for role_id in self.roles]
        ctx["role_links"] = self.gateway.insert_many("interview_roles", rows)

    def create_responses(self, ctx: Context) -> None:
        rows = [
            self._owned(
                ctx,
                {
                    "questionnaire_question_id": question_id,
                    "rating_score": None,
                    "comments": None,
                    "answered_at": None,
                    "is_applicable": True,
                },
            )
            for question_id in self.plan.question_ids
        ]
        ctx["responses"] = self.gateway.insert_many("interview_responses", rows)

    def link_response_roles(self, ctx: Context) -> None:
        responses = ctx.get("responses") or []
        if not responses:
            return
        role_id = self.roles[0]
        rows = [self._owned(ctx, {"interview_response_id": r["id"], "role_id": role_id}) for r in responses]
        ctx["response_role_links"] = self.gateway.insert_many("interview_response_roles", rows)

    def _delete_owned(self, collection: str) -> Callable[[Context], None]:
        def compensate(ctx: Context) -> None:
            interview = ctx.get("interview")
            if interview is None:
                return
            self.gateway.delete_where(collection, {"interview_id": interview["id"]}, company_id=self.plan.company_id)

        return compensate

    def links_response_roles(self) -> bool:
        return self.plan.is_public and len(self.roles) == 1

    def steps(self) -> List[SagaStep]:
        steps = [
            SagaStep("header", self.create_header, self.delete_header),
            SagaStep("role_links", self.link_roles, self._delete_owned("interview_roles")),
            SagaStep("responses", self.create_responses, self._delete_owned("interview_responses")),
        ]
        if self.links_response_roles():
            steps.append(
                SagaStep("response_roles", self.link_response_roles, self._delete_owned("interview_response_roles"))
            )
        return steps

    # -- run --------------------------------------------------------------

    def run(self) -> InterviewAggregate:
        if self.role_warning:
            logger.warning(
                "provisioning.role_reduction contact_id=%s roles=%s kept=%s",
                self.plan.contact_id,
                list(self.plan.role_ids),
                self.roles[0],
            )
        saga = Saga(
            f"interview[contact={self.plan.contact_id}]",
            self.steps(),
            deadline=self.deadline,
            compensate=not self.atomic,
        )
        ctx: Context = {}
        if self.atomic:
            with self.gateway.transaction():
                saga.run(ctx)
        else:
            saga.run(ctx)

        aggregate = InterviewAggregate(
            interview=ctx["interview"],
            role_links=ctx.get("role_links", []),
            responses=ctx.get("responses", []),
            response_role_links=ctx.get("response_role_links", []),
            warnings=[self.role_warning] if self.role_warning else [],
        )
        logger.info(
            "interview.created interview_id=%s roles=%d responses=%d response_roles=%d",
            aggregate.id,
            len(aggregate.role_links),
            len(aggregate.responses),
            len(aggregate.response_role_links),
        )
        return aggregate


def create_interview(gateway: StorageGateway, plan: InterviewPlan, **options: Any) -> InterviewAggregate:
    return InterviewCreationSaga(gateway, plan, **options).run()


__all__ = [
    "InterviewPlan",
    "InterviewAggregate",
    "InterviewCreationSaga",
    "effective_roles",
    "create_interview",
]
