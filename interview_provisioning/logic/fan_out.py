"""Batch fan-out: one group interview, or one interview per contact.

Batch members run one at a time. A failure stops the batch; interviews
already created for earlier contacts stay, since each is a complete
aggregate on its own.
"""

from __future__ import annotations

import dataclasses
import logging
from typing import Callable, List

from interview_provisioning.logic.deadline import Deadline
from interview_provisioning.logic.errors import BatchAborted
from interview_provisioning.logic.interview_saga import InterviewAggregate, InterviewPlan

logger = logging.getLogger(__name__)


def plan_units(template: InterviewPlan, contact_ids: tuple) -> List[InterviewPlan]:
    """Expand a template plan into the saga runs to perform."""
    if template.is_public:
        return [dataclasses.replace(template, contact_id=cid) for cid in contact_ids]
    return [dataclasses.replace(template, contact_id=None)]


def run_batch(
    units: List[InterviewPlan],
    create: Callable[[InterviewPlan], InterviewAggregate],
    *,
    deadline: Deadline | None = None,
) -> List[InterviewAggregate]:
    """Create each unit in sequence.

    A single group unit propagates its error unchanged. For public batches the
    error is wrapped in BatchAborted, which records what was created before
    the failing contact.
    """
    created: List[InterviewAggregate] = []
    is_batch = any(u.is_public for u in units)
    for index, unit in enumerate(units, start=1):
        try:
            if deadline is not None:
                deadline.check(f"batch member {index}")
            created.append(create(unit))
        except Exception as exc:
            if not is_batch:
                raise
            logger.error(
                "batch.aborted member=%d of=%d contact_id=%s created=%d error=%s",
                index,
                len(units),
                unit.contact_id,
                len(created),
                exc.__class__.__name__,
            )
            raise BatchAborted(
                exc,
                failed_contact_id=unit.contact_id,
                interview_ids=[a.id for a in created],
            ) from exc
    return created


__all__ = ["plan_units", "run_batch"]
