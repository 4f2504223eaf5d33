"""Program interview provisioning service.

Materialises interview aggregates (header, role links, response placeholders
and response-role links) for a program phase. Business logic lives in
`interview_provisioning/logic/`, storage access in `interview_provisioning/db/`
and the FastAPI surface in `interview_provisioning/routes/`.
"""

from __future__ import annotations

from interview_provisioning.logic.provisioning import InterviewProvisioner, provision_interviews

__all__ = ["InterviewProvisioner", "provision_interviews"]
