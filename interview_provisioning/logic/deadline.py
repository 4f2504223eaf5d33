"""Monotonic deadline checked between storage calls."""

from __future__ import annotations

import time
from typing import Callable, Optional

from interview_provisioning.logic.errors import ProvisioningTimeout


class Deadline:
    def __init__(self, seconds: float, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self.expires_at = clock() + seconds

    @classmethod
    def after(cls, seconds: Optional[float]) -> Optional["Deadline"]:
        return None if seconds is None else cls(seconds)

    def remaining(self) -> float:
        return max(0.0, self.expires_at - self._clock())

    def expired(self) -> bool:
        return self._clock() >= self.expires_at

    def check(self, stage: str) -> None:
        if self.expired():
            raise ProvisioningTimeout(stage)


__all__ = ["Deadline"]
