"""Backoff schedule for one node's attempts.

After a failed attempt the fan-out loop asks the schedule two things:
whether the node has retries left, and how long to wait before the next
one.  The schedule is derived from a policy and shared read-only by every
node in a run; each node keeps its own ``retries_used`` counter.

Example:
    >>> schedule = BackoffSchedule(retries=3, first_delay=0.1, factor=2.0)
    >>> schedule.delays()
    [0.1, 0.2, 0.4]
    >>> schedule.allows_retry(3)
    False
"""

from __future__ import annotations

from dataclasses import dataclass

from dockfleet.core.errors import ValidationError
from dockfleet.execution.policy import ExecutionPolicy


@dataclass(frozen=True, slots=True)
class BackoffSchedule:
    """Retry allowance and wait times for a node.

    Attributes:
        retries: Retries allowed after the first attempt (0 = fail fast)
        first_delay: Seconds to wait before retry 1
        factor: Growth per retry; 2.0 doubles, 1.0 keeps the delay constant
    """

    retries: int = 0
    first_delay: float = 0.0
    factor: float = 1.0

    def __post_init__(self):
        if self.retries < 0:
            raise ValidationError.invalid("retries", self.retries, "integer >= 0")
        if self.first_delay < 0:
            raise ValidationError.invalid("first_delay", self.first_delay, "seconds >= 0")
        if self.factor < 1:
            raise ValidationError.invalid("factor", self.factor, "number >= 1")

    @classmethod
    def for_policy(cls, policy: ExecutionPolicy) -> BackoffSchedule:
        """The schedule a policy describes.

        Retries off → no retries.  Exponential → ``backoff_base_ms`` doubling
        per retry.  Otherwise ``retry_delay_ms`` before every retry.
        """
        if not policy.retry_on_failure:
            return cls()
        if policy.exponential_backoff:
            return cls(policy.max_retries, policy.backoff_base_ms / 1000.0, 2.0)
        return cls(policy.max_retries, policy.retry_delay_ms / 1000.0, 1.0)

    def allows_retry(self, retries_used: int) -> bool:
        return retries_used < self.retries

    def delay_before(self, retry: int) -> float:
        """Seconds to wait before retry number ``retry`` (1-based)."""
        return self.first_delay * self.factor ** (retry - 1)

    def delays(self) -> list[float]:
        """Every wait the schedule allows, in order."""
        return [self.delay_before(retry) for retry in range(1, self.retries + 1)]


NO_RETRY = BackoffSchedule()


__all__ = ["BackoffSchedule", "NO_RETRY"]
