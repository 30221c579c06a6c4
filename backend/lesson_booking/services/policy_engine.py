"""Booking-window, cancellation and modification rules."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import Any

from ..core.messages import DEFAULT_LOCALE, translate
from ..models.policy import LessonPolicy


class PolicyReason(str, Enum):
    TOO_SOON = "too_soon"
    TOO_FAR = "too_far"
    CANCEL_DEADLINE_PASSED = "cancel_deadline_passed"
    MODIFY_DEADLINE_PASSED = "modify_deadline_passed"
    MAX_MODIFICATIONS_REACHED = "max_modifications_reached"


_MESSAGE_KEYS = {
    PolicyReason.TOO_SOON: "booking_too_soon",
    PolicyReason.TOO_FAR: "booking_too_far",
    PolicyReason.CANCEL_DEADLINE_PASSED: "cancel_deadline_passed",
    PolicyReason.MODIFY_DEADLINE_PASSED: "modify_deadline_passed",
    PolicyReason.MAX_MODIFICATIONS_REACHED: "max_modifications_reached",
}


@dataclass(frozen=True)
class PolicyResult:
    allowed: bool
    reason: PolicyReason | None = None
    params: dict[str, Any] = field(default_factory=dict)

    @property
    def message_key(self) -> str | None:
        return _MESSAGE_KEYS[self.reason] if self.reason else None

    def message(self, locale: str = DEFAULT_LOCALE) -> str | None:
        if self.message_key is None:
            return None
        return translate(self.message_key, locale, **self.params)

    def __bool__(self) -> bool:
        return self.allowed


_ALLOWED = PolicyResult(allowed=True)


class PolicyEngine:
    """
    Pure rule evaluation. Every check compares absolute instants only.

    Boundaries: a start exactly ``min_advance_booking_hours`` or exactly
    ``max_advance_booking_days`` from now is valid; cancel/modify are blocked
    only once ``now`` is strictly past the deadline.
    """

    @staticmethod
    def is_booking_time_valid(start_time: datetime, now: datetime, policy: LessonPolicy) -> PolicyResult:
        if start_time < now + timedelta(hours=policy.min_advance_booking_hours):
            return PolicyResult(
                allowed=False,
                reason=PolicyReason.TOO_SOON,
                params={"hours": policy.min_advance_booking_hours},
            )
        if start_time > now + timedelta(days=policy.max_advance_booking_days):
            return PolicyResult(
                allowed=False,
                reason=PolicyReason.TOO_FAR,
                params={"days": policy.max_advance_booking_days},
            )
        return _ALLOWED

    @staticmethod
    def can_cancel(lesson_start: datetime, now: datetime, policy: LessonPolicy) -> PolicyResult:
        deadline = lesson_start - timedelta(hours=policy.cancel_deadline_hours)
        if now > deadline:
            return PolicyResult(
                allowed=False,
                reason=PolicyReason.CANCEL_DEADLINE_PASSED,
                params={"hours": policy.cancel_deadline_hours},
            )
        return _ALLOWED

    @staticmethod
    def can_modify(
        lesson_start: datetime,
        modification_count: int,
        now: datetime,
        policy: LessonPolicy,
    ) -> PolicyResult:
        # Count is reported ahead of the deadline when both apply
        if modification_count >= policy.max_modifications:
            return PolicyResult(
                allowed=False,
                reason=PolicyReason.MAX_MODIFICATIONS_REACHED,
                params={"max": policy.max_modifications},
            )
        deadline = lesson_start - timedelta(hours=policy.modify_deadline_hours)
        if now > deadline:
            return PolicyResult(
                allowed=False,
                reason=PolicyReason.MODIFY_DEADLINE_PASSED,
                params={"hours": policy.modify_deadline_hours},
            )
        return _ALLOWED
