"""Checkout submission state rules (single source of truth)."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Mapping


class SubmissionState(str, Enum):
    IDLE = "idle"
    IN_FLIGHT = "in_flight"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


ALLOWED_TRANSITIONS: Mapping[SubmissionState, frozenset[SubmissionState]] = {
    SubmissionState.IDLE: frozenset({SubmissionState.IN_FLIGHT}),
    SubmissionState.IN_FLIGHT: frozenset({SubmissionState.SUCCEEDED, SubmissionState.FAILED}),
    SubmissionState.SUCCEEDED: frozenset(),
    SubmissionState.FAILED: frozenset(),
}

TERMINAL_STATES = frozenset({SubmissionState.SUCCEEDED, SubmissionState.FAILED})


@dataclass(frozen=True, slots=True)
class TransitionValidationResult:
    allowed: bool
    reason: str | None = None


def validate_submission_transition(
    current: SubmissionState, target: SubmissionState
) -> TransitionValidationResult:
    """Check one step of a submission attempt against the transition matrix."""
    if current in TERMINAL_STATES:
        return TransitionValidationResult(False, f"Attempt already finished as '{current.value}'")
    if target not in ALLOWED_TRANSITIONS[current]:
        return TransitionValidationResult(False, f"Transition '{current.value} -> {target.value}' is not allowed")
    return TransitionValidationResult(True)
