"""Exception taxonomy for the scheduling engine."""

from __future__ import annotations


class SchedulingError(Exception):
    """Base class. ``code`` is a stable identifier hosts can switch on."""

    code = "scheduling_error"

    def __init__(self, message: str, *, code: str | None = None):
        super().__init__(message)
        if code is not None:
            self.code = code


class InvalidTransition(SchedulingError):
    code = "invalid_transition"


class AtInitialStep(InvalidTransition):
    code = "at_initial_step"


class SessionClosed(InvalidTransition):
    code = "session_closed"


class UnknownSlot(SchedulingError):
    code = "unknown_slot"


class GateNotSatisfied(SchedulingError):
    code = "gate_not_satisfied"


class DuplicateParticipant(SchedulingError):
    code = "duplicate_participant"


class InvalidSlot(SchedulingError):
    """A provider handed back a slot that breaks the TimeSlot invariants."""

    code = "invalid_slot"


class ProviderError(SchedulingError):
    code = "provider_error"


class ProviderUnavailable(ProviderError):
    code = "provider_unavailable"


class ProviderTimeout(ProviderError):
    code = "provider_timeout"


class SubmissionError(SchedulingError):
    code = "submission_error"


class SubmissionInProgress(SubmissionError):
    code = "submission_in_progress"


class SubmissionFailed(SubmissionError):
    code = "submission_failed"


class SubmissionTimeout(SubmissionError):
    code = "submission_timeout"
