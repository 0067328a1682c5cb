"""Assemble the final schedule request and drive it to the calendar."""

from __future__ import annotations

import asyncio
import enum
import logging
import uuid
from typing import Protocol

from .errors import (
    GateNotSatisfied,
    InvalidTransition,
    SubmissionError,
    SubmissionFailed,
    SubmissionInProgress,
    SubmissionTimeout,
)
from .models import (
    ChecklistItem,
    Confirmation,
    Participant,
    ScheduleRequest,
    SchedulingSession,
    WizardStep,
)

log = logging.getLogger(__name__)


class CalendarSubmitter(Protocol):
    async def submit_meeting(self, request: ScheduleRequest) -> Confirmation:
        """Book the meeting. May raise SubmissionError."""
        ...


class SubmissionState(enum.Enum):
    IDLE = "idle"
    SUBMITTING = "submitting"
    SUBMITTED = "submitted"
    FAILED = "failed"


def build_request(session: SchedulingSession) -> ScheduleRequest:
    """Freeze the session's fields into a ScheduleRequest."""
    if session.selected_type is None:
        raise GateNotSatisfied("Cannot build a request without a meeting type")
    if session.selected_slot is None:
        raise GateNotSatisfied("Cannot build a request without a time slot")

    return ScheduleRequest(
        id=uuid.uuid4().hex,
        meeting_type=session.selected_type,
        slot=session.selected_slot,
        participants=tuple(
            Participant(
                id=p.id,
                name=p.name,
                email=p.email,
                company=p.company,
                title=p.title,
                timezone=p.timezone,
            )
            for p in session.participants
        ),
        agenda_text=session.agenda_text,
        preparation=tuple(
            ChecklistItem(text=item.text, done=item.done)
            for item in session.preparation_checklist
        ),
        notes=session.notes,
        context=session.context,
    )


class SubmissionCoordinator:
    """At most one submission in flight per session; retries are caller-driven."""

    def __init__(self, submitter: CalendarSubmitter, *, timeout: float | None = 30.0):
        self._submitter = submitter
        self._timeout = timeout
        self.state = SubmissionState.IDLE
        self.last_request: ScheduleRequest | None = None
        self.last_error: SubmissionError | None = None
        self.confirmation: Confirmation | None = None

    async def submit(self, session: SchedulingSession) -> Confirmation:
        # Every check before the first await, so two coroutines can't both pass.
        if self.state is SubmissionState.SUBMITTING:
            raise SubmissionInProgress("A submission for this session is already in flight")
        if self.state is SubmissionState.SUBMITTED:
            raise InvalidTransition("This session has already been submitted")
        if session.step is not WizardStep.REVIEW:
            raise InvalidTransition(
                f"Submission requires the review step, session is at {session.step.name}"
            )

        request = build_request(session)
        self.state = SubmissionState.SUBMITTING
        self.last_request = request
        self.last_error = None
        log.info("Submitting %s (%s)", request.title, request.id)

        try:
            confirmation = await asyncio.wait_for(
                self._submitter.submit_meeting(request), self._timeout
            )
        except asyncio.TimeoutError as e:
            error = SubmissionTimeout(f"Calendar did not answer within {self._timeout}s")
            self._record_failure(error)
            raise error from e
        except SubmissionError as e:
            self._record_failure(e)
            raise
        except asyncio.CancelledError:
            self._record_failure(SubmissionFailed("Submission was cancelled"))
            raise
        except Exception as e:
            error = SubmissionFailed(f"Calendar submission failed: {e}")
            self._record_failure(error)
            raise error from e

        self.state = SubmissionState.SUBMITTED
        self.confirmation = confirmation
        log.info("Scheduled %s as event %s", request.id, confirmation.event_id)
        return confirmation

    def _record_failure(self, error: SubmissionError) -> None:
        self.state = SubmissionState.FAILED
        self.last_error = error
        log.warning("Submission %s failed: %s", self.last_request.id, error)


class DryRunSubmitter:
    """Logs the request instead of booking it."""

    def __init__(self, meeting_url: str | None = None):
        self.meeting_url = meeting_url
        self.submitted: list[ScheduleRequest] = []

    async def submit_meeting(self, request: ScheduleRequest) -> Confirmation:
        self.submitted.append(request)
        log.info(
            "Dry run: would schedule %s at %s",
            request.title,
            request.slot.start.isoformat(),
        )
        return Confirmation(
            request_id=request.id,
            event_id=f"dry-run-{request.id[:8]}",
            meeting_url=self.meeting_url,
        )
