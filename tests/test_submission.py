"""Tests for followup_scheduler.submission — request assembly and the coordinator."""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock

import pytest

from conftest import wait_for_calls
from followup_scheduler.errors import (
    GateNotSatisfied,
    InvalidTransition,
    SessionClosed,
    SubmissionFailed,
    SubmissionInProgress,
    SubmissionTimeout,
)
from followup_scheduler.models import ChecklistItem, Confirmation, SchedulingSession, WizardStep
from followup_scheduler.submission import (
    DryRunSubmitter,
    SubmissionCoordinator,
    SubmissionState,
    build_request,
)


@pytest.fixture
def review_session(demo_type, contact, meeting_context, ranked_slots) -> SchedulingSession:
    return SchedulingSession(
        step=WizardStep.REVIEW,
        selected_type=demo_type,
        participants=[contact],
        suggested_slots=ranked_slots,
        selected_slot=ranked_slots[1],
        agenda_text="Intro\nDemo",
        preparation_checklist=[ChecklistItem("Prepare demo environment", done=True)],
        notes="Bring the pricing sheet",
        context=meeting_context,
    )


class TestBuildRequest:
    def test_fields_copied(self, review_session, demo_type):
        request = build_request(review_session)
        assert request.meeting_type is demo_type
        assert request.slot.id == "s2"
        assert request.participants[0].email == "dana@acme.example"
        assert request.agenda_text == "Intro\nDemo"
        assert request.preparation[0].done is True
        assert request.notes == "Bring the pricing sheet"
        assert request.context.deal_stage == "Proposal"

    def test_request_detached_from_session(self, review_session):
        request = build_request(review_session)
        review_session.participants[0].name = "Changed"
        review_session.preparation_checklist[0].done = False
        assert request.participants[0].name == "Dana Reyes"
        assert request.preparation[0].done is True

    def test_unique_ids(self, review_session):
        assert build_request(review_session).id != build_request(review_session).id

    def test_missing_type(self, review_session):
        review_session.selected_type = None
        with pytest.raises(GateNotSatisfied):
            build_request(review_session)

    def test_missing_slot(self, review_session):
        review_session.selected_slot = None
        with pytest.raises(GateNotSatisfied):
            build_request(review_session)


class TestCoordinator:
    def test_success(self, review_session, submitter):
        coord = SubmissionCoordinator(submitter)
        confirmation = asyncio.run(coord.submit(review_session))
        assert confirmation.event_id == "evt-1"
        assert coord.state is SubmissionState.SUBMITTED
        assert coord.confirmation is confirmation
        submitter.submit_meeting.assert_awaited_once_with(coord.last_request)

    def test_requires_review_step(self, review_session, submitter):
        review_session.step = WizardStep.DETAILS
        coord = SubmissionCoordinator(submitter)
        with pytest.raises(InvalidTransition):
            asyncio.run(coord.submit(review_session))
        assert coord.state is SubmissionState.IDLE
        submitter.submit_meeting.assert_not_called()

    def test_concurrent_submit_rejected(self, review_session, submitter):
        coord = SubmissionCoordinator(submitter)

        async def scenario():
            release = asyncio.Event()

            async def slow_submit(request):
                await release.wait()
                return Confirmation(request_id=request.id, event_id="evt-9")

            submitter.submit_meeting = AsyncMock(side_effect=slow_submit)
            first = asyncio.create_task(coord.submit(review_session))
            await wait_for_calls(submitter.submit_meeting, 1)
            assert coord.state is SubmissionState.SUBMITTING
            with pytest.raises(SubmissionInProgress):
                await coord.submit(review_session)
            release.set()
            return await first

        confirmation = asyncio.run(scenario())
        assert confirmation.event_id == "evt-9"
        assert submitter.submit_meeting.call_count == 1

    def test_failure_then_retry(self, review_session, submitter):
        submitter.submit_meeting.side_effect = [
            SubmissionFailed("calendar rejected"),
            Confirmation(request_id="r", event_id="evt-2"),
        ]
        coord = SubmissionCoordinator(submitter)
        with pytest.raises(SubmissionFailed):
            asyncio.run(coord.submit(review_session))
        assert coord.state is SubmissionState.FAILED
        assert isinstance(coord.last_error, SubmissionFailed)
        assert coord.last_request.notes == "Bring the pricing sheet"

        confirmation = asyncio.run(coord.submit(review_session))
        assert confirmation.event_id == "evt-2"
        assert coord.state is SubmissionState.SUBMITTED
        assert coord.last_error is None
        assert submitter.submit_meeting.call_count == 2

    def test_unexpected_exception_wrapped(self, review_session, submitter):
        submitter.submit_meeting.side_effect = RuntimeError("HTTP 500")
        coord = SubmissionCoordinator(submitter)
        with pytest.raises(SubmissionFailed, match="HTTP 500") as exc_info:
            asyncio.run(coord.submit(review_session))
        assert isinstance(exc_info.value.__cause__, RuntimeError)
        assert coord.state is SubmissionState.FAILED

    def test_timeout(self, review_session, submitter):
        async def hang(request):
            await asyncio.sleep(5)

        submitter.submit_meeting = AsyncMock(side_effect=hang)
        coord = SubmissionCoordinator(submitter, timeout=0.01)
        with pytest.raises(SubmissionTimeout):
            asyncio.run(coord.submit(review_session))
        assert coord.state is SubmissionState.FAILED

    def test_submitted_is_terminal(self, review_session, submitter):
        coord = SubmissionCoordinator(submitter)
        asyncio.run(coord.submit(review_session))
        with pytest.raises(InvalidTransition):
            asyncio.run(coord.submit(review_session))
        assert submitter.submit_meeting.call_count == 1


class TestWizardSubmit:
    def test_success_discards_session(self, review_wizard, submitter):
        confirmation = asyncio.run(review_wizard.submit())
        assert confirmation.event_id == "evt-1"
        assert not review_wizard.is_open
        with pytest.raises(SessionClosed):
            review_wizard.snapshot()
        request = submitter.submit_meeting.call_args.args[0]
        assert request.slot.id == "s2"
        assert request.notes == "Bring the pricing sheet"
        assert request.context.deal_stage == "Proposal"

    def test_failure_keeps_everything(self, review_wizard, submitter):
        submitter.submit_meeting.side_effect = SubmissionFailed("calendar rejected")
        before = review_wizard.snapshot()
        with pytest.raises(SubmissionFailed):
            asyncio.run(review_wizard.submit())
        assert review_wizard.is_open
        assert review_wizard.snapshot() == before
        assert review_wizard.step is WizardStep.REVIEW

        submitter.submit_meeting.side_effect = None
        asyncio.run(review_wizard.submit())
        assert submitter.submit_meeting.call_count == 2
        assert not review_wizard.is_open

    def test_submit_before_review(self, wizard, submitter):
        with pytest.raises(InvalidTransition):
            asyncio.run(wizard.submit())
        submitter.submit_meeting.assert_not_called()

    def test_edit_after_failure_then_resubmit(self, review_wizard, submitter):
        submitter.submit_meeting.side_effect = SubmissionFailed("nope")
        with pytest.raises(SubmissionFailed):
            asyncio.run(review_wizard.submit())
        review_wizard.retreat()
        review_wizard.update_details(notes="Updated")
        review_wizard.advance()
        submitter.submit_meeting.side_effect = None
        asyncio.run(review_wizard.submit())
        assert submitter.submit_meeting.call_args.args[0].notes == "Updated"

    def test_no_navigation_while_submitting(self, review_wizard, submitter):
        async def scenario():
            release = asyncio.Event()

            async def slow_submit(request):
                await release.wait()
                return Confirmation(request_id=request.id, event_id="e")

            submitter.submit_meeting = AsyncMock(side_effect=slow_submit)
            task = asyncio.create_task(review_wizard.submit())
            await wait_for_calls(submitter.submit_meeting, 1)
            with pytest.raises(InvalidTransition):
                review_wizard.retreat()
            with pytest.raises(InvalidTransition):
                review_wizard.add_participant("X", "x@example.com")
            with pytest.raises(SubmissionInProgress):
                await review_wizard.submit()
            release.set()
            await task

        asyncio.run(scenario())
        assert submitter.submit_meeting.call_count == 1


class TestDryRunSubmitter:
    def test_records_and_confirms(self, review_session):
        submitter = DryRunSubmitter(meeting_url="https://meet.example/abc")
        request = build_request(review_session)
        confirmation = asyncio.run(submitter.submit_meeting(request))
        assert confirmation.request_id == request.id
        assert confirmation.event_id.startswith("dry-run-")
        assert confirmation.meeting_url == "https://meet.example/abc"
        assert submitter.submitted == [request]
