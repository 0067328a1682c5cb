"""The scheduling wizard: one session, four steps, two async follow-ups.

Every mutating operation is a method on ``SchedulingWizard``. Hosts observe
state only through ``snapshot()``. Two operations suspend:

* suggestion generation, issued by ``select_type``, ``select_date`` and
  ``regenerate``. Each issue bumps ``session.request_seq``; a provider
  response is applied only if its sequence number is still the current
  one, so a slow answer for an old date never overwrites a newer one.
* ``submit``, delegated to a ``SubmissionCoordinator``.
"""

from __future__ import annotations

import asyncio
import copy
import logging
import uuid
from datetime import date

from .catalog import DEFAULT_CATALOG, Catalog
from .config import Config
from .errors import (
    AtInitialStep,
    DuplicateParticipant,
    GateNotSatisfied,
    InvalidSlot,
    InvalidTransition,
    ProviderError,
    ProviderTimeout,
    ProviderUnavailable,
    SessionClosed,
    UnknownSlot,
)
from .gates import unmet_reason
from .models import (
    ChecklistItem,
    Confirmation,
    MeetingContext,
    MeetingType,
    Participant,
    SchedulingSession,
    TimeSlot,
    WizardStep,
)
from .submission import CalendarSubmitter, SubmissionCoordinator, SubmissionState
from .suggestions import SuggestionProvider, rank_slots

log = logging.getLogger(__name__)


class SchedulingWizard:
    """Owns a single SchedulingSession from open to close or submission."""

    def __init__(
        self,
        provider: SuggestionProvider,
        submitter: CalendarSubmitter,
        *,
        catalog: Catalog = DEFAULT_CATALOG,
        config: Config | None = None,
        contact: Participant | None = None,
        context: MeetingContext | None = None,
        today: date | None = None,
    ):
        self.catalog = catalog
        self.config = config or Config()
        self._provider = provider
        self.coordinator = SubmissionCoordinator(
            submitter, timeout=self.config.submission_timeout
        )
        self._session: SchedulingSession | None = SchedulingSession(
            participants=[copy.copy(contact)] if contact else [],
            selected_date=today or date.today(),
            context=context,
        )

    # -- inspection --------------------------------------------------------

    @property
    def session(self) -> SchedulingSession:
        if self._session is None:
            raise SessionClosed("The scheduling session has been closed")
        return self._session

    @property
    def is_open(self) -> bool:
        return self._session is not None

    @property
    def step(self) -> WizardStep:
        return self.session.step

    def snapshot(self) -> SchedulingSession:
        """Independent copy of the session. Meeting types and slots are shared."""
        session = self.session
        memo = {}
        if session.suggestion_error is not None:
            memo[id(session.suggestion_error)] = session.suggestion_error
        return copy.deepcopy(session, memo)

    def _require(self, step: WizardStep, action: str) -> SchedulingSession:
        session = self.session
        if session.step is not step:
            raise InvalidTransition(
                f"Cannot {action} at step {session.step.name}, only at {step.name}"
            )
        return session

    def _require_not_submitting(self, action: str) -> SchedulingSession:
        session = self.session
        if self.coordinator.state is SubmissionState.SUBMITTING:
            raise InvalidTransition(f"Cannot {action} while a submission is in flight")
        return session

    # -- step 1: type ------------------------------------------------------

    async def select_type(self, meeting_type: MeetingType | str) -> bool:
        """Pick the meeting type and move on to time selection.

        Seeds the agenda and checklist from the type's defaults, then
        generates suggestions for the current date. Returns whether the
        generated suggestions were applied (False if superseded).
        """
        session = self._require(WizardStep.TYPE_SELECT, "select a meeting type")
        if isinstance(meeting_type, str):
            meeting_type = self.catalog.get(meeting_type)

        session.selected_type = meeting_type
        session.agenda_text = "\n".join(meeting_type.default_agenda)
        session.preparation_checklist = [
            ChecklistItem(text=item) for item in meeting_type.preparation
        ]
        session.step = WizardStep.TIME_SELECT
        log.debug("Selected meeting type %s", meeting_type.id)
        return await self._generate(session)

    # -- step 2: time ------------------------------------------------------

    async def select_date(self, day: date) -> bool:
        """Regenerate suggestions for ``day``, superseding any in-flight request."""
        session = self._require(WizardStep.TIME_SELECT, "select a date")
        session.selected_date = day
        return await self._generate(session)

    async def regenerate(self) -> bool:
        """Ask the provider again for the current date and type."""
        session = self._require(WizardStep.TIME_SELECT, "regenerate suggestions")
        return await self._generate(session)

    def select_slot(self, slot: TimeSlot | str) -> TimeSlot:
        session = self._require(WizardStep.TIME_SELECT, "select a time slot")
        slot_id = slot if isinstance(slot, str) else slot.id
        member = session.find_slot(slot_id)
        if member is None or (isinstance(slot, TimeSlot) and member != slot):
            raise UnknownSlot(f"Slot {slot_id!r} is not among the current suggestions")
        session.selected_slot = member
        log.debug("Selected slot %s", member.id)
        return member

    async def _generate(self, session: SchedulingSession) -> bool:
        session.request_seq += 1
        seq = session.request_seq
        if session.selected_slot is not None:
            session.reselect_id = session.selected_slot.id
        session.suggested_slots = []
        session.selected_slot = None
        session.generating = True
        session.suggestion_error = None

        day = session.selected_date
        meeting_type = session.selected_type
        participants = [copy.copy(p) for p in session.participants]
        log.debug("Requesting suggestions #%d for %s on %s", seq, meeting_type.id, day)

        error: ProviderError | InvalidSlot | None = None
        cause: Exception | None = None
        try:
            slots = await asyncio.wait_for(
                self._provider.generate_slots(day, meeting_type, participants),
                self.config.provider_timeout,
            )
        except asyncio.TimeoutError as e:
            error = ProviderTimeout(
                f"No suggestions within {self.config.provider_timeout}s"
            )
            cause = e
        except ProviderError as e:
            error = e
        except asyncio.CancelledError:
            if self._is_current(session, seq):
                session.generating = False
            raise
        except Exception as e:
            error = ProviderUnavailable(f"Suggestion provider failed: {e}")
            cause = e

        if not self._is_current(session, seq):
            log.debug("Discarding stale suggestions #%d (current is #%d)", seq, session.request_seq)
            return False

        session.generating = False
        ranked: list[TimeSlot] = []
        if error is None:
            try:
                ranked = rank_slots(slots)
            except InvalidSlot as e:
                error = e

        if error is not None:
            session.reselect_id = None
            session.suggestion_error = error
            log.warning("Suggestion request #%d failed: %s", seq, error)
            if cause is not None:
                raise error from cause
            raise error

        session.suggested_slots = ranked
        if session.reselect_id is not None:
            session.selected_slot = session.find_slot(session.reselect_id)
            session.reselect_id = None
        log.debug("Applied %d suggestions from request #%d", len(session.suggested_slots), seq)
        return True

    def _is_current(self, session: SchedulingSession, seq: int) -> bool:
        return self._session is session and session.request_seq == seq

    # -- step 3: details ---------------------------------------------------

    def update_details(
        self,
        agenda_text: str | None = None,
        notes: str | None = None,
        toggle_item: int | None = None,
    ) -> None:
        session = self._require(WizardStep.DETAILS, "update details")
        if toggle_item is not None:
            if not 0 <= toggle_item < len(session.preparation_checklist):
                raise IndexError(f"No checklist item at index {toggle_item}")
            item = session.preparation_checklist[toggle_item]
            item.done = not item.done
        if agenda_text is not None:
            session.agenda_text = agenda_text
        if notes is not None:
            session.notes = notes

    # -- participants ------------------------------------------------------

    def add_participant(
        self,
        name: str,
        email: str,
        *,
        company: str | None = None,
        title: str | None = None,
        timezone: str | None = None,
        participant_id: str | None = None,
    ) -> Participant:
        session = self._require_not_submitting("add a participant")
        needle = email.strip().lower()
        for p in session.participants:
            if p.email.strip().lower() == needle:
                raise DuplicateParticipant(f"{email} is already a participant")
            if participant_id is not None and p.id == participant_id:
                raise DuplicateParticipant(f"Participant id {participant_id!r} is taken")

        participant = Participant(
            id=participant_id or uuid.uuid4().hex[:12],
            name=name,
            email=email.strip(),
            company=company,
            title=title,
            timezone=timezone or self.config.default_timezone,
        )
        session.participants.append(participant)
        return participant

    def remove_participant(self, participant_id: str) -> Participant:
        session = self._require_not_submitting("remove a participant")
        for i, p in enumerate(session.participants):
            if p.id == participant_id:
                return session.participants.pop(i)
        raise KeyError(f"Unknown participant: {participant_id!r}")

    # -- navigation --------------------------------------------------------

    def advance(self) -> WizardStep:
        session = self.session
        target = session.step.next
        if target is None:
            raise InvalidTransition("Review is the last step; use submit()")
        reason = unmet_reason(session)
        if reason is not None:
            raise GateNotSatisfied(f"Cannot leave {session.step.name}: {reason}")
        session.step = target
        log.debug("Advanced to %s", target.name)
        return target

    def retreat(self) -> WizardStep:
        session = self._require_not_submitting("go back")
        target = session.step.previous
        if target is None:
            raise AtInitialStep("Already at the first step")
        session.step = target
        log.debug("Went back to %s", target.name)
        return target

    # -- step 4: review ----------------------------------------------------

    async def submit(self) -> Confirmation:
        """Send the request to the calendar; on success the session is discarded.

        On failure the session and the coordinator's ``last_request`` are
        kept, and calling ``submit`` again retries.
        """
        session = self.session
        confirmation = await self.coordinator.submit(session)
        if self._session is session:
            self._session = None
        return confirmation

    def close(self) -> None:
        """Abandon the wizard. Late suggestion responses are discarded."""
        self._session = None
