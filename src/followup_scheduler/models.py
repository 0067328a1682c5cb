"""Data models for scheduling sessions."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from datetime import date, datetime


class WizardStep(enum.IntEnum):
    TYPE_SELECT = 0
    TIME_SELECT = 1
    DETAILS = 2
    REVIEW = 3

    @property
    def next(self) -> WizardStep | None:
        if self is WizardStep.REVIEW:
            return None
        return WizardStep(self + 1)

    @property
    def previous(self) -> WizardStep | None:
        if self is WizardStep.TYPE_SELECT:
            return None
        return WizardStep(self - 1)


@dataclass(frozen=True)
class MeetingType:
    """Catalog template. Shared by reference, so deep copies return self."""

    id: str
    name: str
    duration_minutes: int
    default_agenda: tuple[str, ...] = ()
    preparation: tuple[str, ...] = ()
    description: str = ""

    def __post_init__(self) -> None:
        if self.duration_minutes <= 0:
            raise ValueError(
                f"Meeting type {self.id!r} needs a positive duration, got {self.duration_minutes}"
            )

    def __deepcopy__(self, memo: dict) -> MeetingType:
        return self


@dataclass(frozen=True)
class TimeSlot:
    id: str
    start: datetime
    end: datetime
    confidence: float
    reasoning: str = ""
    timezone: str = "UTC"
    available: bool = True

    @property
    def duration_minutes(self) -> int:
        return int((self.end - self.start).total_seconds() // 60)

    def __deepcopy__(self, memo: dict) -> TimeSlot:
        return self


@dataclass
class Participant:
    id: str
    name: str
    email: str
    company: str | None = None
    title: str | None = None
    timezone: str = "UTC"


@dataclass
class ChecklistItem:
    text: str
    done: bool = False


@dataclass
class MeetingContext:
    """What the call assistant knows about the deal when the wizard opens."""

    deal_stage: str
    previous_meetings: int = 0
    last_interaction: datetime | None = None
    topics: list[str] = field(default_factory=list)


@dataclass
class SchedulingSession:
    step: WizardStep = WizardStep.TYPE_SELECT
    selected_type: MeetingType | None = None
    participants: list[Participant] = field(default_factory=list)
    selected_date: date | None = None
    suggested_slots: list[TimeSlot] = field(default_factory=list)
    selected_slot: TimeSlot | None = None
    agenda_text: str = ""
    preparation_checklist: list[ChecklistItem] = field(default_factory=list)
    notes: str = ""
    context: MeetingContext | None = None
    request_seq: int = 0
    # Slot id to restore once the in-flight generation lands.
    reselect_id: str | None = None
    generating: bool = False
    suggestion_error: Exception | None = None

    def find_slot(self, slot_id: str) -> TimeSlot | None:
        for slot in self.suggested_slots:
            if slot.id == slot_id:
                return slot
        return None


@dataclass(frozen=True)
class ScheduleRequest:
    """Finalized request handed to the calendar submission collaborator."""

    id: str
    meeting_type: MeetingType
    slot: TimeSlot
    participants: tuple[Participant, ...]
    agenda_text: str
    preparation: tuple[ChecklistItem, ...]
    notes: str = ""
    context: MeetingContext | None = None

    @property
    def title(self) -> str:
        names = ", ".join(p.name for p in self.participants)
        if names:
            return f"{self.meeting_type.name} with {names}"
        return self.meeting_type.name

    def to_dict(self) -> dict:
        data: dict = {
            "id": self.id,
            "title": self.title,
            "meeting_type": self.meeting_type.id,
            "duration_minutes": self.meeting_type.duration_minutes,
            "start": self.slot.start.isoformat(),
            "end": self.slot.end.isoformat(),
            "timezone": self.slot.timezone,
            "participants": [
                {
                    "id": p.id,
                    "name": p.name,
                    "email": p.email,
                    "company": p.company,
                    "title": p.title,
                    "timezone": p.timezone,
                }
                for p in self.participants
            ],
            "agenda": self.agenda_text,
            "preparation": [
                {"text": item.text, "done": item.done} for item in self.preparation
            ],
            "notes": self.notes,
        }
        if self.context is not None:
            data["context"] = {
                "deal_stage": self.context.deal_stage,
                "previous_meetings": self.context.previous_meetings,
                "last_interaction": (
                    self.context.last_interaction.isoformat()
                    if self.context.last_interaction
                    else None
                ),
                "topics": list(self.context.topics),
            }
        return data


@dataclass(frozen=True)
class Confirmation:
    request_id: str
    event_id: str
    meeting_url: str | None = None
