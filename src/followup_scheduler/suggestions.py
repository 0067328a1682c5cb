"""Time-slot suggestion providers and the checks applied to what they return."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable, Sequence
from datetime import date, datetime, timedelta
from typing import Protocol

from .errors import InvalidSlot
from .models import MeetingType, Participant, TimeSlot

log = logging.getLogger(__name__)


class SuggestionProvider(Protocol):
    async def generate_slots(
        self,
        day: date,
        meeting_type: MeetingType,
        participants: Sequence[Participant],
    ) -> Sequence[TimeSlot]:
        """Return candidate slots. May raise ProviderUnavailable."""
        ...


def validate_slot(slot: TimeSlot) -> TimeSlot:
    if not isinstance(slot, TimeSlot):
        raise InvalidSlot(f"Expected a TimeSlot, got {type(slot).__name__}")
    try:
        if slot.end <= slot.start:
            raise InvalidSlot(f"Slot {slot.id!r} ends at or before its start")
        if not 0 <= slot.confidence <= 100:
            raise InvalidSlot(f"Slot {slot.id!r} has confidence {slot.confidence} outside 0-100")
    except TypeError as e:
        raise InvalidSlot(f"Slot {slot.id!r} is malformed: {e}") from e
    return slot


def rank_slots(slots: Iterable[TimeSlot]) -> list[TimeSlot]:
    """Drop invalid, unavailable or duplicate slots, then sort by confidence (desc), start (asc).

    Raises InvalidSlot when the response as a whole is unusable: not
    iterable, or naive and timezone-aware start times mixed together.
    """
    if slots is None or isinstance(slots, (str, bytes)):
        raise InvalidSlot(f"Provider returned {type(slots).__name__}, not a slot sequence")
    try:
        entries = list(slots)
    except TypeError as e:
        raise InvalidSlot(f"Provider returned {type(slots).__name__}, not a slot sequence") from e

    seen: set[str] = set()
    kept: list[TimeSlot] = []
    for slot in entries:
        try:
            validate_slot(slot)
        except InvalidSlot as e:
            log.warning("Dropping slot from provider: %s", e)
            continue
        if not slot.available:
            log.debug("Dropping unavailable slot %r", slot.id)
            continue
        if slot.id in seen:
            log.warning("Dropping duplicate slot id %r from provider", slot.id)
            continue
        seen.add(slot.id)
        kept.append(slot)

    if len({s.start.tzinfo is None for s in kept}) > 1:
        raise InvalidSlot("Provider mixed naive and timezone-aware slot times")
    try:
        return sorted(kept, key=lambda s: (-s.confidence, s.start))
    except TypeError as e:
        raise InvalidSlot(f"Provider slots cannot be ordered: {e}") from e


# (hour, confidence, reasoning)
_DEMO_SLOTS = (
    (10, 95, "Optimal time based on both participants' peak productivity hours and availability"),
    (14, 88, "Good alternative slot with high attention levels after lunch break"),
    (16, 75, "Late afternoon slot - may compete with end-of-day priorities"),
)


class DemoSuggestionProvider:
    """Fixed-pattern provider: morning, early and late afternoon slots.

    Stands in for the optimizer when no real one is wired up. ``delay``
    simulates the optimizer's latency.
    """

    def __init__(self, timezone: str = "EST", *, delay: float = 0.0):
        self.timezone = timezone
        self.delay = delay

    async def generate_slots(
        self,
        day: date,
        meeting_type: MeetingType,
        participants: Sequence[Participant],
    ) -> list[TimeSlot]:
        if self.delay:
            await asyncio.sleep(self.delay)

        length = timedelta(minutes=meeting_type.duration_minutes)
        slots = []
        for i, (hour, confidence, reasoning) in enumerate(_DEMO_SLOTS, start=1):
            start = datetime(day.year, day.month, day.day, hour, 0)
            slots.append(
                TimeSlot(
                    id=f"{meeting_type.id}-{day.isoformat()}-{i}",
                    start=start,
                    end=start + length,
                    confidence=confidence,
                    reasoning=reasoning,
                    timezone=self.timezone,
                )
            )
        return slots
