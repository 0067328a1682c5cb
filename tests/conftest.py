"""Shared fixtures for followup_scheduler tests."""

from __future__ import annotations

import asyncio
from datetime import date, datetime, timedelta
from unittest.mock import AsyncMock, MagicMock

import pytest

from followup_scheduler.catalog import DEFAULT_CATALOG
from followup_scheduler.config import Config
from followup_scheduler.models import (
    Confirmation,
    MeetingContext,
    MeetingType,
    Participant,
    TimeSlot,
)
from followup_scheduler.wizard import SchedulingWizard


DAY = date(2024, 6, 17)


def make_slot(
    slot_id: str,
    confidence: float,
    hour: int = 10,
    *,
    day: date = DAY,
    minutes: int = 60,
) -> TimeSlot:
    start = datetime(day.year, day.month, day.day, hour, 0)
    return TimeSlot(
        id=slot_id,
        start=start,
        end=start + timedelta(minutes=minutes),
        confidence=confidence,
        reasoning=f"reason {slot_id}",
        timezone="EST",
    )


async def wait_for_calls(mock: MagicMock, count: int) -> None:
    """Yield to the loop until ``mock`` has been called ``count`` times."""
    for _ in range(1000):
        if mock.call_count >= count:
            return
        await asyncio.sleep(0)
    raise AssertionError(f"expected {count} calls, saw {mock.call_count}")


@pytest.fixture
def demo_type() -> MeetingType:
    return DEFAULT_CATALOG.get("demo")


@pytest.fixture
def ranked_slots() -> list[TimeSlot]:
    return [
        make_slot("s1", 95, 10),
        make_slot("s2", 88, 14),
        make_slot("s3", 75, 16),
    ]


@pytest.fixture
def provider(ranked_slots):
    p = MagicMock()
    p.generate_slots = AsyncMock(return_value=ranked_slots)
    return p


@pytest.fixture
def submitter():
    s = MagicMock()
    s.submit_meeting = AsyncMock(
        return_value=Confirmation(request_id="req", event_id="evt-1")
    )
    return s


@pytest.fixture
def contact() -> Participant:
    return Participant(
        id="1",
        name="Dana Reyes",
        email="dana@acme.example",
        company="Acme",
        timezone="EST",
    )


@pytest.fixture
def meeting_context() -> MeetingContext:
    return MeetingContext(
        deal_stage="Proposal",
        previous_meetings=2,
        last_interaction=datetime(2024, 6, 10, 15, 30),
        topics=["pricing", "integration"],
    )


@pytest.fixture
def fast_config() -> Config:
    return Config(provider_timeout=0.5, submission_timeout=0.5)


@pytest.fixture
def wizard(provider, submitter, contact, meeting_context, fast_config) -> SchedulingWizard:
    return SchedulingWizard(
        provider,
        submitter,
        config=fast_config,
        contact=contact,
        context=meeting_context,
        today=DAY,
    )


@pytest.fixture
def review_wizard(wizard) -> SchedulingWizard:
    """A wizard walked through to the review step with slot s2 chosen."""
    asyncio.run(wizard.select_type("demo"))
    wizard.select_slot("s2")
    wizard.advance()
    wizard.update_details(notes="Bring the pricing sheet")
    wizard.advance()
    return wizard
