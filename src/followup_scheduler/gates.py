"""Exit conditions guarding each wizard step."""

from __future__ import annotations

from .models import SchedulingSession, WizardStep


def unmet_reason(session: SchedulingSession) -> str | None:
    """Why the session may not leave its current step, or None if it may."""
    match session.step:
        case WizardStep.TYPE_SELECT:
            if session.selected_type is None:
                return "no meeting type selected"
        case WizardStep.TIME_SELECT:
            slot = session.selected_slot
            if slot is None:
                return "no time slot selected"
            if session.find_slot(slot.id) != slot:
                return f"selected slot {slot.id!r} is not among the current suggestions"
        case WizardStep.DETAILS | WizardStep.REVIEW:
            pass
    return None


def can_advance(session: SchedulingSession) -> bool:
    return unmet_reason(session) is None
