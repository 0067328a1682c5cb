"""Static registry of meeting-type templates."""

from __future__ import annotations

import logging
from pathlib import Path

import yaml

from .models import MeetingType

log = logging.getLogger(__name__)


_BUILTIN_TYPES: tuple[MeetingType, ...] = (
    MeetingType(
        id="demo",
        name="Product Demo",
        duration_minutes=60,
        description="Showcase product features and capabilities",
        default_agenda=(
            "Welcome and introductions (5 min)",
            "Product demo tailored to needs (35 min)",
            "Q&A and discussion (15 min)",
            "Next steps (5 min)",
        ),
        preparation=(
            "Prepare demo environment",
            "Customize demo to client needs",
            "Review previous conversations",
        ),
    ),
    MeetingType(
        id="checkin",
        name="Check-in Call",
        duration_minutes=30,
        description="Regular progress review and relationship building",
        default_agenda=(
            "Project status update (10 min)",
            "Address concerns (10 min)",
            "Plan next activities (10 min)",
        ),
        preparation=(
            "Review account status",
            "Prepare progress updates",
            "Identify blockers",
        ),
    ),
    MeetingType(
        id="decision",
        name="Decision Meeting",
        duration_minutes=45,
        description="Final presentation for decision makers",
        default_agenda=(
            "Executive summary (10 min)",
            "ROI and value proposition (15 min)",
            "Implementation timeline (10 min)",
            "Decision and next steps (10 min)",
        ),
        preparation=(
            "Prepare executive summary",
            "Review ROI calculations",
            "Anticipate objections",
        ),
    ),
    MeetingType(
        id="implementation",
        name="Implementation Planning",
        duration_minutes=90,
        description="Technical setup and onboarding planning",
        default_agenda=(
            "Technical requirements (20 min)",
            "Implementation roadmap (30 min)",
            "Resource planning (20 min)",
            "Timeline and milestones (20 min)",
        ),
        preparation=(
            "Technical requirements review",
            "Implementation timeline",
            "Resource allocation",
        ),
    ),
)


class Catalog:
    """Read-only, ordered collection of meeting types."""

    def __init__(self, types: tuple[MeetingType, ...] | list[MeetingType]):
        self._types = tuple(types)
        self._by_id: dict[str, MeetingType] = {}
        for mt in self._types:
            if mt.id in self._by_id:
                raise ValueError(f"Duplicate meeting type id: {mt.id!r}")
            self._by_id[mt.id] = mt

    def list_meeting_types(self) -> tuple[MeetingType, ...]:
        return self._types

    def get(self, type_id: str) -> MeetingType:
        try:
            return self._by_id[type_id]
        except KeyError:
            raise KeyError(f"Unknown meeting type: {type_id!r}") from None

    def __contains__(self, type_id: object) -> bool:
        return type_id in self._by_id

    def __len__(self) -> int:
        return len(self._types)

    @classmethod
    def from_yaml(cls, path: Path) -> Catalog:
        """Load a catalog from a YAML list of meeting-type mappings.

        Each entry needs ``id``, ``name`` and ``duration`` (minutes);
        ``agenda``, ``preparation`` and ``description`` are optional.
        """
        path = Path(path).expanduser()
        if not path.exists():
            raise FileNotFoundError(f"Catalog file not found: {path}")

        raw = yaml.safe_load(path.read_text())
        if isinstance(raw, dict):
            raw = raw.get("meeting_types")
        if not raw or not isinstance(raw, list):
            raise ValueError(f"Invalid catalog file: {path}")

        types = []
        for i, entry in enumerate(raw):
            if not isinstance(entry, dict):
                raise ValueError(f"Catalog entry {i} is not a mapping")
            missing = [k for k in ("id", "name", "duration") if k not in entry]
            if missing:
                raise ValueError(f"Catalog entry {i} is missing {', '.join(missing)}")
            types.append(
                MeetingType(
                    id=str(entry["id"]),
                    name=str(entry["name"]),
                    duration_minutes=int(entry["duration"]),
                    default_agenda=tuple(str(x) for x in entry.get("agenda") or ()),
                    preparation=tuple(str(x) for x in entry.get("preparation") or ()),
                    description=str(entry.get("description", "")),
                )
            )

        log.debug("Loaded %d meeting types from %s", len(types), path)
        return cls(types)


DEFAULT_CATALOG = Catalog(_BUILTIN_TYPES)


def list_meeting_types() -> tuple[MeetingType, ...]:
    """Meeting types of the built-in catalog, in display order."""
    return DEFAULT_CATALOG.list_meeting_types()
