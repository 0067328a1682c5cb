"""Command-line interface for the follow-up scheduler."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from datetime import date
from pathlib import Path

from .catalog import DEFAULT_CATALOG, Catalog
from .config import Config, load_config_or_default
from .errors import SchedulingError
from .submission import DryRunSubmitter
from .suggestions import DemoSuggestionProvider
from .wizard import SchedulingWizard


def _parse_date(value: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not a YYYY-MM-DD date: {value!r}") from None


async def run_wizard(
    config: Config,
    catalog: Catalog,
    type_id: str,
    day: date,
    *,
    slot_rank: int = 1,
    participants: list[str] | None = None,
    notes: str = "",
) -> dict:
    """Walk the wizard from type selection to a dry-run submission."""
    provider = DemoSuggestionProvider(config.default_timezone, delay=config.suggestion_delay)
    wizard = SchedulingWizard(provider, DryRunSubmitter(), catalog=catalog, config=config, today=day)

    for entry in participants or []:
        name, _, email = entry.partition(":")
        if not email.strip():
            raise SchedulingError(f"Participant must be 'Name:email', got {entry!r}")
        wizard.add_participant(name.strip(), email)

    await wizard.select_type(type_id)
    slots = wizard.snapshot().suggested_slots
    if not 1 <= slot_rank <= len(slots):
        raise SchedulingError(f"Slot rank {slot_rank} out of range (1-{len(slots)})")
    wizard.select_slot(slots[slot_rank - 1].id)
    wizard.advance()
    if notes:
        wizard.update_details(notes=notes)
    wizard.advance()

    confirmation = await wizard.submit()
    result = wizard.coordinator.last_request.to_dict()
    result["event_id"] = confirmation.event_id
    return result


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(
        prog="followup-scheduler",
        description="Plan follow-up meetings with ranked time suggestions",
    )
    parser.add_argument(
        "--config", "-c",
        type=Path,
        default=None,
        help="Path to config YAML (default: ~/.config/followup-scheduler/config.yaml)",
    )
    parser.add_argument(
        "--list-types",
        action="store_true",
        help="List the available meeting types and exit",
    )
    parser.add_argument(
        "--type", "-t",
        dest="type_id",
        default=None,
        help="Meeting type id to schedule",
    )
    parser.add_argument(
        "--date", "-d",
        type=_parse_date,
        default=None,
        help="Day to schedule on, YYYY-MM-DD (default: today)",
    )
    parser.add_argument(
        "--slot",
        type=int,
        default=1,
        help="Pick the N-th ranked suggestion (default: 1)",
    )
    parser.add_argument(
        "--participant", "-p",
        action="append",
        default=[],
        help="Participant as 'Name:email' (repeatable)",
    )
    parser.add_argument(
        "--notes",
        default="",
        help="Notes to attach to the meeting",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose logging",
    )

    args = parser.parse_args(argv)

    level = logging.DEBUG if args.verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )

    try:
        config = load_config_or_default(args.config)
        catalog = Catalog.from_yaml(config.catalog_path) if config.catalog_path else DEFAULT_CATALOG
    except (FileNotFoundError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        raise SystemExit(1) from None

    if args.list_types or not args.type_id:
        for mt in catalog.list_meeting_types():
            print(f"{mt.id:<16} {mt.name} ({mt.duration_minutes} min)")
        return

    try:
        result = asyncio.run(
            run_wizard(
                config,
                catalog,
                args.type_id,
                args.date or date.today(),
                slot_rank=args.slot,
                participants=args.participant,
                notes=args.notes,
            )
        )
    except (KeyError, SchedulingError) as e:
        print(f"Error: {e}", file=sys.stderr)
        raise SystemExit(1) from None

    print(json.dumps(result, indent=2))
