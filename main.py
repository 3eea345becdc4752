from __future__ import annotations

import argparse
import json
import sys
from typing import Any, List, Optional, Sequence, Tuple, Union

from loguru import logger

from app.core.config import load_settings
from app.core.logging import setup_logging
from app.services.draw_flow import DrawError, DrawLedger, Participant, describe_assignments


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run a Secret Santa draw from a JSON file.")
    parser.add_argument("path", help="JSON file with 'participants' and 'exclusions'")
    parser.add_argument("--seed", type=int, default=None, help="seed for a reproducible draw")
    parser.add_argument("--max-steps", type=int, default=None, help="give up after this many tries")
    return parser.parse_args(argv)


def _participant_id(value: Any) -> Union[int, str]:
    if isinstance(value, bool) or not isinstance(value, (int, str)):
        raise ValueError(f"participant id must be a string or an integer, got {value!r}")
    return value


def load_draw_input(path: str) -> Tuple[List[Participant], List[list]]:
    with open(path, encoding="utf-8") as handle:
        document = json.load(handle)

    participants = [
        Participant(
            id=_participant_id(item["id"]),
            name=item.get("name") or str(item["id"]),
            notes=item.get("notes") or "",
            is_admin=bool(item.get("is_admin", False)),
        )
        for item in document.get("participants", [])
    ]
    exclusions = [
        [_participant_id(member) for member in pair] for pair in document.get("exclusions", [])
    ]
    return participants, exclusions


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = parse_args(argv)
    settings = load_settings()
    setup_logging(settings.log_level, settings.log_path)

    try:
        participants, exclusions = load_draw_input(args.path)
    except (OSError, ValueError, KeyError, TypeError, AttributeError) as exc:
        logger.bind(path=args.path).error("Cannot read draw input: {error}", error=str(exc))
        print(f"Cannot read {args.path}: {exc}", file=sys.stderr)
        return 2

    seed = args.seed if args.seed is not None else settings.draw_seed
    max_steps = args.max_steps if args.max_steps is not None else settings.draw_max_steps

    ledger = DrawLedger()
    try:
        record = ledger.run_draw(args.path, participants, exclusions, seed=seed, max_steps=max_steps)
    except DrawError as exc:
        print(str(exc), file=sys.stderr)
        return 1

    for row in describe_assignments(record, participants):
        print(f"{row['giver_name']} -> {row['receiver_name']}")
    print(f"seed: {record.seed}")
    return 0


def cli() -> None:
    sys.exit(main())


if __name__ == "__main__":
    cli()
