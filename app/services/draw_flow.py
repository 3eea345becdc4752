from __future__ import annotations

import datetime
import enum
import random
import threading
from dataclasses import dataclass
from typing import Dict, FrozenSet, Hashable, Iterable, List, Optional, Set, Tuple

from loguru import logger

from app.services.matcher import Assignment, ParticipantId, is_valid_draw, match

INFEASIBLE_MESSAGE = (
    "Unable to find a valid draw. Try removing some exclusions or changing the participants."
)

ExclusionPair = FrozenSet[ParticipantId]


class DrawError(RuntimeError):
    pass


class DrawStatus(str, enum.Enum):
    NOT_RUN = "not-run"
    COMPLETED = "completed"


@dataclass(frozen=True)
class Participant:
    id: ParticipantId
    name: str
    notes: str = ""
    is_admin: bool = False


@dataclass(frozen=True)
class DrawRecord:
    status: DrawStatus
    created_at: Optional[datetime.datetime] = None
    assignments: Tuple[Assignment, ...] = ()
    seed: Optional[int] = None


def participant_ids(participants: Iterable[Participant]) -> List[ParticipantId]:
    ids: List[ParticipantId] = []
    seen: Set[ParticipantId] = set()
    for participant in participants:
        if participant.is_admin or participant.id in seen:
            continue
        seen.add(participant.id)
        ids.append(participant.id)
    return ids


def _make_pair(a_id: ParticipantId, b_id: ParticipantId) -> ExclusionPair:
    if a_id in (None, "") or b_id in (None, "") or a_id == b_id:
        raise DrawError("Invalid exclusion.")
    return frozenset((a_id, b_id))


def normalize_exclusions(pairs: Iterable[Iterable[ParticipantId]]) -> Set[ExclusionPair]:
    normalized: Set[ExclusionPair] = set()
    for pair in pairs:
        members = tuple(pair)
        if len(members) != 2:
            raise DrawError("Invalid exclusion.")
        normalized.add(_make_pair(members[0], members[1]))
    return normalized


def add_exclusion(exclusions: Set[ExclusionPair], a_id: ParticipantId, b_id: ParticipantId) -> ExclusionPair:
    pair = _make_pair(a_id, b_id)
    if pair in exclusions:
        raise DrawError("Exclusion already exists.")
    exclusions.add(pair)
    return pair


class DrawLedger:
    """Holds at most one committed draw per event.

    Run requests for the same event are serialized, so two concurrent
    requests can never both commit a result for it. Different events
    draw independently.
    """

    def __init__(self) -> None:
        self._draws: Dict[Hashable, DrawRecord] = {}
        self._event_locks: Dict[Hashable, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    def _lock_for(self, event_key: Hashable) -> threading.Lock:
        with self._locks_guard:
            return self._event_locks.setdefault(event_key, threading.Lock())

    def get_draw(self, event_key: Hashable) -> DrawRecord:
        return self._draws.get(event_key, DrawRecord(status=DrawStatus.NOT_RUN))

    def run_draw(
        self,
        event_key: Hashable,
        participants: Iterable[Participant],
        exclusions: Iterable[Iterable[ParticipantId]] = (),
        seed: Optional[int] = None,
        max_steps: Optional[int] = None,
    ) -> DrawRecord:
        ids = participant_ids(participants)
        pairs = normalize_exclusions(exclusions)

        with self._lock_for(event_key):
            if self.get_draw(event_key).status == DrawStatus.COMPLETED:
                raise DrawError("Draw already completed.")
            if len(ids) < 2:
                raise DrawError("Need at least 2 participants.")

            if seed is None:
                seed = random.randint(1, 2**31 - 1)

            result = match(ids, pairs, seed=seed, max_steps=max_steps)
            if not result.ok:
                logger.bind(
                    event=event_key,
                    participants=len(ids),
                    exclusions=len(pairs),
                    reason=result.failure.value,
                ).warning("Draw infeasible")
                raise DrawError(INFEASIBLE_MESSAGE)

            if not is_valid_draw(result.assignments, ids, pairs):
                raise RuntimeError("Matcher returned an invalid draw.")

            record = DrawRecord(
                status=DrawStatus.COMPLETED,
                created_at=datetime.datetime.now(datetime.timezone.utc),
                assignments=result.assignments,
                seed=seed,
            )
            self._draws[event_key] = record

        logger.bind(event=event_key, participants=len(ids), seed=seed).info("Draw completed")
        return record

    def assignment_for(self, event_key: Hashable, giver_id: ParticipantId) -> Optional[Assignment]:
        record = self.get_draw(event_key)
        if record.status != DrawStatus.COMPLETED:
            return None
        for assignment in record.assignments:
            if assignment.giver == giver_id:
                return assignment
        return None

    def reset(self, event_key: Hashable) -> bool:
        with self._lock_for(event_key):
            removed = self._draws.pop(event_key, None)
        if removed is None:
            return False
        logger.bind(event=event_key).info("Draw reset")
        return True


def describe_assignments(record: DrawRecord, participants: Iterable[Participant]) -> List[Dict[str, str]]:
    by_id = {participant.id: participant for participant in participants}
    rows = []
    for giver_id, receiver_id in record.assignments:
        giver = by_id.get(giver_id)
        receiver = by_id.get(receiver_id)
        rows.append(
            {
                "giver_name": giver.name if giver else "Unknown",
                "receiver_name": receiver.name if receiver else "Unknown",
                "receiver_notes": receiver.notes if receiver else "",
            }
        )
    return rows
