from __future__ import annotations

import enum
import random
from dataclasses import dataclass
from typing import Dict, Iterable, Iterator, List, NamedTuple, Optional, Sequence, Set, Tuple, Union

ParticipantId = Union[int, str]


class FailureReason(str, enum.Enum):
    INSUFFICIENT_PARTICIPANTS = "insufficient_participants"
    SEARCH_EXHAUSTED = "search_exhausted"
    STEP_LIMIT = "step_limit"


class Assignment(NamedTuple):
    giver: ParticipantId
    receiver: ParticipantId


@dataclass(frozen=True)
class MatchResult:
    assignments: Tuple[Assignment, ...]
    failure: Optional[FailureReason] = None

    @property
    def ok(self) -> bool:
        return self.failure is None

    @classmethod
    def infeasible(cls, reason: FailureReason) -> "MatchResult":
        return cls(assignments=(), failure=reason)


def build_exclusion_map(
    exclusions: Optional[Iterable[Iterable[ParticipantId]]],
) -> Dict[ParticipantId, Set[ParticipantId]]:
    forbidden: Dict[ParticipantId, Set[ParticipantId]] = {}
    for pair in exclusions or ():
        members = tuple(pair)
        if len(members) != 2 or members[0] == members[1]:
            continue
        first, second = members
        forbidden.setdefault(first, set()).add(second)
        forbidden.setdefault(second, set()).add(first)
    return forbidden


def match(
    participant_ids: Sequence[ParticipantId],
    exclusions: Optional[Iterable[Iterable[ParticipantId]]] = None,
    seed: Optional[int] = None,
    max_steps: Optional[int] = None,
) -> MatchResult:
    givers = list(participant_ids)
    if len(givers) < 2:
        return MatchResult.infeasible(FailureReason.INSUFFICIENT_PARTICIPANTS)

    rng = random.Random(seed)
    forbidden = build_exclusion_map(exclusions)
    used: Set[ParticipantId] = set()
    partial: List[Assignment] = []
    steps = 0

    def shuffled_candidates() -> Iterator[ParticipantId]:
        available = [pid for pid in givers if pid not in used]
        rng.shuffle(available)
        return iter(available)

    # One frame per giver position, holding the receivers still to try there.
    frames: List[Iterator[ParticipantId]] = [shuffled_candidates()]
    while frames:
        depth = len(frames) - 1
        giver = givers[depth]
        if len(partial) > depth:
            used.discard(partial.pop().receiver)

        for receiver in frames[-1]:
            if receiver == giver or receiver in forbidden.get(giver, ()):
                continue
            break
        else:
            frames.pop()
            continue

        if max_steps is not None and steps >= max_steps:
            return MatchResult.infeasible(FailureReason.STEP_LIMIT)
        steps += 1

        used.add(receiver)
        partial.append(Assignment(giver, receiver))
        if len(partial) == len(givers):
            return MatchResult(assignments=tuple(partial))
        frames.append(shuffled_candidates())

    return MatchResult.infeasible(FailureReason.SEARCH_EXHAUSTED)


def is_valid_draw(
    assignments: Iterable[Tuple[ParticipantId, ParticipantId]],
    participant_ids: Iterable[ParticipantId],
    exclusions: Optional[Iterable[Iterable[ParticipantId]]] = None,
) -> bool:
    pairs = [tuple(item) for item in assignments]
    expected = set(participant_ids)
    givers = [giver for giver, _ in pairs]
    receivers = [receiver for _, receiver in pairs]

    if len(pairs) != len(expected):
        return False
    if len(set(givers)) != len(givers) or set(givers) != expected:
        return False
    if len(set(receivers)) != len(receivers) or set(receivers) != expected:
        return False

    forbidden = build_exclusion_map(exclusions)
    return all(
        giver != receiver and receiver not in forbidden.get(giver, ())
        for giver, receiver in pairs
    )
