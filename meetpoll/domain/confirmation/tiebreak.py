"""
Tie-break selector

Deterministic fallback for ties nobody resolved within the tie-break
window: the first-registered candidate is taken as the host's implicit
top preference. Host-initiated resolution never goes through here.
"""

from typing import Collection, Optional, Protocol, Sequence

from .tally import NoVotes, SingleWinner, Tie, TallyOutcome


class RankedCandidate(Protocol):
    """Anything with an identity and a registration order"""

    @property
    def identity(self) -> int: ...

    @property
    def display_order(self) -> int: ...


def select_by_display_order(
    tied_ids: Collection[int], candidates: Sequence[RankedCandidate]
) -> Optional[int]:
    """
    Pick the tied candidate with the smallest display order

    With an empty tied set the first candidate by display order wins.
    Returns None when there is nothing to pick from.
    """
    pool = candidates
    if tied_ids:
        pool = [c for c in candidates if c.identity in tied_ids]

    if not pool:
        return None
    return min(pool, key=lambda c: c.display_order).identity


def select_candidate(outcome: TallyOutcome, candidates: Sequence[RankedCandidate]) -> Optional[int]:
    """Reduce a tally outcome to a single candidate id"""
    if isinstance(outcome, SingleWinner):
        return outcome.candidate_id
    if isinstance(outcome, Tie):
        return select_by_display_order(outcome.candidate_ids, candidates)
    if isinstance(outcome, NoVotes):
        return select_by_display_order(frozenset(), candidates)
    raise TypeError(f"Unknown tally outcome: {outcome!r}")
