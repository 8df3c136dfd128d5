"""Vote tally - aggregate per-candidate counts into a winner, a tie or nothing"""

from dataclasses import dataclass
from typing import Iterable, Union


@dataclass(frozen=True)
class NoVotes:
    """Nobody voted in this kind"""


@dataclass(frozen=True)
class SingleWinner:
    candidate_id: int


@dataclass(frozen=True)
class Tie:
    candidate_ids: frozenset

    def __post_init__(self):
        if len(self.candidate_ids) < 2:
            raise ValueError("A tie needs at least two candidates")


TallyOutcome = Union[NoVotes, SingleWinner, Tie]


def tally_votes(counts: Iterable[tuple[int, int]]) -> TallyOutcome:
    """
    Find the top candidate(s) from (candidate_id, vote_count) pairs

    Args:
        counts: Rows from the vote store's group-count query for one
            gathering and one candidate kind

    Returns:
        NoVotes when counts is empty, SingleWinner when one candidate
        holds the maximum, Tie with every candidate sharing the maximum
    """
    rows = list(counts)
    if not rows:
        return NoVotes()

    max_votes = max(count for _, count in rows)
    top_ids = frozenset(candidate_id for candidate_id, count in rows if count == max_votes)

    if len(top_ids) == 1:
        return SingleWinner(next(iter(top_ids)))
    return Tie(top_ids)
