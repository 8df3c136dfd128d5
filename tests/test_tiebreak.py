from dataclasses import dataclass

import pytest

from meetpoll.domain.confirmation.tally import NoVotes, SingleWinner, Tie
from meetpoll.domain.confirmation.tiebreak import select_by_display_order, select_candidate


@dataclass
class Candidate:
    identity: int
    display_order: int


CANDIDATES = [Candidate(10, 2), Candidate(20, 0), Candidate(30, 1)]


class TestSelectByDisplayOrder:
    def test_picks_lowest_display_order_among_tied(self):
        # Registered as A (order 2) then B (order 0): B wins
        assert select_by_display_order({10, 20}, CANDIDATES) == 20

    def test_ignores_untied_candidates(self):
        assert select_by_display_order({10, 30}, CANDIDATES) == 30

    def test_empty_tied_set_falls_back_to_first_candidate(self):
        assert select_by_display_order(frozenset(), CANDIDATES) == 20

    def test_no_candidates_returns_none(self):
        assert select_by_display_order({1, 2}, []) is None
        assert select_by_display_order(frozenset(), []) is None

    def test_tied_ids_unknown_to_candidate_list(self):
        assert select_by_display_order({99, 98}, CANDIDATES) is None


class TestSelectCandidate:
    def test_single_winner_passes_through(self):
        assert select_candidate(SingleWinner(10), CANDIDATES) == 10

    def test_tie_uses_display_order(self):
        assert select_candidate(Tie(frozenset({10, 30})), CANDIDATES) == 30

    def test_no_votes_uses_first_registered(self):
        assert select_candidate(NoVotes(), CANDIDATES) == 20

    def test_unknown_outcome_is_rejected(self):
        with pytest.raises(TypeError):
            select_candidate(object(), CANDIDATES)
