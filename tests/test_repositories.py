from datetime import timedelta

from meetpoll.domain.gatherings.repository import GatheringRepository
from meetpoll.domain.votes.repository import VoteRepository
from meetpoll.models import CandidateKind, GatheringKind, GatheringStatus

from .factories import NOW, add_participant, make_gathering, place_candidate, time_candidate, vote_for


class TestGatheringRepository:
    def test_lookup_by_share_code_and_id(self, db):
        gathering = make_gathering(db, share_code="FIND0001")

        found = GatheringRepository.get_by_share_code(db, "FIND0001")
        assert found.id == gathering.id
        assert [c.display_order for c in found.time_candidates] == [0, 1]
        assert GatheringRepository.get_by_id(db, gathering.id).share_code == "FIND0001"
        assert GatheringRepository.get_by_share_code(db, "MISSING0") is None

    def test_status_and_deadline_filter_is_ordered(self, db):
        later = make_gathering(db, deadline=NOW - timedelta(minutes=1))
        earlier = make_gathering(db, deadline=NOW - timedelta(hours=1))
        make_gathering(db, deadline=NOW)
        make_gathering(db, status=GatheringStatus.TIEBREAK, deadline=NOW - timedelta(hours=2))

        found = GatheringRepository.find_by_status_and_deadline_before(db, GatheringStatus.VOTING, NOW)

        assert [g.id for g in found] == [earlier.id, later.id]

    def test_save_persists_changes(self, db):
        gathering = make_gathering(db)
        gathering.description = "Bring snacks"

        GatheringRepository.save(db, gathering)

        db.expire_all()
        assert GatheringRepository.get_by_id(db, gathering.id).description == "Bring snacks"


class TestVoteRepository:
    def test_counts_per_candidate_and_kind(self, db):
        gathering = make_gathering(db)
        t0, t1 = time_candidate(gathering, 0), time_candidate(gathering, 1)
        p0 = place_candidate(gathering, 0)
        vote_for(db, gathering, "Aki", t0, t1, p0)
        vote_for(db, gathering, "Ben", t1)

        time_counts = dict(VoteRepository.count_by_candidate(db, gathering.id, CandidateKind.TIME))
        place_counts = dict(VoteRepository.count_by_candidate(db, gathering.id, CandidateKind.PLACE))

        assert time_counts == {t0.id: 1, t1.id: 2}
        assert place_counts == {p0.id: 1}

    def test_counts_are_scoped_to_gathering(self, db):
        gathering = make_gathering(db, kind=GatheringKind.TIME_ONLY)
        other = make_gathering(db, kind=GatheringKind.TIME_ONLY)
        vote_for(db, other, "Aki", time_candidate(other, 0))

        assert VoteRepository.count_by_candidate(db, gathering.id, CandidateKind.TIME) == []

    def test_voters_for_candidate(self, db):
        gathering = make_gathering(db, kind=GatheringKind.TIME_ONLY)
        t0 = time_candidate(gathering, 0)
        aki = vote_for(db, gathering, "Aki", t0)
        vote_for(db, gathering, "Ben", time_candidate(gathering, 1))
        cho = vote_for(db, gathering, "Cho", t0)

        assert VoteRepository.participant_ids_for_candidate(db, t0.id, CandidateKind.TIME) == [aki.id, cho.id]
        assert VoteRepository.participant_names_for_candidate(db, t0.id, CandidateKind.TIME) == ["Aki", "Cho"]
        # Same id, other kind
        assert VoteRepository.participant_ids_for_candidate(db, t0.id, CandidateKind.PLACE) == []

    def test_participant_count(self, db):
        gathering = make_gathering(db)
        assert VoteRepository.count_participants(db, gathering.id) == 0

        add_participant(db, gathering, "Aki")
        add_participant(db, gathering, "Ben")

        assert VoteRepository.count_participants(db, gathering.id) == 2
