import pytest

from meetpoll.domain.confirmation.repository import ConfirmationRepository
from meetpoll.errors import AlreadyConfirmedError, InvalidStateError
from meetpoll.models import ConfirmedBy, ConfirmedResult, GatheringKind

from .factories import NOW, make_gathering, time_candidate


def _result(gathering, candidate_id, confirmed_by=ConfirmedBy.AUTO):
    return ConfirmedResult(
        gathering_id=gathering.id,
        time_candidate_id=candidate_id,
        confirmed_at=NOW,
        confirmed_by=confirmed_by,
    )


class TestConfirmationRepository:
    def test_insert_and_read_back(self, db):
        gathering = make_gathering(db, kind=GatheringKind.TIME_ONLY)
        candidate = time_candidate(gathering, 0)

        ConfirmationRepository.insert(db, _result(gathering, candidate.id))
        db.commit()

        assert ConfirmationRepository.exists_for_gathering(db, gathering.id)
        stored = ConfirmationRepository.get_for_gathering(db, gathering.id)
        assert stored.time_candidate.id == candidate.id
        assert stored.place_candidate is None

    def test_missing_result(self, db):
        gathering = make_gathering(db)

        assert not ConfirmationRepository.exists_for_gathering(db, gathering.id)
        assert ConfirmationRepository.get_for_gathering(db, gathering.id) is None

    def test_second_result_is_rejected(self, db):
        gathering = make_gathering(db, kind=GatheringKind.TIME_ONLY)
        first = time_candidate(gathering, 0).id
        second = time_candidate(gathering, 1).id

        ConfirmationRepository.insert(db, _result(gathering, first))
        db.commit()

        with pytest.raises(AlreadyConfirmedError):
            ConfirmationRepository.insert(db, _result(gathering, second, ConfirmedBy.HOST))

        stored = ConfirmationRepository.get_for_gathering(db, gathering.id)
        assert stored.time_candidate_id == first
        assert stored.confirmed_by == ConfirmedBy.AUTO

    def test_already_confirmed_is_an_invalid_state(self):
        assert issubclass(AlreadyConfirmedError, InvalidStateError)
        assert AlreadyConfirmedError().status_code == 409
