import pytest

from meetpoll.domain.confirmation import state_machine
from meetpoll.errors import AlreadyConfirmedError, InvalidStateError
from meetpoll.models import Gathering, GatheringStatus

from .factories import NOW, make_gathering

VOTING = GatheringStatus.VOTING
TIEBREAK = GatheringStatus.TIEBREAK
CONFIRMED = GatheringStatus.CONFIRMED
EXPIRED = GatheringStatus.EXPIRED


class TestTransitionTable:
    @pytest.mark.parametrize(
        "current,target",
        [(VOTING, CONFIRMED), (VOTING, TIEBREAK), (VOTING, EXPIRED), (TIEBREAK, CONFIRMED)],
    )
    def test_allowed_edges(self, current, target):
        assert state_machine.can_transition(current, target)

    @pytest.mark.parametrize(
        "current,target",
        [
            (TIEBREAK, VOTING),
            (TIEBREAK, EXPIRED),
            (CONFIRMED, VOTING),
            (CONFIRMED, TIEBREAK),
            (EXPIRED, VOTING),
            (EXPIRED, CONFIRMED),
            (VOTING, VOTING),
        ],
    )
    def test_rejected_edges(self, current, target):
        assert not state_machine.can_transition(current, target)

    def test_terminal_statuses(self):
        assert state_machine.is_terminal(CONFIRMED)
        assert state_machine.is_terminal(EXPIRED)
        assert not state_machine.is_terminal(VOTING)
        assert not state_machine.is_terminal(TIEBREAK)


class TestTransition:
    def test_writes_new_status(self, db):
        gathering = make_gathering(db)

        state_machine.transition(db, gathering, TIEBREAK)
        db.commit()

        assert gathering.status == TIEBREAK
        db.expire_all()
        assert db.get(Gathering, gathering.id).status == TIEBREAK

    def test_illegal_edge_leaves_status_untouched(self, db):
        gathering = make_gathering(db, status=CONFIRMED)

        with pytest.raises(InvalidStateError):
            state_machine.transition(db, gathering, TIEBREAK)

        db.rollback()
        assert db.get(Gathering, gathering.id).status == CONFIRMED

    def test_uses_given_timestamp(self, db):
        gathering = make_gathering(db)

        state_machine.transition(db, gathering, EXPIRED, now=NOW)
        db.commit()

        db.expire_all()
        assert db.get(Gathering, gathering.id).updated_at == NOW

    def test_stale_read_is_rejected(self, db):
        gathering = make_gathering(db)

        # Another writer moved the row on without this session noticing
        db.query(Gathering).filter(Gathering.id == gathering.id).update(
            {Gathering.status: EXPIRED}, synchronize_session=False
        )
        assert gathering.status == VOTING

        with pytest.raises(InvalidStateError) as exc_info:
            state_machine.transition(db, gathering, TIEBREAK)
        assert not isinstance(exc_info.value, AlreadyConfirmedError)

        db.commit()
        db.expire_all()
        assert db.get(Gathering, gathering.id).status == EXPIRED

    @pytest.mark.parametrize("target", [TIEBREAK, EXPIRED, CONFIRMED])
    def test_row_confirmed_since_read_is_already_confirmed(self, db, target):
        gathering = make_gathering(db)

        db.query(Gathering).filter(Gathering.id == gathering.id).update(
            {Gathering.status: CONFIRMED}, synchronize_session=False
        )

        with pytest.raises(AlreadyConfirmedError):
            state_machine.transition(db, gathering, target)

        db.commit()
        db.expire_all()
        assert db.get(Gathering, gathering.id).status == CONFIRMED
