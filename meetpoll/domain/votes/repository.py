"""Vote repository - Read-side aggregates over participants and votes"""

from sqlalchemy import func
from sqlalchemy.orm import Session

from ...models import CandidateKind, Participant, Vote


class VoteRepository:
    """Repository for vote aggregate queries"""

    @staticmethod
    def count_by_candidate(
        db: Session, gathering_id: int, kind: CandidateKind
    ) -> list[tuple[int, int]]:
        """Vote count per candidate for one gathering and kind"""
        rows = (
            db.query(Vote.candidate_id, func.count(Vote.id))
            .filter(Vote.gathering_id == gathering_id, Vote.candidate_type == kind)
            .group_by(Vote.candidate_id)
            .all()
        )
        return [(candidate_id, count) for candidate_id, count in rows]

    @staticmethod
    def participant_ids_for_candidate(db: Session, candidate_id: int, kind: CandidateKind) -> list[int]:
        """Ids of participants who voted for a candidate"""
        rows = (
            db.query(Vote.participant_id)
            .filter(Vote.candidate_id == candidate_id, Vote.candidate_type == kind)
            .order_by(Vote.participant_id.asc())
            .all()
        )
        return [row[0] for row in rows]

    @staticmethod
    def participant_names_for_candidate(db: Session, candidate_id: int, kind: CandidateKind) -> list[str]:
        """Names of participants who voted for a candidate, in registration order"""
        rows = (
            db.query(Participant.name)
            .join(Vote, Vote.participant_id == Participant.id)
            .filter(Vote.candidate_id == candidate_id, Vote.candidate_type == kind)
            .order_by(Participant.id.asc())
            .all()
        )
        return [row[0] for row in rows]

    @staticmethod
    def count_participants(db: Session, gathering_id: int) -> int:
        return (
            db.query(func.count(Participant.id))
            .filter(Participant.gathering_id == gathering_id)
            .scalar()
            or 0
        )
