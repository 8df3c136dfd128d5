"""Gathering repository - Database operations for gatherings"""

from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session, selectinload

from ...models import Gathering, GatheringStatus


class GatheringRepository:
    """Repository for gathering database operations"""

    @staticmethod
    def get_by_share_code(db: Session, share_code: str) -> Optional[Gathering]:
        """Get a gathering by its public share code"""
        return (
            db.query(Gathering)
            .options(selectinload(Gathering.time_candidates), selectinload(Gathering.place_candidates))
            .filter(Gathering.share_code == share_code)
            .first()
        )

    @staticmethod
    def get_by_id(db: Session, gathering_id: int) -> Optional[Gathering]:
        return db.query(Gathering).filter(Gathering.id == gathering_id).first()

    @staticmethod
    def find_by_status_and_deadline_before(
        db: Session, status: GatheringStatus, cutoff: datetime
    ) -> list[Gathering]:
        """Gatherings in the given status whose deadline is strictly before cutoff"""
        return (
            db.query(Gathering)
            .filter(Gathering.status == status, Gathering.deadline < cutoff)
            .order_by(Gathering.deadline.asc(), Gathering.id.asc())
            .all()
        )

    @staticmethod
    def save(db: Session, gathering: Gathering) -> Gathering:
        """Persist a new or modified gathering"""
        db.add(gathering)
        db.commit()
        db.refresh(gathering)
        return gathering
