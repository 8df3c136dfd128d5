"""Confirmation repository - Storage for the single confirmed result per gathering"""

from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from ...errors import AlreadyConfirmedError
from ...models import ConfirmedResult


class ConfirmationRepository:
    """Repository for confirmed results"""

    @staticmethod
    def exists_for_gathering(db: Session, gathering_id: int) -> bool:
        return (
            db.query(ConfirmedResult.id).filter(ConfirmedResult.gathering_id == gathering_id).first()
            is not None
        )

    @staticmethod
    def get_for_gathering(db: Session, gathering_id: int) -> Optional[ConfirmedResult]:
        return (
            db.query(ConfirmedResult)
            .options(joinedload(ConfirmedResult.time_candidate), joinedload(ConfirmedResult.place_candidate))
            .filter(ConfirmedResult.gathering_id == gathering_id)
            .first()
        )

    @staticmethod
    def insert(db: Session, result: ConfirmedResult) -> ConfirmedResult:
        """
        Stage a result and flush it so the UNIQUE(gathering_id) constraint is
        checked now, inside the caller's transaction. Does not commit.

        Raises:
            AlreadyConfirmedError: another result exists for the gathering.
                The session is rolled back.
        """
        gathering_id = result.gathering_id
        db.add(result)
        try:
            db.flush()
        except IntegrityError as e:
            db.rollback()
            raise AlreadyConfirmedError(
                f"Gathering {gathering_id} already has a confirmed result"
            ) from e
        return result
