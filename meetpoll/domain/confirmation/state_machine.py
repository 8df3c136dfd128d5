"""
Gathering lifecycle transitions

Statuses: VOTING → CONFIRMED | TIEBREAK | EXPIRED, TIEBREAK → CONFIRMED.
CONFIRMED and EXPIRED are terminal.
"""

import logging
from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session
from sqlalchemy.orm.attributes import set_committed_value

from ...errors import AlreadyConfirmedError, InvalidStateError
from ...models import Gathering, GatheringStatus
from ...shared.clock import utcnow

logger = logging.getLogger(__name__)

VALID_TRANSITIONS = {
    GatheringStatus.VOTING: {
        GatheringStatus.CONFIRMED,
        GatheringStatus.TIEBREAK,
        GatheringStatus.EXPIRED,
    },
    GatheringStatus.TIEBREAK: {GatheringStatus.CONFIRMED},
    GatheringStatus.CONFIRMED: set(),  # Terminal state
    GatheringStatus.EXPIRED: set(),  # Terminal state
}


def can_transition(current: GatheringStatus, target: GatheringStatus) -> bool:
    """Validate a status transition against the lifecycle table"""
    return target in VALID_TRANSITIONS.get(current, set())


def is_terminal(status: GatheringStatus) -> bool:
    return not VALID_TRANSITIONS.get(status)


def transition(
    db: Session, gathering: Gathering, target: GatheringStatus, now: Optional[datetime] = None
) -> None:
    """
    Move a gathering to a new status inside the caller's transaction

    The UPDATE only matches while the row still holds the status this
    session read, so a trigger that lost a race cannot overwrite the
    winner's status. Does not commit.

    Args:
        now: updated_at value, defaults to current UTC time

    Raises:
        AlreadyConfirmedError: the row was confirmed since it was read
        InvalidStateError: the edge is not in the lifecycle table, or the
            row moved to another status since it was read
    """
    current = gathering.status
    if not can_transition(current, target):
        raise InvalidStateError(
            f"Cannot move gathering {gathering.share_code} from {current.value} to {target.value}"
        )

    now = now or utcnow()
    updated = (
        db.query(Gathering)
        .filter(Gathering.id == gathering.id, Gathering.status == current)
        .update({Gathering.status: target, Gathering.updated_at: now}, synchronize_session=False)
    )
    if updated != 1:
        stored = db.query(Gathering.status).filter(Gathering.id == gathering.id).scalar()
        if stored == GatheringStatus.CONFIRMED:
            raise AlreadyConfirmedError(f"Gathering {gathering.share_code} was confirmed concurrently")
        raise InvalidStateError(
            f"Gathering {gathering.share_code} is no longer {current.value}"
        )

    set_committed_value(gathering, "status", target)
    set_committed_value(gathering, "updated_at", now)
    logger.info(f"🔁 Gathering {gathering.share_code} transitioned: {current.value} → {target.value}")
