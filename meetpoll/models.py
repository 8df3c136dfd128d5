import enum

from sqlalchemy import (
    Column,
    Date,
    DateTime,
    Enum,
    ForeignKey,
    Integer,
    String,
    Time,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from .database import Base
from .shared.clock import utcnow


class GatheringKind(str, enum.Enum):
    """Which candidate categories a gathering votes on"""

    TIME_ONLY = "TIME_ONLY"
    PLACE_ONLY = "PLACE_ONLY"
    BOTH = "BOTH"

    @property
    def votes_on_time(self) -> bool:
        return self is not GatheringKind.PLACE_ONLY

    @property
    def votes_on_place(self) -> bool:
        return self is not GatheringKind.TIME_ONLY


class GatheringStatus(str, enum.Enum):
    """
    Gathering lifecycle

    VOTING → CONFIRMED | TIEBREAK | EXPIRED
    TIEBREAK → CONFIRMED
    """

    VOTING = "VOTING"
    TIEBREAK = "TIEBREAK"
    CONFIRMED = "CONFIRMED"
    EXPIRED = "EXPIRED"


class CandidateKind(str, enum.Enum):
    """Which candidate table a vote's candidate_id refers to"""

    TIME = "TIME"
    PLACE = "PLACE"


class ConfirmedBy(str, enum.Enum):
    AUTO = "AUTO"
    HOST = "HOST"


class Gathering(Base):
    __tablename__ = "gatherings"

    id = Column(Integer, primary_key=True, index=True)
    # Public lookup key used in invite links instead of the sequential id
    share_code = Column(String(8), unique=True, index=True, nullable=False)
    title = Column(String(100), nullable=False)
    host_name = Column(String(30), nullable=False)
    description = Column(String(500), nullable=True)
    kind = Column(Enum(GatheringKind, native_enum=False, length=20), nullable=False)
    # SHA-256 of the host token; the raw token is only returned once at creation
    host_token_hash = Column(String(64), nullable=False)
    deadline = Column(DateTime, nullable=False, index=True)  # UTC
    status = Column(
        Enum(GatheringStatus, native_enum=False, length=20),
        default=GatheringStatus.VOTING,
        nullable=False,
        index=True,
    )
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    time_candidates = relationship(
        "TimeCandidate",
        back_populates="gathering",
        order_by="TimeCandidate.display_order",
        cascade="all, delete-orphan",
    )
    place_candidates = relationship(
        "PlaceCandidate",
        back_populates="gathering",
        order_by="PlaceCandidate.display_order",
        cascade="all, delete-orphan",
    )
    participants = relationship("Participant", back_populates="gathering", cascade="all, delete-orphan")
    confirmed_result = relationship("ConfirmedResult", back_populates="gathering", uselist=False)


class TimeCandidate(Base):
    __tablename__ = "time_candidates"
    __table_args__ = (UniqueConstraint("gathering_id", "display_order", name="uq_time_candidate_order"),)

    id = Column(Integer, primary_key=True, index=True)
    gathering_id = Column(Integer, ForeignKey("gatherings.id"), nullable=False, index=True)
    candidate_date = Column(Date, nullable=False)
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=True)
    # Registration order, 0-based; first-registered wins an unresolved tie
    display_order = Column(Integer, default=0, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    gathering = relationship("Gathering", back_populates="time_candidates")

    @property
    def identity(self) -> int:
        return self.id


class PlaceCandidate(Base):
    __tablename__ = "place_candidates"
    __table_args__ = (UniqueConstraint("gathering_id", "display_order", name="uq_place_candidate_order"),)

    id = Column(Integer, primary_key=True, index=True)
    gathering_id = Column(Integer, ForeignKey("gatherings.id"), nullable=False, index=True)
    name = Column(String(100), nullable=False)
    map_link = Column(String(500), nullable=True)
    memo = Column(String(200), nullable=True)
    est_cost = Column(Integer, nullable=True)
    travel_min = Column(Integer, nullable=True)
    mood_tags = Column(String(200), nullable=True)  # comma separated
    display_order = Column(Integer, default=0, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    gathering = relationship("Gathering", back_populates="place_candidates")

    @property
    def identity(self) -> int:
        return self.id


class Participant(Base):
    __tablename__ = "participants"
    __table_args__ = (UniqueConstraint("gathering_id", "name", name="uq_participant_name"),)

    id = Column(Integer, primary_key=True, index=True)
    gathering_id = Column(Integer, ForeignKey("gatherings.id"), nullable=False, index=True)
    name = Column(String(30), nullable=False)
    session_token_hash = Column(String(64), nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    gathering = relationship("Gathering", back_populates="participants")
    votes = relationship("Vote", back_populates="participant", cascade="all, delete-orphan")


class Vote(Base):
    __tablename__ = "votes"
    __table_args__ = (
        UniqueConstraint(
            "participant_id", "candidate_id", "candidate_type", name="uq_vote_participant_candidate"
        ),
    )

    id = Column(Integer, primary_key=True, index=True)
    gathering_id = Column(Integer, ForeignKey("gatherings.id"), nullable=False, index=True)
    participant_id = Column(Integer, ForeignKey("participants.id"), nullable=False, index=True)
    # time_candidates.id or place_candidates.id depending on candidate_type
    candidate_id = Column(Integer, nullable=False)
    candidate_type = Column(Enum(CandidateKind, native_enum=False, length=10), nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    participant = relationship("Participant", back_populates="votes")


class ConfirmedResult(Base):
    __tablename__ = "confirmed_results"

    id = Column(Integer, primary_key=True, index=True)
    # UNIQUE: the storage layer rejects a second result for the same gathering
    gathering_id = Column(Integer, ForeignKey("gatherings.id"), unique=True, nullable=False)
    time_candidate_id = Column(Integer, ForeignKey("time_candidates.id"), nullable=True)
    place_candidate_id = Column(Integer, ForeignKey("place_candidates.id"), nullable=True)
    confirmed_at = Column(DateTime, nullable=False)
    confirmed_by = Column(Enum(ConfirmedBy, native_enum=False, length=10), nullable=False)

    gathering = relationship("Gathering", back_populates="confirmed_result")
    time_candidate = relationship("TimeCandidate")
    place_candidate = relationship("PlaceCandidate")
