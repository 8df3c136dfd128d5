"""Confirmation domain schemas - Pydantic models for validation"""

from datetime import date, datetime, time
from typing import Optional

from pydantic import BaseModel, field_validator


class ConfirmRequest(BaseModel):
    """Schema for host confirmation and tie-break resolution"""

    timeCandidateId: Optional[int] = None
    placeCandidateId: Optional[int] = None

    @field_validator("timeCandidateId", "placeCandidateId")
    @classmethod
    def validate_candidate_id(cls, v):
        if v is not None and v <= 0:
            raise ValueError("Candidate id must be positive")
        return v


class TiebreakRequest(ConfirmRequest):
    """Schema for resolving a tie-break (same shape as ConfirmRequest)"""


class ConfirmedTimeResponse(BaseModel):
    candidateId: int
    candidateDate: date
    startTime: time
    endTime: Optional[time] = None
    voters: list[str] = []


class ConfirmedPlaceResponse(BaseModel):
    candidateId: int
    name: str
    mapLink: Optional[str] = None
    memo: Optional[str] = None
    voters: list[str] = []


class ConfirmedResultResponse(BaseModel):
    """Schema for a confirmed result"""

    shareCode: str
    title: str
    hostName: str
    kind: str
    confirmedBy: str  # AUTO or HOST
    confirmedAt: datetime
    confirmedTime: Optional[ConfirmedTimeResponse] = None  # None for PLACE_ONLY
    confirmedPlace: Optional[ConfirmedPlaceResponse] = None  # None for TIME_ONLY
    icsDownloadUrl: str

    class Config:
        from_attributes = True


class ConfirmationStatusResponse(BaseModel):
    """Schema returned after a host action"""

    shareCode: str
    status: str
    confirmedBy: str
    confirmedAt: datetime
