"""Confirmation router - FastAPI endpoints for confirming gatherings"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Header
from fastapi.responses import Response
from sqlalchemy.orm import Session

from ...config import PUBLIC_API_PREFIX
from ...database import get_db
from ...models import ConfirmedResult, GatheringStatus
from .schemas import (
    ConfirmationStatusResponse,
    ConfirmedPlaceResponse,
    ConfirmedResultResponse,
    ConfirmedTimeResponse,
    ConfirmRequest,
    TiebreakRequest,
)
from .service import ConfirmationService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/gatherings/{share_code}", tags=["Confirmation"])


def get_confirmation_service(db: Session = Depends(get_db)) -> ConfirmationService:
    """Dependency injection for ConfirmationService"""
    return ConfirmationService(db)


def _status_response(share_code: str, result: ConfirmedResult) -> ConfirmationStatusResponse:
    return ConfirmationStatusResponse(
        shareCode=share_code,
        status=GatheringStatus.CONFIRMED.value,
        confirmedBy=result.confirmed_by.value,
        confirmedAt=result.confirmed_at,
    )


@router.post("/confirm", response_model=ConfirmationStatusResponse)
async def manual_confirm(
    share_code: str,
    data: ConfirmRequest,
    host_token: Optional[str] = Header(None, alias="X-Host-Token"),
    service: ConfirmationService = Depends(get_confirmation_service),
):
    """Host confirms the gathering with explicit candidates (VOTING only)"""
    logger.info(f"📥 POST /confirm for gathering {share_code}")
    result = service.manual_confirm(
        share_code, host_token, data.timeCandidateId, data.placeCandidateId
    )
    return _status_response(share_code, result)


@router.post("/tiebreak", response_model=ConfirmationStatusResponse)
async def resolve_tiebreak(
    share_code: str,
    data: TiebreakRequest,
    host_token: Optional[str] = Header(None, alias="X-Host-Token"),
    service: ConfirmationService = Depends(get_confirmation_service),
):
    """Host picks the winner of a tie (TIEBREAK only)"""
    logger.info(f"📥 POST /tiebreak for gathering {share_code}")
    result = service.resolve_tiebreak_by_host(
        share_code, host_token, data.timeCandidateId, data.placeCandidateId
    )
    return _status_response(share_code, result)


@router.get("/result", response_model=ConfirmedResultResponse)
async def get_result(
    share_code: str,
    service: ConfirmationService = Depends(get_confirmation_service),
):
    """Get the confirmed result card for a gathering"""
    details = service.describe_result(share_code)

    confirmed_time = None
    if details["time"]:
        t = details["time"]
        confirmed_time = ConfirmedTimeResponse(
            candidateId=t["candidate_id"],
            candidateDate=t["date"],
            startTime=t["start_time"],
            endTime=t["end_time"],
            voters=t["voters"],
        )

    confirmed_place = None
    if details["place"]:
        p = details["place"]
        confirmed_place = ConfirmedPlaceResponse(
            candidateId=p["candidate_id"],
            name=p["name"],
            mapLink=p["map_link"],
            memo=p["memo"],
            voters=p["voters"],
        )

    return ConfirmedResultResponse(
        shareCode=details["share_code"],
        title=details["title"],
        hostName=details["host_name"],
        kind=details["kind"],
        confirmedBy=details["confirmed_by"],
        confirmedAt=details["confirmed_at"],
        confirmedTime=confirmed_time,
        confirmedPlace=confirmed_place,
        icsDownloadUrl=f"{PUBLIC_API_PREFIX}/gatherings/{share_code}/result/ics",
    )


@router.get("/result/ics")
async def download_ics(
    share_code: str,
    service: ConfirmationService = Depends(get_confirmation_service),
):
    """Download the confirmed gathering as an iCalendar file"""
    logger.info(f"📥 GET /result/ics for gathering {share_code}")
    ics_content = service.export_calendar(share_code)
    return Response(
        content=ics_content,
        media_type="text/calendar",
        headers={"Content-Disposition": f"attachment; filename=meetpoll-{share_code}.ics"},
    )
