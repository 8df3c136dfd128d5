"""
iCalendar (.ics) export for confirmed gatherings

Builds an RFC 5545 calendar in memory; nothing is written to disk.
"""

import logging
import uuid
from datetime import datetime, timedelta
from typing import Optional

from ...config import ICS_DEFAULT_DURATION_HOURS, ICS_PRODUCT_ID, ICS_UID_DOMAIN
from ...models import ConfirmedResult, Gathering
from ...shared.clock import utcnow

logger = logging.getLogger(__name__)

ICS_DATE_FORMAT = "%Y%m%dT%H%M%S"
CRLF = "\r\n"


def escape_ics_text(text: Optional[str]) -> str:
    """Escape TEXT values (backslash first)"""
    if text is None:
        return ""
    return (
        text.replace("\\", "\\\\")
        .replace(",", "\\,")
        .replace(";", "\\;")
        .replace("\n", "\\n")
    )


def generate_ics(gathering: Gathering, result: ConfirmedResult, now: Optional[datetime] = None) -> str:
    """
    Build a single-event calendar for a confirmed gathering

    Args:
        gathering: The confirmed gathering (title becomes SUMMARY)
        result: Its confirmed result
        now: DTSTAMP override, defaults to current UTC time

    Returns:
        iCalendar text with CRLF line endings
    """
    logger.info(f"📅 Generating calendar file for gathering {gathering.share_code}")

    lines = [
        "BEGIN:VCALENDAR",
        "VERSION:2.0",
        f"PRODID:{ICS_PRODUCT_ID}",
        "BEGIN:VEVENT",
        f"UID:{uuid.uuid4()}@{ICS_UID_DOMAIN}",
        f"DTSTAMP:{(now or utcnow()).strftime(ICS_DATE_FORMAT)}",
        f"SUMMARY:{escape_ics_text(gathering.title)}",
    ]

    time_candidate = result.time_candidate
    if time_candidate is not None:
        start = datetime.combine(time_candidate.candidate_date, time_candidate.start_time)
        if time_candidate.end_time is not None:
            end = datetime.combine(time_candidate.candidate_date, time_candidate.end_time)
        else:
            end = start + timedelta(hours=ICS_DEFAULT_DURATION_HOURS)
        lines.append(f"DTSTART:{start.strftime(ICS_DATE_FORMAT)}")
        lines.append(f"DTEND:{end.strftime(ICS_DATE_FORMAT)}")

    place_candidate = result.place_candidate
    if place_candidate is not None:
        lines.append(f"LOCATION:{escape_ics_text(place_candidate.name)}")
        if place_candidate.map_link:
            lines.append(f"DESCRIPTION:Map: {escape_ics_text(place_candidate.map_link)}")

    lines.extend(["END:VEVENT", "END:VCALENDAR"])
    return CRLF.join(lines) + CRLF
