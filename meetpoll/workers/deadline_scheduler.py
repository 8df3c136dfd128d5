"""
Deadline Scheduler
Auto-confirms gatherings whose voting deadline passed and auto-resolves
tie-breaks the host left open past the tie-break window
"""

import asyncio
import logging
from datetime import datetime, timedelta
from typing import Callable, Optional

from sqlalchemy.orm import Session

from ..config import SCHEDULER_INTERVAL_SECONDS, TIEBREAK_WINDOW_HOURS
from ..database import SessionLocal
from ..domain.confirmation.service import ConfirmationService
from ..domain.gatherings.repository import GatheringRepository
from ..models import Gathering, GatheringStatus
from ..shared.clock import utcnow

logger = logging.getLogger(__name__)


class DeadlineScheduler:
    """
    Periodic driver for the two automatic resolution jobs

    Each job runs every interval_seconds, measured from the start of the
    previous run. A failing gathering is logged and skipped; it stays in
    its current status, so the next run picks it up again.
    """

    def __init__(
        self,
        session_factory: Callable[[], Session] = SessionLocal,
        service_factory: Callable[[Session], ConfirmationService] = ConfirmationService,
        interval_seconds: float = SCHEDULER_INTERVAL_SECONDS,
        tiebreak_window: timedelta = timedelta(hours=TIEBREAK_WINDOW_HOURS),
        clock: Callable[[], datetime] = utcnow,
    ):
        self.session_factory = session_factory
        self.service_factory = service_factory
        self.interval_seconds = interval_seconds
        self.tiebreak_window = tiebreak_window
        self.clock = clock
        self._tasks: list[asyncio.Task] = []

    # ========================================================================
    # JOBS
    # ========================================================================

    def sweep_expired_voting(self, now: Optional[datetime] = None) -> dict:
        """Auto-confirm every VOTING gathering whose deadline has passed"""
        cutoff = now or self.clock()

        def handle(service: ConfirmationService, gathering: Gathering) -> str:
            status = service.auto_confirm(gathering)
            return status.value.lower() if status else "skipped"

        return self._sweep("expired voting", GatheringStatus.VOTING, cutoff, handle)

    def sweep_stuck_tiebreaks(self, now: Optional[datetime] = None) -> dict:
        """Auto-resolve every TIEBREAK gathering past deadline + tie-break window"""
        # deadline + window < now  ⇔  deadline < now - window
        cutoff = (now or self.clock()) - self.tiebreak_window

        def handle(service: ConfirmationService, gathering: Gathering) -> str:
            result = service.auto_resolve_tiebreak(gathering)
            return "confirmed" if result else "skipped"

        return self._sweep("stuck tie-break", GatheringStatus.TIEBREAK, cutoff, handle)

    def run_once(self, now: Optional[datetime] = None) -> dict:
        """Run both jobs back to back (used by the standalone runner and tests)"""
        return {
            "expired_voting": self.sweep_expired_voting(now),
            "stuck_tiebreaks": self.sweep_stuck_tiebreaks(now),
        }

    def _sweep(
        self,
        label: str,
        status: GatheringStatus,
        cutoff: datetime,
        handle: Callable[[ConfirmationService, Gathering], str],
    ) -> dict:
        summary = {"processed": 0, "failed": 0}

        db = self.session_factory()
        try:
            service = self.service_factory(db)
            gatherings = GatheringRepository.find_by_status_and_deadline_before(db, status, cutoff)

            if not gatherings:
                logger.debug(f"ℹ️ No {label} gatherings to process")
                return summary

            logger.info(f"🔄 Processing {len(gatherings)} {label} gathering(s)")

            for gathering in gatherings:
                share_code = gathering.share_code
                try:
                    outcome = handle(service, gathering)
                    summary[outcome] = summary.get(outcome, 0) + 1
                    summary["processed"] += 1
                except Exception as e:
                    # One broken gathering must not stop the rest of the batch
                    db.rollback()
                    summary["failed"] += 1
                    logger.warning(f"⚠️ Failed to process {label} gathering {share_code}: {e}", exc_info=True)

            logger.info(f"📊 {label.capitalize()} sweep summary: {summary}")
            return summary
        finally:
            db.close()

    # ========================================================================
    # LIFECYCLE
    # ========================================================================

    @property
    def is_running(self) -> bool:
        return any(not task.done() for task in self._tasks)

    def start(self) -> None:
        """Start both jobs as background tasks on the running event loop"""
        if self.is_running:
            logger.warning("⚠️ Deadline scheduler already running")
            return

        self._tasks = [
            asyncio.create_task(self._run_periodically("expired voting", self.sweep_expired_voting)),
            asyncio.create_task(self._run_periodically("stuck tie-break", self.sweep_stuck_tiebreaks)),
        ]
        logger.info(f"🚀 Deadline scheduler started (interval={self.interval_seconds}s)")

    async def stop(self) -> None:
        """Cancel both jobs and wait for them to finish"""
        for task in self._tasks:
            task.cancel()
        await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks = []
        logger.info("👋 Deadline scheduler stopped")

    async def run_forever(self) -> None:
        """Start the jobs and block until they are cancelled"""
        self.start()
        try:
            await asyncio.gather(*self._tasks)
        finally:
            await self.stop()

    async def _run_periodically(self, label: str, job: Callable[[], dict]) -> None:
        loop = asyncio.get_running_loop()
        while True:
            started = loop.time()
            try:
                await asyncio.to_thread(job)
            except Exception as e:
                logger.error(f"❌ Error in {label} sweep: {e}", exc_info=True)

            elapsed = loop.time() - started
            await asyncio.sleep(max(0.0, self.interval_seconds - elapsed))
