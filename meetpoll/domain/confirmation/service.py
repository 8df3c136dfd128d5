"""
Confirmation service - Resolves a gathering to a single confirmed result

Three ways a gathering gets confirmed:

1) Automatic (auto_confirm): the deadline passed while VOTING. The top
   candidate per kind is confirmed; a tie (or an empty tally) in any
   voted kind moves the gathering to TIEBREAK instead, and a gathering
   nobody joined becomes EXPIRED.
2) Host (manual_confirm): the host picks candidates while VOTING.
3) Tie-break: the host picks while TIEBREAK (resolve_tiebreak_by_host), or
   the scheduler falls back to the first-registered tied candidate once the
   tie-break window is over (auto_resolve_tiebreak).

Every confirmation goes through _finalize, which inserts the result and
moves the status to CONFIRMED in one transaction. The UNIQUE constraint on
confirmed_results.gathering_id rejects a second result, and a status change
that finds the row already CONFIRMED is rejected too. Either way a lost race
surfaces as AlreadyConfirmedError: swallowed on automatic paths, reported
as an invalid state to a host.
"""

import logging
from datetime import datetime
from typing import Callable, Optional, Union

from sqlalchemy.orm import Session

from ...errors import (
    AlreadyConfirmedError,
    GatheringNotFoundError,
    InvalidCandidateError,
    InvalidStateError,
    UnauthorizedError,
)
from ...models import (
    CandidateKind,
    ConfirmedBy,
    ConfirmedResult,
    Gathering,
    GatheringStatus,
    PlaceCandidate,
    TimeCandidate,
)
from ...security_utils import mask_sensitive_data, verify_host_token
from ...shared.clock import utcnow
from ..gatherings.repository import GatheringRepository
from ..votes.repository import VoteRepository
from . import state_machine
from .ics_service import generate_ics
from .repository import ConfirmationRepository
from .tally import NoVotes, SingleWinner, Tie, TallyOutcome, tally_votes
from .tiebreak import select_candidate

logger = logging.getLogger(__name__)


def applicable_kinds(gathering: Gathering) -> list[CandidateKind]:
    """Candidate kinds a gathering votes on, time first"""
    kinds = []
    if gathering.kind.votes_on_time:
        kinds.append(CandidateKind.TIME)
    if gathering.kind.votes_on_place:
        kinds.append(CandidateKind.PLACE)
    return kinds


class ConfirmationService:
    """Service layer for gathering confirmation"""

    def __init__(
        self,
        db: Session,
        token_verifier: Callable[[Optional[str], Optional[str]], bool] = verify_host_token,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.db = db
        self.gatherings = GatheringRepository()
        self.votes = VoteRepository()
        self.repo = ConfirmationRepository()
        self.token_verifier = token_verifier
        self.clock = clock

    # ========================================================================
    # AUTOMATIC CONFIRMATION
    # ========================================================================

    def auto_confirm(self, gathering: Gathering) -> Optional[GatheringStatus]:
        """
        Resolve a gathering whose deadline passed while VOTING

        Returns:
            The status the gathering moved to, or None when it already had a
            confirmed result
        """
        logger.info(f"🚀 Auto-confirm started for gathering {gathering.share_code}")

        if self.repo.exists_for_gathering(self.db, gathering.id):
            logger.info(f"⏭️ Gathering {gathering.share_code} already confirmed, skipping")
            return None

        try:
            if self.votes.count_participants(self.db, gathering.id) == 0:
                state_machine.transition(self.db, gathering, GatheringStatus.EXPIRED, now=self.clock())
                self.db.commit()
                logger.info(f"⌛ Gathering {gathering.share_code} had no participants → EXPIRED")
                return GatheringStatus.EXPIRED

            winners: dict[CandidateKind, int] = {}
            unresolved: list[CandidateKind] = []
            for kind in applicable_kinds(gathering):
                outcome = self._tally(gathering, kind)
                if isinstance(outcome, SingleWinner):
                    winners[kind] = outcome.candidate_id
                elif isinstance(outcome, Tie):
                    logger.info(
                        f"⚖️ {kind.value} tie in gathering {gathering.share_code}: "
                        f"{sorted(outcome.candidate_ids)}"
                    )
                    unresolved.append(kind)
                elif isinstance(outcome, NoVotes):
                    logger.info(f"⚖️ No {kind.value} votes in gathering {gathering.share_code}")
                    unresolved.append(kind)
                else:
                    raise TypeError(f"Unknown tally outcome: {outcome!r}")

            # No partial confirmation: one unresolved kind holds back the whole gathering
            if unresolved:
                state_machine.transition(self.db, gathering, GatheringStatus.TIEBREAK, now=self.clock())
                self.db.commit()
                logger.info(f"⚖️ Gathering {gathering.share_code} → TIEBREAK")
                return GatheringStatus.TIEBREAK

            result = self._finalize(
                gathering,
                winners.get(CandidateKind.TIME),
                winners.get(CandidateKind.PLACE),
                ConfirmedBy.AUTO,
            )
        except AlreadyConfirmedError:
            self.db.rollback()
            logger.info(f"ℹ️ Gathering {gathering.share_code} was confirmed concurrently, ignoring")
            return None
        except Exception:
            self.db.rollback()
            raise

        logger.info(
            f"✅ Auto-confirmed gathering {gathering.share_code}: "
            f"time={result.time_candidate_id}, place={result.place_candidate_id}"
        )
        return GatheringStatus.CONFIRMED

    def auto_resolve_tiebreak(self, gathering: Gathering) -> Optional[ConfirmedResult]:
        """
        Resolve a tie the host left open past the tie-break window

        Re-tallies every voted kind now (votes may have changed since the
        tie was detected) and picks the lowest display order among the
        tied candidates.
        """
        logger.info(f"🚀 Tie-break auto-resolution started for gathering {gathering.share_code}")

        if self.repo.exists_for_gathering(self.db, gathering.id):
            logger.info(f"⏭️ Gathering {gathering.share_code} already confirmed, skipping")
            return None

        try:
            picks: dict[CandidateKind, int] = {}
            for kind in applicable_kinds(gathering):
                outcome = self._tally(gathering, kind)
                candidate_id = select_candidate(outcome, self._candidates(gathering, kind))
                if candidate_id is None:
                    raise InvalidCandidateError(
                        f"Gathering {gathering.share_code} has no {kind.value} candidates to pick from"
                    )
                picks[kind] = candidate_id

            result = self._finalize(
                gathering,
                picks.get(CandidateKind.TIME),
                picks.get(CandidateKind.PLACE),
                ConfirmedBy.AUTO,
            )
        except AlreadyConfirmedError:
            self.db.rollback()
            logger.info(f"ℹ️ Gathering {gathering.share_code} was confirmed concurrently, ignoring")
            return None
        except Exception:
            self.db.rollback()
            raise

        logger.info(f"✅ Tie-break auto-resolved for gathering {gathering.share_code}")
        return result

    # ========================================================================
    # HOST ACTIONS
    # ========================================================================

    def manual_confirm(
        self,
        share_code: str,
        host_token: Optional[str],
        time_candidate_id: Optional[int] = None,
        place_candidate_id: Optional[int] = None,
    ) -> ConfirmedResult:
        """Host confirms explicit candidates before the deadline"""
        gathering = self._get_gathering_as_host(share_code, host_token)
        self._require_status(gathering, GatheringStatus.VOTING, "confirm manually")

        result = self._finalize(gathering, time_candidate_id, place_candidate_id, ConfirmedBy.HOST)
        logger.info(f"✅ Host confirmed gathering {share_code}")
        return result

    def resolve_tiebreak_by_host(
        self,
        share_code: str,
        host_token: Optional[str],
        time_candidate_id: Optional[int] = None,
        place_candidate_id: Optional[int] = None,
    ) -> ConfirmedResult:
        """Host picks the winner of a tie"""
        gathering = self._get_gathering_as_host(share_code, host_token)
        self._require_status(gathering, GatheringStatus.TIEBREAK, "resolve a tie")

        result = self._finalize(gathering, time_candidate_id, place_candidate_id, ConfirmedBy.HOST)
        logger.info(f"✅ Host resolved tie-break for gathering {share_code}")
        return result

    # ========================================================================
    # READS
    # ========================================================================

    def get_confirmed_result(self, share_code: str) -> ConfirmedResult:
        gathering = self._get_gathering(share_code)
        return self._get_result(gathering)

    def describe_result(self, share_code: str) -> dict:
        """Confirmed result with candidate details and who voted for them"""
        gathering = self._get_gathering(share_code)
        result = self._get_result(gathering)

        details = {
            "share_code": gathering.share_code,
            "title": gathering.title,
            "host_name": gathering.host_name,
            "kind": gathering.kind.value,
            "confirmed_by": result.confirmed_by.value,
            "confirmed_at": result.confirmed_at,
            "time": None,
            "place": None,
        }

        time_candidate = result.time_candidate
        if time_candidate is not None:
            details["time"] = {
                "candidate_id": time_candidate.id,
                "date": time_candidate.candidate_date,
                "start_time": time_candidate.start_time,
                "end_time": time_candidate.end_time,
                "voters": self.votes.participant_names_for_candidate(
                    self.db, time_candidate.id, CandidateKind.TIME
                ),
            }

        place_candidate = result.place_candidate
        if place_candidate is not None:
            details["place"] = {
                "candidate_id": place_candidate.id,
                "name": place_candidate.name,
                "map_link": place_candidate.map_link,
                "memo": place_candidate.memo,
                "voters": self.votes.participant_names_for_candidate(
                    self.db, place_candidate.id, CandidateKind.PLACE
                ),
            }

        return details

    def export_calendar(self, share_code: str) -> str:
        """iCalendar text for a confirmed gathering"""
        gathering = self._get_gathering(share_code)
        result = self._get_result(gathering)
        return generate_ics(gathering, result, now=self.clock())

    # ========================================================================
    # HELPERS
    # ========================================================================

    def _finalize(
        self,
        gathering: Gathering,
        time_candidate_id: Optional[int],
        place_candidate_id: Optional[int],
        confirmed_by: ConfirmedBy,
    ) -> ConfirmedResult:
        """
        Insert the confirmed result and move the gathering to CONFIRMED as
        one transaction

        Raises:
            InvalidCandidateError: a candidate is missing, forbidden by the
                gathering kind, or not one of its candidates
            AlreadyConfirmedError: the storage layer already holds a result
            InvalidStateError: the gathering can no longer be confirmed
        """
        time_candidate = self._resolve_candidate(gathering, CandidateKind.TIME, time_candidate_id)
        place_candidate = self._resolve_candidate(gathering, CandidateKind.PLACE, place_candidate_id)

        now = self.clock()
        result = ConfirmedResult(
            gathering_id=gathering.id,
            time_candidate_id=time_candidate.id if time_candidate else None,
            place_candidate_id=place_candidate.id if place_candidate else None,
            confirmed_at=now,
            confirmed_by=confirmed_by,
        )

        try:
            self.repo.insert(self.db, result)
            state_machine.transition(self.db, gathering, GatheringStatus.CONFIRMED, now=now)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        self.db.refresh(result)
        return result

    def _tally(self, gathering: Gathering, kind: CandidateKind) -> TallyOutcome:
        counts = self.votes.count_by_candidate(self.db, gathering.id, kind)
        return tally_votes(counts)

    @staticmethod
    def _candidates(gathering: Gathering, kind: CandidateKind) -> list:
        if kind is CandidateKind.TIME:
            return list(gathering.time_candidates)
        return list(gathering.place_candidates)

    def _resolve_candidate(
        self, gathering: Gathering, kind: CandidateKind, candidate_id: Optional[int]
    ) -> Union[TimeCandidate, PlaceCandidate, None]:
        """Look up a candidate on this gathering, enforcing required/forbidden per kind"""
        label = kind.value.lower()
        required = kind in applicable_kinds(gathering)

        if candidate_id is None:
            if required:
                raise InvalidCandidateError(f"A {label} candidate is required for {gathering.kind.value} gatherings")
            return None

        if not required:
            raise InvalidCandidateError(f"{gathering.kind.value} gatherings do not take a {label} candidate")

        for candidate in self._candidates(gathering, kind):
            if candidate.id == candidate_id:
                return candidate

        raise InvalidCandidateError(
            f"Invalid {label} candidate {candidate_id} for gathering {gathering.share_code}"
        )

    def _get_gathering(self, share_code: str) -> Gathering:
        gathering = self.gatherings.get_by_share_code(self.db, share_code)
        if not gathering:
            raise GatheringNotFoundError(f"Gathering {share_code} not found")
        return gathering

    def _get_result(self, gathering: Gathering) -> ConfirmedResult:
        result = self.repo.get_for_gathering(self.db, gathering.id)
        if not result:
            raise InvalidStateError(f"Gathering {gathering.share_code} has not been confirmed yet")
        return result

    def _get_gathering_as_host(self, share_code: str, host_token: Optional[str]) -> Gathering:
        gathering = self._get_gathering(share_code)
        if not self.token_verifier(host_token, gathering.host_token_hash):
            logger.warning(
                f"⚠️ Rejected host token for gathering {share_code}: "
                f"{mask_sensitive_data(host_token or '')}"
            )
            raise UnauthorizedError("Host token is invalid")
        return gathering

    @staticmethod
    def _require_status(gathering: Gathering, expected: GatheringStatus, action: str) -> None:
        if gathering.status != expected:
            raise InvalidStateError(
                f"Can only {action} while {expected.value}; "
                f"gathering {gathering.share_code} is {gathering.status.value}"
            )
