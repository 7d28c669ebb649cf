"""Vote ledger service: per-user deal votes and the cached heat counters.

Every vote action runs as one unit inside a SAVEPOINT:

1. confirm the deal exists
2. read (and lock) the caller's ledger row for the deal
3. resolve the transition (new vote, flip or retraction)
4. insert / update / delete the ledger row
5. add the transition's deltas to the deal's counters with a relative UPDATE

If any step fails the savepoint is rolled back, so the ledger and the
counters never disagree. A unique-constraint race on the ledger insert is
retried from step 1, which turns the losing request into a flip or
retraction against the row the winner created.
"""

import logging
import uuid
from dataclasses import dataclass
from typing import Dict, Iterable, NamedTuple, Optional, Tuple, Union

import structlog
from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError
from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_random,
)

from dealheat.config import settings
from dealheat.core.exceptions import (
    NotFoundError,
    UnauthenticatedError,
    VoteConflictError,
    VoteFailedError,
)
from dealheat.models.deal import Deal
from dealheat.models.deal_vote import DealVote, VoteDirection
from dealheat.services.heat_score import Transition, heat_score_for, resolve_transition, score_delta

logger = structlog.get_logger(__name__)


class VoteCounters(NamedTuple):
    """A deal's cached vote counters."""

    upvotes: int
    downvotes: int
    heat_score: int


@dataclass(frozen=True)
class VoteResult:
    """Outcome of a vote action: what happened and the deal's new counters."""

    deal_id: uuid.UUID
    transition: Transition
    counters: VoteCounters

    @property
    def user_vote(self) -> Optional[VoteDirection]:
        return self.transition.new

    def to_dict(self) -> dict:
        return {
            "deal_id": str(self.deal_id),
            "upvotes": self.counters.upvotes,
            "downvotes": self.counters.downvotes,
            "heat_score": self.counters.heat_score,
            "user_vote": self.user_vote.value if self.user_vote else None,
            "transition": self.transition.label,
        }


class VoteService:
    """Handles deal voting with per-user tracking."""

    def __init__(self, db: AsyncSession, max_attempts: Optional[int] = None):
        self.db = db
        self.max_attempts = max_attempts or settings.VOTE_CONFLICT_MAX_ATTEMPTS
        self.logger = logger.bind(service="vote_service")

    async def cast_vote(
        self,
        deal_id: uuid.UUID,
        user_id: Optional[uuid.UUID],
        direction: Union[VoteDirection, str],
    ) -> VoteResult:
        """Cast, change or retract a vote on a deal.

        Voting the current direction again removes the vote (toggle).
        Voting the opposite direction flips it.

        Args:
            deal_id: Deal UUID
            user_id: Resolved caller, or None for an anonymous request
            direction: 'up' or 'down'

        Returns:
            VoteResult with the applied transition and the deal's counters

        Raises:
            UnauthenticatedError: If user_id is None
            NotFoundError: If the deal does not exist
            VoteFailedError: If the ledger and counters could not be
                updated together
            ValueError: If direction is not 'up' or 'down'
        """
        if user_id is None:
            raise UnauthenticatedError("Please sign in to vote")

        direction = VoteDirection(direction)

        retrying = AsyncRetrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_random(min=0, max=0.05),
            retry=retry_if_exception_type(VoteConflictError),
            before_sleep=before_sleep_log(self.logger, logging.WARNING),
            reraise=True,
        )

        try:
            async for attempt in retrying:
                with attempt:
                    result = await self._cast_vote_once(deal_id, user_id, direction)
        except VoteConflictError as e:
            self.logger.error(
                "vote_conflict_unresolved",
                deal_id=str(deal_id),
                user_id=str(user_id),
                attempts=self.max_attempts,
            )
            raise VoteFailedError() from e
        except SQLAlchemyError as e:
            self.logger.error(
                "vote_failed",
                deal_id=str(deal_id),
                user_id=str(user_id),
                error=str(e),
                exc_info=True,
            )
            raise VoteFailedError() from e

        self.logger.info(
            "vote_cast",
            deal_id=str(deal_id),
            user_id=str(user_id),
            transition=result.transition.label,
            upvotes=result.counters.upvotes,
            downvotes=result.counters.downvotes,
            heat_score=result.counters.heat_score,
        )
        return result

    async def _cast_vote_once(
        self,
        deal_id: uuid.UUID,
        user_id: uuid.UUID,
        direction: VoteDirection,
    ) -> VoteResult:
        """One attempt at the ledger + counter unit, inside a savepoint."""
        try:
            async with self.db.begin_nested():
                if not await self._deal_exists(deal_id):
                    raise NotFoundError("Deal", str(deal_id))

                existing = await self._get_ledger_entry(deal_id, user_id)
                current = existing.vote_type if existing else None
                transition = resolve_transition(current, direction)

                await self._write_ledger(deal_id, user_id, existing, transition)
                counters = await self._apply_transition(deal_id, transition)
        except (IntegrityError, StaleDataError) as e:
            # Another request for the same (deal, user) got there first
            self.logger.info(
                "vote_conflict_retry",
                deal_id=str(deal_id),
                user_id=str(user_id),
                error=type(e).__name__,
            )
            raise VoteConflictError(str(deal_id), str(user_id)) from e

        return VoteResult(deal_id=deal_id, transition=transition, counters=counters)

    async def _deal_exists(self, deal_id: uuid.UUID) -> bool:
        result = await self.db.execute(select(Deal.id).where(Deal.id == deal_id))
        return result.scalar_one_or_none() is not None

    async def _get_ledger_entry(
        self,
        deal_id: uuid.UUID,
        user_id: uuid.UUID,
    ) -> Optional[DealVote]:
        """Fetch the caller's ledger row, locking it until the unit commits."""
        stmt = (
            select(DealVote)
            .where(
                DealVote.deal_id == deal_id,
                DealVote.user_id == user_id,
            )
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def _write_ledger(
        self,
        deal_id: uuid.UUID,
        user_id: uuid.UUID,
        existing: Optional[DealVote],
        transition: Transition,
    ) -> None:
        if existing is None:
            self.db.add(
                DealVote(
                    deal_id=deal_id,
                    user_id=user_id,
                    vote_type=transition.new,
                )
            )
        elif transition.new is None:
            await self.db.delete(existing)
        else:
            existing.vote_type = transition.new

        await self.db.flush()

    async def _apply_transition(
        self,
        deal_id: uuid.UUID,
        transition: Transition,
    ) -> VoteCounters:
        """Add the transition's deltas to the deal's counters.

        Uses a relative UPDATE so concurrent voters on the same deal
        commute. No clamping is applied.
        """
        delta = score_delta(transition)
        stmt = (
            update(Deal)
            .where(Deal.id == deal_id)
            .values(
                upvotes=Deal.upvotes + delta.upvotes,
                downvotes=Deal.downvotes + delta.downvotes,
                heat_score=Deal.heat_score + delta.heat_score,
            )
            .returning(Deal.upvotes, Deal.downvotes, Deal.heat_score)
        )
        result = await self.db.execute(stmt)
        row = result.one_or_none()
        if row is None:
            # Deal deleted between the existence check and the update
            raise NotFoundError("Deal", str(deal_id))
        return VoteCounters(*row)

    async def get_user_vote(
        self,
        deal_id: uuid.UUID,
        user_id: Optional[uuid.UUID],
    ) -> Optional[VoteDirection]:
        """Get the current user's vote direction for a deal, or None."""
        if user_id is None:
            return None
        stmt = select(DealVote.vote_type).where(
            DealVote.deal_id == deal_id,
            DealVote.user_id == user_id,
        )
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def get_user_votes(
        self,
        deal_ids: Iterable[uuid.UUID],
        user_id: Optional[uuid.UUID],
    ) -> Dict[uuid.UUID, VoteDirection]:
        """Get the current user's votes for a page of deals in one query."""
        deal_ids = list(deal_ids)
        if user_id is None or not deal_ids:
            return {}
        stmt = select(DealVote.deal_id, DealVote.vote_type).where(
            DealVote.user_id == user_id,
            DealVote.deal_id.in_(deal_ids),
        )
        result = await self.db.execute(stmt)
        return {deal_id: vote_type for deal_id, vote_type in result.all()}

    async def recalculate_counters(self, deal_id: uuid.UUID) -> Tuple[bool, VoteCounters]:
        """Rebuild a deal's cached counters from its ledger rows.

        Returns:
            (drifted, counters): whether the cache disagreed with the ledger,
            and the counters now stored

        Raises:
            NotFoundError: If the deal does not exist
        """
        deal_stmt = (
            select(Deal.upvotes, Deal.downvotes, Deal.heat_score)
            .where(Deal.id == deal_id)
            .with_for_update()
        )
        cached_row = (await self.db.execute(deal_stmt)).one_or_none()
        if cached_row is None:
            raise NotFoundError("Deal", str(deal_id))
        cached = VoteCounters(*cached_row)

        count_stmt = (
            select(DealVote.vote_type, func.count(DealVote.id))
            .where(DealVote.deal_id == deal_id)
            .group_by(DealVote.vote_type)
        )
        counts = dict((await self.db.execute(count_stmt)).all())
        upvotes = counts.get(VoteDirection.UP, 0)
        downvotes = counts.get(VoteDirection.DOWN, 0)
        expected = VoteCounters(upvotes, downvotes, heat_score_for(upvotes, downvotes))

        drifted = cached != expected
        if drifted:
            await self.db.execute(
                update(Deal)
                .where(Deal.id == deal_id)
                .values(
                    upvotes=expected.upvotes,
                    downvotes=expected.downvotes,
                    heat_score=expected.heat_score,
                )
            )
            self.logger.warning(
                "counters_recalculated",
                deal_id=str(deal_id),
                cached=cached._asdict(),
                expected=expected._asdict(),
            )

        return drifted, expected
