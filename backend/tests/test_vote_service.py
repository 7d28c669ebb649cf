"""Tests for VoteService: ledger writes, counter deltas, conflicts and failures."""

import asyncio
from uuid import uuid4

import pytest
import pytest_asyncio
from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from dealheat.core.exceptions import NotFoundError, UnauthenticatedError, VoteFailedError
from dealheat.db.session import build_engine
from dealheat.models import Base, Deal, DealVote, VoteDirection
from dealheat.services.vote_service import VoteCounters, VoteService

from conftest import make_deal, make_user

UP = VoteDirection.UP
DOWN = VoteDirection.DOWN


async def _counters(session: AsyncSession, deal_id) -> VoteCounters:
    row = (
        await session.execute(
            select(Deal.upvotes, Deal.downvotes, Deal.heat_score).where(Deal.id == deal_id)
        )
    ).one()
    return VoteCounters(*row)


async def _ledger_count(session: AsyncSession, **filters) -> int:
    stmt = select(func.count(DealVote.id)).filter_by(**filters)
    return (await session.execute(stmt)).scalar()


class TestCastVote:

    async def test_voting_scenario(self, test_db, sample_deal, sample_user, other_user):
        service = VoteService(test_db)
        alice, bob = sample_user.id, other_user.id

        result = await service.cast_vote(sample_deal.id, alice, UP)
        assert result.counters == (1, 0, 2)
        assert result.user_vote == UP

        result = await service.cast_vote(sample_deal.id, bob, DOWN)
        assert result.counters == (1, 1, 1)

        result = await service.cast_vote(sample_deal.id, alice, DOWN)
        assert result.counters == (0, 2, -2)
        assert result.transition.is_flip

        result = await service.cast_vote(sample_deal.id, alice, DOWN)
        assert result.counters == (0, 1, -1)
        assert result.user_vote is None

        result = await service.cast_vote(sample_deal.id, bob, DOWN)
        assert result.counters == (0, 0, 0)

        await test_db.commit()
        assert await _counters(test_db, sample_deal.id) == (0, 0, 0)
        assert await _ledger_count(test_db, deal_id=sample_deal.id) == 0

    async def test_accepts_string_direction(self, test_db, sample_deal, sample_user):
        service = VoteService(test_db)
        result = await service.cast_vote(sample_deal.id, sample_user.id, "down")

        assert result.transition.label == "none->down"
        assert result.to_dict()["user_vote"] == "down"

    async def test_rejects_unknown_direction(self, test_db, sample_deal, sample_user):
        service = VoteService(test_db)
        with pytest.raises(ValueError):
            await service.cast_vote(sample_deal.id, sample_user.id, "sideways")

        assert await _ledger_count(test_db, deal_id=sample_deal.id) == 0

    async def test_retraction_restores_previous_state(self, test_db, sample_deal, sample_user, other_user):
        service = VoteService(test_db)
        await service.cast_vote(sample_deal.id, other_user.id, DOWN)
        before = await _counters(test_db, sample_deal.id)

        await service.cast_vote(sample_deal.id, sample_user.id, UP)
        result = await service.cast_vote(sample_deal.id, sample_user.id, UP)

        assert result.counters == before
        assert result.transition.is_retraction
        assert await service.get_user_vote(sample_deal.id, sample_user.id) is None

    async def test_one_ledger_row_per_user(self, test_db, sample_deal, sample_user):
        service = VoteService(test_db)
        for direction in (UP, DOWN, UP, DOWN):
            await service.cast_vote(sample_deal.id, sample_user.id, direction)
            assert await _ledger_count(
                test_db, deal_id=sample_deal.id, user_id=sample_user.id
            ) == 1

    async def test_counters_match_ledger(self, test_db, sample_deal):
        service = VoteService(test_db)
        users = [await make_user(test_db, f"voter{i}") for i in range(5)]
        for i, user in enumerate(users):
            await service.cast_vote(sample_deal.id, user.id, UP if i % 2 == 0 else DOWN)
        await service.cast_vote(sample_deal.id, users[0].id, DOWN)
        await service.cast_vote(sample_deal.id, users[1].id, DOWN)

        drifted, counters = await service.recalculate_counters(sample_deal.id)

        assert drifted is False
        assert counters == (2, 2, 2)

    async def test_unauthenticated(self, test_db, sample_deal):
        service = VoteService(test_db)
        with pytest.raises(UnauthenticatedError, match="sign in to vote"):
            await service.cast_vote(sample_deal.id, None, UP)

    async def test_nonexistent_deal(self, test_db, sample_deal, sample_user):
        service = VoteService(test_db)
        with pytest.raises(NotFoundError):
            await service.cast_vote(uuid4(), sample_user.id, UP)

        assert await _ledger_count(test_db) == 0
        assert await _counters(test_db, sample_deal.id) == (0, 0, 0)

    async def test_votes_on_different_deals_are_independent(self, test_db, sample_deal, sample_user):
        other_deal = await make_deal(test_db, title="Cheap SSD")
        service = VoteService(test_db)

        await service.cast_vote(sample_deal.id, sample_user.id, UP)
        await service.cast_vote(other_deal.id, sample_user.id, DOWN)

        assert await _counters(test_db, sample_deal.id) == (1, 0, 2)
        assert await _counters(test_db, other_deal.id) == (0, 1, -1)


class TestConflictsAndFailures:

    async def test_insert_race_is_retried_as_toggle(self, test_db, sample_deal, sample_user, monkeypatch):
        service = VoteService(test_db)
        await service.cast_vote(sample_deal.id, sample_user.id, UP)

        real_lookup = service._get_ledger_entry
        calls = []

        async def stale_then_fresh(deal_id, user_id):
            calls.append(deal_id)
            if len(calls) == 1:
                # Looks like a first vote, so the insert hits the unique constraint
                return None
            return await real_lookup(deal_id, user_id)

        monkeypatch.setattr(service, "_get_ledger_entry", stale_then_fresh)

        result = await service.cast_vote(sample_deal.id, sample_user.id, UP)

        assert len(calls) == 2
        assert result.transition.label == "up->none"
        assert result.counters == (0, 0, 0)
        assert await _ledger_count(test_db, deal_id=sample_deal.id) == 0

    async def test_unresolved_conflict_fails_without_side_effects(
        self, test_db, sample_deal, sample_user, monkeypatch
    ):
        service = VoteService(test_db, max_attempts=2)
        await service.cast_vote(sample_deal.id, sample_user.id, DOWN)

        async def always_stale(deal_id, user_id):
            return None

        monkeypatch.setattr(service, "_get_ledger_entry", always_stale)

        with pytest.raises(VoteFailedError):
            await service.cast_vote(sample_deal.id, sample_user.id, UP)

        assert await _counters(test_db, sample_deal.id) == (0, 1, -1)
        assert await service.get_user_vote(sample_deal.id, sample_user.id) == DOWN

    async def test_counter_failure_rolls_back_ledger(self, test_db, sample_deal, sample_user, monkeypatch):
        service = VoteService(test_db)

        async def broken_update(deal_id, transition):
            raise OperationalError("UPDATE deals", {}, Exception("database is locked"))

        monkeypatch.setattr(service, "_apply_transition", broken_update)

        with pytest.raises(VoteFailedError):
            await service.cast_vote(sample_deal.id, sample_user.id, UP)

        assert await _ledger_count(test_db, deal_id=sample_deal.id) == 0
        assert await _counters(test_db, sample_deal.id) == (0, 0, 0)

    async def test_failure_keeps_prior_vote(self, test_db, sample_deal, sample_user, monkeypatch):
        service = VoteService(test_db)
        await service.cast_vote(sample_deal.id, sample_user.id, UP)

        async def broken_update(deal_id, transition):
            raise OperationalError("UPDATE deals", {}, Exception("disk I/O error"))

        monkeypatch.setattr(service, "_apply_transition", broken_update)

        with pytest.raises(VoteFailedError):
            await service.cast_vote(sample_deal.id, sample_user.id, DOWN)

        assert await service.get_user_vote(sample_deal.id, sample_user.id) == UP
        assert await _counters(test_db, sample_deal.id) == (1, 0, 2)


class TestLookupsAndRepair:

    async def test_get_user_votes_for_page(self, test_db, sample_deal, sample_user):
        other_deal = await make_deal(test_db, title="Cheap SSD")
        untouched = await make_deal(test_db, title="Kettle")
        service = VoteService(test_db)
        await service.cast_vote(sample_deal.id, sample_user.id, UP)
        await service.cast_vote(other_deal.id, sample_user.id, DOWN)

        votes = await service.get_user_votes(
            [sample_deal.id, other_deal.id, untouched.id], sample_user.id
        )

        assert votes == {sample_deal.id: UP, other_deal.id: DOWN}
        assert await service.get_user_votes([sample_deal.id], None) == {}
        assert await service.get_user_vote(sample_deal.id, None) is None

    async def test_recalculate_repairs_drift(self, test_db, sample_deal, sample_user):
        service = VoteService(test_db)
        await service.cast_vote(sample_deal.id, sample_user.id, UP)

        sample_deal.upvotes = 7
        sample_deal.heat_score = 99
        await test_db.commit()

        drifted, counters = await service.recalculate_counters(sample_deal.id)

        assert drifted is True
        assert counters == (1, 0, 2)
        assert await _counters(test_db, sample_deal.id) == (1, 0, 2)

    async def test_recalculate_missing_deal(self, test_db):
        with pytest.raises(NotFoundError):
            await VoteService(test_db).recalculate_counters(uuid4())


class TestConcurrentVoting:
    """Separate sessions against a file database, one connection each."""

    @pytest_asyncio.fixture
    async def file_db(self, tmp_path):
        engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'votes.db'}")
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

        SessionLocal = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
        yield SessionLocal

        await engine.dispose()

    async def _vote(self, SessionLocal, deal_id, user_id, direction):
        async with SessionLocal() as session:
            result = await VoteService(session).cast_vote(deal_id, user_id, direction)
            await session.commit()
            return result

    async def test_concurrent_first_votes(self, file_db):
        voters = 8
        async with file_db() as session:
            users = [await make_user(session, f"crowd{i}") for i in range(voters)]
            deal = await make_deal(session, title="Flash sale")

        await asyncio.gather(*(self._vote(file_db, deal.id, u.id, UP) for u in users))

        async with file_db() as session:
            assert await _counters(session, deal.id) == (voters, 0, 2 * voters)
            assert await _ledger_count(session, deal_id=deal.id) == voters
            await session.commit()

    async def test_concurrent_same_user_votes_serialize(self, file_db):
        async with file_db() as session:
            user = await make_user(session, "doubleclick")
            deal = await make_deal(session, title="Flash sale")

        results = await asyncio.gather(
            self._vote(file_db, deal.id, user.id, UP),
            self._vote(file_db, deal.id, user.id, UP),
        )

        labels = sorted(r.transition.label for r in results)
        assert labels == ["none->up", "up->none"]

        async with file_db() as session:
            assert await _ledger_count(session, deal_id=deal.id) == 0
            drifted, counters = await VoteService(session).recalculate_counters(deal.id)
            assert drifted is False
            assert counters == (0, 0, 0)
            await session.commit()
