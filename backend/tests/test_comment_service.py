"""Tests for deal comments."""

from uuid import uuid4

from sqlalchemy import func, select

from dealheat.models import Comment, DealStatus
from dealheat.services.comment_service import CommentService
from dealheat.services.moderation_service import ModerationService

from conftest import make_deal


class TestComments:

    async def test_comment_and_reply(self, test_db, sample_deal, sample_user, other_user):
        service = CommentService(test_db)

        parent = await service.create_comment(sample_deal.id, sample_user.id, "Works with the coupon too")
        reply = await service.create_comment(
            sample_deal.id, other_user.id, "Confirmed, thanks", parent_id=parent.id
        )
        await test_db.commit()

        assert parent.parent_id is None
        assert parent.user.username == "alice"
        assert reply.parent_id == parent.id

        comments = await service.get_comments_for_deal(sample_deal.id)
        assert [c.id for c in comments] == [parent.id, reply.id]
        assert [c.user.username for c in comments] == ["alice", "bob"]

    async def test_reply_must_stay_on_the_same_deal(self, test_db, sample_deal, sample_user):
        other_deal = await make_deal(test_db, title="Another deal")
        service = CommentService(test_db)
        elsewhere = await service.create_comment(other_deal.id, sample_user.id, "Over here")

        assert await service.create_comment(
            sample_deal.id, sample_user.id, "Wrong thread", parent_id=elsewhere.id
        ) is None
        assert await service.create_comment(
            sample_deal.id, sample_user.id, "Ghost thread", parent_id=uuid4()
        ) is None

    async def test_only_approved_deals_take_comments(self, test_db, sample_user):
        pending = await make_deal(test_db, title="Under review", status=DealStatus.PENDING)
        service = CommentService(test_db)

        assert await service.create_comment(pending.id, sample_user.id, "Too early") is None
        assert await service.get_comments_for_deal(pending.id) is None
        assert await service.get_comments_for_deal(uuid4()) is None

        count = await test_db.execute(select(func.count(Comment.id)))
        assert count.scalar() == 0

    async def test_deal_without_comments_lists_empty(self, test_db, sample_deal):
        assert await CommentService(test_db).get_comments_for_deal(sample_deal.id) == []

    async def test_deleting_deal_removes_its_comments(self, test_db, sample_deal, sample_user):
        keep = await make_deal(test_db, title="Still live")
        service = CommentService(test_db)
        parent = await service.create_comment(sample_deal.id, sample_user.id, "Nice")
        await service.create_comment(sample_deal.id, sample_user.id, "Reply", parent_id=parent.id)
        kept = await service.create_comment(keep.id, sample_user.id, "Unrelated")
        await test_db.commit()

        assert await ModerationService(test_db).delete_deal(sample_deal.id) is True
        await test_db.commit()

        remaining = await test_db.execute(select(Comment.id))
        assert list(remaining.scalars().all()) == [kept.id]
