"""Rebuild cached vote counters from the vote ledger.

Walks every deal, counts its ledger rows and repairs upvotes, downvotes
and heat_score wherever they have drifted.

Usage:
    cd backend
    python -m dealheat.db.recalculate

    # Dry-run (report drift without writing to DB):
    python -m dealheat.db.recalculate --dry-run

    # Limit to the N most recent deals:
    python -m dealheat.db.recalculate --limit 20
"""

import argparse
import asyncio
import time
from typing import Optional

from sqlalchemy import select

from dealheat.core.logging import configure_logging
from dealheat.db.session import async_session_factory
from dealheat.models.deal import Deal
from dealheat.services.vote_service import VoteService

BATCH_SIZE = 50


async def recalculate_all(
    dry_run: bool = False,
    limit: Optional[int] = None,
    session_factory=async_session_factory,
) -> dict:
    """Recalculate counters for every deal, one batch per transaction.

    Args:
        dry_run: If True, report drift but roll back every batch.
        limit: Maximum number of deals to check (None = all).
        session_factory: Session factory to use (tests pass their own).

    Returns:
        Stats dict with ``checked``, ``drifted`` and ``drifted_ids``.
    """
    async with session_factory() as session:
        query = select(Deal.id).order_by(Deal.created_at.desc())
        if limit:
            query = query.limit(limit)
        deal_ids = list((await session.execute(query)).scalars().all())

    stats = {"checked": 0, "drifted": 0, "drifted_ids": []}

    for batch_start in range(0, len(deal_ids), BATCH_SIZE):
        batch = deal_ids[batch_start : batch_start + BATCH_SIZE]

        async with session_factory() as session:
            service = VoteService(session)
            for deal_id in batch:
                drifted, _ = await service.recalculate_counters(deal_id)
                stats["checked"] += 1
                if drifted:
                    stats["drifted"] += 1
                    stats["drifted_ids"].append(deal_id)

            if dry_run:
                await session.rollback()
            else:
                await session.commit()

    return stats


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Rebuild deal vote counters from the vote ledger",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Report drifted deals without writing to the database",
    )
    parser.add_argument(
        "--limit",
        type=int,
        default=None,
        metavar="N",
        help="Only check the N most recent deals",
    )
    args = parser.parse_args()

    configure_logging()
    print("=" * 70)
    print("DealHeat - Vote Counter Recalculation")
    print(f"Mode : {'DRY RUN (no DB writes)' if args.dry_run else 'LIVE (writing to DB)'}")
    print(f"Limit: {args.limit or 'all deals'}")
    print("=" * 70)

    start_time = time.monotonic()
    stats = asyncio.run(recalculate_all(dry_run=args.dry_run, limit=args.limit))
    elapsed = time.monotonic() - start_time

    print(f"Checked {stats['checked']} deal(s), {stats['drifted']} drifted, in {elapsed:.1f}s")
    for deal_id in stats["drifted_ids"]:
        print(f"  repaired: {deal_id}" if not args.dry_run else f"  drift: {deal_id}")


if __name__ == "__main__":
    main()
