"""Services module for business logic and data operations.

Services own data access and the domain rules of the DealHeat platform:
voting and heat scoring, listings, submissions and moderation.
"""

from dealheat.services.deal_service import DealService
from dealheat.services.moderation_service import ModerationService
from dealheat.services.vote_service import VoteCounters, VoteResult, VoteService

__all__ = [
    "DealService",
    "ModerationService",
    "VoteCounters",
    "VoteResult",
    "VoteService",
]
