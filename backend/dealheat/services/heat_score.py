"""Heat score rules: how a vote transition moves a deal's cached counters.

A vote action is a transition between the user's previous direction and the
new one, either of which may be ``None``. Each legal transition maps to a
fixed ``(upvotes, downvotes, heat_score)`` delta. An upvote is worth +2 heat
and a downvote -1; flips are listed explicitly rather than composed from two
single-direction steps.

Everything here is pure: no I/O and no session. VoteService applies the
deltas to the database.
"""

from dataclasses import dataclass
from typing import Dict, Optional

from dealheat.models.deal_vote import VoteDirection

UPVOTE_WEIGHT = 2
DOWNVOTE_WEIGHT = 1

# Display tiers, lowest bound first match wins
HEAT_LEVELS = (
    (50, "blazing"),
    (20, "hot"),
    (10, "warm"),
)
COLD = "cold"


@dataclass(frozen=True)
class Transition:
    """A single vote action: previous direction -> new direction."""

    old: Optional[VoteDirection]
    new: Optional[VoteDirection]

    @property
    def is_flip(self) -> bool:
        return self.old is not None and self.new is not None and self.old != self.new

    @property
    def is_retraction(self) -> bool:
        return self.old is not None and self.new is None

    @property
    def label(self) -> str:
        old = self.old.value if self.old else "none"
        new = self.new.value if self.new else "none"
        return f"{old}->{new}"


@dataclass(frozen=True)
class ScoreDelta:
    """Amounts to add to a deal's cached counters."""

    upvotes: int
    downvotes: int
    heat_score: int

    def __neg__(self) -> "ScoreDelta":
        return ScoreDelta(-self.upvotes, -self.downvotes, -self.heat_score)


UP = VoteDirection.UP
DOWN = VoteDirection.DOWN

TRANSITION_TABLE: Dict[Transition, ScoreDelta] = {
    Transition(None, UP): ScoreDelta(upvotes=1, downvotes=0, heat_score=2),
    Transition(None, DOWN): ScoreDelta(upvotes=0, downvotes=1, heat_score=-1),
    Transition(UP, None): ScoreDelta(upvotes=-1, downvotes=0, heat_score=-2),
    Transition(DOWN, None): ScoreDelta(upvotes=0, downvotes=-1, heat_score=1),
    Transition(DOWN, UP): ScoreDelta(upvotes=1, downvotes=-1, heat_score=3),
    Transition(UP, DOWN): ScoreDelta(upvotes=-1, downvotes=1, heat_score=-3),
}


def resolve_transition(
    current: Optional[VoteDirection],
    requested: VoteDirection,
) -> Transition:
    """Decide what a vote request does given the user's current vote.

    Re-selecting the active direction retracts it (toggle); anything else
    moves the vote to the requested direction.

    Args:
        current: Direction stored in the ledger, or None if no vote
        requested: Direction the user clicked

    Returns:
        The transition to apply
    """
    if current == requested:
        return Transition(current, None)
    return Transition(current, requested)


def score_delta(transition: Transition) -> ScoreDelta:
    """Look up the counter deltas for a transition.

    Raises:
        ValueError: If the transition is not a legal vote action
            (e.g. none->none or up->up)
    """
    try:
        return TRANSITION_TABLE[transition]
    except KeyError:
        raise ValueError(f"Not a valid vote transition: {transition.label}") from None


def heat_score_for(upvotes: int, downvotes: int) -> int:
    """Heat score implied by a set of current votes."""
    return UPVOTE_WEIGHT * upvotes - DOWNVOTE_WEIGHT * downvotes


def heat_level(heat_score: int) -> str:
    """Map a heat score to its display tier ('blazing', 'hot', 'warm', 'cold')."""
    for threshold, level in HEAT_LEVELS:
        if heat_score >= threshold:
            return level
    return COLD
