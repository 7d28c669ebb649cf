"""Tests for the pure heat score rules."""

import pytest

from dealheat.models.deal_vote import VoteDirection
from dealheat.services.heat_score import (
    ScoreDelta,
    TRANSITION_TABLE,
    Transition,
    heat_level,
    heat_score_for,
    resolve_transition,
    score_delta,
)

UP = VoteDirection.UP
DOWN = VoteDirection.DOWN


@pytest.mark.parametrize(
    "old,new,expected",
    [
        (None, UP, (1, 0, 2)),
        (None, DOWN, (0, 1, -1)),
        (UP, None, (-1, 0, -2)),
        (DOWN, None, (0, -1, 1)),
        (DOWN, UP, (1, -1, 3)),
        (UP, DOWN, (-1, 1, -3)),
    ],
)
def test_transition_deltas(old, new, expected):
    delta = score_delta(Transition(old, new))
    assert (delta.upvotes, delta.downvotes, delta.heat_score) == expected


def test_table_has_exactly_six_transitions():
    assert len(TRANSITION_TABLE) == 6


@pytest.mark.parametrize("old,new", [(None, None), (UP, UP), (DOWN, DOWN)])
def test_illegal_transitions_raise(old, new):
    with pytest.raises(ValueError, match="Not a valid vote transition"):
        score_delta(Transition(old, new))


def test_retraction_undoes_the_original_vote():
    for direction in (UP, DOWN):
        cast = score_delta(Transition(None, direction))
        retract = score_delta(Transition(direction, None))
        assert retract == -cast


def test_flip_equals_retract_then_cast():
    for old, new in ((UP, DOWN), (DOWN, UP)):
        retract = score_delta(Transition(old, None))
        cast = score_delta(Transition(None, new))
        flip = score_delta(Transition(old, new))
        assert flip == ScoreDelta(
            retract.upvotes + cast.upvotes,
            retract.downvotes + cast.downvotes,
            retract.heat_score + cast.heat_score,
        )


def test_heat_delta_matches_counter_delta():
    for delta in TRANSITION_TABLE.values():
        assert delta.heat_score == heat_score_for(delta.upvotes, delta.downvotes)


class TestResolveTransition:

    def test_first_vote(self):
        assert resolve_transition(None, UP) == Transition(None, UP)
        assert resolve_transition(None, DOWN) == Transition(None, DOWN)

    def test_same_direction_retracts(self):
        t = resolve_transition(UP, UP)
        assert t == Transition(UP, None)
        assert t.is_retraction
        assert not t.is_flip

    def test_opposite_direction_flips(self):
        t = resolve_transition(UP, DOWN)
        assert t == Transition(UP, DOWN)
        assert t.is_flip
        assert not t.is_retraction

    def test_label(self):
        assert Transition(None, UP).label == "none->up"
        assert Transition(DOWN, None).label == "down->none"


@pytest.mark.parametrize(
    "score,level",
    [
        (-5, "cold"),
        (0, "cold"),
        (9, "cold"),
        (10, "warm"),
        (19, "warm"),
        (20, "hot"),
        (49, "hot"),
        (50, "blazing"),
        (500, "blazing"),
    ],
)
def test_heat_level_tiers(score, level):
    assert heat_level(score) == level
