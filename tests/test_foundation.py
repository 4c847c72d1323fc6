import logging
import random

import pytest

from klondike.cards import Card, Rank, Suit
from klondike.errors import RuleViolation, Violation
from klondike.foundation import Foundation
from klondike.history import Insert, Removal


@pytest.mark.parametrize("rank", [rank for rank in Rank if rank is not Rank.ACE])
@pytest.mark.parametrize("suit", list(Suit))
def test_empty_foundation_rejects_non_ace(suit, rank):
    foundation = Foundation()
    with pytest.raises(RuleViolation) as excinfo:
        foundation.add(Card(suit, rank))
    assert excinfo.value.reason is Violation.FIRST_CARD_NOT_ACE
    assert foundation.cards == []


@pytest.mark.parametrize("suit", list(Suit))
def test_empty_foundation_accepts_ace_face_up(suit):
    foundation = Foundation()
    ace = Card(suit, Rank.ACE)
    foundation.add(ace)
    assert foundation.cards == [ace]
    assert ace.face_up
    assert foundation.history == [Insert((ace,))]


@pytest.mark.parametrize(
    "code",
    [
        "2D",  # other suit
        "3H",  # skips a rank
        "AH",  # same rank again
    ],
)
def test_follow_up_must_be_next_rank_same_suit(code):
    foundation = Foundation()
    foundation.add(Card.from_code("AH"))
    with pytest.raises(RuleViolation) as excinfo:
        foundation.add(Card.from_code(code))
    assert excinfo.value.reason is Violation.RANK_OR_SUIT_MISMATCH
    assert len(foundation) == 1


def test_random_additions_keep_ascending_single_suit():
    rng = random.Random(5)
    foundation = Foundation()
    pool = [Card(suit, rank) for suit in Suit for rank in Rank]
    for _ in range(2000):
        try:
            foundation.add(rng.choice(pool))
        except RuleViolation:
            pass
    stored = foundation.cards
    assert stored
    assert [card.rank for card in stored] == list(Rank)[: len(stored)]
    assert len({card.suit for card in stored}) == 1


def test_is_king_only_for_completed_pile():
    foundation = Foundation()
    assert foundation.is_king() is False
    for rank in Rank:
        assert foundation.is_king() is False
        foundation.add(Card(Suit.CLUB, rank))
    assert foundation.is_king() is True


def test_peek_on_empty_returns_none():
    assert Foundation().peek() is None


def test_commit_and_undo_restore_top_card():
    foundation = Foundation()
    ace, two = Card.from_code("AS"), Card.from_code("2S")
    foundation.add(ace)
    foundation.add(two)

    staged = foundation.peek()
    assert staged.cards == (two,)
    foundation.commit(staged)
    assert foundation.cards == [ace]
    assert foundation.history[-1] == Removal((two,))

    assert foundation.undo() is True
    assert foundation.cards == [ace, two]
    assert foundation.undo() is True
    assert foundation.cards == [ace]


def test_undo_with_empty_log_returns_false():
    assert Foundation().undo() is False


def test_commit_without_stage_warns(caplog):
    foundation = Foundation()
    foundation.add(Card.from_code("AD"))
    staged = foundation.peek()
    foundation.add(Card.from_code("2D"))
    with caplog.at_level(logging.WARNING, logger="klondike.foundation"):
        foundation.commit(staged)
    assert "still pending" in caplog.text or "nothing changed" in caplog.text
    assert len(foundation) == 2
