import logging

import pytest

from klondike.cards import build_deck
from klondike.history import Advance, Withdrawal
from klondike.talon import Talon


def window_sizes(talon, steps):
    sizes = []
    for _ in range(steps):
        talon.advance()
        sizes.append(talon.available)
    return sizes


def test_fresh_talon_shows_nothing():
    talon = Talon(build_deck()[:24])
    assert talon.visible_cards() == []
    assert talon.peek() is None


def test_24_card_cycle_is_eight_triples_then_wrap():
    talon = Talon(build_deck()[:24])
    expected = [3] * 8 + [0]
    assert window_sizes(talon, 18) == expected + expected
    assert (talon.pointer, talon.available) == (0, 0)


@pytest.mark.parametrize(
    "count,expected",
    [
        (23, [3, 3, 3, 3, 3, 3, 3, 2, 0]),
        (5, [3, 2, 0, 3]),
        (4, [3, 1, 0, 3]),
    ],
)
def test_short_remainder_is_revealed_before_wrapping(count, expected):
    talon = Talon(build_deck()[:count])
    assert window_sizes(talon, len(expected)) == expected


@pytest.mark.parametrize("count", [1, 2, 3])
def test_small_talon_toggles_between_hidden_and_all(count):
    talon = Talon(build_deck()[:count])
    assert window_sizes(talon, 4) == [count, 0, count, 0]


def test_empty_talon_advances_without_revealing():
    talon = Talon()
    talon.advance()
    assert talon.available == 0
    assert talon.history == [Advance(0, 0)]


def test_every_advance_is_logged_even_when_nothing_shows():
    talon = Talon(build_deck()[:6])
    window_sizes(talon, 3)
    assert len(talon.history) == 3


def test_peek_returns_rightmost_visible_card():
    deck = build_deck()[:24]
    talon = Talon(deck)
    for _ in range(3):
        talon.advance()
        window = talon.visible_cards()
        assert talon.peek().cards == (window[-1],)


def test_three_advances_show_positions_six_to_eight():
    deck = build_deck()[:24]
    talon = Talon(deck)
    window_sizes(talon, 3)
    assert talon.visible_cards() == deck[6:9]


def test_withdrawal_contracts_window_and_undo_reinserts():
    deck = build_deck()[:24]
    talon = Talon(deck)
    window_sizes(talon, 2)

    staged = talon.peek()
    withdrawn = staged.cards[0]
    assert withdrawn is deck[5]
    withdrawn.face_up = True
    talon.commit(staged)

    assert len(talon) == 23
    assert talon.available == 2
    assert talon.visible_cards() == deck[3:5]
    assert talon.history[-1] == Withdrawal(3, 3, withdrawn)

    assert talon.undo() is True
    assert talon.cards == deck
    assert talon.cards[5] is withdrawn
    assert withdrawn.face_up is False
    assert (talon.pointer, talon.available) == (3, 3)


def test_window_can_be_emptied_by_withdrawals():
    deck = build_deck()[:24]
    talon = Talon(deck)
    talon.advance()
    for _ in range(3):
        talon.commit(talon.peek())
    assert talon.available == 0
    assert talon.peek() is None
    talon.advance()
    assert talon.visible_cards() == deck[3:6]


def test_undo_of_advance_restores_cursor():
    talon = Talon(build_deck()[:24])
    window_sizes(talon, 9)
    assert (talon.pointer, talon.available) == (0, 0)
    assert talon.undo() is True
    assert (talon.pointer, talon.available) == (21, 3)
    assert talon.undo() is True
    assert (talon.pointer, talon.available) == (18, 3)


def test_undo_with_empty_log_returns_false():
    assert Talon(build_deck()[:3]).undo() is False


def test_advance_discards_pending_stage(caplog):
    talon = Talon(build_deck()[:24])
    talon.advance()
    staged = talon.peek()
    with caplog.at_level(logging.WARNING, logger="klondike.talon"):
        talon.advance()
        talon.commit(staged)
    assert "still pending" in caplog.text
    assert "nothing changed" in caplog.text
    assert len(talon) == 24


def test_restore_rejects_cursor_outside_sequence():
    with pytest.raises(ValueError):
        Talon.restore(build_deck()[:5], 4, 3, [])
