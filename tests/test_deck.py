"""
Deck model tests.

Validates the sample space: 52 distinct cards, rank values, face/red
predicates, and the "{rank}{suit}" rendering contract.
"""

import dataclasses
import sys
from pathlib import Path

import pytest

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from cardmc.deck import (
    FULL_DECK,
    RANKS,
    SUITS,
    Card,
    Origin,
    Rank,
    Suit,
    TaggedCard,
    card_of,
    format_card,
    format_hand,
    is_face_card,
    is_red,
    origin_of,
    poker_rank_value,
    rank_value,
)


class TestSampleSpace:
    """The deck is exactly 13 ranks x 4 suits."""

    def test_full_deck_has_52_distinct_cards(self):
        assert len(FULL_DECK) == 52
        assert len(set(FULL_DECK)) == 52

    def test_rank_values(self):
        assert [rank_value(r) for r in RANKS] == list(range(1, 14))
        assert rank_value(Rank.ACE) == 1
        assert rank_value(Rank.TEN) == 10
        assert rank_value(Rank.KING) == 13

    def test_mean_rank_of_deck_is_seven(self):
        assert sum(rank_value(c.rank) for c in FULL_DECK) / 52 == pytest.approx(7.0)

    def test_face_cards(self):
        faces = [r for r in RANKS if is_face_card(r)]
        assert faces == [Rank.JACK, Rank.QUEEN, Rank.KING]
        assert sum(1 for c in FULL_DECK if c.is_face) == 12

    def test_red_suits(self):
        assert [s for s in SUITS if is_red(s)] == [Suit.HEARTS, Suit.DIAMONDS]
        assert sum(1 for c in FULL_DECK if c.is_red) == 26

    def test_invalid_rank_rejected_at_boundary(self):
        with pytest.raises(ValueError):
            Rank("1")
        with pytest.raises(ValueError):
            Suit("x")

    def test_poker_values_are_ace_high(self):
        assert poker_rank_value(Rank.ACE) == 14
        assert poker_rank_value(Rank.KING) == 13
        assert poker_rank_value(Rank.TWO) == 2


class TestCards:
    """Cards are immutable values; tags are provenance only."""

    def test_card_is_frozen(self):
        card = Card(Rank.KING, Suit.SPADES)
        with pytest.raises(dataclasses.FrozenInstanceError):
            card.rank = Rank.QUEEN

    def test_tagged_card_identity_is_the_card(self):
        card = Card(Rank.TWO, Suit.HEARTS)
        face = TaggedCard(card, Origin.FACE)
        red = TaggedCard(card, Origin.RED)
        assert card_of(face) == card_of(red) == card
        assert face.rank is Rank.TWO and face.suit is Suit.HEARTS
        assert origin_of(face) is Origin.FACE
        assert origin_of(card) is None

    def test_tag_does_not_change_equality(self):
        card = Card(Rank.KING, Suit.HEARTS)
        face = TaggedCard(card, Origin.FACE)
        red = TaggedCard(card, Origin.RED)
        assert face == red
        assert hash(face) == hash(red)
        assert face.origin is not red.origin

    def test_format_card(self):
        assert format_card(Card(Rank.KING, Suit.SPADES)) == "K♠️"
        assert format_card(Card(Rank.TEN, Suit.HEARTS)) == "10♥️"
        assert str(Card(Rank.ACE, Suit.CLUBS)) == "A♣️"

    def test_format_tagged_card_ignores_tag(self):
        tagged = TaggedCard(Card(Rank.QUEEN, Suit.DIAMONDS), Origin.RED)
        assert format_card(tagged) == "Q♦️"

    def test_format_hand(self):
        hand = [Card(Rank.KING, Suit.SPADES), Card(Rank.TWO, Suit.HEARTS)]
        assert format_hand(hand) == "K♠️ 2♥️"


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
