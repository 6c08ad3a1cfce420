"""
Poker straight demo tests.

Straight detection is ace-high only; the biased dealer must actually
oversample straights, and the tally must count only both-straight hands.
"""

import sys
from math import comb
from pathlib import Path

import pytest

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from cardmc.deck import Card, Rank, Suit
from cardmc.errors import ConfigurationError
from cardmc.poker import (
    PROPOSAL_PROBABILITIES,
    HandProposal,
    Matchup,
    PokerDriver,
    deal_matchup,
    deal_straight_biased_hand,
    deal_uniform_hand,
    has_straight,
    straight_biased_probability,
    tally,
    uniform_straight_probability,
)
from cardmc.sampling.random_source import RandomSource


def hand(*specs):
    return tuple(Card(rank, suit) for rank, suit in specs)


class TestStraightDetection:

    def test_low_straight(self):
        h = hand((Rank.TWO, Suit.SPADES), (Rank.THREE, Suit.HEARTS), (Rank.FOUR, Suit.CLUBS),
                 (Rank.FIVE, Suit.SPADES), (Rank.SIX, Suit.DIAMONDS))
        assert has_straight(h)

    def test_broadway(self):
        h = hand((Rank.ACE, Suit.SPADES), (Rank.KING, Suit.HEARTS), (Rank.QUEEN, Suit.CLUBS),
                 (Rank.JACK, Suit.SPADES), (Rank.TEN, Suit.DIAMONDS))
        assert has_straight(h)

    def test_wheel_does_not_count(self):
        h = hand((Rank.ACE, Suit.SPADES), (Rank.TWO, Suit.HEARTS), (Rank.THREE, Suit.CLUBS),
                 (Rank.FOUR, Suit.SPADES), (Rank.FIVE, Suit.DIAMONDS))
        assert not has_straight(h)

    def test_pair_is_not_a_straight(self):
        h = hand((Rank.TWO, Suit.SPADES), (Rank.TWO, Suit.HEARTS), (Rank.THREE, Suit.CLUBS),
                 (Rank.FOUR, Suit.SPADES), (Rank.FIVE, Suit.DIAMONDS))
        assert not has_straight(h)

    def test_uniform_probability(self):
        assert uniform_straight_probability() == pytest.approx(9 * 4 ** 5 / comb(52, 5))
        assert uniform_straight_probability() == pytest.approx(0.003546, abs=1e-6)


class TestDealing:

    def test_uniform_hand_is_distinct(self):
        rng = RandomSource(1)
        for _ in range(200):
            h = deal_uniform_hand(rng)
            assert len(h) == 5 and len(set(h)) == 5

    def test_uniform_hand_size_bounds(self):
        with pytest.raises(ConfigurationError):
            deal_uniform_hand(RandomSource(0), size=0)
        with pytest.raises(ConfigurationError):
            deal_uniform_hand(RandomSource(0), size=53)

    def test_whole_deck_hand(self):
        assert len(set(deal_uniform_hand(RandomSource(2), size=52))) == 52

    def test_forced_straight(self):
        rng = RandomSource(3)
        assert all(has_straight(deal_straight_biased_hand(rng, straight_probability=1.0)) for _ in range(100))

    def test_biased_straight_rate(self):
        rng = RandomSource(4)
        n = 5000
        rate = sum(has_straight(deal_straight_biased_hand(rng)) for _ in range(n)) / n
        assert rate == pytest.approx(straight_biased_probability(), abs=0.03)

    def test_seeded_deals_repeat(self):
        assert deal_matchup(RandomSource(5)) == deal_matchup(RandomSource(5))

    def test_proposal_mix(self):
        assert sum(PROPOSAL_PROBABILITIES.values()) == pytest.approx(1.0)
        rng = RandomSource(6)
        n = 5000
        matchups = [deal_matchup(rng) for _ in range(n)]
        for proposal, p in PROPOSAL_PROBABILITIES.items():
            observed = sum(m.proposal is proposal for m in matchups) / n
            assert observed == pytest.approx(p, abs=0.03), proposal

    def test_winner_only_when_both_straights(self):
        rng = RandomSource(7)
        for _ in range(2000):
            m = deal_matchup(rng)
            if m.both_straights:
                assert m.winner in ("A", "B")
            else:
                assert m.winner is None


class TestTally:

    def test_empty(self):
        result = tally([])
        assert result.hands_dealt == 0
        assert result.win_rate == 0.0
        assert result.recent == ()

    def test_counts(self):
        matchups = [
            Matchup((), (), HandProposal.STRAIGHT_HEAVY, True, True, "A"),
            Matchup((), (), HandProposal.STRAIGHT_HEAVY, True, True, "B"),
            Matchup((), (), HandProposal.MIXED, True, False),
            Matchup((), (), HandProposal.UNIFORM, False, False),
            Matchup((), (), HandProposal.STRAIGHT_HEAVY, True, True, "A"),
        ]
        result = tally(matchups, recent=2)
        assert result.hands_dealt == 5
        assert result.both_straights == 3
        assert result.player_a_wins == 2
        assert result.win_rate == pytest.approx(2 / 3)
        assert result.recent == (matchups[1], matchups[4])


class TestPokerDriver:

    def test_run_to_ceiling(self):
        driver = PokerDriver(RandomSource(8), batch_size=20, sample_limit=200)
        steps = 0
        while driver.step() is not None:
            steps += 1
        assert steps == 10
        assert driver.current.hands_dealt == 200
        assert driver.finished

    def test_reset(self):
        driver = PokerDriver(RandomSource(9), sample_limit=40)
        driver.run()
        driver.reset()
        assert driver.current.hands_dealt == 0
        assert not driver.finished

    def test_defaults(self):
        driver = PokerDriver()
        assert (driver.batch_size, driver.sample_limit) == (20, 10000)

    def test_invalid_settings(self):
        with pytest.raises(ConfigurationError):
            PokerDriver(batch_size=0)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
