"""
Proposal distribution tests.

Validates that every sampler and its pmf agree:
1. Support covers the whole deck with strictly positive pmf
2. Total pmf mass under both conventions
3. Exact draw accounting (two index draws per card, one branch draw per mixture)
4. Fail-fast rejection of inconsistent configurations
"""

import sys
from pathlib import Path

import pytest

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from cardmc.deck import FULL_DECK, Card, Origin, Rank, Suit, TaggedCard, card_of, origin_of
from cardmc.errors import ConfigurationError
from cardmc.sampling.proposals import (
    DiscreteProposal,
    MixingWeights,
    MixtureProposal,
    PmfConvention,
    draw_card,
    draw_cards,
    face_biased_proposal,
    multi_proposal,
    pmf,
    red_biased_proposal,
    uniform_proposal,
)
from cardmc.sampling.random_source import RandomSource, as_random_source
from cardmc.sampling.theory import expected_face_pct, expected_rank, reference_targets, target_rank_mean

LEGACY = PmfConvention.LEGACY
NORMALIZED = PmfConvention.NORMALIZED


class CountingSource(RandomSource):
    """Seeded source that counts how often each primitive is used."""

    def __init__(self, seed=0):
        super().__init__(seed)
        self.random_calls = 0
        self.index_calls = 0

    def random(self):
        self.random_calls += 1
        return super().random()

    def index(self, n):
        self.index_calls += 1
        return super().index(n)


class ScriptedSource(RandomSource):
    """Returns scripted values instead of random ones."""

    def __init__(self, floats=(), indices=()):
        super().__init__(0)
        self.floats = list(floats)
        self.indices = list(indices)

    def random(self):
        return self.floats.pop(0)

    def index(self, n):
        return self.indices.pop(0) % n


def all_proposals():
    return [
        factory(convention)
        for convention in (LEGACY, NORMALIZED)
        for factory in (uniform_proposal, face_biased_proposal, red_biased_proposal)
    ] + [multi_proposal(convention=LEGACY), multi_proposal(convention=NORMALIZED)]


class TestPmfValues:
    """Closed-form pmf constants."""

    def test_support_is_full_deck(self):
        for proposal in all_proposals():
            assert all(proposal.pmf(card) > 0 for card in FULL_DECK), proposal
            assert len(proposal.support()) == 52, proposal

    def test_uniform_pmf(self):
        proposal = uniform_proposal()
        assert all(proposal.pmf(card) == pytest.approx(1 / 52) for card in FULL_DECK)
        assert proposal.total_mass() == pytest.approx(1.0, abs=1e-12)

    def test_face_biased_legacy_constants(self):
        proposal = face_biased_proposal()
        assert proposal.pmf(Card(Rank.KING, Suit.SPADES)) == pytest.approx(3 / 52)
        assert proposal.pmf(Card(Rank.TWO, Suit.HEARTS)) == pytest.approx(1 / 52)

    def test_red_biased_legacy_constants(self):
        proposal = red_biased_proposal()
        assert proposal.pmf(Card(Rank.TWO, Suit.HEARTS)) == pytest.approx(2 / 52)
        assert proposal.pmf(Card(Rank.TWO, Suit.CLUBS)) == pytest.approx(1 / 52)

    def test_legacy_masses_are_relative_densities(self):
        # Reference constants do not integrate to 1; the mass is reported, not rejected
        assert face_biased_proposal().total_mass() == pytest.approx(76 / 52)
        assert red_biased_proposal().total_mass() == pytest.approx(78 / 52)
        assert multi_proposal().total_mass() == pytest.approx(77 / 52)

    def test_normalized_masses_sum_to_one(self):
        for proposal in all_proposals():
            if proposal.convention is NORMALIZED:
                assert proposal.total_mass() == pytest.approx(1.0, abs=1e-9), proposal

    def test_normalized_constants(self):
        face = face_biased_proposal(NORMALIZED)
        red = red_biased_proposal(NORMALIZED)
        assert face.pmf(Card(Rank.JACK, Suit.CLUBS)) == pytest.approx(3 / 76)
        assert face.pmf(Card(Rank.FIVE, Suit.CLUBS)) == pytest.approx(1 / 76)
        assert red.pmf(Card(Rank.FIVE, Suit.DIAMONDS)) == pytest.approx(1 / 39)
        assert red.pmf(Card(Rank.FIVE, Suit.SPADES)) == pytest.approx(1 / 78)

    def test_pmf_boundary_function_strips_tags(self):
        proposal = face_biased_proposal()
        tagged = TaggedCard(Card(Rank.KING, Suit.SPADES), Origin.RED)
        assert pmf(proposal, tagged) == pytest.approx(3 / 52)

    def test_mixture_pmf_is_convex_combination(self):
        proposal = multi_proposal()
        card = Card(Rank.KING, Suit.HEARTS)
        assert proposal.pmf(card) == pytest.approx(0.5 * 3 / 52 + 0.5 * 2 / 52)


class TestSamplers:
    """Draw mechanics and determinism."""

    def test_slot_pools(self):
        assert len(face_biased_proposal().rank_pool) == 19
        assert len(red_biased_proposal().suit_pool) == 6
        assert len(uniform_proposal().rank_pool) == 13

    def test_seeded_draws_repeat(self):
        for proposal in all_proposals():
            first = draw_cards(proposal, 200, RandomSource(123))
            second = draw_cards(proposal, 200, RandomSource(123))
            assert first == second, proposal
            assert [origin_of(s) for s in first] == [origin_of(s) for s in second], proposal

    def test_int_seed_is_accepted(self):
        proposal = face_biased_proposal()
        assert draw_cards(proposal, 50, 7) == draw_cards(proposal, 50, 7)

    def test_different_seeds_differ(self):
        proposal = uniform_proposal()
        assert draw_cards(proposal, 50, 1) != draw_cards(proposal, 50, 2)

    def test_two_index_draws_per_card(self):
        rng = CountingSource()
        draw_cards(face_biased_proposal(), 100, rng)
        assert rng.index_calls == 200
        assert rng.random_calls == 0

    def test_mixture_draw_accounting(self):
        rng = CountingSource()
        draw_cards(multi_proposal(), 100, rng)
        assert rng.random_calls == 100
        assert rng.index_calls == 200

    def test_mixture_tags_the_branch_that_fired(self):
        proposal = multi_proposal()
        rng = ScriptedSource(floats=[0.3, 0.7], indices=[12, 0, 0, 0])
        first = draw_card(proposal, rng)
        second = draw_card(proposal, rng)
        assert isinstance(first, TaggedCard) and first.origin is Origin.FACE
        assert isinstance(second, TaggedCard) and second.origin is Origin.RED

    def test_face_pool_order(self):
        # Index 10 in the 19-slot pool is the first J slot
        proposal = face_biased_proposal()
        rng = ScriptedSource(indices=[10, 0])
        assert draw_card(proposal, rng) == Card(Rank.JACK, Suit.SPADES)

    def test_mixture_zero_weight_branch_never_fires(self):
        proposal = multi_proposal(mixing_weights={Origin.FACE: 1.0, Origin.RED: 0.0})
        samples = draw_cards(proposal, 200, RandomSource(5))
        assert all(s.origin is Origin.FACE for s in samples)

    def test_empirical_face_share(self):
        samples = draw_cards(face_biased_proposal(), 20000, RandomSource(11))
        share = sum(card_of(s).is_face for s in samples) / len(samples)
        assert share == pytest.approx(9 / 19, abs=0.02)

    def test_random_source_rejects_empty_range(self):
        with pytest.raises(ValueError):
            RandomSource(0).index(0)

    def test_as_random_source_rejects_unknown(self):
        with pytest.raises(TypeError):
            as_random_source("seed")


class TestConfigurationErrors:
    """Inconsistent proposals fail at construction."""

    def test_configuration_error_is_value_error(self):
        assert issubclass(ConfigurationError, ValueError)

    def test_mixing_weights_must_sum_to_one(self):
        with pytest.raises(ConfigurationError):
            MixingWeights({Origin.FACE: 0.6, Origin.RED: 0.6})

    def test_negative_mixing_weight(self):
        with pytest.raises(ConfigurationError):
            MixingWeights({Origin.FACE: 1.5, Origin.RED: -0.5})

    def test_mixing_weights_accept_origin_names(self):
        weights = MixingWeights.coerce({"face": 0.25, "red": 0.75})
        assert weights[Origin.RED] == pytest.approx(0.75)

    def test_unknown_origin_name(self):
        with pytest.raises(ConfigurationError):
            MixingWeights.coerce({"blue": 1.0})

    def test_mixture_weights_must_match_components(self):
        with pytest.raises(ConfigurationError):
            MixtureProposal({Origin.FACE: face_biased_proposal()}, {Origin.RED: 1.0})

    def test_pmf_zero_where_sampler_draws(self):
        with pytest.raises(ConfigurationError):
            DiscreteProposal("broken", pmf=lambda card: 0.0 if card.is_face else 1 / 52)

    def test_negative_pmf(self):
        with pytest.raises(ConfigurationError):
            DiscreteProposal("negative", pmf=lambda card: -1.0)

    def test_normalized_pmf_must_match_sampler(self):
        with pytest.raises(ConfigurationError):
            DiscreteProposal(
                "mislabeled",
                rank_slots={Rank.KING: 3},
                convention=NORMALIZED,
                pmf=lambda card: 1 / 52,
            )

    def test_legacy_pmf_must_be_proportional_to_sampler(self):
        # Draws face cards three times as often but claims a flat pmf
        with pytest.raises(ConfigurationError):
            DiscreteProposal(
                "flat claim",
                rank_slots={Rank.JACK: 3, Rank.QUEEN: 3, Rank.KING: 3},
                pmf=lambda card: 1 / 52,
            )

    def test_legacy_pmf_may_rescale_sampler(self):
        proposal = DiscreteProposal(
            "rescaled",
            rank_slots={Rank.KING: 2},
            pmf=lambda card: (2 if card.rank is Rank.KING else 1) / 52,
        )
        assert proposal.total_mass() == pytest.approx(56 / 52)

    def test_negative_slot_count(self):
        with pytest.raises(ConfigurationError):
            DiscreteProposal("negative", rank_slots={Rank.ACE: -1})

    def test_empty_pool(self):
        with pytest.raises(ConfigurationError):
            DiscreteProposal("empty", suit_slots={suit: 0 for suit in Suit})

    def test_zero_slots_shrink_support(self):
        proposal = DiscreteProposal("no jacks", rank_slots={Rank.JACK: 0})
        assert len(proposal.support()) == 48
        assert proposal.pmf(Card(Rank.JACK, Suit.SPADES)) == 0.0

    def test_mixed_conventions_warn(self):
        with pytest.warns(UserWarning):
            MixtureProposal({
                Origin.FACE: face_biased_proposal(LEGACY),
                Origin.RED: red_biased_proposal(NORMALIZED),
            })

    def test_draw_cards_rejects_negative_count(self):
        with pytest.raises(ValueError):
            draw_cards(uniform_proposal(), -1, 0)


class TestTheory:
    """Exact expectations under each sampling law."""

    def test_target_mean(self):
        assert target_rank_mean() == pytest.approx(7.0)

    def test_face_biased_mean_rank(self):
        assert expected_rank(face_biased_proposal()) == pytest.approx(163 / 19)
        assert expected_rank(face_biased_proposal()) == pytest.approx(8.58, abs=0.01)

    def test_red_bias_leaves_rank_mean(self):
        assert expected_rank(red_biased_proposal()) == pytest.approx(7.0)

    def test_face_percentages(self):
        assert expected_face_pct(uniform_proposal()) == pytest.approx(300 / 13)
        assert expected_face_pct(face_biased_proposal()) == pytest.approx(900 / 19)

    def test_reference_targets(self):
        targets = reference_targets()
        assert targets['uniform_avg_rank'] == pytest.approx(7.0)
        assert targets['weighted_avg'] == pytest.approx(7.0)
        assert targets['face_biased_naive_avg'] == pytest.approx(8.579, abs=1e-3)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
