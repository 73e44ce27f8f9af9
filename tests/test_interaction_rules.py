"""Tests for scoring_core.interaction.rules."""

from __future__ import annotations

import math

import pytest

from scoring_core.errors import ConfigurationError
from scoring_core.interaction.rules import (
    DEFAULT_CONFIG,
    DEFAULT_SCORING_RULES,
    DEFAULT_TIER_THRESHOLDS,
    EventType,
    LeadScoringConfig,
    LeadTier,
    TierThreshold,
    next_tier,
    tier_for_score,
    validate_tier_thresholds,
)


class TestRuleTable:
    def test_every_vocabulary_type_has_a_rule(self):
        assert set(DEFAULT_SCORING_RULES) == {t.value for t in EventType}

    def test_capped_rules(self):
        assert DEFAULT_SCORING_RULES["time_on_page"].cap == 10
        assert DEFAULT_SCORING_RULES["scroll_depth"].cap == 5
        assert DEFAULT_SCORING_RULES["consecutive_days"].cap == 50

    def test_negative_rules(self):
        assert DEFAULT_SCORING_RULES["user_inactive"].points == -2
        assert DEFAULT_SCORING_RULES["bounce"].points == -1


class TestTierForScore:
    @pytest.mark.parametrize(
        "score, expected",
        [
            (-5, LeadTier.BROWSER),
            (0, LeadTier.BROWSER),
            (25, LeadTier.BROWSER),
            (26, LeadTier.ENGAGED),
            (75, LeadTier.ENGAGED),
            (76, LeadTier.SOFT_MEMBER),
            (150, LeadTier.SOFT_MEMBER),
            (151, LeadTier.HOT_LEAD),
            (10_000, LeadTier.HOT_LEAD),
        ],
    )
    def test_boundaries(self, score, expected):
        assert tier_for_score(score) == expected

    def test_monotonic(self):
        ranks = [tier_for_score(s).rank for s in range(-10, 300)]
        assert ranks == sorted(ranks)


class TestNextTier:
    def test_steps_up(self):
        upcoming = next_tier(LeadTier.ENGAGED)
        assert upcoming is not None
        assert upcoming.tier == LeadTier.SOFT_MEMBER
        assert upcoming.min_score == 76

    def test_top_has_no_next(self):
        assert next_tier(LeadTier.HOT_LEAD) is None


class TestThresholdValidation:
    def test_default_table_is_valid(self):
        validate_tier_thresholds(DEFAULT_TIER_THRESHOLDS)

    def test_gap_rejected(self):
        table = (
            TierThreshold(LeadTier.BROWSER, 0, 25),
            TierThreshold(LeadTier.ENGAGED, 30, 75),
            TierThreshold(LeadTier.HOT_LEAD, 76),
        )
        with pytest.raises(ConfigurationError, match="not contiguous"):
            validate_tier_thresholds(table)

    def test_overlap_rejected(self):
        table = (
            TierThreshold(LeadTier.BROWSER, 0, 25),
            TierThreshold(LeadTier.ENGAGED, 20),
        )
        with pytest.raises(ConfigurationError):
            validate_tier_thresholds(table)

    def test_closed_top_rejected(self):
        table = (
            TierThreshold(LeadTier.BROWSER, 0, 25),
            TierThreshold(LeadTier.ENGAGED, 26, 75),
        )
        with pytest.raises(ConfigurationError, match="open-ended"):
            validate_tier_thresholds(table)

    def test_out_of_order_rejected(self):
        table = (
            TierThreshold(LeadTier.ENGAGED, 0, 25),
            TierThreshold(LeadTier.BROWSER, 26),
        )
        with pytest.raises(ConfigurationError, match="tier order"):
            validate_tier_thresholds(table)

    def test_empty_rejected(self):
        with pytest.raises(ConfigurationError):
            validate_tier_thresholds(())

    def test_config_validates_on_construction(self):
        with pytest.raises(ConfigurationError):
            LeadScoringConfig(tier_thresholds=(TierThreshold(LeadTier.BROWSER, 0, 10),))

    def test_custom_two_tier_table(self):
        config = LeadScoringConfig(
            tier_thresholds=(
                TierThreshold(LeadTier.BROWSER, 0, 9),
                TierThreshold(LeadTier.HOT_LEAD, 10, math.inf),
            ),
        )
        assert tier_for_score(10, config) == LeadTier.HOT_LEAD
        assert next_tier(LeadTier.BROWSER, config).tier == LeadTier.HOT_LEAD

    def test_default_config_bands(self):
        assert DEFAULT_CONFIG.recency_bands == ((1, 10), (3, 5), (7, 2))
        assert DEFAULT_CONFIG.recency_cap == 50
