"""Tests for scoring_core.interaction.actions."""

from __future__ import annotations

import logging

from conftest import NOW, make_event

from scoring_core.interaction.actions import (
    ActionDispatcher,
    actions_for_transition,
    process_interaction,
)
from scoring_core.interaction.pipeline import LeadScore
from scoring_core.interaction.rules import LeadTier
from scoring_core.telemetry import InMemoryTelemetrySink


def _score(total=0, tier=LeadTier.BROWSER, probability=0):
    return LeadScore(
        total=total,
        engagement=0,
        readiness=0,
        behavioral=0,
        tier=tier,
        conversion_probability=probability,
    )


class TestActionsForTransition:
    def test_engaged_to_soft_member(self):
        actions = actions_for_transition(
            _score(60, LeadTier.ENGAGED), _score(90, LeadTier.SOFT_MEMBER),
        )
        assert actions == [
            "tier_upgrade:soft-member",
            "send_membership_welcome",
            "unlock_premium_content",
            "assign_referrer_connection",
        ]

    def test_hot_lead_actions(self):
        actions = actions_for_transition(
            _score(140, LeadTier.SOFT_MEMBER), _score(160, LeadTier.HOT_LEAD),
        )
        assert "notify_sales_team" in actions
        assert "enable_direct_messaging" in actions
        assert "priority_support_access" in actions

    def test_unchanged_score_emits_nothing(self):
        score = _score(90, LeadTier.SOFT_MEMBER, 50)
        assert actions_for_transition(score, score) == []

    def test_idempotent(self):
        prior = _score(20, LeadTier.BROWSER)
        new = _score(120, LeadTier.SOFT_MEMBER, 85)
        first = actions_for_transition(prior, new, triggering_event_type="tool_complete")
        second = actions_for_transition(prior, new, triggering_event_type="tool_complete")
        assert first == second
        assert len(first) == len(set(first))

    def test_milestone_crossed_once(self):
        assert "send_achievement_badge" in actions_for_transition(
            _score(95, LeadTier.SOFT_MEMBER), _score(105, LeadTier.SOFT_MEMBER),
        )
        assert "send_achievement_badge" not in actions_for_transition(
            _score(105, LeadTier.SOFT_MEMBER), _score(115, LeadTier.SOFT_MEMBER),
        )

    def test_conversion_threshold(self):
        actions = actions_for_transition(
            _score(160, LeadTier.HOT_LEAD, 75), _score(170, LeadTier.HOT_LEAD, 82),
        )
        assert actions == ["trigger_conversion_sequence", "offer_office_visit"]

    def test_tool_completion_followup(self):
        score = _score(50, LeadTier.ENGAGED)
        first = actions_for_transition(
            score, score, triggering_event_type="tool_complete", tool_completions=1,
        )
        second = actions_for_transition(
            score, score, triggering_event_type="tool_complete", tool_completions=2,
        )
        assert first == ["send_tool_completion_followup"]
        assert second == ["send_tool_completion_followup", "unlock_advanced_tools"]

    def test_downgrade_still_emits_tier_token(self):
        actions = actions_for_transition(
            _score(30, LeadTier.ENGAGED), _score(20, LeadTier.BROWSER),
        )
        assert actions == ["tier_upgrade:browser"]


class TestProcessInteraction:
    def test_first_event_compares_against_baseline(self):
        outcome = process_interaction([], make_event("email_capture"), NOW)
        assert outcome.previous_score == LeadScore.baseline()
        assert outcome.new_score.total == 60
        assert outcome.tier_changed is True
        assert outcome.actions[0] == "tier_upgrade:engaged"

    def test_second_completion_unlocks_tools(self):
        prior = [make_event("tool_complete")]
        outcome = process_interaction(prior, make_event("tool_complete"), NOW)
        assert "send_tool_completion_followup" in outcome.actions
        assert "unlock_advanced_tools" in outcome.actions

    def test_third_completion_does_not_unlock_again(self):
        prior = [make_event("tool_complete"), make_event("tool_complete")]
        outcome = process_interaction(prior, make_event("tool_complete"), NOW)
        assert "unlock_advanced_tools" not in outcome.actions

    def test_unknown_event_changes_nothing(self):
        prior = [make_event("email_capture")]
        outcome = process_interaction(prior, make_event("custom_xyz"), NOW)
        assert outcome.new_score == outcome.previous_score
        assert outcome.tier_changed is False
        assert outcome.actions == []


class TestActionDispatcher:
    def test_routes_by_prefix(self):
        calls = []
        dispatcher = ActionDispatcher()
        dispatcher.register("tier_upgrade", lambda user, arg: calls.append((user, arg)))
        report = dispatcher.dispatch("u1", ["tier_upgrade:hot-lead"])
        assert calls == [("u1", "hot-lead")]
        assert report.succeeded == ["tier_upgrade:hot-lead"]
        assert report.ok

    def test_failure_does_not_block_later_tokens(self, caplog):
        calls = []

        def broken(user, arg):
            raise RuntimeError("mail server down")

        dispatcher = ActionDispatcher()
        dispatcher.register("send_membership_welcome", broken)
        dispatcher.register("unlock_premium_content", lambda user, arg: calls.append("unlock"))

        with caplog.at_level(logging.ERROR, logger="scoring_core.errors"):
            report = dispatcher.dispatch(
                "u1", ["send_membership_welcome", "unlock_premium_content"],
            )

        assert calls == ["unlock"]
        assert report.succeeded == ["unlock_premium_content"]
        assert report.failed == {"send_membership_welcome": "RuntimeError: mail server down"}
        assert not report.ok
        assert "send_membership_welcome" in caplog.text

    def test_unhandled_tokens_reported(self):
        report = ActionDispatcher().dispatch("u1", ["notify_sales_team"])
        assert report.unhandled == ["notify_sales_team"]
        assert report.ok

    def test_unregister_and_clear(self):
        dispatcher = ActionDispatcher()
        dispatcher.register("a", lambda user, arg: None)
        dispatcher.register("b", lambda user, arg: None)
        dispatcher.unregister("a")
        assert not dispatcher.handles("a")
        assert dispatcher.handles("b")
        dispatcher.clear()
        assert not dispatcher.handles("b")

    def test_emits_telemetry(self):
        sink = InMemoryTelemetrySink()
        dispatcher = ActionDispatcher(telemetry_sink=sink)
        dispatcher.dispatch("u1", ["x", "y"])
        assert sink.names() == ["interaction.dispatch"]
        assert sink.events[0].attributes["unhandled"] == 2
