"""Tests for topic rule parsing and evaluation."""

import pytest

from intents.rules import (
    ConfidenceAtLeast,
    Emit,
    IntentEquals,
    ParameterEquals,
    RequestParameter,
    RuleContext,
    RuleSyntaxError,
    SwitchTopic,
    first_matching_rule,
    parse_action,
    parse_condition,
    parse_rule,
    parse_rules,
)


class TestParsing:
    def test_conditions(self):
        assert parse_condition("intent:complaint") == IntentEquals("complaint")
        assert parse_condition("confidence:0.8") == ConfidenceAtLeast(0.8)
        assert parse_condition("param:issueType=login") == ParameterEquals("issueType", "login")

    def test_actions(self):
        assert parse_action("switch_topic:billing") == SwitchTopic("billing")
        assert parse_action("request_parameter:device") == RequestParameter("device")
        assert parse_action("emit:Hold on: checking.") == Emit("Hold on: checking.")

    @pytest.mark.parametrize("text", ["intent", "intent:", "mood:happy", "confidence:high", "confidence:1.5", "param:noequals"])
    def test_bad_conditions(self, text):
        with pytest.raises(RuleSyntaxError):
            parse_condition(text)

    def test_bad_action(self):
        with pytest.raises(RuleSyntaxError):
            parse_action("dance:now")

    def test_rule_needs_condition(self):
        with pytest.raises(RuleSyntaxError):
            parse_rule([], "emit:hi")

    def test_rules_need_when_and_then(self):
        with pytest.raises(RuleSyntaxError):
            parse_rules([{"when": "intent:x"}])

    def test_to_dict_matches_source_strings(self):
        rule = parse_rule(["intent:complaint", "confidence:0.7"], "switch_topic:support")
        assert rule.to_dict() == {
            "when": ["intent:complaint", "confidence:0.7"],
            "then": "switch_topic:support",
        }


class TestEvaluation:
    def test_all_conditions_must_hold(self):
        rule = parse_rule(["intent:complaint", "confidence:0.8"], "emit:sorry")
        assert rule.matches(RuleContext("complaint", 0.9))
        assert not rule.matches(RuleContext("complaint", 0.5))
        assert not rule.matches(RuleContext("greeting", 0.9))

    def test_parameter_comparison_is_case_insensitive(self):
        rule = parse_rule("param:issueType=LOGIN", "emit:reset it")
        assert rule.matches(RuleContext("x", 0.5, {"issueType": "login"}))
        assert not rule.matches(RuleContext("x", 0.5, {}))

    def test_first_match_wins(self):
        rules = [
            parse_rule("intent:other", "emit:one"),
            parse_rule("confidence:0.5", "emit:two"),
            parse_rule("confidence:0.1", "emit:three"),
        ]
        assert first_matching_rule(rules, RuleContext("any", 0.9)).action == Emit("two")
        assert first_matching_rule(rules, RuleContext("any", 0.05)) is None
