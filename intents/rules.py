"""
Declarative topic rules.

Rules are written in configuration as short strings and parsed once, when the
corpus loads, into small condition/action objects:

    when: "intent:complaint"            -> IntentEquals("complaint")
    when: "confidence:0.8"              -> ConfidenceAtLeast(0.8)
    when: "param:issueType=billing"     -> ParameterEquals("issueType", "billing")

    then: "switch_topic:billing"        -> SwitchTopic("billing")
    then: "request_parameter:device"    -> RequestParameter("device")
    then: "emit:Let me escalate that."  -> Emit("Let me escalate that.")

A rule fires when all of its conditions hold. Evaluation never parses text.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Union


class RuleSyntaxError(ValueError):
    """A rule string could not be parsed."""


@dataclass(frozen=True)
class RuleContext:
    """What a rule condition can look at during a turn."""
    intent_id: str
    confidence: float
    parameters: Dict[str, Any] = field(default_factory=dict)


# ── Conditions ────────────────────────────────────────

@dataclass(frozen=True)
class IntentEquals:
    intent_id: str

    def matches(self, ctx: RuleContext) -> bool:
        return ctx.intent_id == self.intent_id

    def describe(self) -> str:
        return f"intent:{self.intent_id}"


@dataclass(frozen=True)
class ConfidenceAtLeast:
    threshold: float

    def matches(self, ctx: RuleContext) -> bool:
        return ctx.confidence >= self.threshold

    def describe(self) -> str:
        return f"confidence:{self.threshold}"


@dataclass(frozen=True)
class ParameterEquals:
    name: str
    value: str

    def matches(self, ctx: RuleContext) -> bool:
        if self.name not in ctx.parameters:
            return False
        return str(ctx.parameters[self.name]).lower() == self.value.lower()

    def describe(self) -> str:
        return f"param:{self.name}={self.value}"


Condition = Union[IntentEquals, ConfidenceAtLeast, ParameterEquals]


# ── Actions ───────────────────────────────────────────

@dataclass(frozen=True)
class SwitchTopic:
    target: str

    def describe(self) -> str:
        return f"switch_topic:{self.target}"


@dataclass(frozen=True)
class RequestParameter:
    name: str

    def describe(self) -> str:
        return f"request_parameter:{self.name}"


@dataclass(frozen=True)
class Emit:
    response: str

    def describe(self) -> str:
        return f"emit:{self.response}"


Action = Union[SwitchTopic, RequestParameter, Emit]


@dataclass(frozen=True)
class Rule:
    """An ordered (conditions, action) pair attached to a topic."""
    conditions: tuple
    action: Action

    def matches(self, ctx: RuleContext) -> bool:
        return all(condition.matches(ctx) for condition in self.conditions)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "when": [c.describe() for c in self.conditions],
            "then": self.action.describe(),
        }


def parse_condition(text: str) -> Condition:
    """Parse a single condition string."""
    kind, sep, arg = text.partition(":")
    kind = kind.strip().lower()
    arg = arg.strip()
    if not sep or not arg:
        raise RuleSyntaxError(f"Malformed rule condition: {text!r}")

    if kind == "intent":
        return IntentEquals(arg)
    if kind == "confidence":
        try:
            threshold = float(arg)
        except ValueError:
            raise RuleSyntaxError(f"Confidence must be a number: {text!r}") from None
        if not 0.0 <= threshold <= 1.0:
            raise RuleSyntaxError(f"Confidence must be between 0 and 1: {text!r}")
        return ConfidenceAtLeast(threshold)
    if kind in ("param", "parameter"):
        name, eq, value = arg.partition("=")
        if not eq or not name.strip():
            raise RuleSyntaxError(f"Parameter condition needs name=value: {text!r}")
        return ParameterEquals(name.strip(), value.strip())

    raise RuleSyntaxError(f"Unknown rule condition {kind!r} in {text!r}")


def parse_action(text: str) -> Action:
    """Parse a single action string."""
    kind, sep, arg = text.partition(":")
    kind = kind.strip().lower()
    arg = arg.strip()
    if not sep or not arg:
        raise RuleSyntaxError(f"Malformed rule action: {text!r}")

    if kind == "switch_topic":
        return SwitchTopic(arg)
    if kind == "request_parameter":
        return RequestParameter(arg)
    if kind == "emit":
        return Emit(arg)

    raise RuleSyntaxError(f"Unknown rule action {kind!r} in {text!r}")


def parse_rule(when: Union[str, Sequence[str]], then: str) -> Rule:
    """Build a Rule from its configuration strings."""
    if isinstance(when, str):
        when = [when]
    if not when:
        raise RuleSyntaxError("A rule needs at least one condition")
    conditions = tuple(parse_condition(c) for c in when)
    return Rule(conditions=conditions, action=parse_action(then))


def first_matching_rule(rules: Sequence[Rule], ctx: RuleContext) -> Optional[Rule]:
    """Return the first rule whose conditions hold, or None."""
    for rule in rules:
        if rule.matches(ctx):
            return rule
    return None


def parse_rules(raw: Sequence[Dict[str, Any]]) -> List[Rule]:
    """Parse a list of {"when": ..., "then": ...} mappings."""
    rules = []
    for entry in raw:
        if "when" not in entry or "then" not in entry:
            raise RuleSyntaxError(f"Rule needs 'when' and 'then': {entry!r}")
        rules.append(parse_rule(entry["when"], entry["then"]))
    return rules
