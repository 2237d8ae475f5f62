"""
Dialogue Context Engine.

A per-session state machine whose states are topics. Each turn:

1. Decide whether the matched intent moves the session to another topic
2. Merge extracted parameters into conversation memory
3. Record the intent on the conversation path
4. Run the current topic's rules (first match wins)
5. Otherwise prompt for the first missing required parameter, or answer
   with the topic's response template once everything is collected

advance() never mutates the state it is given and takes the clock as an
argument, so replaying a turn gives the same result.
"""

import copy
import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from intents.corpus import IntentCorpus, TopicDefinition
from intents.models import GENERAL_TOPIC
from intents.parameter_extractor import ParameterExtractor
from intents.rules import Emit, RequestParameter, RuleContext, SwitchTopic, first_matching_rule
from intents.scorer import IntentMatch

from .state import SessionState, TopicHistoryEntry

logger = logging.getLogger(__name__)

GENERIC_REPLY = "I'm not sure I can help with that yet. Could you tell me a little more?"


class NextAction(Enum):
    PARAMETER_COLLECTION = "parameter_collection"
    PROVIDE_SERVICE = "provide_service"


@dataclass
class SwitchDecision:
    should_switch: bool
    target_topic: Optional[str]
    reason: str


@dataclass
class DialogueTurn:
    """Outcome of one advance() call."""
    response: str
    next_action: NextAction
    topic: str
    missing_parameters: List[str] = field(default_factory=list)
    switched: bool = False
    template_matched: bool = True
    rule_applied: Optional[str] = None
    suggestions: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "response": self.response,
            "next_action": self.next_action.value,
            "topic": self.topic,
            "missing_parameters": list(self.missing_parameters),
            "switched": self.switched,
            "template_matched": self.template_matched,
            "rule_applied": self.rule_applied,
            "suggestions": list(self.suggestions),
        }


class _KeepMissing(dict):
    def __missing__(self, key: str) -> str:
        return "{" + key + "}"


def render_template(template: str, parameters: Dict[str, Any]) -> str:
    """Fill {name} placeholders; unknown names are left in place."""
    try:
        return template.format_map(_KeepMissing(parameters))
    except (ValueError, IndexError, KeyError, AttributeError, TypeError) as e:
        logger.warning(f"Could not render template {template!r}: {e}")
        return template


class DialogueContextEngine:
    """
    Topic state machine driven by intent matches.

    Holds no per-session data; all of it lives in SessionState.
    """

    def __init__(self, extractor: Optional[ParameterExtractor] = None):
        self.extractor = extractor or ParameterExtractor()

    # ── Topic switching ────────────────────────────────────────────

    def decide_switch(self, state: SessionState, match: IntentMatch, corpus: IntentCorpus) -> SwitchDecision:
        """Decide whether match moves the session out of its current topic."""
        current = corpus.get_topic(state.current_topic)
        if current is not None and current.has_intent(match.intent_id):
            return SwitchDecision(False, None, "intent_in_current_topic")

        candidates = [topic for topic in corpus.all_topics() if topic.has_intent(match.intent_id)]
        if not candidates:
            return SwitchDecision(False, None, "intent_has_no_topic")

        for topic in candidates:
            if topic.accepts_transition_from(state.current_topic):
                return SwitchDecision(True, topic.id, f"transition_{state.current_topic}_to_{topic.id}")

        return SwitchDecision(False, None, "transition_not_allowed")

    def apply_switch(
        self,
        state: SessionState,
        target: str,
        trigger: str,
        parameters: Optional[Dict[str, Any]] = None,
        now: Optional[datetime] = None,
    ) -> SessionState:
        """Return a copy of state moved to target, with parameters merged."""
        new_state = copy.deepcopy(state)
        self._switch(new_state, target, trigger, parameters or {}, now or datetime.utcnow())
        return new_state

    def _switch(self, state: SessionState, target: str, trigger: str, parameters: Dict[str, Any], now: datetime):
        logger.debug(f"Session {state.session_id}: {state.current_topic} -> {target} ({trigger})")
        state.previous_topic = state.current_topic
        state.current_topic = target
        state.topic_history.append(TopicHistoryEntry(topic=target, timestamp=now, trigger=trigger))
        state.memory.topic_switch_count += 1
        state.memory.remember(parameters, now)

    # ── Turn processing ────────────────────────────────────────────

    def advance(
        self,
        state: SessionState,
        match: IntentMatch,
        corpus: IntentCorpus,
        utterance: str,
        now: datetime,
    ) -> Tuple[SessionState, DialogueTurn]:
        """
        Run one dialogue turn.

        Args:
            state: Session state before the turn (left untouched)
            match: Scored intent for the utterance
            corpus: Corpus snapshot used for this turn
            utterance: Raw user message, used to fill topic parameters
            now: Turn timestamp

        Returns:
            (new session state, turn outcome)
        """
        new_state = copy.deepcopy(state)
        new_state.last_activity = now

        decision = self.decide_switch(new_state, match, corpus)
        if decision.should_switch:
            if match.is_fallback:
                # An utterance with no intent of its own answers the topic being left
                self._fill_topic_parameters(new_state, corpus, utterance, now)
            self._switch(new_state, decision.target_topic, match.intent_id, match.extracted_parameters, now)
        else:
            new_state.memory.remember(match.extracted_parameters, now)

        self._fill_topic_parameters(new_state, corpus, utterance, now)

        new_state.memory.conversation_path.append(match.intent_id)
        new_state.memory.last_intent = match.intent_id

        topic = corpus.get_topic(new_state.current_topic)
        rule_applied = None
        turn = None
        if topic is not None:
            ctx = RuleContext(
                intent_id=match.intent_id,
                confidence=match.confidence,
                parameters=dict(new_state.memory.collected_parameters),
            )
            rule = first_matching_rule(topic.rules, ctx)
            if rule is not None:
                rule_applied = rule.action.describe()
                logger.debug(f"Session {new_state.session_id}: rule fired in {topic.id}: {rule_applied}")
                turn = self._apply_rule_action(new_state, rule.action, match, corpus, utterance, now)

        if turn is None:
            turn = self._parameter_gated_reply(new_state, match, corpus)

        turn.switched = decision.should_switch or turn.switched
        turn.rule_applied = rule_applied
        turn.suggestions = self.suggestions(new_state, corpus)
        return new_state, turn

    def _apply_rule_action(
        self,
        state: SessionState,
        action: Any,
        match: IntentMatch,
        corpus: IntentCorpus,
        utterance: str,
        now: datetime,
    ) -> DialogueTurn:
        if isinstance(action, Emit):
            return DialogueTurn(
                response=render_template(action.response, state.memory.collected_parameters),
                next_action=NextAction.PROVIDE_SERVICE,
                topic=state.current_topic,
                missing_parameters=self.missing_parameters(state, corpus),
            )

        if isinstance(action, RequestParameter):
            topic = corpus.get_topic(state.current_topic)
            prompt = topic.parameter_prompts.get(action.name) if topic else None
            return DialogueTurn(
                response=prompt or f"Could you please provide your {action.name}?",
                next_action=NextAction.PARAMETER_COLLECTION,
                topic=state.current_topic,
                missing_parameters=self.missing_parameters(state, corpus),
            )

        if isinstance(action, SwitchTopic):
            # Rules of the target topic are not evaluated in the same turn
            self._switch(state, action.target, f"rule:{match.intent_id}", {}, now)
            self._fill_topic_parameters(state, corpus, utterance, now)
            turn = self._parameter_gated_reply(state, match, corpus)
            turn.switched = True
            return turn

        raise TypeError(f"Unsupported rule action: {action!r}")

    def _fill_topic_parameters(self, state: SessionState, corpus: IntentCorpus, utterance: str, now: datetime):
        """Extract the current topic's declared parameters that are not yet collected."""
        topic = corpus.get_topic(state.current_topic)
        if topic is None:
            return
        pending = [
            spec for name, spec in topic.parameter_specs.items()
            if name not in state.memory.collected_parameters
        ]
        state.memory.remember(self.extractor.extract_all(utterance, pending), now)

    def _parameter_gated_reply(self, state: SessionState, match: IntentMatch, corpus: IntentCorpus) -> DialogueTurn:
        topic = corpus.get_topic(state.current_topic)
        missing = self.missing_parameters(state, corpus)

        if missing:
            return DialogueTurn(
                response=topic.parameter_prompts[missing[0]],
                next_action=NextAction.PARAMETER_COLLECTION,
                topic=state.current_topic,
                missing_parameters=missing,
            )

        template = self._select_template(state, match, topic)
        if template is None:
            return DialogueTurn(
                response=GENERIC_REPLY,
                next_action=NextAction.PROVIDE_SERVICE,
                topic=state.current_topic,
                template_matched=False,
            )

        return DialogueTurn(
            response=render_template(template, state.memory.collected_parameters),
            next_action=NextAction.PROVIDE_SERVICE,
            topic=state.current_topic,
        )

    def _select_template(
        self,
        state: SessionState,
        match: IntentMatch,
        topic: Optional[TopicDefinition],
    ) -> Optional[str]:
        if topic is None:
            return None
        if match.intent_id in topic.response_templates:
            return topic.response_templates[match.intent_id]
        # Follow-up answers resolve to the intent that opened the topic
        for intent_id in reversed(state.memory.conversation_path):
            if intent_id in topic.response_templates:
                return topic.response_templates[intent_id]
        return None

    # ── Queries ────────────────────────────────────────────────────

    def missing_parameters(self, state: SessionState, corpus: IntentCorpus) -> List[str]:
        """Required parameters of the current topic not yet collected, in declaration order."""
        topic = corpus.get_topic(state.current_topic)
        if topic is None:
            return []
        collected = state.memory.collected_parameters
        return [name for name in topic.required_params if name not in collected]

    def suggestions(self, state: SessionState, corpus: IntentCorpus) -> List[str]:
        topic = corpus.get_topic(state.current_topic)
        if topic is not None and topic.suggestions:
            return list(topic.suggestions)
        general = corpus.get_topic(GENERAL_TOPIC)
        return list(general.suggestions) if general else []
