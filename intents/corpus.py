"""
Intent corpus snapshots.

An IntentCorpus is built in one step from intent and category definitions:
the IDF table and the topic definitions are derived at build time and never
edited afterwards, so topics and IDF always agree with the intents they came
from. Reloading means building a new snapshot.
"""

import logging
import math
from dataclasses import dataclass, field
from datetime import datetime
from types import MappingProxyType
from typing import Dict, List, Mapping, Optional, Sequence

from .models import (
    GENERAL_TOPIC,
    CategoryDefinition,
    IntentDefinition,
    ParameterSpec,
)
from .rules import RequestParameter, Rule, SwitchTopic

logger = logging.getLogger(__name__)


class CorpusUnavailable(Exception):
    """The configuration source could not provide a corpus."""


class CorpusValidationError(CorpusUnavailable):
    """The configuration was loaded but is not a valid corpus."""

    def __init__(self, errors: Sequence[str]):
        self.errors = list(errors)
        super().__init__("Invalid intent corpus: " + "; ".join(self.errors))


@dataclass(frozen=True)
class TopicDefinition:
    """A conversational topic derived from a category and its member intents."""
    id: str
    name: str = ""
    description: str = ""
    member_intent_ids: List[str] = field(default_factory=list)
    required_params: List[str] = field(default_factory=list)
    optional_params: List[str] = field(default_factory=list)
    parameter_specs: Dict[str, ParameterSpec] = field(default_factory=dict)
    response_templates: Dict[str, str] = field(default_factory=dict)
    parameter_prompts: Dict[str, str] = field(default_factory=dict)
    allowed_transitions: List[str] = field(default_factory=list)
    rules: List[Rule] = field(default_factory=list)
    suggestions: List[str] = field(default_factory=list)

    def has_intent(self, intent_id: str) -> bool:
        return intent_id in self.member_intent_ids

    def accepts_transition_from(self, topic_id: str) -> bool:
        return topic_id == GENERAL_TOPIC or topic_id in self.allowed_transitions

    def to_dict(self) -> Dict:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "member_intent_ids": list(self.member_intent_ids),
            "required_params": list(self.required_params),
            "optional_params": list(self.optional_params),
            "response_templates": dict(self.response_templates),
            "parameter_prompts": dict(self.parameter_prompts),
            "allowed_transitions": list(self.allowed_transitions),
            "rules": [rule.to_dict() for rule in self.rules],
            "suggestions": list(self.suggestions),
        }


def compute_idf(intents: Sequence[IntentDefinition]) -> Dict[str, float]:
    """
    Inverse document frequency of every keyword word.

    Each intent's keyword bag is one document: idf(w) = ln(N / df(w)).
    """
    total = len(intents)
    document_frequency: Dict[str, int] = {}
    for intent in intents:
        for word in set(intent.keyword_words()):
            document_frequency[word] = document_frequency.get(word, 0) + 1

    return {
        word: math.log(total / count)
        for word, count in document_frequency.items()
    }


def derive_topics(
    intents: Sequence[IntentDefinition],
    categories: Sequence[CategoryDefinition],
) -> Dict[str, TopicDefinition]:
    """Build one topic per category, in category order."""
    topics: Dict[str, TopicDefinition] = {}
    for category in categories:
        members = [intent for intent in intents if intent.topic == category.id]

        specs: Dict[str, ParameterSpec] = {}
        required: List[str] = []
        for intent in members:
            for spec in intent.parameter_specs:
                specs.setdefault(spec.name, spec)
                if spec.required and spec.name not in required:
                    required.append(spec.name)
        optional = [name for name in specs if name not in required]

        topics[category.id] = TopicDefinition(
            id=category.id,
            name=category.name or category.id,
            description=category.description,
            member_intent_ids=[intent.id for intent in members],
            required_params=required,
            optional_params=optional,
            parameter_specs=specs,
            response_templates={
                intent.id: intent.response_templates[0]
                for intent in members
                if intent.response_templates
            },
            parameter_prompts={name: spec.prompt_text for name, spec in specs.items()},
            allowed_transitions=list(category.allowed_transitions),
            rules=list(category.rules),
            suggestions=list(category.suggestions),
        )
    return topics


def validate_definitions(
    intents: Sequence[IntentDefinition],
    categories: Sequence[CategoryDefinition],
) -> List[str]:
    """
    Check a set of definitions before it is published.

    Returns:
        List of error messages; empty when the definitions are usable
    """
    errors: List[str] = []

    intent_ids = [intent.id for intent in intents]
    duplicates = sorted({i for i in intent_ids if intent_ids.count(i) > 1})
    if duplicates:
        errors.append(f"Duplicate intent IDs found: {', '.join(duplicates)}")

    category_ids = [category.id for category in categories]
    duplicate_categories = sorted({c for c in category_ids if category_ids.count(c) > 1})
    if duplicate_categories:
        errors.append(f"Duplicate category IDs found: {', '.join(duplicate_categories)}")

    if GENERAL_TOPIC not in category_ids:
        errors.append(f"Missing required '{GENERAL_TOPIC}' category")

    valid_categories = set(category_ids)
    for intent in intents:
        if intent.topic not in valid_categories:
            errors.append(f"Intent '{intent.id}' has invalid category: {intent.topic}")
        if not 0.0 <= intent.base_confidence <= 1.0:
            errors.append(f"Intent '{intent.id}' base confidence must be between 0 and 1")
        if not intent.keywords:
            logger.warning(f"Intent '{intent.id}' has no keywords and will never score")

    declared_params: Dict[str, set] = {}
    for intent in intents:
        names = declared_params.setdefault(intent.topic, set())
        names.update(spec.name for spec in intent.parameter_specs)

    for category in categories:
        for target in category.allowed_transitions:
            if target not in valid_categories:
                errors.append(
                    f"Category '{category.id}' allows transition from unknown category: {target}"
                )
        for rule in category.rules:
            action = rule.action
            if isinstance(action, SwitchTopic) and action.target not in valid_categories:
                errors.append(
                    f"Category '{category.id}' rule switches to unknown category: {action.target}"
                )
            if isinstance(action, RequestParameter) and action.name not in declared_params.get(category.id, set()):
                errors.append(
                    f"Category '{category.id}' rule requests undeclared parameter: {action.name}"
                )

    return errors


class IntentCorpus:
    """
    Immutable snapshot of the intent catalogue.

    Shared by concurrent scoring calls without locking.
    """

    def __init__(
        self,
        intents: Sequence[IntentDefinition],
        categories: Sequence[CategoryDefinition],
        version: int = 1,
    ):
        self.version = version
        self.loaded_at = datetime.utcnow()
        self._intents = tuple(intent for intent in intents if intent.active)
        self._categories = tuple(categories)
        self._intents_by_id = {intent.id: intent for intent in self._intents}
        self.idf: Mapping[str, float] = MappingProxyType(compute_idf(self._intents))
        self.topics: Mapping[str, TopicDefinition] = MappingProxyType(
            derive_topics(self._intents, self._categories)
        )

    @classmethod
    def build(
        cls,
        intents: Sequence[IntentDefinition],
        categories: Sequence[CategoryDefinition],
        version: int = 1,
    ) -> "IntentCorpus":
        """Validate definitions and build a snapshot."""
        errors = validate_definitions(intents, categories)
        if errors:
            raise CorpusValidationError(errors)
        corpus = cls(intents, categories, version=version)
        logger.info(
            f"Intent corpus v{version} built: {len(corpus.intents)} intents, "
            f"{len(corpus.topics)} topics, {len(corpus.idf)} keyword words"
        )
        return corpus

    @classmethod
    def empty(cls) -> "IntentCorpus":
        """Corpus with no intents and only the general topic."""
        general = CategoryDefinition(
            id=GENERAL_TOPIC,
            name="General",
            description="General conversation",
        )
        return cls([], [general], version=0)

    @property
    def intents(self) -> Sequence[IntentDefinition]:
        return self._intents

    @property
    def categories(self) -> Sequence[CategoryDefinition]:
        return self._categories

    def all_intents(self) -> List[IntentDefinition]:
        return list(self._intents)

    def all_topics(self) -> List[TopicDefinition]:
        return list(self.topics.values())

    def get_intent(self, intent_id: str) -> Optional[IntentDefinition]:
        return self._intents_by_id.get(intent_id)

    def get_topic(self, topic_id: str) -> Optional[TopicDefinition]:
        return self.topics.get(topic_id)

    def faq_intents(self) -> List[IntentDefinition]:
        return [intent for intent in self._intents if intent.is_faq]

    def __repr__(self) -> str:
        return f"IntentCorpus(version={self.version}, intents={len(self._intents)})"
