"""
Intent corpus data model.

Intent and category definitions are loaded once per corpus version and are
read-only afterwards; edits go through a configuration source and a reload.
"""

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Pattern

from .rules import Rule

GENERAL_TOPIC = "general"
FALLBACK_INTENT = "general_inquiry"


class ParameterKind(Enum):
    """Typed parameter kinds the extractor understands."""
    NUMBER = "number"
    STRING = "string"
    BOOLEAN = "boolean"
    DATE = "date"
    TIME = "time"
    EMAIL = "email"
    PHONE = "phone"


@dataclass(frozen=True)
class ParameterValidation:
    """Optional bounds applied after extraction."""
    min_value: Optional[float] = None
    max_value: Optional[float] = None
    min_length: Optional[int] = None
    max_length: Optional[int] = None
    pattern: Optional[str] = None  # regex fallback for STRING parameters
    compiled_pattern: Optional[Pattern] = field(default=None, init=False, repr=False, compare=False)

    def __post_init__(self):
        if self.pattern is not None:
            object.__setattr__(self, "compiled_pattern", re.compile(self.pattern))

    def to_dict(self) -> Dict[str, Any]:
        return {
            key: value
            for key, value in {
                "min_value": self.min_value,
                "max_value": self.max_value,
                "min_length": self.min_length,
                "max_length": self.max_length,
                "pattern": self.pattern,
            }.items()
            if value is not None
        }


@dataclass(frozen=True)
class ParameterSpec:
    """A value an intent needs from the user."""
    name: str
    kind: ParameterKind = ParameterKind.STRING
    required: bool = False
    description: str = ""
    examples: List[str] = field(default_factory=list)
    prompt: Optional[str] = None
    validation: ParameterValidation = field(default_factory=ParameterValidation)

    @property
    def prompt_text(self) -> str:
        """Question asked when this parameter is missing."""
        if self.prompt:
            return self.prompt
        subject = self.description.lower() if self.description else self.name
        return f"Could you please provide your {subject}?"

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "name": self.name,
            "type": self.kind.value,
            "required": self.required,
            "description": self.description,
            "examples": list(self.examples),
        }
        if self.prompt:
            data["prompt"] = self.prompt
        validation = self.validation.to_dict()
        if validation:
            data["validation"] = validation
        return data


@dataclass(frozen=True)
class FAQEntry:
    """Canned answer triggered by phrases in the user's message."""
    trigger_phrases: List[str]
    response: str
    priority: int = 1

    def to_dict(self) -> Dict[str, Any]:
        return {
            "trigger_phrases": list(self.trigger_phrases),
            "response": self.response,
            "priority": self.priority,
        }


@dataclass(frozen=True)
class IntentDefinition:
    """A single intent in the corpus."""
    id: str
    keywords: List[str]
    topic: str = GENERAL_TOPIC
    name: str = ""
    description: str = ""
    patterns: List[str] = field(default_factory=list)
    base_confidence: float = 0.8
    parameter_specs: List[ParameterSpec] = field(default_factory=list)
    response_templates: List[str] = field(default_factory=list)
    suggested_actions: List[str] = field(default_factory=list)
    priority: int = 5
    active: bool = True
    faq_entries: List[FAQEntry] = field(default_factory=list)

    @property
    def is_faq(self) -> bool:
        return bool(self.faq_entries)

    def keyword_words(self) -> List[str]:
        """Keywords split into lowercase words, in declaration order."""
        words = []
        for keyword in self.keywords:
            words.extend(keyword.lower().split())
        return words

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "category": self.topic,
            "priority": self.priority,
            "keywords": list(self.keywords),
            "patterns": list(self.patterns),
            "base_confidence": self.base_confidence,
            "suggested_actions": list(self.suggested_actions),
            "response_templates": list(self.response_templates),
            "parameters": [spec.to_dict() for spec in self.parameter_specs],
            "active": self.active,
            "faq_responses": [entry.to_dict() for entry in self.faq_entries],
        }


@dataclass(frozen=True)
class CategoryDefinition:
    """A conversational category; every category becomes a topic."""
    id: str
    name: str = ""
    description: str = ""
    allowed_transitions: List[str] = field(default_factory=list)
    rules: List[Rule] = field(default_factory=list)
    suggestions: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "allowed_transitions": list(self.allowed_transitions),
            "rules": [rule.to_dict() for rule in self.rules],
            "suggestions": list(self.suggestions),
        }
