"""
JSON corpus file format.

Validates raw configuration with pydantic, then converts it into the
read-only definitions the corpus is built from. Rule strings are parsed here,
once, at load time.
"""

import re
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, Field, field_validator

from .models import (
    CategoryDefinition,
    FAQEntry,
    IntentDefinition,
    ParameterKind,
    ParameterSpec,
    ParameterValidation,
)
from .rules import parse_rule


# ── File Models ───────────────────────────────────────────────────

class ValidationConfig(BaseModel):
    min_value: Optional[float] = None
    max_value: Optional[float] = None
    min_length: Optional[int] = Field(default=None, ge=0)
    max_length: Optional[int] = Field(default=None, ge=0)
    pattern: Optional[str] = None

    @field_validator("pattern")
    @classmethod
    def pattern_must_compile(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        try:
            re.compile(v)
        except re.error as e:
            raise ValueError(f"Invalid regular expression {v!r}: {e}")
        return v


class ParameterConfig(BaseModel):
    name: str = Field(..., min_length=1)
    type: ParameterKind = ParameterKind.STRING
    required: bool = False
    description: str = ""
    examples: List[str] = []
    prompt: Optional[str] = None
    validation: Optional[ValidationConfig] = None


class FAQResponseConfig(BaseModel):
    trigger_phrases: List[str] = Field(..., min_length=1)
    response: str
    priority: int = 1


class IntentConfig(BaseModel):
    id: str = Field(..., min_length=1)
    name: str = ""
    description: str = ""
    category: str = "general"
    priority: int = 5
    keywords: List[str] = []
    patterns: List[str] = []
    base_confidence: float = Field(default=0.8, ge=0.0, le=1.0)
    suggested_actions: List[str] = []
    response_templates: List[str] = []
    parameters: List[ParameterConfig] = []
    active: bool = True
    faq_responses: List[FAQResponseConfig] = []


class RuleConfig(BaseModel):
    when: Union[str, List[str]]
    then: str


class CategoryConfig(BaseModel):
    id: str = Field(..., min_length=1)
    name: str = ""
    description: str = ""
    allowed_transitions: List[str] = []
    rules: List[RuleConfig] = []
    suggestions: List[str] = []


class CorpusFile(BaseModel):
    """Top-level layout of a corpus JSON file."""
    intents: List[IntentConfig]
    categories: List[CategoryConfig]


# ── Conversion ────────────────────────────────────────────────────

def to_parameter_spec(config: ParameterConfig) -> ParameterSpec:
    validation = config.validation or ValidationConfig()
    return ParameterSpec(
        name=config.name,
        kind=config.type,
        required=config.required,
        description=config.description,
        examples=list(config.examples),
        prompt=config.prompt,
        validation=ParameterValidation(
            min_value=validation.min_value,
            max_value=validation.max_value,
            min_length=validation.min_length,
            max_length=validation.max_length,
            pattern=validation.pattern,
        ),
    )


def to_intent_definition(config: IntentConfig) -> IntentDefinition:
    return IntentDefinition(
        id=config.id,
        name=config.name or config.id,
        description=config.description,
        topic=config.category,
        priority=config.priority,
        keywords=list(config.keywords),
        patterns=list(config.patterns),
        base_confidence=config.base_confidence,
        suggested_actions=list(config.suggested_actions),
        response_templates=list(config.response_templates),
        parameter_specs=[to_parameter_spec(p) for p in config.parameters],
        active=config.active,
        faq_entries=[
            FAQEntry(
                trigger_phrases=list(faq.trigger_phrases),
                response=faq.response,
                priority=faq.priority,
            )
            for faq in config.faq_responses
        ],
    )


def to_category_definition(config: CategoryConfig) -> CategoryDefinition:
    return CategoryDefinition(
        id=config.id,
        name=config.name or config.id,
        description=config.description,
        allowed_transitions=list(config.allowed_transitions),
        rules=[parse_rule(rule.when, rule.then) for rule in config.rules],
        suggestions=list(config.suggestions),
    )


def parse_intent(data: Dict[str, Any]) -> IntentDefinition:
    """Validate a single intent mapping."""
    return to_intent_definition(IntentConfig.model_validate(data))


def dump_corpus(
    intents: List[IntentDefinition],
    categories: List[CategoryDefinition],
) -> Dict[str, Any]:
    """Serialize definitions to the corpus file layout."""
    return {
        "intents": [intent.to_dict() for intent in intents],
        "categories": [category.to_dict() for category in categories],
    }
