"""
Intent Resolution Module.

This module maps free-text customer messages to configured intents:
- Intent and category definitions (default corpus or JSON file)
- Typed parameter extraction (number, date, time, email, phone, ...)
- BM25 lexical intent scoring over a versioned corpus snapshot
- Declarative per-topic rules
"""

from .models import (
    FALLBACK_INTENT,
    GENERAL_TOPIC,
    CategoryDefinition,
    FAQEntry,
    IntentDefinition,
    ParameterKind,
    ParameterSpec,
    ParameterValidation,
)
from .parameter_extractor import ParameterExtractor
from .rules import Emit, RequestParameter, Rule, RuleContext, RuleSyntaxError, SwitchTopic, parse_rule
from .corpus import CorpusUnavailable, CorpusValidationError, IntentCorpus, TopicDefinition
from .sources import (
    ConfigurationSource,
    CorpusHandle,
    DefaultConfigurationSource,
    IntentCatalog,
    JsonConfigurationSource,
    build_source,
)
from .scorer import IntentMatch, IntentScorer, fallback_match, tokenize

__all__ = [
    "FALLBACK_INTENT",
    "GENERAL_TOPIC",
    "CategoryDefinition",
    "FAQEntry",
    "IntentDefinition",
    "ParameterKind",
    "ParameterSpec",
    "ParameterValidation",
    "ParameterExtractor",
    "Emit",
    "RequestParameter",
    "Rule",
    "RuleContext",
    "RuleSyntaxError",
    "SwitchTopic",
    "parse_rule",
    "CorpusUnavailable",
    "CorpusValidationError",
    "IntentCorpus",
    "TopicDefinition",
    "ConfigurationSource",
    "CorpusHandle",
    "DefaultConfigurationSource",
    "IntentCatalog",
    "JsonConfigurationSource",
    "build_source",
    "IntentMatch",
    "IntentScorer",
    "fallback_match",
    "tokenize",
]
