"""
Typed parameter extraction from raw user text.

Each ParameterKind maps to one extraction function. All extraction is
deterministic: the first candidate wins when a pattern matches more than once.
"""

import logging
import re
from typing import Any, Callable, Dict, List, Optional, Sequence

from .models import ParameterKind, ParameterSpec

logger = logging.getLogger(__name__)


NUMBER_PATTERN = re.compile(r'\d+(?:\.\d+)?')
EMAIL_PATTERN = re.compile(r'\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}\b')
PHONE_PATTERN = re.compile(r'\b\d{3}[-.\s]?\d{3}[-.\s]?\d{4}\b')
DATE_PATTERN = re.compile(r'\b\d{1,2}[/-]\d{1,2}[/-]\d{2,4}\b')
TIME_PATTERN = re.compile(r'\b\d{1,2}:\d{2}(?:\s*(?:am|pm)\b)?', re.IGNORECASE)

POSITIVE_WORDS = ["yes", "true", "correct", "right", "okay", "ok"]
NEGATIVE_WORDS = ["no", "false", "incorrect", "wrong", "not"]

_WORD_PATTERN = re.compile(r"[a-z]+")


def _extract_number(text: str, spec: ParameterSpec) -> Optional[float]:
    match = NUMBER_PATTERN.search(text)
    if not match:
        return None
    value = float(match.group())
    bounds = spec.validation
    if bounds.min_value is not None and value < bounds.min_value:
        return None
    if bounds.max_value is not None and value > bounds.max_value:
        return None
    if value.is_integer() and "." not in match.group():
        return int(value)
    return value


def _first_match(pattern: re.Pattern) -> Callable[[str, ParameterSpec], Optional[str]]:
    def extract(text: str, spec: ParameterSpec) -> Optional[str]:
        match = pattern.search(text)
        return match.group().strip() if match else None
    return extract


def _extract_boolean(text: str, spec: ParameterSpec) -> Optional[bool]:
    words = set(_WORD_PATTERN.findall(text.lower()))
    if any(word in words for word in POSITIVE_WORDS):
        return True
    if any(word in words for word in NEGATIVE_WORDS):
        return False
    return None


def _extract_string(text: str, spec: ParameterSpec) -> Optional[str]:
    text_lower = text.lower()
    for example in spec.examples:
        if example and example.lower() in text_lower:
            return example

    # Configured pattern, e.g. account identifiers that are not listed as examples
    if spec.validation.compiled_pattern is not None:
        match = spec.validation.compiled_pattern.search(text)
        if match:
            return match.group()

    return None


_EXTRACTORS: Dict[ParameterKind, Callable[[str, ParameterSpec], Any]] = {
    ParameterKind.NUMBER: _extract_number,
    ParameterKind.STRING: _extract_string,
    ParameterKind.BOOLEAN: _extract_boolean,
    ParameterKind.DATE: _first_match(DATE_PATTERN),
    ParameterKind.TIME: _first_match(TIME_PATTERN),
    ParameterKind.EMAIL: _first_match(EMAIL_PATTERN),
    ParameterKind.PHONE: _first_match(PHONE_PATTERN),
}


def _within_length(value: Any, spec: ParameterSpec) -> bool:
    if not isinstance(value, str):
        return True
    bounds = spec.validation
    if bounds.min_length is not None and len(value) < bounds.min_length:
        return False
    if bounds.max_length is not None and len(value) > bounds.max_length:
        return False
    return True


class ParameterExtractor:
    """
    Extracts typed parameter values from user messages.

    Used by the intent scorer for the winning intent and by the dialogue
    engine to fill slots from follow-up answers.
    """

    def extract(self, text: str, spec: ParameterSpec) -> Optional[Any]:
        """
        Extract a single parameter value.

        Args:
            text: Raw user message
            spec: Parameter specification

        Returns:
            The extracted value, or None when absent or out of bounds
        """
        value = _EXTRACTORS[spec.kind](text, spec)
        if value is None:
            return None
        if not _within_length(value, spec):
            logger.debug(f"Rejected {spec.name}={value!r}: length out of bounds")
            return None
        return value

    def extract_all(self, text: str, specs: Sequence[ParameterSpec]) -> Dict[str, Any]:
        """Extract every parameter in specs that is present in text."""
        parameters: Dict[str, Any] = {}
        for spec in specs:
            value = self.extract(text, spec)
            if value is not None:
                parameters[spec.name] = value
        return parameters

    @staticmethod
    def supported_kinds() -> List[ParameterKind]:
        return list(_EXTRACTORS)
