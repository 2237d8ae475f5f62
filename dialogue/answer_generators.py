"""
Downstream answer generators.

When a turn ends without a topic template (or on a fallback match) the
orchestrator may ask an AnswerGenerator for a better reply than the generic
one. Generators are injected, never looked up by name.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Protocol, runtime_checkable

from intents.models import FAQEntry
from intents.sources import CorpusHandle

logger = logging.getLogger(__name__)


@runtime_checkable
class AnswerGenerator(Protocol):
    """Protocol for pluggable answer sources."""

    def answer(self, utterance: str, topic: str) -> Optional[str]:
        """Return a reply for the utterance, or None to keep the default."""
        ...


class NoopAnswerGenerator:
    """Never answers."""

    def answer(self, utterance: str, topic: str) -> Optional[str]:
        return None


@dataclass
class FAQMatch:
    intent_id: str
    topic: str
    response: str
    confidence: float


def faq_confidence(message: str, entry: FAQEntry) -> float:
    """Share of trigger phrases present, scaled to 0.2..1.0; 0 when none match."""
    lower = message.lower()
    matched = [phrase for phrase in entry.trigger_phrases if phrase.lower() in lower]
    if not matched:
        return 0.0
    return min(round(len(matched) / len(entry.trigger_phrases) * 0.8 + 0.2, 4), 1.0)


class FAQAnswerGenerator:
    """
    Answers from the FAQ entries of the current corpus.

    An entry answers only when its confidence is strictly above the
    threshold. Ties go to the entry in the session's topic, then to corpus
    order.
    """

    def __init__(self, corpus_handle: CorpusHandle, threshold: float = 0.6):
        self.corpus_handle = corpus_handle
        self.threshold = threshold

    def find(self, utterance: str, topic: str) -> Optional[FAQMatch]:
        best: Optional[FAQMatch] = None
        for intent in self.corpus_handle.current().faq_intents():
            for entry in intent.faq_entries:
                confidence = faq_confidence(utterance, entry)
                if confidence == 0.0:
                    continue
                if (
                    best is None
                    or confidence > best.confidence
                    or (confidence == best.confidence and intent.topic == topic and best.topic != topic)
                ):
                    best = FAQMatch(intent.id, intent.topic, entry.response, confidence)
        return best

    def answer(self, utterance: str, topic: str) -> Optional[str]:
        match = self.find(utterance, topic)
        if match is None or match.confidence <= self.threshold:
            return None
        logger.debug(f"FAQ answer from {match.intent_id} ({match.confidence:.2f})")
        return match.response
