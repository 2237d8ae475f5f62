"""
BM25 intent scoring.

Scores an utterance against every intent's keyword bag using corpus-wide IDF.
Term frequency is substring tolerant: a keyword word counts when it equals,
contains, or is contained in the token. This accepts plurals and typos at the
cost of some false positives.

Confidence is min(score / normalizer, max_confidence). The normalizer (5) is
an empirical constant, not derived from data; treat it as a tuning knob.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .corpus import IntentCorpus
from .models import FALLBACK_INTENT, GENERAL_TOPIC, IntentDefinition
from .parameter_extractor import ParameterExtractor

logger = logging.getLogger(__name__)

FALLBACK_ACTIONS = ["ask_for_clarification", "provide_general_info"]

_NON_WORD = re.compile(r"[^\w\s]")


@dataclass
class IntentMatch:
    """Result of scoring one utterance."""
    intent_id: str
    confidence: float
    topic: str = GENERAL_TOPIC
    matched_keywords: List[str] = field(default_factory=list)
    extracted_parameters: Dict[str, Any] = field(default_factory=dict)
    suggested_actions: List[str] = field(default_factory=list)
    is_fallback: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "intent": self.intent_id,
            "confidence": self.confidence,
            "topic": self.topic,
            "matched_keywords": list(self.matched_keywords),
            "extracted_parameters": dict(self.extracted_parameters),
            "suggested_actions": list(self.suggested_actions),
            "is_fallback": self.is_fallback,
        }


def fallback_match(confidence: float = 0.5) -> IntentMatch:
    """The canonical match returned when nothing scores well enough."""
    return IntentMatch(
        intent_id=FALLBACK_INTENT,
        confidence=confidence,
        topic=GENERAL_TOPIC,
        suggested_actions=list(FALLBACK_ACTIONS),
        is_fallback=True,
    )


def tokenize(text: str) -> List[str]:
    """Lowercase, strip punctuation, split on whitespace."""
    return [word for word in _NON_WORD.sub(" ", text.lower()).split() if word]


def _overlaps(word: str, token: str) -> bool:
    return word == token or token in word or word in token


@dataclass
class IntentScore:
    """Per-intent breakdown used for debugging."""
    intent_id: str
    topic: str
    score: float
    confidence: float
    matched_keywords: List[str]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "intent": self.intent_id,
            "topic": self.topic,
            "score": round(self.score, 4),
            "confidence": round(self.confidence, 4),
            "matched_keywords": self.matched_keywords,
        }


class IntentScorer:
    """
    Stateless BM25 scorer over an IntentCorpus snapshot.
    """

    def __init__(
        self,
        k1: float = 1.2,
        b: float = 0.75,
        avg_doc_length: float = 10.0,
        normalizer: float = 5.0,
        max_confidence: float = 0.95,
        confidence_floor: float = 0.3,
        fallback_confidence: float = 0.5,
        extractor: Optional[ParameterExtractor] = None,
    ):
        self.k1 = k1
        self.b = b
        self.avg_doc_length = avg_doc_length
        self.normalizer = normalizer
        self.max_confidence = max_confidence
        self.confidence_floor = confidence_floor
        self.fallback_confidence = fallback_confidence
        self.extractor = extractor or ParameterExtractor()

    @classmethod
    def from_settings(cls, settings: Any) -> "IntentScorer":
        return cls(
            k1=settings.bm25_k1,
            b=settings.bm25_b,
            avg_doc_length=settings.bm25_avg_doc_length,
            normalizer=settings.confidence_normalizer,
            max_confidence=settings.max_confidence,
            confidence_floor=settings.confidence_floor,
            fallback_confidence=settings.fallback_confidence,
        )

    def score(
        self,
        utterance: str,
        corpus: IntentCorpus,
        active_topic: Optional[str] = None,
    ) -> IntentMatch:
        """
        Pick the best intent for an utterance.

        Args:
            utterance: Raw user message
            corpus: Corpus snapshot to score against
            active_topic: Restrict scoring to this topic plus general intents

        Returns:
            IntentMatch; the general_inquiry fallback when nothing clears the floor
        """
        tokens = tokenize(utterance)

        best_intent: Optional[IntentDefinition] = None
        best_score = 0.0
        for intent in self._candidates(corpus, active_topic):
            score = self.bm25(tokens, intent, corpus)
            if score > best_score:
                best_score = score
                best_intent = intent

        if best_intent is None:
            return fallback_match(self.fallback_confidence)

        confidence = self.confidence_for(best_score)
        if confidence < self.confidence_floor:
            logger.debug(
                f"Best intent {best_intent.id} below floor ({confidence:.2f}), using fallback"
            )
            return fallback_match(self.fallback_confidence)

        return IntentMatch(
            intent_id=best_intent.id,
            confidence=confidence,
            topic=best_intent.topic,
            matched_keywords=self.matched_keywords(tokens, best_intent),
            extracted_parameters=self.extractor.extract_all(utterance, best_intent.parameter_specs),
            suggested_actions=list(best_intent.suggested_actions) or ["ask_for_clarification"],
        )

    def explain(
        self,
        utterance: str,
        corpus: IntentCorpus,
        active_topic: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Score every candidate intent and report the breakdown."""
        tokens = tokenize(utterance)
        scores = []
        for intent in self._candidates(corpus, active_topic):
            score = self.bm25(tokens, intent, corpus)
            scores.append(IntentScore(
                intent_id=intent.id,
                topic=intent.topic,
                score=score,
                confidence=self.confidence_for(score),
                matched_keywords=self.matched_keywords(tokens, intent),
            ))
        scores.sort(key=lambda s: s.score, reverse=True)

        match = self.score(utterance, corpus, active_topic)
        return {
            "selected_intent": match.intent_id,
            "selected_confidence": match.confidence,
            "is_fallback": match.is_fallback,
            "tokens": tokens,
            "active_topic": active_topic or GENERAL_TOPIC,
            "corpus_version": corpus.version,
            "intent_scores": [s.to_dict() for s in scores],
        }

    def _candidates(self, corpus: IntentCorpus, active_topic: Optional[str]) -> List[IntentDefinition]:
        if not active_topic or active_topic == GENERAL_TOPIC:
            return list(corpus.intents)
        return [
            intent for intent in corpus.intents
            if intent.topic in (active_topic, GENERAL_TOPIC)
        ]

    def confidence_for(self, score: float) -> float:
        return min(score / self.normalizer, self.max_confidence)

    def term_frequency(self, token: str, intent: IntentDefinition) -> int:
        return sum(1 for word in intent.keyword_words() if _overlaps(word, token))

    def bm25(self, tokens: List[str], intent: IntentDefinition, corpus: IntentCorpus) -> float:
        doc_length = len(intent.keywords)
        if doc_length == 0:
            return 0.0

        length_norm = 1 - self.b + self.b * (doc_length / self.avg_doc_length)
        score = 0.0
        for token in tokens:
            tf = self.term_frequency(token, intent)
            if tf == 0:
                continue
            idf = corpus.idf.get(token, 0.0)
            score += idf * (tf * (self.k1 + 1)) / (tf + self.k1 * length_norm)
        return score

    def matched_keywords(self, tokens: List[str], intent: IntentDefinition) -> List[str]:
        matched = []
        for keyword in intent.keywords:
            words = keyword.lower().split()
            if any(_overlaps(word, token) for word in words for token in tokens):
                matched.append(keyword)
        return matched
