"""
Conversation Orchestrator.

Runs one user message through the pipeline:

1. Take the current corpus snapshot
2. Lock the session
3. Load or create the session state
4. Score the message
5. Advance the dialogue state machine
6. Optionally ask the answer generator for a better reply
7. Record the exchange and persist the session
"""

import asyncio
import logging
import time
import uuid
import weakref
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from intents.corpus import IntentCorpus
from intents.scorer import IntentMatch, IntentScorer, fallback_match
from intents.sources import CorpusHandle, build_source

from .answer_generators import AnswerGenerator, FAQAnswerGenerator
from .context_engine import DialogueContextEngine, NextAction
from .session_store import SessionStore, build_session_store
from .state import SessionState

logger = logging.getLogger(__name__)


class SessionNotFound(Exception):
    """A session id was supplied but no live session has it."""

    def __init__(self, session_id: str):
        self.session_id = session_id
        super().__init__(f"Session not found: {session_id}")


@dataclass
class ConversationRequest:
    """One inbound user message."""
    user_id: str
    message: str
    session_id: Optional[str] = None
    topic_hint: Optional[str] = None


@dataclass
class ConversationResponse:
    """Reply to one user message."""
    session_id: str
    response: str
    intent: str
    confidence: float
    topic: str
    next_action: str
    extracted_parameters: Dict[str, Any] = field(default_factory=dict)
    suggested_actions: List[str] = field(default_factory=list)
    missing_parameters: List[str] = field(default_factory=list)
    suggestions: List[str] = field(default_factory=list)
    processing_time_ms: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "session_id": self.session_id,
            "response": self.response,
            "intent": self.intent,
            "confidence": self.confidence,
            "topic": self.topic,
            "next_action": self.next_action,
            "extracted_parameters": self.extracted_parameters,
            "suggested_actions": self.suggested_actions,
            "missing_parameters": self.missing_parameters,
            "suggestions": self.suggestions,
            "processing_time_ms": self.processing_time_ms,
        }


class ConversationOrchestrator:
    """
    Coordinates scoring, dialogue state and session persistence.

    Turns of different sessions run concurrently; turns of the same session
    are serialized by a per-session asyncio.Lock.
    """

    def __init__(
        self,
        corpus_handle: CorpusHandle,
        session_store: SessionStore,
        scorer: Optional[IntentScorer] = None,
        engine: Optional[DialogueContextEngine] = None,
        answer_generator: Optional[AnswerGenerator] = None,
        session_ttl: int = 3600,
        history_limit: int = 50,
        clock: Callable[[], datetime] = datetime.utcnow,
    ):
        """
        Initialize the orchestrator.

        Args:
            corpus_handle: Published intent corpus
            session_store: Session persistence
            scorer: Intent scorer
            engine: Dialogue context engine
            answer_generator: Optional fallback answer source
            session_ttl: Session expiry in seconds, refreshed on every turn
            history_limit: Messages kept per session
            clock: Source of turn timestamps
        """
        self.corpus_handle = corpus_handle
        self.session_store = session_store
        self.scorer = scorer or IntentScorer()
        self.engine = engine or DialogueContextEngine()
        self.answer_generator = answer_generator
        self.session_ttl = session_ttl
        self.history_limit = history_limit
        self.clock = clock
        self._locks: "weakref.WeakValueDictionary[str, asyncio.Lock]" = weakref.WeakValueDictionary()

    def _lock_for(self, session_id: str) -> asyncio.Lock:
        lock = self._locks.get(session_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[session_id] = lock
        return lock

    async def process_message(self, request: ConversationRequest) -> ConversationResponse:
        """
        Process one user message.

        Raises:
            SessionNotFound: request.session_id is set but unknown or expired
        """
        start_time = time.time()
        corpus = self.corpus_handle.current()
        session_id = request.session_id or str(uuid.uuid4())

        async with self._lock_for(session_id):
            now = self.clock()
            if request.session_id:
                state = await self.session_store.get(session_id)
                if state is None:
                    raise SessionNotFound(session_id)
            else:
                state = SessionState.new(request.user_id, now, request.topic_hint, session_id)
                logger.info(f"Session created: {session_id} for user {request.user_id}")

            match = self._score(request.message, corpus, request.topic_hint or state.topic_hint)
            state, turn = self.engine.advance(state, match, corpus, request.message, now)

            reply = turn.response
            wants_answer = not turn.template_matched or match.is_fallback
            if self.answer_generator and wants_answer and turn.next_action is NextAction.PROVIDE_SERVICE:
                generated = self.answer_generator.answer(request.message, state.current_topic)
                if generated:
                    reply = generated

            state.add_message("user", request.message, now, self.history_limit)
            state.add_message("assistant", reply, now, self.history_limit)
            await self.session_store.put(session_id, state, self.session_ttl)

        processing_time = (time.time() - start_time) * 1000
        logger.info(
            f"Turn {session_id}: intent={match.intent_id} ({match.confidence:.2f}), "
            f"topic={turn.topic}, next={turn.next_action.value}, {processing_time:.1f}ms"
        )

        return ConversationResponse(
            session_id=session_id,
            response=reply,
            intent=match.intent_id,
            confidence=match.confidence,
            topic=turn.topic,
            next_action=turn.next_action.value,
            extracted_parameters=dict(state.memory.collected_parameters),
            suggested_actions=list(match.suggested_actions),
            missing_parameters=list(turn.missing_parameters),
            suggestions=list(turn.suggestions),
            processing_time_ms=round(processing_time, 2),
        )

    def _score(self, message: str, corpus: IntentCorpus, active_topic: str) -> IntentMatch:
        try:
            return self.scorer.score(message, corpus, active_topic)
        except Exception as e:
            logger.error(f"Intent scoring failed, using fallback: {e}", exc_info=True)
            return fallback_match()

    async def get_session(self, session_id: str) -> SessionState:
        state = await self.session_store.get(session_id)
        if state is None:
            raise SessionNotFound(session_id)
        return state

    async def get_session_history(self, session_id: str) -> List[Dict[str, Any]]:
        """Messages of a session, oldest first."""
        state = await self.get_session(session_id)
        return [message.to_dict() for message in state.messages]

    async def get_user_sessions(self, user_id: str) -> List[str]:
        return await self.session_store.list_user_sessions(user_id)

    async def end_session(self, session_id: str) -> bool:
        """Delete a session. Returns False when it did not exist."""
        async with self._lock_for(session_id):
            removed = await self.session_store.delete(session_id)
        if removed:
            logger.info(f"Session ended: {session_id}")
        return removed

    def debug_intent(self, utterance: str, topic: Optional[str] = None) -> Dict[str, Any]:
        """Per-intent scoring breakdown against the current corpus."""
        return self.scorer.explain(utterance, self.corpus_handle.current(), topic)


def build_orchestrator(settings: Any, answer_generator: Optional[AnswerGenerator] = None) -> ConversationOrchestrator:
    """Wire an orchestrator from settings and load the corpus."""
    handle = CorpusHandle(build_source(settings.corpus_path))
    handle.reload()

    if answer_generator is None:
        answer_generator = FAQAnswerGenerator(handle, threshold=settings.faq_confidence_threshold)

    return ConversationOrchestrator(
        corpus_handle=handle,
        session_store=build_session_store(settings),
        scorer=IntentScorer.from_settings(settings),
        engine=DialogueContextEngine(),
        answer_generator=answer_generator,
        session_ttl=settings.session_ttl_seconds,
        history_limit=settings.session_history_limit,
    )
