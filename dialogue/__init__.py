"""
Dialogue Module.

This module tracks multi-turn conversations:
- Per-session state (topic, collected parameters, history)
- Topic state machine with rules and parameter collection
- Session persistence (in-memory or Redis, with TTL)
- Conversation orchestration across scorer, engine and store
"""

from .state import ConversationMemory, SessionState
from .context_engine import DialogueContextEngine, DialogueTurn, NextAction, SwitchDecision
from .session_store import InMemorySessionStore, RedisSessionStore, SessionStore, build_session_store
from .answer_generators import AnswerGenerator, FAQAnswerGenerator, NoopAnswerGenerator
from .orchestrator import (
    ConversationOrchestrator,
    ConversationRequest,
    ConversationResponse,
    SessionNotFound,
    build_orchestrator,
)

__all__ = [
    "ConversationMemory",
    "SessionState",
    "DialogueContextEngine",
    "DialogueTurn",
    "NextAction",
    "SwitchDecision",
    "InMemorySessionStore",
    "RedisSessionStore",
    "SessionStore",
    "build_session_store",
    "AnswerGenerator",
    "FAQAnswerGenerator",
    "NoopAnswerGenerator",
    "ConversationOrchestrator",
    "ConversationRequest",
    "ConversationResponse",
    "SessionNotFound",
    "build_orchestrator",
]
