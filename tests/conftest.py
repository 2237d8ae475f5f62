"""Shared fixtures for dialogue engine tests."""

from datetime import datetime

import pytest

from dialogue.answer_generators import FAQAnswerGenerator
from dialogue.context_engine import DialogueContextEngine
from dialogue.orchestrator import ConversationOrchestrator
from dialogue.session_store import InMemorySessionStore
from dialogue.state import SessionState
from intents.corpus import IntentCorpus
from intents.defaults import get_default_categories, get_default_intents
from intents.scorer import IntentScorer
from intents.sources import CorpusHandle, IntentCatalog


@pytest.fixture
def now():
    return datetime(2026, 5, 1, 9, 30, 0)


@pytest.fixture
def corpus():
    """Default corpus snapshot."""
    return IntentCorpus.build(get_default_intents(), get_default_categories())


@pytest.fixture
def catalog():
    return IntentCatalog()


@pytest.fixture
def handle(catalog):
    handle = CorpusHandle(catalog)
    handle.reload()
    return handle


@pytest.fixture
def scorer():
    return IntentScorer()


@pytest.fixture
def engine():
    return DialogueContextEngine()


@pytest.fixture
def session(now):
    return SessionState.new(user_id="user-1", now=now, session_id="session-1")


@pytest.fixture
def store():
    return InMemorySessionStore()


@pytest.fixture
def orchestrator(handle, store, scorer, engine):
    return ConversationOrchestrator(
        corpus_handle=handle,
        session_store=store,
        scorer=scorer,
        engine=engine,
        answer_generator=FAQAnswerGenerator(handle),
    )
