"""Tests for the conversation orchestrator."""

import asyncio

import pytest

from dialogue.answer_generators import FAQAnswerGenerator, NoopAnswerGenerator, faq_confidence
from dialogue.orchestrator import ConversationOrchestrator, ConversationRequest, SessionNotFound
from dialogue.session_store import InMemorySessionStore
from intents.models import FAQEntry


def send(orchestrator, message, session_id=None, user_id="user-1", topic_hint=None):
    request = ConversationRequest(user_id=user_id, message=message, session_id=session_id, topic_hint=topic_hint)
    return asyncio.run(orchestrator.process_message(request))


class ExplodingScorer:
    def score(self, utterance, corpus, active_topic=None):
        raise RuntimeError("scorer crashed")


class StubAnswers:
    def __init__(self, reply):
        self.reply = reply
        self.calls = []

    def answer(self, utterance, topic):
        self.calls.append((utterance, topic))
        return self.reply


# ── Scenarios ─────────────────────────────────────────

class TestScenarios:
    def test_account_balance_asks_for_account_id(self, orchestrator):
        response = send(orchestrator, "What is my account balance?")
        assert response.intent == "account_inquiry"
        assert response.confidence == pytest.approx(0.95)
        assert response.topic == "banking"
        assert response.next_action == "parameter_collection"
        assert response.missing_parameters == ["accountId"]
        assert "fetch_account_info" in response.suggested_actions

    def test_account_id_in_first_message(self, orchestrator):
        response = send(orchestrator, "My account is ACC123456 and I need help")
        assert response.intent == "account_inquiry"
        assert response.extracted_parameters["accountId"] == "ACC123456"
        assert response.next_action == "provide_service"
        assert "ACC123456" in response.response

    def test_account_id_in_follow_up(self, orchestrator):
        first = send(orchestrator, "What is my account balance?")
        second = send(orchestrator, "It is XYZ987654", session_id=first.session_id)
        assert second.intent == "general_inquiry"
        assert second.topic == "general"
        assert second.extracted_parameters["accountId"] == "XYZ987654"
        assert second.missing_parameters == []

    def test_appointment_booking(self, orchestrator):
        first = send(orchestrator, "I want to book an appointment on 12/05/2026")
        assert first.intent == "appointment"
        assert first.topic == "scheduling"
        assert first.extracted_parameters == {"date": "12/05/2026"}
        assert first.missing_parameters == ["time"]

        second = send(orchestrator, "at 10:30 am", session_id=first.session_id)
        assert second.extracted_parameters == {"date": "12/05/2026", "time": "10:30 am"}
        assert second.topic == "general"
        assert second.next_action == "provide_service"

        third = send(orchestrator, "I want to book an appointment", session_id=first.session_id)
        assert third.topic == "scheduling"
        assert third.missing_parameters == []
        assert third.response == "You're booked in for 12/05/2026 at 10:30 am. Is there anything else I can help with?"

    def test_greeting(self, orchestrator):
        response = send(orchestrator, "Hello")
        assert response.intent == "greeting"
        assert response.topic == "general"
        assert response.response == "Hello! How can I help you today?"

    def test_complaint_rule(self, orchestrator):
        response = send(orchestrator, "I want to file a complaint")
        assert response.topic == "support"
        assert response.response.startswith("I'm sorry to hear about your experience")


# ── Sessions ──────────────────────────────────────────

class TestSessions:
    def test_unknown_session_raises(self, orchestrator):
        with pytest.raises(SessionNotFound) as exc:
            send(orchestrator, "Hello", session_id="does-not-exist")
        assert exc.value.session_id == "does-not-exist"

    def test_history_records_both_sides(self, orchestrator):
        response = send(orchestrator, "Hello")
        history = asyncio.run(orchestrator.get_session_history(response.session_id))
        assert [(m["role"], m["content"]) for m in history] == [
            ("user", "Hello"),
            ("assistant", "Hello! How can I help you today?"),
        ]

    def test_history_is_capped(self, handle, store):
        orchestrator = ConversationOrchestrator(handle, store, history_limit=4)
        session_id = send(orchestrator, "Hello").session_id
        for _ in range(3):
            send(orchestrator, "Hello", session_id=session_id)
        history = asyncio.run(orchestrator.get_session_history(session_id))
        assert len(history) == 4

    def test_end_session(self, orchestrator):
        session_id = send(orchestrator, "Hello").session_id
        assert asyncio.run(orchestrator.end_session(session_id))
        with pytest.raises(SessionNotFound):
            send(orchestrator, "Hello", session_id=session_id)
        assert not asyncio.run(orchestrator.end_session(session_id))

    def test_user_sessions(self, orchestrator):
        first = send(orchestrator, "Hello", user_id="alice").session_id
        second = send(orchestrator, "Hello", user_id="alice").session_id
        assert asyncio.run(orchestrator.get_user_sessions("alice")) == sorted([first, second])

    def test_topic_hint_restricts_scoring(self, orchestrator):
        response = send(orchestrator, "What is my account balance?", topic_hint="billing")
        assert response.intent == "billing_balance"

    def test_stored_topic_hint_applies_to_later_turns(self, orchestrator):
        first = send(orchestrator, "Hello", topic_hint="billing")
        second = send(orchestrator, "What is my account balance?", session_id=first.session_id)
        assert second.intent == "billing_balance"

    def test_expired_session(self, handle):
        now = [0.0]
        store = InMemorySessionStore(clock=lambda: now[0])
        orchestrator = ConversationOrchestrator(handle, store, session_ttl=60)
        session_id = send(orchestrator, "Hello").session_id
        now[0] = 61.0
        with pytest.raises(SessionNotFound):
            send(orchestrator, "Hello", session_id=session_id)

    def test_end_expired_session(self, handle):
        now = [0.0]
        store = InMemorySessionStore(clock=lambda: now[0])
        orchestrator = ConversationOrchestrator(handle, store, session_ttl=60)
        session_id = send(orchestrator, "Hello").session_id
        now[0] = 60.0
        assert not asyncio.run(orchestrator.end_session(session_id))

    def test_concurrent_turns_on_one_session(self, orchestrator):
        session_id = send(orchestrator, "Hello").session_id

        async def burst():
            await asyncio.gather(*[
                orchestrator.process_message(ConversationRequest("user-1", f"hello {i}", session_id))
                for i in range(5)
            ])
            return await orchestrator.get_session_history(session_id)

        history = asyncio.run(burst())
        assert len(history) == 12
        assert sorted(m["content"] for m in history if m["role"] == "user") == sorted(
            ["Hello"] + [f"hello {i}" for i in range(5)]
        )

    def test_concurrent_sessions(self, orchestrator):
        async def many():
            return await asyncio.gather(*[
                orchestrator.process_message(ConversationRequest(f"user-{i}", "Hello"))
                for i in range(10)
            ])

        responses = asyncio.run(many())
        assert len({r.session_id for r in responses}) == 10


# ── Degraded paths ────────────────────────────────────

class TestDegradation:
    def test_scorer_failure_uses_fallback(self, handle, store):
        orchestrator = ConversationOrchestrator(handle, store, scorer=ExplodingScorer())
        response = send(orchestrator, "What is my account balance?")
        assert response.intent == "general_inquiry"
        assert response.confidence == 0.5
        assert response.topic == "general"

    def test_answer_generator_used_on_fallback(self, handle, store):
        answers = StubAnswers("Here is what I found.")
        orchestrator = ConversationOrchestrator(handle, store, answer_generator=answers)
        response = send(orchestrator, "xyzzy plugh")
        assert response.response == "Here is what I found."
        assert answers.calls == [("xyzzy plugh", "general")]

    def test_answer_generator_not_used_on_confident_match(self, handle, store):
        answers = StubAnswers("Here is what I found.")
        orchestrator = ConversationOrchestrator(handle, store, answer_generator=answers)
        response = send(orchestrator, "Hello")
        assert response.response == "Hello! How can I help you today?"
        assert answers.calls == []

    def test_answer_generator_none_keeps_reply(self, handle, store):
        orchestrator = ConversationOrchestrator(handle, store, answer_generator=NoopAnswerGenerator())
        response = send(orchestrator, "xyzzy plugh")
        assert response.response == "I'd be happy to help you with that. Could you provide more details?"

    def test_debug_intent(self, orchestrator):
        report = orchestrator.debug_intent("I forgot my password")
        assert report["selected_intent"] == "password_reset_info"
        assert report["corpus_version"] == 1


# ── FAQ answers ───────────────────────────────────────

class TestFAQAnswerGenerator:
    def test_confidence_formula(self):
        entry = FAQEntry(trigger_phrases=["wire", "transfer", "fee", "cost"], response="r")
        assert faq_confidence("what is the wire fee", entry) == pytest.approx(0.6)
        assert faq_confidence("wire transfer fee cost", entry) == pytest.approx(1.0)
        assert faq_confidence("hello", entry) == 0.0

    def test_threshold_is_strict(self, handle):
        generator = FAQAnswerGenerator(handle, threshold=0.6)
        assert generator.answer("what is the wire fee", "general") is None

    def test_answers_above_threshold(self, handle):
        generator = FAQAnswerGenerator(handle)
        reply = generator.answer("Is the branch ATM open on saturday?", "general")
        assert reply.startswith("Most branches are open")

    def test_best_entry_wins(self, handle):
        generator = FAQAnswerGenerator(handle)
        match = generator.find("I forgot my password and need a reset", "support")
        assert match.intent_id == "password_reset_info"
        assert match.confidence == pytest.approx(1.0)
