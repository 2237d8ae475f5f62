"""
Per-session dialogue state.

SessionState is what the session store persists between turns. It
round-trips through to_dict()/from_dict() as plain JSON-compatible data.
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from intents.models import GENERAL_TOPIC


def _parse_time(value: str) -> datetime:
    return datetime.fromisoformat(value)


@dataclass
class TopicHistoryEntry:
    topic: str
    timestamp: datetime
    trigger: str

    def to_dict(self) -> Dict[str, Any]:
        return {"topic": self.topic, "timestamp": self.timestamp.isoformat(), "trigger": self.trigger}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TopicHistoryEntry":
        return cls(topic=data["topic"], timestamp=_parse_time(data["timestamp"]), trigger=data["trigger"])


@dataclass
class ParameterHistoryEntry:
    name: str
    value: Any
    timestamp: datetime

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "value": self.value, "timestamp": self.timestamp.isoformat()}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ParameterHistoryEntry":
        return cls(name=data["name"], value=data["value"], timestamp=_parse_time(data["timestamp"]))


@dataclass
class MessageEntry:
    role: str  # "user" or "assistant"
    content: str
    timestamp: datetime

    def to_dict(self) -> Dict[str, Any]:
        return {"role": self.role, "content": self.content, "timestamp": self.timestamp.isoformat()}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MessageEntry":
        return cls(role=data["role"], content=data["content"], timestamp=_parse_time(data["timestamp"]))


@dataclass
class ConversationMemory:
    """Everything the session has learned so far."""
    collected_parameters: Dict[str, Any] = field(default_factory=dict)
    parameter_history: List[ParameterHistoryEntry] = field(default_factory=list)
    conversation_path: List[str] = field(default_factory=list)
    topic_switch_count: int = 0
    last_intent: Optional[str] = None

    def remember(self, parameters: Dict[str, Any], now: datetime):
        """Merge parameters, last write wins, and log each write."""
        for name, value in parameters.items():
            self.collected_parameters[name] = value
            self.parameter_history.append(ParameterHistoryEntry(name=name, value=value, timestamp=now))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "collected_parameters": dict(self.collected_parameters),
            "parameter_history": [entry.to_dict() for entry in self.parameter_history],
            "conversation_path": list(self.conversation_path),
            "topic_switch_count": self.topic_switch_count,
            "last_intent": self.last_intent,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ConversationMemory":
        return cls(
            collected_parameters=dict(data.get("collected_parameters", {})),
            parameter_history=[ParameterHistoryEntry.from_dict(e) for e in data.get("parameter_history", [])],
            conversation_path=list(data.get("conversation_path", [])),
            topic_switch_count=data.get("topic_switch_count", 0),
            last_intent=data.get("last_intent"),
        )


@dataclass
class SessionState:
    """Dialogue state of one conversation session."""
    session_id: str
    user_id: str
    created_at: datetime
    last_activity: datetime
    topic_hint: str = GENERAL_TOPIC
    current_topic: str = GENERAL_TOPIC
    previous_topic: Optional[str] = None
    topic_history: List[TopicHistoryEntry] = field(default_factory=list)
    memory: ConversationMemory = field(default_factory=ConversationMemory)
    messages: List[MessageEntry] = field(default_factory=list)

    @classmethod
    def new(
        cls,
        user_id: str,
        now: datetime,
        topic_hint: Optional[str] = None,
        session_id: Optional[str] = None,
    ) -> "SessionState":
        """Fresh session in the general topic."""
        return cls(
            session_id=session_id or str(uuid.uuid4()),
            user_id=user_id,
            created_at=now,
            last_activity=now,
            topic_hint=topic_hint or GENERAL_TOPIC,
            topic_history=[TopicHistoryEntry(topic=GENERAL_TOPIC, timestamp=now, trigger="session_start")],
        )

    def add_message(self, role: str, content: str, now: datetime, limit: Optional[int] = None):
        """Append a message, keeping at most `limit` of the newest."""
        self.messages.append(MessageEntry(role=role, content=content, timestamp=now))
        if limit is not None and len(self.messages) > limit:
            self.messages = self.messages[-limit:]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "session_id": self.session_id,
            "user_id": self.user_id,
            "topic_hint": self.topic_hint,
            "current_topic": self.current_topic,
            "previous_topic": self.previous_topic,
            "topic_history": [entry.to_dict() for entry in self.topic_history],
            "memory": self.memory.to_dict(),
            "messages": [message.to_dict() for message in self.messages],
            "created_at": self.created_at.isoformat(),
            "last_activity": self.last_activity.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SessionState":
        return cls(
            session_id=data["session_id"],
            user_id=data["user_id"],
            topic_hint=data.get("topic_hint", GENERAL_TOPIC),
            current_topic=data.get("current_topic", GENERAL_TOPIC),
            previous_topic=data.get("previous_topic"),
            topic_history=[TopicHistoryEntry.from_dict(e) for e in data.get("topic_history", [])],
            memory=ConversationMemory.from_dict(data.get("memory", {})),
            messages=[MessageEntry.from_dict(m) for m in data.get("messages", [])],
            created_at=_parse_time(data["created_at"]),
            last_activity=_parse_time(data["last_activity"]),
        )
