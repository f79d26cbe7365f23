"""
Session message history.

Append-only per session. SystemMessages recorded here are read back in
full at the start of every batch to rebuild the schema deduplication
cache; there is no partial read path.
"""

import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional
from uuid import uuid4

from assistant_core.protocols import (
    ClockProtocol,
    DatabaseClientProtocol,
    LoggerProtocol,
    SystemMessage,
)
from assistant_core.utils.clock import SystemClock
from assistant_core.utils.logging import get_component_logger

SENDER_USER = "USER"
SENDER_AI = "AI"
SENDER_SYSTEM = "SYSTEM"


@dataclass
class SessionMessage:
    """One entry of a session's history."""
    session_id: str
    sender: str
    timestamp: int
    id: str = field(default_factory=lambda: uuid4().hex)
    text_content: Optional[str] = None
    system_message: Optional[SystemMessage] = None
    exclude_from_prompt: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "session_id": self.session_id,
            "sender": self.sender,
            "timestamp": self.timestamp,
            "text_content": self.text_content,
            "system_message_json": (
                json.dumps(self.system_message.to_dict(), ensure_ascii=False)
                if self.system_message is not None
                else None
            ),
            "exclude_from_prompt": 1 if self.exclude_from_prompt else 0,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SessionMessage":
        raw = data.get("system_message_json")
        return cls(
            id=data["id"],
            session_id=data["session_id"],
            sender=data["sender"],
            timestamp=int(data["timestamp"]),
            text_content=data.get("text_content"),
            system_message=SystemMessage.from_dict(json.loads(raw)) if raw else None,
            exclude_from_prompt=bool(data.get("exclude_from_prompt", 0)),
        )


class SessionMessageRepository:
    """
    Repository for session messages.

    Messages are never updated or deleted; ``seq`` preserves insertion
    order for messages sharing a timestamp.
    """

    CREATE_TABLE_SQL = """
        CREATE TABLE IF NOT EXISTS session_messages (
            seq INTEGER PRIMARY KEY AUTOINCREMENT,
            id TEXT NOT NULL UNIQUE,
            session_id TEXT NOT NULL,
            sender TEXT NOT NULL,
            timestamp INTEGER NOT NULL,
            text_content TEXT,
            system_message_json TEXT,
            exclude_from_prompt INTEGER NOT NULL DEFAULT 0
        )
    """

    CREATE_INDEX_SQL = """
        CREATE INDEX IF NOT EXISTS idx_session_messages_session
        ON session_messages(session_id, timestamp)
    """

    def __init__(
        self,
        db: DatabaseClientProtocol,
        clock: Optional[ClockProtocol] = None,
        logger: Optional[LoggerProtocol] = None,
    ):
        self._db = db
        self._clock = clock or SystemClock()
        self._logger = get_component_logger("SessionMessageRepository", logger)

    async def ensure_table(self) -> None:
        await self._db.execute(self.CREATE_TABLE_SQL)
        await self._db.execute(self.CREATE_INDEX_SQL)

    async def append(self, message: SessionMessage) -> str:
        await self._db.insert("session_messages", message.to_dict())
        self._logger.debug(
            "session_message_appended",
            session_id=message.session_id,
            message_id=message.id,
            sender=message.sender,
        )
        return message.id

    async def append_system_message(
        self,
        session_id: str,
        message: SystemMessage,
        exclude_from_prompt: bool = False,
    ) -> str:
        return await self.append(SessionMessage(
            session_id=session_id,
            sender=SENDER_SYSTEM,
            timestamp=self._clock.now_ms(),
            system_message=message,
            exclude_from_prompt=exclude_from_prompt,
        ))

    async def load_messages(self, session_id: str) -> List[SessionMessage]:
        rows = await self._db.fetch_all(
            """
            SELECT id, session_id, sender, timestamp, text_content,
                   system_message_json, exclude_from_prompt
            FROM session_messages
            WHERE session_id = :session_id
            ORDER BY timestamp ASC, seq ASC
            """,
            {"session_id": session_id},
        )
        return [SessionMessage.from_dict(row) for row in rows]

    async def load_system_messages(self, session_id: str) -> List[SystemMessage]:
        messages = await self.load_messages(session_id)
        return [m.system_message for m in messages if m.system_message is not None]


class InMemorySessionMessageStore:
    """Process-local history with the same interface as the repository."""

    def __init__(self, clock: Optional[ClockProtocol] = None):
        self._clock = clock or SystemClock()
        self._messages: Dict[str, List[SessionMessage]] = {}

    async def append(self, message: SessionMessage) -> str:
        self._messages.setdefault(message.session_id, []).append(message)
        return message.id

    async def append_system_message(
        self,
        session_id: str,
        message: SystemMessage,
        exclude_from_prompt: bool = False,
    ) -> str:
        return await self.append(SessionMessage(
            session_id=session_id,
            sender=SENDER_SYSTEM,
            timestamp=self._clock.now_ms(),
            system_message=message,
            exclude_from_prompt=exclude_from_prompt,
        ))

    async def load_messages(self, session_id: str) -> List[SessionMessage]:
        return list(self._messages.get(session_id, []))

    async def load_system_messages(self, session_id: str) -> List[SystemMessage]:
        return [
            m.system_message
            for m in self._messages.get(session_id, [])
            if m.system_message is not None
        ]


__all__ = [
    "SessionMessage",
    "SessionMessageRepository",
    "InMemorySessionMessageStore",
    "SENDER_USER",
    "SENDER_AI",
    "SENDER_SYSTEM",
]
