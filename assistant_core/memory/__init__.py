"""Persistence: session history and backup archives."""

from assistant_core.memory.backups import BackupRecord, BackupRepository
from assistant_core.memory.session_messages import (
    InMemorySessionMessageStore,
    SessionMessage,
    SessionMessageRepository,
)

__all__ = [
    "BackupRecord",
    "BackupRepository",
    "InMemorySessionMessageStore",
    "SessionMessage",
    "SessionMessageRepository",
]
