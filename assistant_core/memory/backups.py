"""Backup archive persistence."""

import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from assistant_core.protocols import DatabaseClientProtocol, LoggerProtocol
from assistant_core.utils.logging import get_component_logger


@dataclass
class BackupRecord:
    backup_id: str
    created_at: int
    checksum: str
    size_bytes: int
    payload: bytes
    label: Optional[str] = None
    table_counts: Dict[str, int] = field(default_factory=dict)

    def to_summary(self) -> Dict[str, Any]:
        """Everything but the payload."""
        return {
            "backup_id": self.backup_id,
            "label": self.label,
            "created_at": self.created_at,
            "checksum": self.checksum,
            "size_bytes": self.size_bytes,
            "table_counts": dict(self.table_counts),
        }

    def to_row(self) -> Dict[str, Any]:
        return {
            "backup_id": self.backup_id,
            "label": self.label,
            "created_at": self.created_at,
            "checksum": self.checksum,
            "size_bytes": self.size_bytes,
            "payload": self.payload,
            "table_counts": json.dumps(self.table_counts, sort_keys=True),
        }

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "BackupRecord":
        counts = row.get("table_counts")
        return cls(
            backup_id=row["backup_id"],
            label=row.get("label"),
            created_at=int(row["created_at"]),
            checksum=row["checksum"],
            size_bytes=int(row["size_bytes"]),
            payload=bytes(row.get("payload") or b""),
            table_counts=json.loads(counts) if counts else {},
        )


class BackupRepository:
    """Stores backup archives in the ``backups`` table."""

    CREATE_TABLE_SQL = """
        CREATE TABLE IF NOT EXISTS backups (
            backup_id TEXT PRIMARY KEY,
            label TEXT,
            created_at INTEGER NOT NULL,
            checksum TEXT NOT NULL,
            size_bytes INTEGER NOT NULL,
            payload BLOB NOT NULL,
            table_counts TEXT
        )
    """

    def __init__(self, db: DatabaseClientProtocol, logger: Optional[LoggerProtocol] = None):
        self._db = db
        self._logger = get_component_logger("BackupRepository", logger)

    async def ensure_table(self) -> None:
        await self._db.execute(self.CREATE_TABLE_SQL)

    async def save(self, record: BackupRecord) -> None:
        await self._db.insert("backups", record.to_row())
        self._logger.info("backup_saved", backup_id=record.backup_id, size_bytes=record.size_bytes)

    async def get(self, backup_id: str) -> Optional[BackupRecord]:
        row = await self._db.fetch_one(
            "SELECT * FROM backups WHERE backup_id = :backup_id",
            {"backup_id": backup_id},
        )
        return BackupRecord.from_row(row) if row else None

    async def list(self) -> List[BackupRecord]:
        rows = await self._db.fetch_all("SELECT * FROM backups ORDER BY created_at DESC")
        return [BackupRecord.from_row(r) for r in rows]


__all__ = ["BackupRecord", "BackupRepository"]
