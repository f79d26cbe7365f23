"""Backup service (``backups.create`` in three phases, ``backups.list``).

Phase 1 snapshots every registered source, phase 2 serializes, checksums
and compresses the snapshot, phase 3 stores the archive and notifies
observers.
"""

import gzip
import hashlib
import inspect
import json
import uuid
from typing import Any, Awaitable, Callable, Dict, List, Optional

from assistant_core.config import AssistantSettings
from assistant_core.coordinator.cancellation import CancellationToken
from assistant_core.memory.backups import BackupRecord, BackupRepository
from assistant_core.protocols import ClockProtocol, LoggerProtocol, OperationResult
from assistant_core.services.multi_phase import MultiPhaseService, TransientStateStore
from assistant_core.utils.clock import SystemClock

SnapshotSource = Callable[[], Awaitable[List[Dict[str, Any]]]]
BackupObserver = Callable[[str, Dict[str, Any]], Any]


class BackupService(MultiPhaseService):
    """Backups of registered entity collections."""

    phased_operations = frozenset({"create"})

    def __init__(
        self,
        repository: BackupRepository,
        sources: Optional[Dict[str, SnapshotSource]] = None,
        observers: Optional[List[BackupObserver]] = None,
        clock: Optional[ClockProtocol] = None,
        state_store: Optional[TransientStateStore] = None,
        settings: Optional[AssistantSettings] = None,
        logger: Optional[LoggerProtocol] = None,
    ):
        super().__init__(state_store=state_store, settings=settings, logger=logger)
        self._repository = repository
        self._sources: Dict[str, SnapshotSource] = dict(sources or {})
        self._observers: List[BackupObserver] = list(observers or [])
        self._clock = clock or SystemClock()

    def register_source(self, name: str, source: SnapshotSource) -> None:
        self._sources[name] = source

    def add_observer(self, observer: BackupObserver) -> None:
        self._observers.append(observer)

    # -- single-phase operations --

    async def execute_single(
        self,
        operation: str,
        params: Dict[str, Any],
        token: CancellationToken,
    ) -> OperationResult:
        if operation == "list":
            records = await self._repository.list()
            return OperationResult.ok({
                "backups": [r.to_summary() for r in records],
                "count": len(records),
            })
        return OperationResult.failure(f"Unknown operation: {operation}")

    # -- backups.create --

    async def setup(self, operation: str, params: Dict[str, Any], token: CancellationToken) -> Dict[str, Any]:
        tables: Dict[str, List[Dict[str, Any]]] = {}
        for name, source in self._sources.items():
            token.raise_if_cancelled()
            tables[name] = await source()
        return {
            "label": params.get("label"),
            "created_at": self._clock.now_ms(),
            "tables": tables,
        }

    async def process(
        self,
        operation: str,
        state: Dict[str, Any],
        params: Dict[str, Any],
        token: CancellationToken,
    ) -> Dict[str, Any]:
        raw = json.dumps(
            {"created_at": state["created_at"], "tables": state["tables"]},
            sort_keys=True,
            ensure_ascii=False,
            default=str,
        ).encode("utf-8")
        token.raise_if_cancelled()
        payload = gzip.compress(raw)
        return {
            "label": state["label"],
            "created_at": state["created_at"],
            "table_counts": {name: len(rows) for name, rows in state["tables"].items()},
            "checksum": hashlib.sha256(raw).hexdigest(),
            "payload": payload,
        }

    async def finalize(
        self,
        operation: str,
        state: Dict[str, Any],
        params: Dict[str, Any],
        token: CancellationToken,
    ) -> Dict[str, Any]:
        record = BackupRecord(
            backup_id=uuid.uuid4().hex,
            label=state["label"],
            created_at=state["created_at"],
            checksum=state["checksum"],
            size_bytes=len(state["payload"]),
            payload=state["payload"],
            table_counts=state["table_counts"],
        )
        await self._repository.save(record)
        summary = record.to_summary()
        await self._notify("backup_created", summary)
        return summary

    async def _notify(self, event: str, data: Dict[str, Any]) -> None:
        for observer in self._observers:
            try:
                outcome = observer(event, data)
                if inspect.isawaitable(outcome):
                    await outcome
            except Exception as e:
                self._logger.warning("backup_observer_failed", event=event, error=str(e))

    @staticmethod
    def decode_payload(payload: bytes) -> Dict[str, Any]:
        return json.loads(gzip.decompress(payload).decode("utf-8"))


__all__ = ["BackupService", "SnapshotSource", "BackupObserver"]
