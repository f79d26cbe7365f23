"""Multi-phase task protocol.

A service whose operation cannot finish in one interactive call splits it
into three phases selected by ``params["phase"]`` (default 1):

1. cheap setup; state is stored under ``params["operationId"]`` and the
   result carries ``requires_background=True``
2. heavy work on the stored state; result carries
   ``requires_continuation=True``
3. finalization; the state is removed and the final data returned

The caller re-invokes phase N+1. The token is checked at every phase
boundary; on cancellation or failure the operation's state is removed.
"""

import threading
from abc import ABC, abstractmethod
from typing import Any, Dict, FrozenSet, Optional

from assistant_core.config import AssistantSettings, get_settings
from assistant_core.coordinator.cancellation import CancellationToken
from assistant_core.errors import OperationCancelledError, TransientStoreFullError
from assistant_core.protocols import LoggerProtocol, OperationResult
from assistant_core.utils.logging import get_component_logger


class TransientStateStore:
    """Bounded, thread-safe state holder keyed by operation id."""

    def __init__(self, max_entries: int = 128):
        self._max_entries = max_entries
        self._entries: Dict[str, Any] = {}
        self._lock = threading.Lock()

    @property
    def max_entries(self) -> int:
        return self._max_entries

    def put(self, operation_id: str, state: Any) -> None:
        with self._lock:
            if operation_id not in self._entries and len(self._entries) >= self._max_entries:
                raise TransientStoreFullError(self._max_entries)
            self._entries[operation_id] = state

    def get(self, operation_id: str) -> Optional[Any]:
        with self._lock:
            return self._entries.get(operation_id)

    def pop(self, operation_id: str) -> Optional[Any]:
        with self._lock:
            return self._entries.pop(operation_id, None)

    def discard(self, operation_id: str) -> bool:
        with self._lock:
            return self._entries.pop(operation_id, None) is not None

    def __contains__(self, operation_id: str) -> bool:
        with self._lock:
            return operation_id in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


class MultiPhaseService(ABC):
    """Base class for services with phased operations.

    Subclasses list their phased operations in ``phased_operations`` and
    implement ``setup`` / ``process`` / ``finalize``. Other operations go
    to ``execute_single``.
    """

    phased_operations: FrozenSet[str] = frozenset()

    def __init__(
        self,
        state_store: Optional[TransientStateStore] = None,
        settings: Optional[AssistantSettings] = None,
        logger: Optional[LoggerProtocol] = None,
    ):
        settings = settings or get_settings()
        self._state = state_store if state_store is not None else TransientStateStore(
            settings.transient_state_max_entries
        )
        self._logger = get_component_logger(type(self).__name__, logger)

    @property
    def state_store(self) -> TransientStateStore:
        return self._state

    async def execute(
        self,
        operation: str,
        params: Dict[str, Any],
        token: CancellationToken,
    ) -> OperationResult:
        if operation in self.phased_operations:
            return await self._execute_phase(operation, params, token)
        return await self.execute_single(operation, params, token)

    async def execute_single(
        self,
        operation: str,
        params: Dict[str, Any],
        token: CancellationToken,
    ) -> OperationResult:
        return OperationResult.failure(f"Unknown operation: {operation}")

    async def _execute_phase(
        self,
        operation: str,
        params: Dict[str, Any],
        token: CancellationToken,
    ) -> OperationResult:
        operation_id = params.get("operationId")
        if not operation_id:
            return OperationResult.failure(f"operationId is required for {operation}")
        try:
            phase = int(params.get("phase", 1))
        except (TypeError, ValueError):
            return OperationResult.failure(f"Invalid phase: {params.get('phase')!r}")
        if phase not in (1, 2, 3):
            self._state.discard(operation_id)
            return OperationResult.failure(f"Invalid phase: {phase}")

        if token.is_cancelled:
            return self._cancel(operation, operation_id, phase)

        try:
            if phase == 1:
                state = await self.setup(operation, params, token)
                if token.is_cancelled:
                    return self._cancel(operation, operation_id, phase)
                self._state.put(operation_id, state)
                self._logger.debug("phase_completed", operation=operation, operation_id=operation_id, phase=1)
                return OperationResult.ok({"operationId": operation_id, "phase": 1}, requires_background=True)

            if phase == 2:
                state = self._state.get(operation_id)
                if state is None:
                    return OperationResult.failure(f"No pending state for operation {operation_id}")
                state = await self.process(operation, state, params, token)
                if token.is_cancelled:
                    return self._cancel(operation, operation_id, phase)
                self._state.put(operation_id, state)
                self._logger.debug("phase_completed", operation=operation, operation_id=operation_id, phase=2)
                return OperationResult.ok({"operationId": operation_id, "phase": 2}, requires_continuation=True)

            state = self._state.pop(operation_id)
            if state is None:
                return OperationResult.failure(f"No pending state for operation {operation_id}")
            data = await self.finalize(operation, state, params, token)
            self._logger.info("multi_phase_operation_completed", operation=operation, operation_id=operation_id)
            return OperationResult.ok(data)

        except OperationCancelledError:
            return self._cancel(operation, operation_id, phase)
        except TransientStoreFullError as e:
            self._logger.warning("transient_store_full", operation=operation, operation_id=operation_id)
            return OperationResult.failure(str(e))
        except Exception as e:
            self._state.discard(operation_id)
            self._logger.error(
                "multi_phase_operation_error",
                operation=operation,
                operation_id=operation_id,
                phase=phase,
                error_type=type(e).__name__,
                error=str(e),
            )
            return OperationResult.failure(f"{operation} failed in phase {phase}: {e}")

    def _cancel(self, operation: str, operation_id: str, phase: int) -> OperationResult:
        self._state.discard(operation_id)
        self._logger.info("multi_phase_operation_cancelled", operation=operation, operation_id=operation_id, phase=phase)
        return OperationResult.cancellation()

    @abstractmethod
    async def setup(self, operation: str, params: Dict[str, Any], token: CancellationToken) -> Any:
        """Phase 1: return the state carried to phase 2."""

    @abstractmethod
    async def process(self, operation: str, state: Any, params: Dict[str, Any], token: CancellationToken) -> Any:
        """Phase 2: return the state carried to phase 3."""

    @abstractmethod
    async def finalize(
        self,
        operation: str,
        state: Any,
        params: Dict[str, Any],
        token: CancellationToken,
    ) -> Dict[str, Any]:
        """Phase 3: persist, notify and return the final data."""


__all__ = ["TransientStateStore", "MultiPhaseService"]
