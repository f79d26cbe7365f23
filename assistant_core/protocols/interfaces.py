"""Protocol definitions for the assistant core.

Every collaborator the pipeline talks to is reached through one of these
protocols. Concrete implementations are passed in through constructors;
nothing here is looked up globally.
"""

from typing import (
    Any,
    AsyncContextManager,
    Dict,
    List,
    Optional,
    Protocol,
    TYPE_CHECKING,
    runtime_checkable,
)

if TYPE_CHECKING:
    from assistant_core.coordinator.cancellation import CancellationToken
    from assistant_core.protocols.types import OperationResult, SystemMessage


# =============================================================================
# LOGGING
# =============================================================================

@runtime_checkable
class LoggerProtocol(Protocol):
    """Structured logging interface."""

    def debug(self, msg: str, **kwargs: Any) -> None: ...
    def info(self, msg: str, **kwargs: Any) -> None: ...
    def warning(self, msg: str, **kwargs: Any) -> None: ...
    def error(self, msg: str, **kwargs: Any) -> None: ...
    def exception(self, msg: str, **kwargs: Any) -> None: ...
    def bind(self, **kwargs: Any) -> "LoggerProtocol": ...


# =============================================================================
# PERSISTENCE
# =============================================================================

@runtime_checkable
class DatabaseClientProtocol(Protocol):
    """Async database client interface.

    Queries use named parameters (``:name``).
    """

    async def execute(self, query: str, params: Optional[Dict[str, Any]] = None) -> None: ...
    async def fetch_one(self, query: str, params: Optional[Dict[str, Any]] = None) -> Optional[Dict[str, Any]]: ...
    async def fetch_all(self, query: str, params: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]: ...
    async def insert(self, table: str, data: Dict[str, Any]) -> None: ...
    def transaction(self) -> AsyncContextManager[Any]: ...


@runtime_checkable
class SessionMessageStoreProtocol(Protocol):
    """Append-only conversation history, read back as a full-session scan."""

    async def append_system_message(
        self,
        session_id: str,
        message: "SystemMessage",
        exclude_from_prompt: bool = False,
    ) -> str: ...

    async def load_system_messages(self, session_id: str) -> List["SystemMessage"]: ...


# =============================================================================
# TIME
# =============================================================================

@runtime_checkable
class ClockProtocol(Protocol):
    """Clock interface for deterministic time (epoch milliseconds)."""

    def now_ms(self) -> int: ...


# =============================================================================
# DISPATCH
# =============================================================================

@runtime_checkable
class DispatcherProtocol(Protocol):
    """Routes ``resource.operation`` to the service owning the resource."""

    async def dispatch(
        self,
        action: str,
        params: Optional[Dict[str, Any]] = None,
        token: Optional["CancellationToken"] = None,
    ) -> "OperationResult": ...


@runtime_checkable
class ExecutableServiceProtocol(Protocol):
    """A resource service reachable through the dispatcher."""

    async def execute(
        self,
        operation: str,
        params: Dict[str, Any],
        token: "CancellationToken",
    ) -> "OperationResult": ...


@runtime_checkable
class SchemaProviderProtocol(Protocol):
    """Source of schema documents for one namespace of schema ids."""

    def get_schema(self, schema_id: str) -> Optional[Dict[str, Any]]: ...
    def schema_ids(self) -> List[str]: ...


__all__ = [
    "LoggerProtocol",
    "DatabaseClientProtocol",
    "SessionMessageStoreProtocol",
    "ClockProtocol",
    "DispatcherProtocol",
    "ExecutableServiceProtocol",
    "SchemaProviderProtocol",
]
