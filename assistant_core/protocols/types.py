"""Shared value types for the context-assembly pipeline.

These dataclasses and enums are the contract between the resolution
engine, the command executor, the dispatcher and the history store.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, FrozenSet, List, Optional

# =============================================================================
# ENUMS
# =============================================================================


class DataCommandType(str, Enum):
    """Abstract command kinds produced by enrichment resolution or the AI."""
    # Queries
    SCHEMA = "SCHEMA"
    TOOL_CONFIG = "TOOL_CONFIG"
    TOOL_DATA = "TOOL_DATA"
    TOOL_DATA_SAMPLE = "TOOL_DATA_SAMPLE"
    TOOL_STATS = "TOOL_STATS"
    TOOL_EXECUTIONS = "TOOL_EXECUTIONS"
    ZONE_CONFIG = "ZONE_CONFIG"
    ZONES = "ZONES"
    TOOL_INSTANCES = "TOOL_INSTANCES"
    # Actions
    CREATE_DATA = "CREATE_DATA"
    UPDATE_DATA = "UPDATE_DATA"
    DELETE_DATA = "DELETE_DATA"
    BATCH_CREATE_DATA = "BATCH_CREATE_DATA"
    BATCH_UPDATE_DATA = "BATCH_UPDATE_DATA"
    BATCH_DELETE_DATA = "BATCH_DELETE_DATA"
    CREATE_ZONE = "CREATE_ZONE"
    UPDATE_ZONE = "UPDATE_ZONE"
    DELETE_ZONE = "DELETE_ZONE"
    CREATE_TOOL = "CREATE_TOOL"
    UPDATE_TOOL = "UPDATE_TOOL"
    DELETE_TOOL = "DELETE_TOOL"


class CommandStatus(str, Enum):
    """Outcome of one command within a batch."""
    SUCCESS = "SUCCESS"
    FAILED = "FAILED"
    CACHED = "CACHED"
    CANCELLED = "CANCELLED"


class SystemMessageType(str, Enum):
    """Kind of batch recorded in session history."""
    DATA_ADDED = "DATA_ADDED"
    ACTIONS_EXECUTED = "ACTIONS_EXECUTED"
    LIMIT_REACHED = "LIMIT_REACHED"
    FORMAT_ERROR = "FORMAT_ERROR"
    NETWORK_ERROR = "NETWORK_ERROR"
    SESSION_TIMEOUT = "SESSION_TIMEOUT"


ACTION_OPERATIONS: FrozenSet[str] = frozenset({
    "create",
    "update",
    "delete",
    "batch_create",
    "batch_update",
    "batch_delete",
})

SCHEMA_FETCH_ACTION = "schemas.get"


# =============================================================================
# COMMANDS
# =============================================================================

@dataclass(frozen=True)
class DataCommand:
    """Abstract command before it is mapped onto a dispatcher route.

    ``id`` is deterministic for a given type and params, so identical
    intents produced by different enrichments collapse to one command.
    """
    id: str
    type: DataCommandType
    params: Dict[str, Any] = field(default_factory=dict)
    is_relative: bool = False


@dataclass
class ExecutableCommand:
    """One unit of work routable through the dispatcher."""
    resource: str
    operation: str
    params: Dict[str, Any] = field(default_factory=dict)
    is_action_command: Optional[bool] = None

    def __post_init__(self):
        if self.is_action_command is None:
            self.is_action_command = self.operation in ACTION_OPERATIONS

    @property
    def action(self) -> str:
        return f"{self.resource}.{self.operation}"

    @property
    def is_schema_fetch(self) -> bool:
        return self.action == SCHEMA_FETCH_ACTION

    @property
    def schema_id(self) -> Optional[str]:
        if not self.is_schema_fetch:
            return None
        value = self.params.get("id")
        return str(value) if value else None


# =============================================================================
# RESULTS
# =============================================================================

@dataclass
class OperationResult:
    """Uniform result returned by every service and by the dispatcher.

    ``requires_background`` and ``requires_continuation`` are only set by
    multi-phase services; see ``assistant_core.services.multi_phase``.
    """
    success: bool
    data: Optional[Dict[str, Any]] = None
    error: Optional[str] = None
    cancelled: bool = False
    requires_background: bool = False
    requires_continuation: bool = False

    @classmethod
    def ok(
        cls,
        data: Optional[Dict[str, Any]] = None,
        *,
        requires_background: bool = False,
        requires_continuation: bool = False,
    ) -> "OperationResult":
        return cls(
            success=True,
            data=data,
            requires_background=requires_background,
            requires_continuation=requires_continuation,
        )

    @classmethod
    def failure(cls, error: str) -> "OperationResult":
        return cls(success=False, error=error)

    @classmethod
    def cancellation(cls) -> "OperationResult":
        return cls(success=False, error="Operation cancelled", cancelled=True)


@dataclass
class CommandResult:
    """Audit record of one executed command, persisted in history."""
    command: str
    status: CommandStatus
    details: Optional[str] = None
    data: Optional[Dict[str, Any]] = None
    error: Optional[str] = None
    is_action_command: bool = False

    @property
    def counts_as_success(self) -> bool:
        return self.status in (CommandStatus.SUCCESS, CommandStatus.CACHED)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "command": self.command,
            "status": self.status.value,
            "details": self.details,
            "data": self.data,
            "error": self.error,
            "is_action_command": self.is_action_command,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CommandResult":
        return cls(
            command=data["command"],
            status=CommandStatus(data["status"]),
            details=data.get("details"),
            data=data.get("data"),
            error=data.get("error"),
            is_action_command=bool(data.get("is_action_command", False)),
        )


@dataclass
class SystemMessage:
    """Persisted outcome of one batch.

    The only record read back on later turns; schema deduplication is
    rebuilt from its ``command_results``.
    """
    type: SystemMessageType
    command_results: List[CommandResult] = field(default_factory=list)
    summary: str = ""
    formatted_data: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type.value,
            "command_results": [r.to_dict() for r in self.command_results],
            "summary": self.summary,
            "formatted_data": self.formatted_data,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SystemMessage":
        return cls(
            type=SystemMessageType(data["type"]),
            command_results=[
                CommandResult.from_dict(r) for r in data.get("command_results", [])
            ],
            summary=data.get("summary", ""),
            formatted_data=data.get("formatted_data"),
        )


@dataclass(frozen=True)
class PromptCommandResult:
    """Prompt fragment for one command. Never persisted."""
    data_title: str
    formatted_data: str

    def render(self) -> str:
        return f"# {self.data_title}\n{self.formatted_data}"


@dataclass
class CommandExecutionResult:
    """Everything one batch produced."""
    prompt_results: List[PromptCommandResult]
    system_message: SystemMessage

    @property
    def success_count(self) -> int:
        return sum(1 for r in self.system_message.command_results if r.counts_as_success)

    @property
    def failed_count(self) -> int:
        return sum(
            1 for r in self.system_message.command_results
            if r.status == CommandStatus.FAILED
        )

    @property
    def cancelled_count(self) -> int:
        return sum(
            1 for r in self.system_message.command_results
            if r.status == CommandStatus.CANCELLED
        )

    @property
    def all_failed(self) -> bool:
        results = self.system_message.command_results
        return bool(results) and self.failed_count == len(results)


__all__ = [
    "DataCommandType",
    "CommandStatus",
    "SystemMessageType",
    "ACTION_OPERATIONS",
    "SCHEMA_FETCH_ACTION",
    "DataCommand",
    "ExecutableCommand",
    "OperationResult",
    "CommandResult",
    "SystemMessage",
    "PromptCommandResult",
    "CommandExecutionResult",
]
