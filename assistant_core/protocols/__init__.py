"""Protocols and shared types.

Usage:
    from assistant_core.protocols import (
        DataCommand,
        ExecutableCommand,
        CommandResult,
        SystemMessage,
        LoggerProtocol,
    )
"""

from assistant_core.protocols.interfaces import (
    ClockProtocol,
    DatabaseClientProtocol,
    DispatcherProtocol,
    ExecutableServiceProtocol,
    LoggerProtocol,
    SchemaProviderProtocol,
    SessionMessageStoreProtocol,
)
from assistant_core.protocols.types import (
    ACTION_OPERATIONS,
    SCHEMA_FETCH_ACTION,
    CommandExecutionResult,
    CommandResult,
    CommandStatus,
    DataCommand,
    DataCommandType,
    ExecutableCommand,
    OperationResult,
    PromptCommandResult,
    SystemMessage,
    SystemMessageType,
)

__all__ = [
    # Interfaces
    "ClockProtocol",
    "DatabaseClientProtocol",
    "DispatcherProtocol",
    "ExecutableServiceProtocol",
    "LoggerProtocol",
    "SchemaProviderProtocol",
    "SessionMessageStoreProtocol",
    # Types
    "ACTION_OPERATIONS",
    "SCHEMA_FETCH_ACTION",
    "CommandExecutionResult",
    "CommandResult",
    "CommandStatus",
    "DataCommand",
    "DataCommandType",
    "ExecutableCommand",
    "OperationResult",
    "PromptCommandResult",
    "SystemMessage",
    "SystemMessageType",
]
