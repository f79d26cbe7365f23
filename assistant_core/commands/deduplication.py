"""Schema-fetch deduplication state and command id deduplication."""

from typing import Iterable, List, Set

from assistant_core.protocols import (
    SCHEMA_FETCH_ACTION,
    CommandStatus,
    DataCommand,
    SystemMessage,
    SystemMessageType,
)


def collect_fetched_schema_ids(messages: Iterable[SystemMessage]) -> Set[str]:
    """Schema ids already delivered to the AI in this session.

    Only successful ``schemas.get`` results of DATA_ADDED batches count.
    """
    schema_ids: Set[str] = set()
    for message in messages:
        if message.type != SystemMessageType.DATA_ADDED:
            continue
        for result in message.command_results:
            if result.command != SCHEMA_FETCH_ACTION or result.status != CommandStatus.SUCCESS:
                continue
            schema_id = (result.data or {}).get("schema_id")
            if schema_id:
                schema_ids.add(str(schema_id))
    return schema_ids


def deduplicate_commands(commands: Iterable[DataCommand]) -> List[DataCommand]:
    """Drop commands whose id was already seen, keeping first occurrences."""
    seen: Set[str] = set()
    unique: List[DataCommand] = []
    for command in commands:
        if command.id in seen:
            continue
        seen.add(command.id)
        unique.append(command)
    return unique


__all__ = ["collect_fetched_schema_ids", "deduplicate_commands"]
