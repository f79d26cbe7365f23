"""Reduce dispatcher payloads to what is worth keeping in history.

Action projection table:

=============================  ==========================================
create / update                ``id`` and ``name`` only
delete                         nothing (``None``)
batch_create/update/delete     count fields only
=============================  ==========================================

Timestamps are always stripped. Query payloads keep identifying fields
only; for ``schemas.get`` that is ``schema_id``, which cross-turn schema
deduplication depends on.
"""

from typing import Any, Dict, Optional

from assistant_core.protocols import ExecutableCommand

TIMESTAMP_KEYS = frozenset({
    "timestamp",
    "created_at",
    "updated_at",
    "createdAt",
    "updatedAt",
    "deleted_at",
})

_IDENTITY_KEYS = ("id", "name")

# Identifying fields kept per query route
_QUERY_KEEP: Dict[str, tuple] = {
    "schemas.get": ("schema_id",),
    "tools.get": ("tool_instance_id", "id", "name", "tool_type"),
    "zones.get": ("zone_id", "id", "name"),
    "tool_data.get": ("toolInstanceId", "count", "total", "startTime", "endTime"),
    "tool_data.stats": ("toolInstanceId", "count", "total"),
    "tool_executions.get": ("toolInstanceId", "count", "total"),
    "tools.list": ("zone_id", "count"),
    "tools.list_all": ("count",),
    "zones.list": ("count",),
}

# Nested single-entity envelopes returned by some services
_ENVELOPES = ("tool_instance", "zone", "entry")


def _is_count_key(key: str) -> bool:
    return key == "count" or key == "total" or key.endswith("_count") or key.endswith("Count")


def _strip_timestamps(data: Dict[str, Any]) -> Dict[str, Any]:
    return {k: v for k, v in data.items() if k not in TIMESTAMP_KEYS}


def _flatten_envelope(data: Dict[str, Any]) -> Dict[str, Any]:
    for key in _ENVELOPES:
        inner = data.get(key)
        if isinstance(inner, dict):
            return {**inner, **{k: v for k, v in data.items() if k != key}}
    return data


def filter_action_data(command: ExecutableCommand, data: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    """Minimal projection of an action result (see module table)."""
    if not data or command.operation == "delete":
        return None

    data = _strip_timestamps(_flatten_envelope(data))
    if command.operation.startswith("batch_"):
        kept = {k: v for k, v in data.items() if _is_count_key(k)}
    else:
        kept = {k: data[k] for k in _IDENTITY_KEYS if k in data}
    return kept or None


def filter_query_data(command: ExecutableCommand, data: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    """Identifying fields of a query result, as persisted in history."""
    if not data:
        return None

    keep = _QUERY_KEEP.get(command.action)
    if command.is_schema_fetch:
        schema_id = data.get("schema_id") or command.schema_id
        return {"schema_id": schema_id} if schema_id else None

    flat = _strip_timestamps(_flatten_envelope(data))
    if keep is None:
        kept = {k: v for k, v in flat.items() if k in _IDENTITY_KEYS or _is_count_key(k)}
    else:
        kept = {k: flat[k] for k in keep if k in flat}

    count = extract_count(data)
    if count is not None and "count" not in kept:
        kept["count"] = count
    return kept or None


def extract_count(data: Optional[Dict[str, Any]]) -> Optional[int]:
    """Number of records in a query payload, if it carries any."""
    if not data:
        return None
    for key in ("count", "total"):
        if isinstance(data.get(key), int):
            return data[key]
    for key in ("entries", "records", "executions", "tool_instances", "zones", "items"):
        value = data.get(key)
        if isinstance(value, list):
            return len(value)
    return None


__all__ = [
    "TIMESTAMP_KEYS",
    "filter_action_data",
    "filter_query_data",
    "extract_count",
]
