"""Dispatcher, service registry and cancellation."""

from assistant_core.coordinator.cancellation import CancellationToken
from assistant_core.coordinator.coordinator import Coordinator, parse_action
from assistant_core.coordinator.registry import ServiceRegistry

__all__ = [
    "CancellationToken",
    "Coordinator",
    "ServiceRegistry",
    "parse_action",
]
