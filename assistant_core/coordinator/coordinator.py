"""Coordinator - the ``resource.operation`` dispatcher.

Routes a command to the service registered for its resource and
normalizes whatever happens into an ``OperationResult``. Multi-phase
operations are re-invoked by the caller; ``run_to_completion`` is a
sequential driver for callers without a scheduler of their own.
"""

import asyncio
import uuid
from typing import Any, Dict, Optional, Tuple

from assistant_core.coordinator.cancellation import CancellationToken
from assistant_core.coordinator.registry import ServiceRegistry
from assistant_core.protocols import LoggerProtocol, OperationResult
from assistant_core.utils.logging import get_component_logger

MAX_PHASE = 3


def parse_action(action: str) -> Optional[Tuple[str, str]]:
    resource, sep, operation = action.partition(".")
    if not sep or not resource or not operation:
        return None
    return resource, operation


class Coordinator:
    """DispatcherProtocol implementation over a ServiceRegistry."""

    def __init__(
        self,
        registry: ServiceRegistry,
        logger: Optional[LoggerProtocol] = None,
    ):
        self._registry = registry
        self._logger = get_component_logger("Coordinator", logger)

    async def dispatch(
        self,
        action: str,
        params: Optional[Dict[str, Any]] = None,
        token: Optional[CancellationToken] = None,
    ) -> OperationResult:
        parsed = parse_action(action)
        if parsed is None:
            return OperationResult.failure(f"Invalid action format: {action!r} (expected resource.operation)")
        resource, operation = parsed

        service = self._registry.get(resource)
        if service is None:
            return OperationResult.failure(f"No service registered for resource: {resource}")

        token = token or CancellationToken()
        if token.is_cancelled:
            return OperationResult.cancellation()

        self._logger.debug("dispatch", action=action, phase=(params or {}).get("phase"))
        try:
            result = await service.execute(operation, dict(params or {}), token)
        except Exception as e:
            self._logger.error(
                "service_execution_error",
                action=action,
                error_type=type(e).__name__,
                error=str(e),
            )
            return OperationResult.failure(f"Service operation failed: {e}")

        if result is None:
            return OperationResult.failure(f"Service returned no result for {action}")
        return result

    async def run_to_completion(
        self,
        action: str,
        params: Optional[Dict[str, Any]] = None,
        token: Optional[CancellationToken] = None,
    ) -> OperationResult:
        """Drive a multi-phase operation through all of its phases in order."""
        token = token or CancellationToken()
        operation_id = (params or {}).get("operationId") or str(uuid.uuid4())
        phase = 1

        while True:
            phase_params = {**(params or {}), "operationId": operation_id, "phase": phase}
            result = await self.dispatch(action, phase_params, token)

            if result.cancelled or not result.success:
                return result
            if not (result.requires_background or result.requires_continuation):
                return result
            if phase >= MAX_PHASE:
                self._logger.error("phase_limit_exceeded", action=action, operation_id=operation_id)
                return OperationResult.failure(f"{action} requested a phase beyond {MAX_PHASE}")

            # Yield to the loop between phases, as an external scheduler would
            await asyncio.sleep(0)
            phase += 1


__all__ = ["Coordinator", "parse_action", "MAX_PHASE"]
