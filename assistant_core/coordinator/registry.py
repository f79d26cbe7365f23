"""Resource name to service mapping."""

from typing import Dict, List, Optional

from assistant_core.protocols import ExecutableServiceProtocol, LoggerProtocol
from assistant_core.utils.logging import get_component_logger


class ServiceRegistry:
    """Registry of the services owning each resource."""

    def __init__(self, logger: Optional[LoggerProtocol] = None):
        self._services: Dict[str, ExecutableServiceProtocol] = {}
        self._logger = get_component_logger("ServiceRegistry", logger)

    def register(self, resource: str, service: ExecutableServiceProtocol) -> None:
        if resource in self._services:
            self._logger.warning("service_replaced", resource=resource)
        self._services[resource] = service
        self._logger.debug("service_registered", resource=resource, service=type(service).__name__)

    def get(self, resource: str) -> Optional[ExecutableServiceProtocol]:
        return self._services.get(resource)

    def has(self, resource: str) -> bool:
        return resource in self._services

    def resources(self) -> List[str]:
        return sorted(self._services)


__all__ = ["ServiceRegistry"]
