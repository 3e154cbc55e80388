"""
Service resolution at execution time.

Registrations carry service ids as opaque strings. The execution engine turns
them into live objects through a ServiceLocator when it builds a step, so an
unknown id surfaces when the job runs, not when the registry is compiled.
"""

from typing import Any, Mapping, Protocol

from batchjobs.errors import ServiceNotFoundError
from batchjobs.registry import StepRegistration


class ServiceLocator(Protocol):
    """Resolves a service id into a runtime object."""

    def resolve(self, service_id: str) -> Any:
        ...


class MappingServiceLocator:
    """ServiceLocator backed by a plain mapping of id -> object."""

    def __init__(self, services: Mapping[str, Any]):
        self._services = dict(services)

    def resolve(self, service_id: str) -> Any:
        try:
            return self._services[service_id]
        except KeyError:
            raise ServiceNotFoundError(service_id) from None

    def __contains__(self, service_id: str) -> bool:
        return service_id in self._services


def resolve_services(record: StepRegistration, locator: ServiceLocator) -> dict[str, Any]:
    """
    Resolve every service of a registered step.

    Returns:
        Setter name -> resolved object, in declaration order

    Raises:
        ServiceNotFoundError: If the locator does not know a service id
    """
    return {setter: locator.resolve(service_id) for setter, service_id in record.services.items()}
