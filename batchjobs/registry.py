"""
JobRegistry - the append-only sink of step registrations.

The compiler calls add_step_to_job() once per declared step, in discovery
then declaration order, and freezes the registry when it is done. From then
on the registry is read-only and can be shared by any number of executor
threads without locking.

Records are never deduplicated here: two declarations of the same
(job, step) pair produce two records. Duplicate handling is a compiler
policy (see batchjobs.compiler.DuplicatePolicy).
"""

from types import MappingProxyType
from typing import Any, Iterator, Mapping, NamedTuple, Optional, Protocol

from batchjobs.errors import RegistryFrozenError
from batchjobs.schemas import Scalar


class StepRegistration(NamedTuple):
    """One registered step, as handed to the execution engine."""
    connector: str
    job_type: str
    job_name: str
    step_name: str
    step_class: str
    services: Mapping[str, str]
    parameters: Mapping[str, Scalar]

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary for JSON output."""
        return {
            "connector": self.connector,
            "job_type": self.job_type,
            "job_name": self.job_name,
            "step_name": self.step_name,
            "class": self.step_class,
            "services": dict(self.services),
            "parameters": dict(self.parameters),
        }


class RegistrySink(Protocol):
    """Anything that accepts step registrations from the compiler."""

    def add_step_to_job(
        self,
        connector: str,
        job_type: str,
        job_name: str,
        step_name: str,
        step_class: str,
        services: Mapping[str, str],
        parameters: Mapping[str, Scalar],
    ) -> None:
        ...


class JobRegistry:
    """
    In-process registry of compiled jobs.

    Usage:
        registry = JobRegistry()
        RegistryCompiler(registry).compile(sources)
        for step in registry.get_steps("export_products"):
            ...
    """

    def __init__(self):
        self._records: list[StepRegistration] = []
        self._frozen = False

    def add_step_to_job(
        self,
        connector: str,
        job_type: str,
        job_name: str,
        step_name: str,
        step_class: str,
        services: Mapping[str, str],
        parameters: Mapping[str, Scalar],
    ) -> StepRegistration:
        """
        Append one step registration.

        Raises:
            RegistryFrozenError: If the registry has already been frozen
        """
        if self._frozen:
            raise RegistryFrozenError(
                f"Cannot register step '{step_name}' of job '{job_name}': registry is frozen"
            )
        record = StepRegistration(
            connector=connector,
            job_type=job_type,
            job_name=job_name,
            step_name=step_name,
            step_class=step_class,
            services=MappingProxyType(dict(services)),
            parameters=MappingProxyType(dict(parameters)),
        )
        self._records.append(record)
        return record

    def freeze(self) -> None:
        """End the registration phase. Further writes raise RegistryFrozenError."""
        self._frozen = True

    @property
    def frozen(self) -> bool:
        return self._frozen

    @property
    def records(self) -> tuple[StepRegistration, ...]:
        """All registrations in the order they were added."""
        return tuple(self._records)

    def __iter__(self) -> Iterator[StepRegistration]:
        return iter(tuple(self._records))

    def __len__(self) -> int:
        return len(self._records)

    def connectors(self) -> list[str]:
        """Connector names in first-registration order."""
        return list(dict.fromkeys(r.connector for r in self._records))

    def job_names(self, job_type: Optional[str] = None, connector: Optional[str] = None) -> list[str]:
        """Job names in first-registration order, optionally filtered."""
        return list(dict.fromkeys(
            r.job_name for r in self._records
            if (job_type is None or r.job_type == job_type)
            and (connector is None or r.connector == connector)
        ))

    def get_steps(self, job_name: str) -> list[StepRegistration]:
        """All registrations for a job, in registration order."""
        return [r for r in self._records if r.job_name == job_name]

    def has_job(self, job_name: str) -> bool:
        return any(r.job_name == job_name for r in self._records)
