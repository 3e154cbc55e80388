"""
Declaration schemas - the normalized form of a batch_jobs document.

A declaration document belongs to one connector and declares its jobs:

    name: demo_connector
    jobs:
        export_products:
            type: export
            steps:
                read:
                    services:
                        reader: app.reader.csv
                    parameters:
                        batchSize: 100
                write: ~

ConnectorDeclaration -> JobSpec -> StepSpec

All three are immutable once built. Mapping fields are read-only views and
keep the declaration order of the source document.
"""

from dataclasses import dataclass, field
from datetime import date
from types import MappingProxyType
from typing import Any, Mapping, Optional, Union

# Processor class used by steps that do not declare one
DEFAULT_STEP_CLASS = "batchjobs.step.ItemStep"

Scalar = Union[str, int, float, bool, date, None]


def _frozen(mapping: Optional[Mapping]) -> Mapping:
    return MappingProxyType(dict(mapping or {}))


@dataclass(frozen=True)
class StepSpec:
    """
    A step declared within a job.

    Attributes:
        step_class: Processor class name (defaults to DEFAULT_STEP_CLASS)
        services: Setter name -> service id, resolved at execution time
        parameters: Setter name -> scalar value
    """
    step_class: str = DEFAULT_STEP_CLASS
    services: Mapping[str, str] = field(default_factory=dict)
    parameters: Mapping[str, Scalar] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "services", _frozen(self.services))
        object.__setattr__(self, "parameters", _frozen(self.parameters))

    def to_dict(self) -> dict[str, Any]:
        """Serialize back to the document form."""
        return {
            "class": self.step_class,
            "services": dict(self.services),
            "parameters": dict(self.parameters),
        }


@dataclass(frozen=True)
class JobSpec:
    """
    A typed job composed of ordered steps.

    Attributes:
        type: Job type (e.g. "import", "export")
        steps: Step name -> StepSpec, in declaration order
    """
    type: str
    steps: Mapping[str, StepSpec] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "steps", _frozen(self.steps))

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type,
            "steps": {name: step.to_dict() for name, step in self.steps.items()},
        }


@dataclass(frozen=True)
class ConnectorDeclaration:
    """
    Everything one declaration document registers.

    Attributes:
        name: Connector name, non-empty
        jobs: Job name -> JobSpec, in declaration order
    """
    name: str
    jobs: Mapping[str, JobSpec] = field(default_factory=dict)

    def __post_init__(self):
        if not self.name:
            raise ValueError("connector name must not be empty")
        object.__setattr__(self, "jobs", _frozen(self.jobs))

    @property
    def step_count(self) -> int:
        return sum(len(job.steps) for job in self.jobs.values())

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "jobs": {name: job.to_dict() for name, job in self.jobs.items()},
        }
