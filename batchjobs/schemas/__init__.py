"""
batchjobs.schemas - Value types shared by the registry and execution layers.

Declaration side (transient, produced by validation and consumed by compilation):
    ConnectorDeclaration -> JobSpec -> StepSpec

Execution side (created per job run):
    BatchStatus - ordered lifecycle value
"""

from .declaration import (
    DEFAULT_STEP_CLASS,
    ConnectorDeclaration,
    JobSpec,
    Scalar,
    StepSpec,
)
from .status import BatchStatus

__all__ = [
    # Declarations
    "DEFAULT_STEP_CLASS",
    "ConnectorDeclaration",
    "JobSpec",
    "StepSpec",
    "Scalar",
    # Status
    "BatchStatus",
]
