"""
Error classes for batchjobs.

Every failure raised while building the job registry derives from
BatchJobsError. Source-level errors carry the path of the offending
declaration file so hosts can report it regardless of the failure policy:

- DiscoveryError: a module's declaration directory or file cannot be read
- ParseError: a declaration file is not a well-formed YAML document
- SchemaError: a document does not match the declaration schema
- DuplicateStepError: a (job, step) pair is declared twice under the reject policy

JobInterrupted (see batchjobs.interrupt) is deliberately not part of this
hierarchy: it is a controlled cancellation, not a failure.
"""

from pathlib import Path
from typing import Optional


class BatchJobsError(Exception):
    """Base exception for batchjobs."""
    pass


class SourceError(BatchJobsError):
    """
    Error tied to a single declaration file.

    Attributes:
        source_path: Path of the declaration file, if known
    """

    def __init__(self, message: str, source_path: Optional[Path | str] = None):
        super().__init__(message)
        self.message = message
        self.source_path = Path(source_path) if source_path is not None else None

    def __str__(self) -> str:
        if self.source_path is None:
            return self.message
        return f"{self.source_path}: {self.message}"


class DiscoveryError(SourceError):
    """Raised when a declaration directory or file cannot be read."""
    pass


class ParseError(SourceError):
    """Raised when a declaration file is not valid YAML."""
    pass


class SchemaError(SourceError):
    """
    Raised when a declaration does not match the schema.

    Attributes:
        field_path: Dotted path of the failing field within the document
                    (e.g. "jobs.export_products.steps.write.services").
                    Empty for the document root.
    """

    def __init__(
        self,
        message: str,
        source_path: Optional[Path | str] = None,
        field_path: str = "",
    ):
        super().__init__(message, source_path)
        self.field_path = field_path

    def __str__(self) -> str:
        location = self.field_path or "<root>"
        if self.source_path is None:
            return f"{location}: {self.message}"
        return f"{self.source_path} [{location}]: {self.message}"


class DuplicateStepError(SourceError):
    """Raised when a (job, step) pair is registered twice under DuplicatePolicy.REJECT."""

    def __init__(
        self,
        job_name: str,
        step_name: str,
        source_path: Optional[Path | str] = None,
        first_path: Optional[Path | str] = None,
    ):
        message = f"step '{step_name}' of job '{job_name}' is already declared"
        if first_path is not None:
            message += f" in {first_path}"
        super().__init__(message, source_path)
        self.job_name = job_name
        self.step_name = step_name
        self.first_path = Path(first_path) if first_path is not None else None


class RegistryFrozenError(BatchJobsError):
    """Raised when a step is added to a registry after compilation finished."""
    pass


class ServiceNotFoundError(BatchJobsError):
    """Raised when a service id cannot be resolved by the service locator."""

    def __init__(self, service_id: str):
        super().__init__(f"Service not found: {service_id}")
        self.service_id = service_id


class ConfigError(BatchJobsError):
    """Configuration validation error."""
    pass
