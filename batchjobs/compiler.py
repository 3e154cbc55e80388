"""
RegistryCompiler - turn discovered declaration files into step registrations.

For each source, in the order given:
1. parse the YAML document
2. validate and normalize it against the declaration schema
3. for each job in declared order, for each step in declared order,
   call sink.add_step_to_job(connector, job_type, job_name, step_name,
   step_class, services, parameters)

Service ids and parameters are passed through untouched. Resolving a service
id into a live object happens later, in the execution engine, and may fail
there rather than here.

A source either registers all of its steps or none of them. What happens when
a source fails is decided by FailurePolicy; what happens when two sources
declare the same (job, step) pair is decided by DuplicatePolicy.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Iterable, Optional

from batchjobs.discovery import ConfigDiscovery, JobDefinitionSource, ResourceTracker
from batchjobs.errors import DuplicateStepError, SourceError
from batchjobs.registry import JobRegistry, RegistrySink, StepRegistration
from batchjobs.schemas import DEFAULT_STEP_CLASS, ConnectorDeclaration
from batchjobs.validator import validate_source

logger = logging.getLogger(__name__)


class FailurePolicy(str, Enum):
    """What to do when a source cannot be parsed or validated."""
    ABORT = "abort"
    SKIP = "skip"


class DuplicatePolicy(str, Enum):
    """What to do when a (job, step) pair is declared by more than one source."""
    ALLOW = "allow"
    WARN = "warn"
    REJECT = "reject"


@dataclass
class CompileReport:
    """
    Summary of one compile() call.

    Attributes:
        sources: Paths of the sources that were registered
        registered: Number of step registrations emitted
        failures: (path, error) for each source skipped under FailurePolicy.SKIP
        duplicates: (job_name, step_name) pairs registered more than once
    """
    sources: list[Path] = field(default_factory=list)
    registered: int = 0
    failures: list[tuple[Path, SourceError]] = field(default_factory=list)
    duplicates: list[tuple[str, str]] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures


def plan_registrations(declaration: ConnectorDeclaration) -> list[StepRegistration]:
    """Flatten a declaration into registrations, in declaration order."""
    return [
        StepRegistration(
            connector=declaration.name,
            job_type=job.type,
            job_name=job_name,
            step_name=step_name,
            step_class=step.step_class,
            services=step.services,
            parameters=step.parameters,
        )
        for job_name, job in declaration.jobs.items()
        for step_name, step in job.steps.items()
    ]


class RegistryCompiler:
    """
    Compiler driving validation and registration across all sources.

    Usage:
        registry = JobRegistry()
        compiler = RegistryCompiler(registry, failure_policy=FailurePolicy.SKIP)
        report = compiler.compile(ConfigDiscovery().locate_all(module_roots))
    """

    def __init__(
        self,
        sink: RegistrySink,
        failure_policy: FailurePolicy = FailurePolicy.ABORT,
        duplicate_policy: DuplicatePolicy = DuplicatePolicy.ALLOW,
        default_step_class: str = DEFAULT_STEP_CLASS,
    ):
        """
        Initialize the compiler.

        Args:
            sink: Registry receiving the step registrations
            failure_policy: Abort on the first bad source, or skip it and continue
            duplicate_policy: Allow, warn about or reject repeated (job, step) pairs
            default_step_class: Processor class for steps that declare none
        """
        self._sink = sink
        self._failure_policy = FailurePolicy(failure_policy)
        self._duplicate_policy = DuplicatePolicy(duplicate_policy)
        self._default_step_class = default_step_class
        self._declared_in: dict[tuple[str, str], Path] = {}

    def compile(
        self,
        sources: Iterable[JobDefinitionSource],
        freeze: bool = True,
    ) -> CompileReport:
        """
        Register the steps of every source, in order.

        Args:
            sources: Sources in discovery order
            freeze: Freeze the sink afterwards, if it supports it

        Returns:
            CompileReport for this call

        Raises:
            ParseError, SchemaError, DuplicateStepError: Under FailurePolicy.ABORT,
                for the first source that fails
        """
        report = CompileReport()

        for source in sources:
            try:
                records = self._prepare(source, report)
            except SourceError as e:
                if self._failure_policy is FailurePolicy.ABORT:
                    logger.error(f"Compilation aborted: {e}", extra={"source": source.path})
                    raise
                logger.error(f"Skipping {source.path}: {e}", extra={"source": source.path})
                report.failures.append((source.path, e))
                continue

            for record in records:
                self._sink.add_step_to_job(*record)
                self._declared_in.setdefault((record.job_name, record.step_name), source.path)
            report.sources.append(source.path)
            report.registered += len(records)
            logger.debug(f"Registered {len(records)} step(s) from {source.path}")

        if freeze and hasattr(self._sink, "freeze"):
            self._sink.freeze()

        logger.info(
            f"Compiled {report.registered} step(s) from {len(report.sources)} source(s)"
            + (f", {len(report.failures)} skipped" if report.failures else "")
        )
        return report

    def _prepare(self, source: JobDefinitionSource, report: CompileReport) -> list[StepRegistration]:
        """Validate a source and check it against earlier ones without registering anything."""
        declaration = validate_source(source, self._default_step_class)
        records = plan_registrations(declaration)

        duplicates = []
        for record in records:
            key = (record.job_name, record.step_name)
            first_path = self._declared_in.get(key)
            if first_path is None:
                continue
            if self._duplicate_policy is DuplicatePolicy.REJECT:
                raise DuplicateStepError(record.job_name, record.step_name, source.path, first_path)
            duplicates.append(key)

        for job_name, step_name in duplicates:
            if self._duplicate_policy is DuplicatePolicy.WARN:
                logger.warning(
                    f"Step '{step_name}' of job '{job_name}' in {source.path} "
                    f"was already declared in {self._declared_in[(job_name, step_name)]}"
                )
            report.duplicates.append((job_name, step_name))
        return records


def compile_modules(
    module_roots: Iterable[Path | str],
    registry: Optional[JobRegistry] = None,
    failure_policy: FailurePolicy = FailurePolicy.ABORT,
    duplicate_policy: DuplicatePolicy = DuplicatePolicy.ALLOW,
    default_step_class: str = DEFAULT_STEP_CLASS,
    tracker: Optional[ResourceTracker] = None,
) -> tuple[JobRegistry, CompileReport]:
    """
    Discover and compile the declarations of several modules.

    Module order is kept; within a module, sources are in path order.

    Returns:
        The frozen registry and the compile report

    Raises:
        DiscoveryError: If a module's declarations cannot be read
    """
    registry = registry if registry is not None else JobRegistry()
    sources = ConfigDiscovery(tracker=tracker).locate_all(module_roots)
    compiler = RegistryCompiler(
        registry,
        failure_policy=failure_policy,
        duplicate_policy=duplicate_policy,
        default_step_class=default_step_class,
    )
    report = compiler.compile(sources)
    return registry, report
