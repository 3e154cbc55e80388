"""
CLI interface for batchjobs.

Provides commands to discover, validate, and compile batch job declarations.

Module roots come from the command line or, when none are given, from the
module_roots list of the configuration file.
"""

import json
import sys
from pathlib import Path

import click
from rich.markup import escape
from rich.table import Table

from batchjobs import __version__


def _build_config(config_path):
    """Load the config file if given or present at the default location."""
    from batchjobs.config import BatchJobsConfig, get_batchjobs_home, load_config

    if config_path is not None:
        return load_config(config_path)
    default_path = get_batchjobs_home() / "config.yaml"
    if default_path.exists():
        return load_config(default_path)
    return BatchJobsConfig()


def _module_roots(ctx, roots) -> list[Path]:
    if roots:
        return [Path(r) for r in roots]
    return ctx.obj["config"].module_roots


@click.group()
@click.version_option(version=__version__, prog_name="batchjobs")
@click.option(
    "--config", "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Configuration file (default: $BATCHJOBS_HOME/config.yaml)",
)
@click.option("--log-level", default=None, help="Override the configured log level")
@click.pass_context
def main(ctx, config_path, log_level):
    """
    batchjobs - Batch job registry compiler.

    Discover batch_jobs declarations in extension modules and compile them
    into a job registry.
    """
    from batchjobs.errors import ConfigError
    from batchjobs.utils import print_error, setup_logging

    ctx.ensure_object(dict)
    try:
        config = _build_config(config_path)
    except ConfigError as e:
        print_error(str(e))
        raise SystemExit(1)
    ctx.obj["config"] = config

    setup_logging(
        log_file=config.get_log_file_path(),
        log_level=log_level or config.get_log_level(),
        log_format=config.get_log_format(),
        console_output=config.should_log_to_console(),
    )


@main.command("discover")
@click.argument("roots", nargs=-1, type=click.Path(file_okay=False, path_type=Path))
@click.pass_context
def discover(ctx, roots):
    """
    List the declaration files of each module root.

    Examples:

        batchjobs discover connectors/csv connectors/xlsx
    """
    from batchjobs.discovery import ConfigDiscovery
    from batchjobs.errors import DiscoveryError
    from batchjobs.utils import print_error

    discovery = ConfigDiscovery()
    try:
        for root in _module_roots(ctx, roots):
            sources = discovery.locate(root)
            click.echo(f"{root}: {len(sources)} file(s)")
            for source in sources:
                click.echo(f"  {source.path}")
    except DiscoveryError as e:
        print_error(str(e))
        raise SystemExit(1)


@main.command("validate")
@click.argument("files", nargs=-1, required=True, type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.pass_context
def validate(ctx, files):
    """
    Validate declaration files against the schema.

    Exits with status 1 if any file is invalid.
    """
    from batchjobs.discovery import JobDefinitionSource
    from batchjobs.errors import BatchJobsError
    from batchjobs.utils import print_error, print_success
    from batchjobs.validator import validate_source

    config = ctx.obj["config"]
    failed = 0
    for path in files:
        try:
            source = JobDefinitionSource(path=path, contents=path.read_text(encoding="utf-8"))
            declaration = validate_source(source, config.default_step_class)
        except (BatchJobsError, OSError, UnicodeDecodeError) as e:
            print_error(str(e))
            failed += 1
            continue
        print_success(
            f"{path}: connector '{declaration.name}', "
            f"{len(declaration.jobs)} job(s), {declaration.step_count} step(s)"
        )

    if failed:
        raise SystemExit(1)


@main.command("compile")
@click.argument("roots", nargs=-1, type=click.Path(file_okay=False, path_type=Path))
@click.option(
    "--on-error", "on_error",
    type=click.Choice(["abort", "skip"]),
    default=None,
    help="Abort on the first invalid file, or skip it (default: from config)",
)
@click.option(
    "--duplicates",
    type=click.Choice(["allow", "warn", "reject"]),
    default=None,
    help="Policy for steps declared twice (default: from config)",
)
@click.option("--json", "as_json", is_flag=True, help="Print registrations as JSON")
@click.pass_context
def compile_cmd(ctx, roots, on_error, duplicates, as_json):
    """
    Compile the declarations of the module roots into a job registry.

    Examples:

        batchjobs compile connectors/csv connectors/xlsx

        batchjobs compile --on-error skip --json
    """
    from batchjobs.compiler import DuplicatePolicy, FailurePolicy, compile_modules
    from batchjobs.errors import BatchJobsError
    from batchjobs.utils import console, print_error, print_warning

    config = ctx.obj["config"]
    try:
        registry, report = compile_modules(
            _module_roots(ctx, roots),
            failure_policy=FailurePolicy(on_error) if on_error else config.failure_policy,
            duplicate_policy=DuplicatePolicy(duplicates) if duplicates else config.duplicate_policy,
            default_step_class=config.default_step_class,
        )
    except BatchJobsError as e:
        print_error(str(e))
        raise SystemExit(1)

    for _, error in report.failures:
        print_warning(f"skipped {error}")

    if as_json:
        click.echo(json.dumps([r.to_dict() for r in registry], indent=2, default=str))
        return

    table = Table(title=f"{report.registered} step(s) from {len(report.sources)} file(s)")
    for column in ("connector", "type", "job", "step", "class", "services", "parameters"):
        table.add_column(column)
    for record in registry:
        cells = (
            record.connector,
            record.job_type,
            record.job_name,
            record.step_name,
            record.step_class,
            ", ".join(f"{k}={v}" for k, v in record.services.items()),
            ", ".join(f"{k}={v}" for k, v in record.parameters.items()),
        )
        table.add_row(*(escape(cell) for cell in cells))
    console.print(table)


if __name__ == "__main__":
    sys.exit(main())
