"""Tests for the batchjobs discover, validate and compile commands."""
import json

import yaml
from click.testing import CliRunner

from batchjobs.cli import main
from batchjobs.schemas import DEFAULT_STEP_CLASS


DEMO_CONNECTOR = """\
    name: demo_connector
    jobs:
        export_products:
            type: export
            steps:
                write: ~
"""


def test_version():
    result = CliRunner().invoke(main, ["--version"])
    assert result.exit_code == 0
    assert "batchjobs" in result.output


def test_discover(tmp_path, write_file):
    write_file("demo/config/batch_jobs/b.yml", DEMO_CONNECTOR)
    write_file("demo/config/batch_jobs/a.yml", DEMO_CONNECTOR)

    result = CliRunner().invoke(main, ["discover", str(tmp_path / "demo")])

    assert result.exit_code == 0, result.output
    assert "2 file(s)" in result.output
    assert result.output.index("a.yml") < result.output.index("b.yml")


def test_validate_valid_file(write_file):
    path = write_file("demo/config/batch_jobs.yml", DEMO_CONNECTOR)

    result = CliRunner().invoke(main, ["validate", str(path)])

    assert result.exit_code == 0, result.output
    assert "demo_connector" in result.output
    assert "1 step(s)" in result.output


def test_validate_invalid_file(write_file):
    path = write_file("bad.yml", "name: bad\njobs: []\n")

    result = CliRunner().invoke(main, ["validate", str(path)])

    assert result.exit_code == 1
    assert "expected a mapping" in result.output


def test_compile_json(tmp_path, write_file):
    write_file("demo/config/batch_jobs.yml", DEMO_CONNECTOR)

    result = CliRunner().invoke(
        main, ["--log-level", "ERROR", "compile", "--json", str(tmp_path / "demo")]
    )

    assert result.exit_code == 0, result.output
    assert json.loads(result.output) == [{
        "connector": "demo_connector",
        "job_type": "export",
        "job_name": "export_products",
        "step_name": "write",
        "class": DEFAULT_STEP_CLASS,
        "services": {},
        "parameters": {},
    }]


def test_compile_json_with_date_parameter(tmp_path, write_file):
    write_file("demo/config/batch_jobs.yml", """\
        name: demo_connector
        jobs:
            export_products:
                type: export
                steps:
                    read:
                        parameters:
                            since: 2024-01-01
    """)

    result = CliRunner().invoke(
        main, ["--log-level", "ERROR", "compile", "--json", str(tmp_path / "demo")]
    )

    assert result.exit_code == 0, result.output
    assert json.loads(result.output)[0]["parameters"] == {"since": "2024-01-01"}


def test_compile_table(tmp_path, write_file):
    write_file("demo/config/batch_jobs.yml", DEMO_CONNECTOR)

    result = CliRunner().invoke(main, ["--log-level", "ERROR", "compile", str(tmp_path / "demo")])

    assert result.exit_code == 0, result.output
    assert "1 step(s) from 1 file(s)" in result.output


def test_compile_aborts_on_invalid_file(tmp_path, write_file):
    write_file("demo/config/batch_jobs.yml", "name: bad\njobs: []\n")

    result = CliRunner().invoke(main, ["--log-level", "CRITICAL", "compile", str(tmp_path / "demo")])

    assert result.exit_code == 1
    assert "batch_jobs.yml" in result.output


def test_compile_skip_invalid_file(tmp_path, write_file):
    write_file("bad/config/batch_jobs.yml", "name: bad\njobs: []\n")
    write_file("demo/config/batch_jobs.yml", DEMO_CONNECTOR)

    result = CliRunner().invoke(main, [
        "--log-level", "CRITICAL",
        "compile", "--on-error", "skip", "--json",
        str(tmp_path / "bad"), str(tmp_path / "demo"),
    ])

    assert result.exit_code == 0, result.output
    assert "skipped" in result.output
    assert "export_products" in result.output


def test_compile_reject_duplicates(tmp_path, write_file):
    write_file("one/config/batch_jobs.yml", DEMO_CONNECTOR)
    write_file("two/config/batch_jobs.yml", DEMO_CONNECTOR)

    result = CliRunner().invoke(main, [
        "--log-level", "CRITICAL",
        "compile", "--duplicates", "reject",
        str(tmp_path / "one"), str(tmp_path / "two"),
    ])

    assert result.exit_code == 1
    assert "already declared" in result.output


def test_compile_uses_configured_module_roots(tmp_path, write_file):
    write_file("demo/config/batch_jobs.yml", DEMO_CONNECTOR)
    config_path = tmp_path / "config.yaml"
    config_path.write_text(yaml.dump({"module_roots": ["demo"], "logging": {"level": "ERROR"}}))

    result = CliRunner().invoke(main, ["--config", str(config_path), "compile", "--json"])

    assert result.exit_code == 0, result.output
    assert [r["job_name"] for r in json.loads(result.output)] == ["export_products"]


def test_invalid_config(tmp_path):
    config_path = tmp_path / "config.yaml"
    config_path.write_text(yaml.dump({"failure_policy": "retry"}))

    result = CliRunner().invoke(main, ["--config", str(config_path), "compile"])

    assert result.exit_code == 1
    assert "Invalid failure_policy" in result.output
