"""
Configuration management for batchjobs.

Loads the host configuration from a YAML file:

    module_roots:
        - connectors/csv
        - connectors/xlsx
    failure_policy: abort        # abort | skip
    duplicate_policy: allow      # allow | warn | reject
    default_step_class: batchjobs.step.ItemStep
    logging:
        level: INFO
        format: structured       # structured | pretty
        console: true
        output: logs/batchjobs-{date}.log

Relative module roots are resolved against the directory of the config file.
"""

import os
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from batchjobs.compiler import DuplicatePolicy, FailurePolicy
from batchjobs.errors import ConfigError
from batchjobs.schemas import DEFAULT_STEP_CLASS

KNOWN_KEYS = {"module_roots", "failure_policy", "duplicate_policy", "default_step_class", "logging"}


def get_batchjobs_home() -> Path:
    """Directory holding config.yaml; BATCHJOBS_HOME overrides ~/.config/batchjobs."""
    home = os.environ.get("BATCHJOBS_HOME")
    if home:
        return Path(home).expanduser()
    return Path("~/.config/batchjobs").expanduser()


class BatchJobsConfig:
    """Complete host configuration."""

    def __init__(self, data: Optional[Dict[str, Any]] = None, base_dir: Optional[Path] = None):
        data = data or {}
        unknown = sorted(set(data) - KNOWN_KEYS)
        if unknown:
            raise ConfigError(f"Unknown configuration key(s): {', '.join(unknown)}")

        self.base_dir = Path(base_dir) if base_dir is not None else Path.cwd()

        roots = data.get("module_roots", [])
        if not isinstance(roots, list):
            raise ConfigError("module_roots must be a list of paths")
        self.module_roots: List[Path] = [self._resolve(root) for root in roots]

        try:
            self.failure_policy = FailurePolicy(data.get("failure_policy", "abort"))
        except ValueError:
            raise ConfigError(
                f"Invalid failure_policy: {data.get('failure_policy')!r} (expected abort or skip)"
            )
        try:
            self.duplicate_policy = DuplicatePolicy(data.get("duplicate_policy", "allow"))
        except ValueError:
            raise ConfigError(
                f"Invalid duplicate_policy: {data.get('duplicate_policy')!r} "
                "(expected allow, warn or reject)"
            )

        self.default_step_class = data.get("default_step_class", DEFAULT_STEP_CLASS)
        if not isinstance(self.default_step_class, str) or not self.default_step_class:
            raise ConfigError("default_step_class must be a non-empty string")

        self.logging = data.get("logging") or {}
        if not isinstance(self.logging, dict):
            raise ConfigError("logging must be a mapping")

    def _resolve(self, root: Any) -> Path:
        if not isinstance(root, str) or not root:
            raise ConfigError(f"Invalid module root: {root!r}")
        path = Path(root).expanduser()
        return path if path.is_absolute() else self.base_dir / path

    def get_log_file_path(self) -> Optional[Path]:
        """Get log file path with date interpolation, or None to log to console only."""
        log_output = self.logging.get("output")
        if not log_output:
            return None
        log_output = log_output.replace("{date}", datetime.now().strftime("%Y-%m-%d"))
        return self._resolve(log_output)

    def get_log_level(self) -> str:
        """Get logging level."""
        return str(self.logging.get("level", "INFO")).upper()

    def get_log_format(self) -> str:
        """Get log format (structured or pretty)."""
        return self.logging.get("format", "pretty")

    def should_log_to_console(self) -> bool:
        """Check if console logging is enabled."""
        return bool(self.logging.get("console", True))

    def __repr__(self) -> str:
        return (
            f"BatchJobsConfig(module_roots={len(self.module_roots)}, "
            f"failure_policy={self.failure_policy.value}, "
            f"duplicate_policy={self.duplicate_policy.value})"
        )


def load_config(config_path: Optional[Path | str] = None) -> BatchJobsConfig:
    """
    Load host configuration from a YAML file.

    Args:
        config_path: Path to config file. Defaults to <batchjobs home>/config.yaml

    Returns:
        BatchJobsConfig instance

    Raises:
        ConfigError: If the file is missing or invalid
    """
    if config_path is None:
        config_path = get_batchjobs_home() / "config.yaml"
    config_path = Path(config_path)

    if not config_path.exists():
        raise ConfigError(f"Configuration file not found: {config_path}")

    try:
        with open(config_path, "r") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML syntax in {config_path}: {e}")

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError(f"Configuration file must contain a mapping: {config_path}")

    return BatchJobsConfig(data, base_dir=config_path.parent)
