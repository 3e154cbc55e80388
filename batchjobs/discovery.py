"""
ConfigDiscovery - locate batch job declaration files in extension modules.

Each module root may declare its jobs either in a directory or in a single
file, relative to the module's config root:

    <module_root>/
        config/
            batch_jobs/          <- every regular file, recursively
                products.yml
                export/
                    csv.yml
            batch_jobs.yml       <- only used when the directory is absent

Module roots are passed in explicitly by the host application. Sources are
returned in lexicographic path order so that repeated runs over an unchanged
module set produce identical output.
"""

import hashlib
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Optional, Protocol

from batchjobs.errors import DiscoveryError

logger = logging.getLogger(__name__)

CONFIG_DIR = Path("config")
JOBS_DIR_NAME = "batch_jobs"
JOBS_FILE_NAME = "batch_jobs.yml"


@dataclass(frozen=True)
class JobDefinitionSource:
    """
    A discovered declaration file.

    Attributes:
        path: Location of the file
        contents: Raw text of the file
    """
    path: Path
    contents: str


class ResourceTracker(Protocol):
    """Build-dependency tracker notified of every file the registry depends on."""

    def add_resource(self, path: Path) -> None:
        ...


class FileResourceTracker:
    """
    Records located files with a content fingerprint.

    Hosts that cache a compiled registry use has_changed() to decide whether
    the cache is stale.
    """

    def __init__(self):
        self._resources: dict[Path, Optional[str]] = {}

    def add_resource(self, path: Path) -> None:
        path = Path(path)
        self._resources[path] = self._fingerprint(path)

    @property
    def resources(self) -> list[Path]:
        """Tracked paths in the order they were reported."""
        return list(self._resources)

    def has_changed(self) -> bool:
        """True if any tracked file was modified or removed since it was reported."""
        return any(
            self._fingerprint(path) != digest
            for path, digest in self._resources.items()
        )

    @staticmethod
    def _fingerprint(path: Path) -> Optional[str]:
        try:
            return hashlib.sha256(path.read_bytes()).hexdigest()
        except OSError:
            return None


class ConfigDiscovery:
    """
    Locator for the declaration files of extension modules.

    Usage:
        discovery = ConfigDiscovery(tracker=FileResourceTracker())
        sources = discovery.locate_all([Path("connectors/csv"), Path("connectors/xlsx")])
    """

    def __init__(self, tracker: Optional[ResourceTracker] = None, encoding: str = "utf-8"):
        self._tracker = tracker
        self._encoding = encoding

    def locate(self, module_root: Path | str) -> list[JobDefinitionSource]:
        """
        Locate and read the declaration files of one module.

        Args:
            module_root: Root directory of the extension module

        Returns:
            Sources sorted by path; empty if the module declares no jobs

        Raises:
            DiscoveryError: If a directory or file cannot be read
        """
        module_root = Path(module_root)
        jobs_dir = module_root / CONFIG_DIR / JOBS_DIR_NAME
        jobs_file = module_root / CONFIG_DIR / JOBS_FILE_NAME

        if jobs_dir.is_dir():
            paths = self._walk(jobs_dir)
        elif jobs_file.is_file():
            paths = [jobs_file]
        else:
            logger.debug(f"No batch job declarations in {module_root}")
            return []

        sources = []
        for path in sorted(paths, key=lambda p: p.as_posix()):
            if self._tracker is not None:
                self._tracker.add_resource(path)
            sources.append(JobDefinitionSource(path=path, contents=self._read(path)))

        logger.debug(f"Located {len(sources)} declaration file(s) in {module_root}")
        return sources

    def locate_all(self, module_roots: Iterable[Path | str]) -> list[JobDefinitionSource]:
        """Locate sources for several modules, keeping the given module order."""
        sources: list[JobDefinitionSource] = []
        for module_root in module_roots:
            sources.extend(self.locate(module_root))
        return sources

    @staticmethod
    def _walk(directory: Path) -> list[Path]:
        """Every regular file below directory, skipping dot-files and dot-directories."""
        def _raise(error: OSError):
            raise DiscoveryError(f"Cannot read directory: {error}", error.filename)

        paths = []
        for dirpath, dirnames, filenames in os.walk(directory, onerror=_raise):
            dirnames[:] = [d for d in dirnames if not d.startswith(".")]
            for filename in filenames:
                if filename.startswith("."):
                    continue
                path = Path(dirpath) / filename
                if path.is_file():
                    paths.append(path)
        return paths

    def _read(self, path: Path) -> str:
        try:
            return path.read_text(encoding=self._encoding)
        except (OSError, UnicodeDecodeError) as e:
            raise DiscoveryError(f"Cannot read declaration file: {e}", path) from e
