"""
batchjobs - Batch job registry compiler

Discovers batch_jobs declarations in extension modules, validates them
against the declaration schema and compiles them into a job registry
consumed by the batch execution engine.
"""

__version__ = "0.1.0"


__all__ = [
    "BatchStatus",
    "JobInterrupted",
    "JobRegistry",
    "RegistryCompiler",
    "compile_modules",
]

from .compiler import RegistryCompiler, compile_modules
from .interrupt import JobInterrupted
from .registry import JobRegistry
from .schemas import BatchStatus
