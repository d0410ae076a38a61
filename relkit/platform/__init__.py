"""Process execution and filesystem helpers."""

from .files import atomic_write_text, sha1_file
from .process import ProcessError, run, run_live

__all__ = [
    "ProcessError",
    "atomic_write_text",
    "run",
    "run_live",
    "sha1_file",
]
