"""Ok / Err return values for operations that can fail.

Release steps never exit the process. They return ``Ok(value)`` or
``Err(error)`` and callers check with ``isinstance(result, Err)`` (or a
``match``) before using the value. Only the command line layer turns an
``Err`` into an exit status.

Usage:
    version = parse_version(text)
    if version is None:
        return Err(f"not a semver version: {text}")
    return Ok(version)
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True, repr=False)
class Ok[T]:
    value: T

    def __repr__(self) -> str:
        return f"Ok({self.value!r})"


@dataclass(frozen=True, slots=True, repr=False)
class Err[E]:
    error: E

    def __repr__(self) -> str:
        return f"Err({self.error!r})"


type Result[T, E] = Ok[T] | Err[E]
