"""Filesystem helpers for files the release rewrites or produces."""

from __future__ import annotations

import hashlib
import os
import tempfile
from pathlib import Path

__all__ = ["atomic_write_text", "sha1_file"]

_CHUNK_SIZE = 1 << 20


def atomic_write_text(path: Path, content: str, *, encoding: str = "utf-8") -> None:
    """Replace path with content; readers see either the old or the new file.

    The text is written to a sibling temp file first. Newlines are written
    as given.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    with tempfile.NamedTemporaryFile(
        "w",
        encoding=encoding,
        newline="",
        dir=path.parent,
        prefix=f".{path.name}.",
        suffix=".tmp",
        delete=False,
    ) as handle:
        staged = Path(handle.name)
        try:
            handle.write(content)
            handle.flush()
            os.fsync(handle.fileno())
        except BaseException:
            staged.unlink(missing_ok=True)
            raise

    try:
        os.replace(staged, path)
    except BaseException:
        staged.unlink(missing_ok=True)
        raise


def sha1_file(path: Path) -> str:
    """Hex sha1 digest of a file, same value as `shasum <path>`."""
    digest = hashlib.sha1()
    with path.open("rb") as f:
        while chunk := f.read(_CHUNK_SIZE):
            digest.update(chunk)
    return digest.hexdigest()
