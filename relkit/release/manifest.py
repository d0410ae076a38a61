from __future__ import annotations

import json
import re
from dataclasses import dataclass
from pathlib import Path

from relkit.core.result import Err, Ok, Result
from relkit.core.structured import as_str_dict, get_str
from relkit.output.console import ConsoleProtocol
from relkit.platform.files import atomic_write_text
from relkit.release.errors import ReleaseError
from relkit.release.semver import is_valid


@dataclass(frozen=True, slots=True)
class PackageManifest:
    path: Path
    name: str
    version: str


def load_manifest(
    path: Path,
    *,
    expected_name: str,
    console: ConsoleProtocol,
    exit_code: int = 1,
) -> Result[PackageManifest, ReleaseError]:
    """Load package.json and check it belongs to the expected module.

    The version must be valid semver so it can be bumped.
    """
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return Err(
            ReleaseError(
                kind="missing_file",
                message=f"Could not locate the package.json file at {path}",
                exit_code=exit_code,
            )
        )
    except OSError as e:
        return Err(
            ReleaseError(
                kind="io_failed",
                message=f"failed to read {path}: {e}",
                exit_code=exit_code,
            )
        )

    try:
        obj: object = json.loads(text)
    except json.JSONDecodeError as e:
        return Err(
            ReleaseError(
                kind="invalid_manifest",
                message=f"Parsing error trying to load {path}. It should be a valid JSON file",
                hint=str(e),
                exit_code=exit_code,
            )
        )

    data = as_str_dict(obj)
    name = get_str(data, "name") if data is not None else None
    if name != expected_name:
        return Err(
            ReleaseError(
                kind="invalid_manifest",
                message=(
                    f"The package.json file located at {path} is not the package.json "
                    f'for the expected module (its "name" attribute is not "{expected_name}")'
                ),
                exit_code=exit_code,
            )
        )

    version = get_str(data, "version") if data is not None else None
    if version is None or not is_valid(version):
        return Err(
            ReleaseError(
                kind="invalid_version",
                message=(
                    f"The package.json file located at {path} does not have a valid "
                    'version associated to it (its "version" attribute is not set or '
                    "is not a valid semver version)"
                ),
                exit_code=exit_code,
            )
        )

    console.success(
        f"Successfully parsed and validated {path} (name: {name}, version: {version})"
    )
    return Ok(PackageManifest(path=path, name=name, version=version))


def rewrite_version(
    path: Path,
    *,
    from_version: str,
    to_version: str,
    console: ConsoleProtocol,
    exit_code: int = 1,
) -> Result[None, ReleaseError]:
    """Replace the `"version": "<from>"` entry in place, keeping formatting.

    Only the top-level field is replaced, even when a nested object carries
    the same version earlier in the file. A rewrite that changes nothing
    means the manifest drifted from the expected layout, and fails without
    touching the file.
    """
    try:
        before = path.read_text(encoding="utf-8")
    except OSError as e:
        return Err(
            ReleaseError(
                kind="io_failed",
                message=f"failed to read {path}: {e}",
                exit_code=exit_code,
            )
        )

    source = re.compile(r'("version"\s*:\s*")' + re.escape(from_version) + r'(")')
    replace_with = f'"version": "{to_version}"'
    candidates = [
        before[: m.start()] + m.group(1) + to_version + m.group(2) + before[m.end() :]
        for m in source.finditer(before)
    ]

    if not candidates:
        return Err(
            ReleaseError(
                kind="rewrite_noop",
                message=(
                    f'Replacing "version": "{from_version}" with {replace_with} '
                    f"in {path.name} resulted in no changes"
                ),
                exit_code=exit_code,
            )
        )

    # Nested objects may carry the same version; only the top-level field counts
    after = next((c for c in candidates if _top_level_version(c) == to_version), None)
    if after is None:
        return Err(
            ReleaseError(
                kind="rewrite_noop",
                message=f"Resulting {path.name} file did not contain the text {replace_with}",
                hint=f"top-level version is {_top_level_version(before)!r}",
                exit_code=exit_code,
            )
        )

    try:
        atomic_write_text(path, after, encoding="utf-8")
    except OSError as e:
        return Err(
            ReleaseError(
                kind="io_failed",
                message=f"failed to write {path}: {e}",
                exit_code=exit_code,
            )
        )

    console.success(f"Successfully bumped version to {to_version}")
    return Ok(None)


def _top_level_version(text: str) -> str | None:
    try:
        data = as_str_dict(json.loads(text))
    except json.JSONDecodeError:
        return None
    if data is None:
        return None
    return get_str(data, "version")
