"""Typed configuration loading and access.

This module provides dataclasses for the ``release.toml`` structure. Every
field has a default matching the Node application the tool was built for, so
the file is optional.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

from .result import Err, Ok, Result
from .structured import StrDict, as_str_dict, get_int, get_str, get_str_list, get_table

__all__ = [
    "CONFIG_FILE_NAME",
    "Config",
    "ConfigError",
    "PackageConfig",
    "ReleaseConfig",
    "UploadConfig",
    "load_config",
    "load_config_or_default",
]

CONFIG_FILE_NAME = "release.toml"

DEFAULT_MODULE = "Hilary"
DEFAULT_REMOTE = "origin"
DEFAULT_MANIFEST = "package.json"
DEFAULT_LOCKFILE = "npm-shrinkwrap.json"
DEFAULT_FREEZE_COMMAND = ("npm", "shrinkwrap")
DEFAULT_EXIT_CODE = 1

DEFAULT_RELEASE_FILES = (
    "app.js",
    "config.js",
    "LICENSE",
    "npm-shrinkwrap.json",
    "package.json",
    "README.md",
)
DEFAULT_DEPENDENCIES_DIR = "node_modules"
DEFAULT_STRIP_SUFFIXES = (".orig", ".rej")
DEFAULT_STRIP_TESTS = ("oae-*",)
DEFAULT_TOOL_VERSION_COMMAND = ("node", "-v")
DEFAULT_ARCHIVE_NAME = "{name}-{version}"

DEFAULT_REGION = "us-east-1"


@dataclass(frozen=True, slots=True)
class ConfigError:
    """Error when config cannot be loaded or parsed."""

    message: str
    path: Path | None = None


@dataclass(frozen=True, slots=True)
class ReleaseConfig:
    """Version bump / tagging settings ([release] table)."""

    module: str = DEFAULT_MODULE
    remote: str = DEFAULT_REMOTE
    manifest: str = DEFAULT_MANIFEST
    lockfile: str = DEFAULT_LOCKFILE
    freeze_command: tuple[str, ...] = DEFAULT_FREEZE_COMMAND
    test_command: tuple[str, ...] | None = None
    exit_code: int = DEFAULT_EXIT_CODE


@dataclass(frozen=True, slots=True)
class PackageConfig:
    """Staging and archive settings ([package] table).

    ``strip_tests`` holds glob patterns matched against package directory
    names inside ``dependencies``; the ``tests`` directory of every match is
    removed from the staged tree.
    """

    files: tuple[str, ...] = DEFAULT_RELEASE_FILES
    dependencies: str = DEFAULT_DEPENDENCIES_DIR
    strip_suffixes: tuple[str, ...] = DEFAULT_STRIP_SUFFIXES
    strip_tests: tuple[str, ...] = DEFAULT_STRIP_TESTS
    tool_version_command: tuple[str, ...] = DEFAULT_TOOL_VERSION_COMMAND
    archive_name: str = DEFAULT_ARCHIVE_NAME


@dataclass(frozen=True, slots=True)
class UploadConfig:
    """Object store settings ([upload] table)."""

    bucket: str | None = None
    region: str = DEFAULT_REGION


@dataclass(frozen=True, slots=True)
class Config:
    """Main configuration container."""

    release: ReleaseConfig = field(default_factory=ReleaseConfig)
    package: PackageConfig = field(default_factory=PackageConfig)
    upload: UploadConfig = field(default_factory=UploadConfig)

    @classmethod
    def from_dict(cls, data: Mapping[str, object]) -> Config:
        """Create Config from a mapping (parsed TOML)."""
        release: StrDict = get_table(data, "release") or {}
        package: StrDict = get_table(data, "package") or {}
        upload: StrDict = get_table(data, "upload") or {}

        exit_code = get_int(release, "exit_code")
        if exit_code is not None and not 1 <= exit_code <= 255:
            raise ValueError(f"release.exit_code must be within 1..255, got {exit_code}")

        strip_suffixes = get_str_list(package, "strip_suffixes")
        strip_tests = get_str_list(package, "strip_tests")

        return cls(
            release=ReleaseConfig(
                module=get_str(release, "module") or DEFAULT_MODULE,
                remote=get_str(release, "remote") or DEFAULT_REMOTE,
                manifest=get_str(release, "manifest") or DEFAULT_MANIFEST,
                lockfile=get_str(release, "lockfile") or DEFAULT_LOCKFILE,
                freeze_command=get_str_list(release, "freeze_command") or DEFAULT_FREEZE_COMMAND,
                test_command=get_str_list(release, "test_command") or None,
                exit_code=exit_code or DEFAULT_EXIT_CODE,
            ),
            package=PackageConfig(
                files=get_str_list(package, "files") or DEFAULT_RELEASE_FILES,
                dependencies=get_str(package, "dependencies") or DEFAULT_DEPENDENCIES_DIR,
                strip_suffixes=(
                    DEFAULT_STRIP_SUFFIXES if strip_suffixes is None else strip_suffixes
                ),
                strip_tests=DEFAULT_STRIP_TESTS if strip_tests is None else strip_tests,
                tool_version_command=get_str_list(package, "tool_version_command")
                or DEFAULT_TOOL_VERSION_COMMAND,
                archive_name=get_str(package, "archive_name") or DEFAULT_ARCHIVE_NAME,
            ),
            upload=UploadConfig(
                bucket=get_str(upload, "bucket"),
                region=get_str(upload, "region") or DEFAULT_REGION,
            ),
        )


def _read_toml(path: Path) -> Result[StrDict, ConfigError]:
    import tomllib

    try:
        with path.open("rb") as handle:
            parsed: object = tomllib.load(handle)
    except FileNotFoundError:
        return Err(ConfigError(f"Config file not found: {path}", path=path))
    except OSError as e:
        return Err(ConfigError(f"Cannot read {path}: {e.strerror or e}", path=path))
    except (tomllib.TOMLDecodeError, UnicodeDecodeError) as e:
        return Err(ConfigError(f"Invalid TOML in {path.name}: {e}", path=path))

    data = as_str_dict(parsed)
    if data is None:
        return Err(ConfigError("Config root must be a TOML table", path=path))
    return Ok(data)


def load_config(path: Path) -> Result[Config, ConfigError]:
    """Read release.toml at path. Missing tables and keys take their defaults."""
    data = _read_toml(path)
    if isinstance(data, Err):
        return data

    try:
        return Ok(Config.from_dict(data.value))
    except ValueError as e:
        return Err(ConfigError(f"Invalid config structure: {e}", path=path))


def load_config_or_default(path: Path) -> Result[Config, ConfigError]:
    """Like load_config, but a missing file means all defaults."""
    if not path.is_file():
        return Ok(Config())
    return load_config(path)
