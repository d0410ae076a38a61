from __future__ import annotations

import re
from dataclasses import dataclass

# semver.org 2.0.0 grammar; no leading "v", no leading zeros in numeric parts
_SEMVER_RE = re.compile(
    r"^(0|[1-9]\d*)\.(0|[1-9]\d*)\.(0|[1-9]\d*)"
    r"(?:-((?:0|[1-9]\d*|\d*[a-zA-Z-][0-9a-zA-Z-]*)"
    r"(?:\.(?:0|[1-9]\d*|\d*[a-zA-Z-][0-9a-zA-Z-]*))*))?"
    r"(?:\+([0-9a-zA-Z-]+(?:\.[0-9a-zA-Z-]+)*))?$",
    re.ASCII,
)

type _PrereleaseKey = tuple[tuple[int, int, str], ...]


@dataclass(frozen=True, slots=True, eq=False)
class SemVer:
    """A parsed version.

    Equality and ordering both follow precedence: build metadata never
    distinguishes two versions.
    """

    major: int
    minor: int
    patch: int
    prerelease: tuple[str, ...] = ()
    build: tuple[str, ...] = ()

    def __str__(self) -> str:
        out = f"{self.major}.{self.minor}.{self.patch}"
        if self.prerelease:
            out += "-" + ".".join(self.prerelease)
        if self.build:
            out += "+" + ".".join(self.build)
        return out

    @property
    def major_minor(self) -> str:
        return f"{self.major}.{self.minor}"

    def precedence_key(self) -> tuple[int, int, int, int, _PrereleaseKey]:
        """Sort key implementing semver precedence.

        A release sorts after all of its pre-releases. Numeric identifiers
        sort numerically and before alphanumeric ones. Build metadata is
        ignored.
        """
        if not self.prerelease:
            return (self.major, self.minor, self.patch, 1, ())
        ids: list[tuple[int, int, str]] = []
        for ident in self.prerelease:
            if ident.isdigit():
                ids.append((0, int(ident), ""))
            else:
                ids.append((1, 0, ident))
        return (self.major, self.minor, self.patch, 0, tuple(ids))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SemVer):
            return NotImplemented
        return self.precedence_key() == other.precedence_key()

    def __hash__(self) -> int:
        return hash(self.precedence_key())

    def __lt__(self, other: SemVer) -> bool:
        return self.precedence_key() < other.precedence_key()

    def __le__(self, other: SemVer) -> bool:
        return self.precedence_key() <= other.precedence_key()

    def __gt__(self, other: SemVer) -> bool:
        return self.precedence_key() > other.precedence_key()

    def __ge__(self, other: SemVer) -> bool:
        return self.precedence_key() >= other.precedence_key()


def parse_version(text: str) -> SemVer | None:
    m = _SEMVER_RE.fullmatch(text)
    if m is None:
        return None
    prerelease = tuple(m.group(4).split(".")) if m.group(4) else ()
    build = tuple(m.group(5).split(".")) if m.group(5) else ()
    return SemVer(int(m.group(1)), int(m.group(2)), int(m.group(3)), prerelease, build)


def is_valid(text: str) -> bool:
    return parse_version(text) is not None
