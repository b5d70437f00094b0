"""
Semantic Version Comparator

Parses SemVer 2.0.0 strings and orders them by precedence:

    1.0.0-alpha < 1.0.0-alpha.1 < 1.0.0-beta < 1.0.0-rc.1 < 1.0.0 < 1.0.1

Build metadata ("+build.5") is parsed and preserved but ignored for
precedence, so "1.0.0+a" and "1.0.0+b" compare equal.

Copyright (c) 2026 Momentum. All rights reserved.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from functools import total_ordering
from typing import Tuple, Union

from group_approval.contract.errors import VersionParseError


SEMVER_RE = re.compile(
    r"^(0|[1-9]\d*)\.(0|[1-9]\d*)\.(0|[1-9]\d*)"
    r"(?:-((?:0|[1-9]\d*|\d*[A-Za-z-][0-9A-Za-z-]*)"
    r"(?:\.(?:0|[1-9]\d*|\d*[A-Za-z-][0-9A-Za-z-]*))*))?"
    r"(?:\+([0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*))?$"
)


@total_ordering
@dataclass(frozen=True)
class Version:
    """A parsed semantic version."""
    major: int
    minor: int
    patch: int
    prerelease: Tuple[str, ...] = ()
    build: Tuple[str, ...] = field(default=(), compare=False)

    @classmethod
    def parse(cls, value: str) -> "Version":
        """Parse a version string, raising VersionParseError if malformed."""
        if not isinstance(value, str):
            raise VersionParseError(repr(value), "expected a string")
        m = SEMVER_RE.fullmatch(value)
        if not m:
            raise VersionParseError(value)
        major, minor, patch, pre, build = m.groups()
        return cls(
            major=int(major),
            minor=int(minor),
            patch=int(patch),
            prerelease=tuple(pre.split(".")) if pre else (),
            build=tuple(build.split(".")) if build else (),
        )

    def _precedence_key(self) -> Tuple:
        # A release sorts after every prerelease of the same core version.
        pre_key = tuple(
            (0, int(ident), "") if ident.isdigit() else (1, 0, ident)
            for ident in self.prerelease
        )
        return (self.major, self.minor, self.patch, 0 if self.prerelease else 1, pre_key)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        return self._precedence_key() == other._precedence_key()

    def __lt__(self, other: "Version") -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        return self._precedence_key() < other._precedence_key()

    def __hash__(self) -> int:
        return hash(self._precedence_key())

    def __str__(self) -> str:
        s = f"{self.major}.{self.minor}.{self.patch}"
        if self.prerelease:
            s += "-" + ".".join(self.prerelease)
        if self.build:
            s += "+" + ".".join(self.build)
        return s


def parse_version(value: Union[str, Version]) -> Version:
    """Parse a version string; Version instances pass through."""
    if isinstance(value, Version):
        return value
    return Version.parse(value)


def is_valid_version(value: str) -> bool:
    """Check if a string is a valid semantic version."""
    return isinstance(value, str) and bool(SEMVER_RE.fullmatch(value))


def is_upgrade(running: Union[str, Version], stored: Union[str, Version]) -> bool:
    """Return True if ``running`` strictly exceeds ``stored`` in precedence."""
    return parse_version(running) > parse_version(stored)
