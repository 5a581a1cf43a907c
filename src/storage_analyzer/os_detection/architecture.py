"""Host architecture lookup."""

from __future__ import annotations

import platform
from dataclasses import dataclass
from typing import Protocol

_WINDOWS_MACHINES = frozenset({"x86_64", "amd64", "x64", "i386", "i486", "i586", "i686", "x86"})


class ArchitectureProvider(Protocol):
    """Tells whether the running architecture can host MS Windows."""

    def is_windows_capable(self) -> bool:
        """True for x86 class architectures."""


@dataclass(frozen=True, slots=True)
class Architecture:
    """Architecture given by its machine name (as ``uname -m`` reports it)."""

    machine: str

    @classmethod
    def host(cls) -> "Architecture":
        return cls(machine=platform.machine())

    def is_windows_capable(self) -> bool:
        return self.machine.strip().lower() in _WINDOWS_MACHINES


__all__ = ["Architecture", "ArchitectureProvider"]
