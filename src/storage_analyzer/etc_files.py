"""Parsing of /etc/fstab, /etc/crypttab and os-release found on existing systems."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from storage_analyzer.core.models import Device


def _split_options(raw: str) -> Tuple[str, ...]:
    return tuple(option for option in raw.split(",") if option)


def _content_lines(content: str) -> List[List[str]]:
    rows = []
    for raw_line in content.splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        rows.append(line.split())
    return rows


@dataclass(frozen=True, slots=True)
class FstabEntry:
    """Single line of an fstab file."""

    spec: str
    mount_point: str
    fs_type: str
    options: Tuple[str, ...] = ()
    dump: int = 0
    passno: int = 0


@dataclass(slots=True)
class Fstab:
    """Fstab file read from ``filesystem``."""

    filesystem: Device
    entries: List[FstabEntry] = field(default_factory=list)

    @classmethod
    def parse(cls, content: str, filesystem: Device) -> "Fstab":
        """Builds the table, skipping lines that are not valid fstab entries."""

        fstab = cls(filesystem=filesystem)
        for columns in _content_lines(content):
            if len(columns) < 3:
                continue
            try:
                dump = int(columns[4]) if len(columns) > 4 else 0
                passno = int(columns[5]) if len(columns) > 5 else 0
            except ValueError:
                continue
            fstab.entries.append(
                FstabEntry(
                    spec=columns[0],
                    mount_point=columns[1],
                    fs_type=columns[2],
                    options=_split_options(columns[3]) if len(columns) > 3 else (),
                    dump=dump,
                    passno=passno,
                )
            )
        return fstab

    def root_entry(self) -> Optional[FstabEntry]:
        return next((entry for entry in self.entries if entry.mount_point == "/"), None)


@dataclass(frozen=True, slots=True)
class CrypttabEntry:
    """Single line of a crypttab file."""

    name: str
    device: str
    password: Optional[str] = None
    options: Tuple[str, ...] = ()


@dataclass(slots=True)
class Crypttab:
    """Crypttab file read from ``filesystem``."""

    filesystem: Device
    entries: List[CrypttabEntry] = field(default_factory=list)

    @classmethod
    def parse(cls, content: str, filesystem: Device) -> "Crypttab":
        crypttab = cls(filesystem=filesystem)
        for columns in _content_lines(content):
            if len(columns) < 2:
                continue
            password = columns[2] if len(columns) > 2 and columns[2] != "none" else None
            crypttab.entries.append(
                CrypttabEntry(
                    name=columns[0],
                    device=columns[1],
                    password=password,
                    options=_split_options(columns[3]) if len(columns) > 3 else (),
                )
            )
        return crypttab


def parse_os_release(content: str) -> Dict[str, str]:
    """Parses the KEY=value lines of an os-release file."""

    values: Dict[str, str] = {}
    for raw_line in content.splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, value = line.split("=", 1)
        values[key.strip()] = value.strip().strip('"').strip("'")
    return values


def release_name_from_os_release(content: str) -> Optional[str]:
    values = parse_os_release(content)
    pretty = values.get("PRETTY_NAME")
    if pretty:
        return pretty
    name = values.get("NAME")
    if not name:
        return None
    version = values.get("VERSION")
    return f"{name} {version}" if version else name


__all__ = [
    "Crypttab",
    "CrypttabEntry",
    "Fstab",
    "FstabEntry",
    "parse_os_release",
    "release_name_from_os_release",
]
