"""Loading of the marker paths that identify installed systems."""

from __future__ import annotations

import json
from dataclasses import dataclass
from functools import lru_cache
from importlib import resources
from pathlib import Path
from typing import Callable, Tuple

_DATA_PACKAGE = "storage_analyzer.data"
_DEFAULT_FILE = "os_markers.json"


@dataclass(frozen=True, slots=True)
class MarkerRule:
    """Paths that must all exist, plus paths of which at least one must exist."""

    required: Tuple[str, ...] = ()
    any_of: Tuple[str, ...] = ()

    def matches(self, exists: Callable[[str], bool]) -> bool:
        if not self.required and not self.any_of:
            return False
        if not all(exists(path) for path in self.required):
            return False
        return not self.any_of or any(exists(path) for path in self.any_of)


@dataclass(frozen=True, slots=True)
class OsMarkers:
    """Complete marker configuration."""

    windows: MarkerRule
    windows_system_name: str
    linux_root: MarkerRule
    release_files: Tuple[str, ...]
    fstab_path: str
    crypttab_path: str


def _parse_rule(raw: dict) -> MarkerRule:
    return MarkerRule(required=tuple(raw.get("all", ())), any_of=tuple(raw.get("any", ())))


def _parse_markers(raw: dict) -> OsMarkers:
    try:
        return OsMarkers(
            windows=_parse_rule(raw["windows"]),
            windows_system_name=raw["windows"].get("system_name", "Windows"),
            linux_root=_parse_rule(raw["linux_root"]),
            release_files=tuple(raw.get("release_files", ())),
            fstab_path=raw.get("fstab", "/etc/fstab"),
            crypttab_path=raw.get("crypttab", "/etc/crypttab"),
        )
    except KeyError as exc:
        raise ValueError(f"Missing marker section: {exc.args[0]}") from exc


def load_markers(path: Path | None = None) -> OsMarkers:
    """Reads the markers from the packaged resource or the given file."""

    if path is not None:
        with Path(path).open("r", encoding="utf-8") as handle:
            return _parse_markers(json.load(handle))
    with resources.files(_DATA_PACKAGE).joinpath(_DEFAULT_FILE).open("r", encoding="utf-8") as handle:
        return _parse_markers(json.load(handle))


@lru_cache(maxsize=1)
def load_default_markers() -> OsMarkers:
    return load_markers()


__all__ = ["MarkerRule", "OsMarkers", "load_default_markers", "load_markers"]
