"""Analyzer configuration."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

from storage_analyzer.os_detection.detector import DEFAULT_INSPECTION_TIMEOUT


@dataclass(frozen=True, slots=True)
class AnalyzerConfig:
    """General analyzer settings.

    ``inspection_timeout`` of ``None`` waits for the inspector indefinitely;
    ``machine`` overrides the detected host architecture.
    """

    inspection_timeout: Optional[float] = DEFAULT_INSPECTION_TIMEOUT
    machine: Optional[str] = None

    @classmethod
    def default(cls) -> "AnalyzerConfig":
        return cls()

    @classmethod
    def from_env(cls) -> "AnalyzerConfig":
        """Reads the configuration from the environment.

        - ``STORAGE_ANALYZER_INSPECTION_TIMEOUT``: seconds, ``0`` or ``none``
          disables the limit. Unparsable values fall back to the default.
        - ``STORAGE_ANALYZER_MACHINE``: machine name, e.g. ``x86_64``.
        """

        timeout = _parse_timeout(os.getenv("STORAGE_ANALYZER_INSPECTION_TIMEOUT"))
        machine = (os.getenv("STORAGE_ANALYZER_MACHINE") or "").strip() or None
        return cls(inspection_timeout=timeout, machine=machine)


def _parse_timeout(raw: Optional[str]) -> Optional[float]:
    value = (raw or "").strip().lower()
    if not value:
        return DEFAULT_INSPECTION_TIMEOUT
    if value in {"0", "none", "off"}:
        return None
    try:
        timeout = float(value)
    except ValueError:
        return DEFAULT_INSPECTION_TIMEOUT
    return timeout if timeout > 0 else None


__all__ = ["AnalyzerConfig"]
