"""Classification of filesystems as hosting Windows or a Linux root."""

from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Dict, Optional, Protocol

import structlog

from storage_analyzer.core.devicegraph import Devicegraph
from storage_analyzer.core.errors import StorageAnalyzerError
from storage_analyzer.core.models import ROOT_SUITABLE_TYPES, WINDOWS_SUITABLE_TYPES, Device
from storage_analyzer.etc_files import Crypttab, Fstab
from .architecture import Architecture, ArchitectureProvider

DEFAULT_INSPECTION_TIMEOUT = 30.0


class InspectionError(StorageAnalyzerError):
    """Raised by content inspectors when a filesystem cannot be read."""


@dataclass(frozen=True, slots=True)
class InspectionResult:
    """What a content inspector found on a filesystem."""

    windows: bool = False
    linux_root: bool = False
    system_name: Optional[str] = None
    release_name: Optional[str] = None
    fstab: Optional[str] = None
    crypttab: Optional[str] = None


EMPTY_INSPECTION = InspectionResult()


class ContentInspector(Protocol):
    """Reads a filesystem without modifying it."""

    def inspect(self, filesystem: Device, device_path: str) -> InspectionResult:
        """Inspects the filesystem reachable at ``device_path``."""


class OsDetector:
    """Answers OS related questions about the filesystems of one device graph.

    Every filesystem is inspected at most once. Inspection failures and
    timeouts are logged and treated as "nothing found".
    """

    def __init__(
        self,
        devicegraph: Devicegraph,
        *,
        inspector: ContentInspector,
        architecture: ArchitectureProvider | None = None,
        timeout: float | None = DEFAULT_INSPECTION_TIMEOUT,
    ) -> None:
        self._devicegraph = devicegraph
        self._inspector = inspector
        self._architecture = architecture or Architecture.host()
        self._timeout = timeout
        self._logger = structlog.get_logger(__name__)
        self._results: Dict[int, InspectionResult] = {}

    def windows_architecture(self) -> bool:
        return self._architecture.is_windows_capable()

    def is_windows_host(self, filesystem: Device) -> bool:
        if not self.windows_architecture():
            return False
        if filesystem.fs_type not in WINDOWS_SUITABLE_TYPES:
            return False
        return self._inspect(filesystem).windows

    def is_linux_root_suitable(self, filesystem: Device) -> bool:
        if filesystem.fs_type not in ROOT_SUITABLE_TYPES:
            return False
        return self._inspect(filesystem).linux_root

    def system_name(self, filesystem: Device) -> Optional[str]:
        return self._inspect(filesystem).system_name

    def release_name(self, filesystem: Device) -> Optional[str]:
        return self._inspect(filesystem).release_name

    def fstab(self, filesystem: Device) -> Optional[Fstab]:
        content = self._inspect(filesystem).fstab
        if content is None:
            return None
        return Fstab.parse(content, filesystem)

    def crypttab(self, filesystem: Device) -> Optional[Crypttab]:
        content = self._inspect(filesystem).crypttab
        if content is None:
            return None
        return Crypttab.parse(content, filesystem)

    # ------------------------------------------------------------------
    # Inspection
    # ------------------------------------------------------------------

    def _inspect(self, filesystem: Device) -> InspectionResult:
        cached = self._results.get(filesystem.sid)
        if cached is not None:
            return cached

        blk_devices = self._devicegraph.filesystem_blk_devices(filesystem)
        if not blk_devices or blk_devices[0].name is None:
            result = EMPTY_INSPECTION
        else:
            result = self._run_inspection(filesystem, blk_devices[0].name)

        self._results[filesystem.sid] = result
        return result

    def _run_inspection(self, filesystem: Device, device_path: str) -> InspectionResult:
        if self._timeout is None:
            try:
                return self._inspector.inspect(filesystem, device_path)
            except Exception as exc:
                self._logger.warning("inspection-failed", device=device_path, error=str(exc))
                return EMPTY_INSPECTION

        outcome: Dict[str, object] = {}

        def worker() -> None:
            try:
                outcome["result"] = self._inspector.inspect(filesystem, device_path)
            except Exception as exc:
                outcome["error"] = exc

        # Daemon thread: a stuck inspection must not keep the process alive.
        thread = threading.Thread(target=worker, name=f"inspect-{filesystem.sid}", daemon=True)
        thread.start()
        thread.join(self._timeout)

        if thread.is_alive():
            self._logger.warning("inspection-timeout", device=device_path, timeout=self._timeout)
            return EMPTY_INSPECTION
        if "error" in outcome:
            self._logger.warning("inspection-failed", device=device_path, error=str(outcome["error"]))
            return EMPTY_INSPECTION
        return outcome["result"]  # type: ignore[return-value]


__all__ = [
    "ContentInspector",
    "DEFAULT_INSPECTION_TIMEOUT",
    "EMPTY_INSPECTION",
    "InspectionError",
    "InspectionResult",
    "OsDetector",
]
