"""Content inspection of filesystems with pytsk3 (read-only, no mounting)."""

from __future__ import annotations

from typing import Optional

import pytsk3
from structlog import get_logger

from storage_analyzer.core.models import Device
from storage_analyzer.etc_files import release_name_from_os_release
from .detector import InspectionError, InspectionResult
from .markers import OsMarkers, load_default_markers

# Upper bound for configuration files read from inspected filesystems.
_MAX_FILE_SIZE = 1024 * 1024


class TskContentInspector:
    """Inspector opening the block device of a filesystem through The Sleuth Kit."""

    name = "tsk"

    def __init__(self, markers: OsMarkers | None = None) -> None:
        self._markers = markers or load_default_markers()
        self._logger = get_logger(__name__)

    def inspect(self, filesystem: Device, device_path: str) -> InspectionResult:
        fs_handle = self._open(device_path)

        def exists(path: str) -> bool:
            return self._exists(fs_handle, path)

        windows = self._markers.windows.matches(exists)
        linux_root = self._markers.linux_root.matches(exists)
        self._logger.debug("inspected", device=device_path, windows=windows, linux_root=linux_root)

        if not linux_root:
            return InspectionResult(
                windows=windows,
                system_name=self._markers.windows_system_name if windows else None,
            )

        return InspectionResult(
            windows=windows,
            linux_root=True,
            system_name=self._markers.windows_system_name if windows else None,
            release_name=self._release_name(fs_handle),
            fstab=self._read_text(fs_handle, self._markers.fstab_path),
            crypttab=self._read_text(fs_handle, self._markers.crypttab_path),
        )

    # ------------------------------------------------------------------
    # pytsk3 access
    # ------------------------------------------------------------------

    @staticmethod
    def _open(device_path: str) -> pytsk3.FS_Info:
        try:
            img = pytsk3.Img_Info(device_path)
            return pytsk3.FS_Info(img)
        except (OSError, RuntimeError) as exc:
            raise InspectionError(f"Cannot open a filesystem on {device_path}") from exc

    @staticmethod
    def _exists(fs_handle: pytsk3.FS_Info, path: str) -> bool:
        try:
            fs_handle.open(path)
        except (OSError, RuntimeError):
            return False
        return True

    def _read_text(self, fs_handle: pytsk3.FS_Info, path: str) -> Optional[str]:
        try:
            handle = fs_handle.open(path)
            size = min(int(handle.info.meta.size), _MAX_FILE_SIZE)
            data = handle.read_random(0, size) if size > 0 else b""
        except (OSError, RuntimeError, AttributeError) as exc:
            self._logger.debug("file-read-failed", path=path, error=str(exc))
            return None
        return data.decode("utf-8", errors="replace")

    def _release_name(self, fs_handle: pytsk3.FS_Info) -> Optional[str]:
        for path in self._markers.release_files:
            content = self._read_text(fs_handle, path)
            if content is None:
                continue
            release = release_name_from_os_release(content)
            if release:
                return release
        return None


__all__ = ["TskContentInspector"]
