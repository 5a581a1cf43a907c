"""Analysis of the storage setup of an existing system.

Finds the devices that are candidates to install on, leaving out devices
with mounted filesystems and the installation media itself, and detects
previously installed Windows and Linux systems. Some of these operations
inspect the content of filesystems, see :class:`OsDetector`.
"""

from __future__ import annotations

from typing import Iterable, List, Optional, Set, Tuple, Union

import structlog

from storage_analyzer.etc_files import Crypttab, Fstab
from storage_analyzer.os_detection.architecture import Architecture, ArchitectureProvider
from storage_analyzer.os_detection.detector import OsDetector
from storage_analyzer.repositories.correlator import InstallationRepository, device_names_from_repositories
from storage_analyzer.shared.config import AnalyzerConfig
from .devicegraph import Devicegraph
from .errors import InvalidArgumentError, NotFoundError
from .models import LINUX_SYSTEM_IDS, WINDOWS_SYSTEM_IDS, Device, PartitionType
from .names import NameResolver

DiskRef = Union[Device, str]


class DiskAnalyzer:
    """Analyzer of one device graph.

    Derived results are computed on first use and cached for the lifetime of
    the instance; build a new analyzer for a new device graph. Instances are
    not meant to be shared between threads.

    Methods taking ``*disks`` accept devices or device names and default to
    every disk device, software RAID and bcache of the graph.
    """

    def __init__(
        self,
        devicegraph: Devicegraph,
        *,
        repositories: Iterable[InstallationRepository] | None = None,
        os_detector: OsDetector | None = None,
        architecture: ArchitectureProvider | None = None,
        config: AnalyzerConfig | None = None,
    ) -> None:
        if devicegraph is None:
            raise InvalidArgumentError("A device graph is required")

        self._config = config or AnalyzerConfig.default()
        self._devicegraph = devicegraph
        self._repositories = list(repositories or ())
        self._architecture = architecture or self._default_architecture()
        self._os_detector = os_detector or self._default_os_detector()
        self._names = NameResolver(devicegraph)
        self._logger = structlog.get_logger(__name__)

        self._candidate_disks: Optional[Tuple[Device, ...]] = None
        self._repositories_devices: Optional[frozenset[str]] = None
        self._linux_suitable_cache: Optional[Tuple[Device, ...]] = None
        self._fstabs: Optional[Tuple[Fstab, ...]] = None
        self._crypttabs: Optional[Tuple[Crypttab, ...]] = None

    @property
    def devicegraph(self) -> Devicegraph:
        return self._devicegraph

    # ------------------------------------------------------------------
    # Installed systems
    # ------------------------------------------------------------------

    def windows_system(self, *disks: DiskRef) -> bool:
        """Whether there is a Windows system on the given disks."""

        if not self._windows_architecture():
            return False
        return any(self._os_detector.is_windows_host(fs) for fs in self._filesystems_collection(disks))

    def windows_partitions(self, *disks: DiskRef) -> List[Device]:
        """Block devices holding an installation of MS Windows."""

        if not self._windows_architecture():
            return []
        return [
            blk_device
            for filesystem in self._windows_filesystems(disks)
            for blk_device in self._devicegraph.filesystem_blk_devices(filesystem)
        ]

    def possible_windows_partitions(self, *disks: DiskRef) -> List[Device]:
        """Primary partitions whose id suggests a Windows system; no inspection."""

        return [
            partition
            for partition in self._partitions_collection(disks)
            if partition.partition_type is PartitionType.PRIMARY and partition.partition_id in WINDOWS_SYSTEM_IDS
        ]

    def linux_partitions(self, *disks: DiskRef) -> List[Device]:
        """Partitions with a Linux system partition id, in on-disk order."""

        return [
            partition
            for partition in self._partitions_collection(disks)
            if partition.partition_type is not PartitionType.EXTENDED and partition.partition_id in LINUX_SYSTEM_IDS
        ]

    def installed_systems(self, *disks: DiskRef) -> List[str]:
        """Names of the installed systems, Windows ones first."""

        return self.windows_systems(*disks) + self.linux_systems(*disks)

    def windows_systems(self, *disks: DiskRef) -> List[str]:
        names = (self._os_detector.system_name(fs) for fs in self._windows_filesystems(disks))
        return [name for name in names if name is not None]

    def linux_systems(self, *disks: DiskRef) -> List[str]:
        """Release names of the Linux systems (filesystems over LVM LVs are not considered)."""

        names = (self._os_detector.release_name(fs) for fs in self._linux_suitable_filesystems(disks))
        return [name for name in names if name is not None]

    def fstabs(self) -> Tuple[Fstab, ...]:
        """Every fstab found in the system, including on filesystems over LVM LVs."""

        if self._fstabs is None:
            tables = (self._os_detector.fstab(fs) for fs in self._all_linux_suitable_filesystems())
            self._fstabs = tuple(table for table in tables if table is not None)
        return self._fstabs

    def crypttabs(self) -> Tuple[Crypttab, ...]:
        """Every crypttab found in the system, including on filesystems over LVM LVs."""

        if self._crypttabs is None:
            tables = (self._os_detector.crypttab(fs) for fs in self._all_linux_suitable_filesystems())
            self._crypttabs = tuple(table for table in tables if table is not None)
        return self._crypttabs

    # ------------------------------------------------------------------
    # Candidate disks
    # ------------------------------------------------------------------

    def candidate_disks(self) -> Tuple[Device, ...]:
        """Devices suitable for installing Linux.

        Valid candidate software RAIDs first, then the candidate disk devices
        that are not members of any of those RAIDs.
        """

        if self._candidate_disks is not None:
            return self._candidate_disks

        raids = self._candidate_software_raids()
        self._candidate_disks = tuple(raids + self._candidate_disk_devices(raids))
        self._logger.info("candidate-disks-found", disks=[str(disk) for disk in self._candidate_disks])
        return self._candidate_disks

    def device_by_name(self, name: str) -> Optional[Device]:
        """Block device with the given kernel name or alias."""

        return self._devicegraph.find_by_name(name)

    def repositories_devices(self) -> frozenset[str]:
        """Device names referenced by the local installation repositories."""

        if self._repositories_devices is None:
            self._repositories_devices = frozenset(device_names_from_repositories(self._repositories))
        return self._repositories_devices

    def device_names(self, device: Device) -> Set[str]:
        return self._names.names_of(device)

    # ------------------------------------------------------------------
    # Candidate filtering
    # ------------------------------------------------------------------

    def _candidate_software_raids(self) -> List[Device]:
        return [
            md
            for md in self._devicegraph.software_raids()
            if (self._devicegraph.partition_table(md) is not None or not self._devicegraph.children(md))
            and self._candidate_disk(md)
        ]

    def _candidate_disk_devices(self, candidate_raids: List[Device]) -> List[Device]:
        rejected = {ancestor for md in candidate_raids for ancestor in self._devicegraph.ancestors(md)}
        return [
            disk
            for disk in self._devicegraph.disk_devices()
            if disk not in rejected and self._candidate_disk(disk)
        ]

    def _candidate_disk(self, device: Device) -> bool:
        return not self._contains_mounted_filesystem(device) and not self._contains_installation_repository(device)

    def _contains_mounted_filesystem(self, device: Device) -> bool:
        # Partitions and LVM volume groups built over the device are descendants too.
        return any(
            descendant.is_filesystem and descendant.has_active_mount_point
            for descendant in self._devicegraph.descendants(device)
        )

    def _contains_installation_repository(self, device: Device) -> bool:
        repositories_devices = self.repositories_devices()
        if not repositories_devices:
            return False
        return not self._names.names_of(device).isdisjoint(repositories_devices)

    # ------------------------------------------------------------------
    # Collections
    # ------------------------------------------------------------------

    def _disks_collection(self, disks: Tuple[DiskRef, ...]) -> List[Device]:
        if not disks:
            return (
                self._devicegraph.disk_devices()
                + self._devicegraph.software_raids()
                + self._devicegraph.bcaches()
            )

        collection: List[Device] = []
        for disk in disks:
            if isinstance(disk, str):
                device = self._devicegraph.find_by_name(disk)
                if device is None:
                    self._logger.warning("unknown-disk-name", name=disk)
                    continue
            else:
                if not self._devicegraph.contains(disk):
                    raise NotFoundError(f"Device {disk} is not part of the device graph")
                device = disk
            collection.append(device)
        return collection

    def _partitions_collection(self, disks: Tuple[DiskRef, ...]) -> List[Device]:
        return [
            partition
            for disk in self._disks_collection(disks)
            if disk.is_partitionable
            for partition in self._devicegraph.partitions(disk)
        ]

    def _filesystems_collection(self, disks: Tuple[DiskRef, ...]) -> List[Device]:
        blk_devices = self._disks_collection(disks) + self._partitions_collection(disks)
        filesystems: List[Device] = []
        for blk_device in blk_devices:
            filesystem = self._devicegraph.filesystem(blk_device)
            if filesystem is not None and filesystem not in filesystems:
                filesystems.append(filesystem)
        return filesystems

    def _windows_filesystems(self, disks: Tuple[DiskRef, ...]) -> List[Device]:
        return [fs for fs in self._filesystems_collection(disks) if self._os_detector.is_windows_host(fs)]

    def _linux_suitable_filesystems(self, disks: Tuple[DiskRef, ...]) -> List[Device]:
        return [fs for fs in self._filesystems_collection(disks) if self._os_detector.is_linux_root_suitable(fs)]

    def _all_linux_suitable_filesystems(self) -> Tuple[Device, ...]:
        if self._linux_suitable_cache is None:
            self._linux_suitable_cache = tuple(
                fs for fs in self._devicegraph.filesystems() if self._os_detector.is_linux_root_suitable(fs)
            )
        return self._linux_suitable_cache

    # ------------------------------------------------------------------
    # Defaults
    # ------------------------------------------------------------------

    def _windows_architecture(self) -> bool:
        return self._architecture.is_windows_capable()

    def _default_architecture(self) -> ArchitectureProvider:
        if self._config.machine:
            return Architecture(machine=self._config.machine)
        return Architecture.host()

    def _default_os_detector(self) -> OsDetector:
        from storage_analyzer.os_detection.tsk import TskContentInspector

        return OsDetector(
            self._devicegraph,
            inspector=TskContentInspector(),
            architecture=self._architecture,
            timeout=self._config.inspection_timeout,
        )


__all__ = ["DiskAnalyzer", "DiskRef"]
