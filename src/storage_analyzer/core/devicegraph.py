"""In-memory device graph used as the data source of the analyzer."""

from __future__ import annotations

from collections import deque
from itertools import count
from typing import Callable, Dict, Iterable, Iterator, List, Optional, Sequence

from .errors import InvalidArgumentError, NotFoundError
from .models import (
    Device,
    DeviceFamily,
    DeviceKind,
    FilesystemType,
    PartitionId,
    PartitionTableType,
    PartitionType,
)


class Devicegraph:
    """Directed acyclic graph of storage devices.

    Edges point from a device to the devices built on top of it (a disk to
    its partition table, a partition to its filesystem, a PV to its volume
    group...). Devices are kept in insertion order, which is the discovery
    order reported by every query.

    Membership is by identity: an equal device created by another graph is
    not part of this one.
    """

    def __init__(self) -> None:
        self._sids = count(1)
        self._devices: Dict[int, Device] = {}
        self._children: Dict[int, List[int]] = {}
        self._parents: Dict[int, List[int]] = {}

    def __len__(self) -> int:
        return len(self._devices)

    def __iter__(self) -> Iterator[Device]:
        return iter(self._devices.values())

    def __contains__(self, device: object) -> bool:
        return isinstance(device, Device) and self._devices.get(device.sid) is device

    def contains(self, device: Device) -> bool:
        return device in self

    # ------------------------------------------------------------------
    # Building
    # ------------------------------------------------------------------

    def link(self, parent: Device, child: Device) -> None:
        """Adds an edge, rejecting any edge that would close a cycle."""

        self._require(parent)
        self._require(child)
        if parent.sid == child.sid or parent in self.descendants(child):
            raise InvalidArgumentError(f"Linking {parent} to {child} would create a cycle")
        if child.sid not in self._children[parent.sid]:
            self._children[parent.sid].append(child.sid)
            self._parents[child.sid].append(parent.sid)

    def add_disk(self, name: str, *, udev_names: Sequence[str] = ()) -> Device:
        return self._add(DeviceKind.DISK, name=name, udev_names=tuple(udev_names))

    def add_dasd(self, name: str, *, udev_names: Sequence[str] = ()) -> Device:
        return self._add(DeviceKind.DASD, name=name, udev_names=tuple(udev_names))

    def add_software_raid(
        self,
        name: str,
        members: Iterable[Device],
        *,
        udev_names: Sequence[str] = (),
    ) -> Device:
        raid = self._add(DeviceKind.SOFTWARE_RAID, name=name, udev_names=tuple(udev_names))
        for member in members:
            self._require_blk(member)
            self.link(member, raid)
        return raid

    def add_bcache(self, name: str, backing: Device, *, udev_names: Sequence[str] = ()) -> Device:
        self._require_blk(backing)
        bcache = self._add(DeviceKind.BCACHE, name=name, udev_names=tuple(udev_names))
        self.link(backing, bcache)
        return bcache

    def add_partition_table(
        self,
        device: Device,
        table_type: PartitionTableType = PartitionTableType.GPT,
    ) -> Device:
        self._require(device)
        if not device.is_partitionable:
            raise InvalidArgumentError(f"{device} cannot hold a partition table")
        if self.partition_table(device) is not None:
            raise InvalidArgumentError(f"{device} already has a partition table")
        table = self._add(DeviceKind.PARTITION_TABLE, table_type=table_type)
        self.link(device, table)
        return table

    def add_partition(
        self,
        device: Device,
        name: str,
        partition_id: PartitionId = PartitionId.LINUX,
        *,
        partition_type: PartitionType = PartitionType.PRIMARY,
        udev_names: Sequence[str] = (),
    ) -> Device:
        """Adds a partition to ``device`` (a partitionable device or its table)."""

        table = device if device.kind is DeviceKind.PARTITION_TABLE else self.partition_table(device)
        if table is None:
            raise InvalidArgumentError(f"{device} has no partition table")
        partition = self._add(
            DeviceKind.PARTITION,
            name=name,
            udev_names=tuple(udev_names),
            partition_id=partition_id,
            partition_type=partition_type,
        )
        self.link(table, partition)
        return partition

    def add_filesystem(
        self,
        blk_devices: Device | Sequence[Device],
        fs_type: FilesystemType,
        *,
        mount_point: Optional[str] = None,
        label: Optional[str] = None,
    ) -> Device:
        devices = [blk_devices] if isinstance(blk_devices, Device) else list(blk_devices)
        if not devices:
            raise InvalidArgumentError("A filesystem needs at least one block device")
        for device in devices:
            self._require_blk(device)
            if self.filesystem(device) is not None:
                raise InvalidArgumentError(f"{device} is already formatted")
        filesystem = self._add(DeviceKind.FILESYSTEM, fs_type=fs_type, mount_point=mount_point, label=label)
        for device in devices:
            self.link(device, filesystem)
        return filesystem

    def add_encryption(self, device: Device, name: str, *, udev_names: Sequence[str] = ()) -> Device:
        self._require_blk(device)
        encryption = self._add(DeviceKind.ENCRYPTION, name=name, udev_names=tuple(udev_names))
        self.link(device, encryption)
        return encryption

    def add_lvm_vg(self, name: str, pv_devices: Iterable[Device]) -> Device:
        """Creates a volume group with one physical volume per block device."""

        vg = self._add(DeviceKind.LVM_VG, name=name)
        for device in pv_devices:
            self._require_blk(device)
            pv = self._add(DeviceKind.LVM_PV)
            self.link(device, pv)
            self.link(pv, vg)
        return vg

    def add_lvm_lv(self, vg: Device, name: str, *, udev_names: Sequence[str] = ()) -> Device:
        self._require(vg)
        if vg.kind is not DeviceKind.LVM_VG:
            raise InvalidArgumentError(f"{vg} is not a volume group")
        lv = self._add(DeviceKind.LVM_LV, name=name, udev_names=tuple(udev_names))
        self.link(vg, lv)
        return lv

    # ------------------------------------------------------------------
    # Collections
    # ------------------------------------------------------------------

    def disk_devices(self) -> List[Device]:
        return self._select(lambda device: device.family is DeviceFamily.DISK_DEVICE)

    def software_raids(self) -> List[Device]:
        return self._select(lambda device: device.family is DeviceFamily.SOFTWARE_RAID)

    def bcaches(self) -> List[Device]:
        return self._select(lambda device: device.family is DeviceFamily.BCACHE)

    def filesystems(self) -> List[Device]:
        return self._select(lambda device: device.is_filesystem)

    def blk_devices(self) -> List[Device]:
        return self._select(lambda device: device.is_blk_device)

    # ------------------------------------------------------------------
    # Relationships
    # ------------------------------------------------------------------

    def children(self, device: Device) -> List[Device]:
        self._require(device)
        return [self._devices[sid] for sid in self._children[device.sid]]

    def parents(self, device: Device) -> List[Device]:
        self._require(device)
        return [self._devices[sid] for sid in self._parents[device.sid]]

    def descendants(self, device: Device) -> List[Device]:
        """Every device reachable through outgoing edges, breadth first."""

        self._require(device)
        return self._walk(device, self._children)

    def ancestors(self, device: Device) -> List[Device]:
        self._require(device)
        return self._walk(device, self._parents)

    def partition_table(self, device: Device) -> Optional[Device]:
        return next((child for child in self.children(device) if child.kind is DeviceKind.PARTITION_TABLE), None)

    def partitions(self, device: Device) -> List[Device]:
        """Partitions of a partitionable device, in on-disk order."""

        table = self.partition_table(device)
        if table is None:
            return []
        return [child for child in self.children(table) if child.kind is DeviceKind.PARTITION]

    def filesystem(self, device: Device) -> Optional[Device]:
        return next((child for child in self.children(device) if child.is_filesystem), None)

    def filesystem_blk_devices(self, filesystem: Device) -> List[Device]:
        return [parent for parent in self.parents(filesystem) if parent.is_blk_device]

    def find_by_name(self, name: str) -> Optional[Device]:
        """First block device whose kernel name or any alias equals ``name``."""

        for device in self._devices.values():
            if device.is_blk_device and name in device.all_names():
                return device
        return None

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _add(self, kind: DeviceKind, **attrs: object) -> Device:
        device = Device(sid=next(self._sids), kind=kind, **attrs)  # type: ignore[arg-type]
        self._devices[device.sid] = device
        self._children[device.sid] = []
        self._parents[device.sid] = []
        return device

    def _select(self, predicate: Callable[[Device], bool]) -> List[Device]:
        return [device for device in self._devices.values() if predicate(device)]

    def _walk(self, start: Device, edges: Dict[int, List[int]]) -> List[Device]:
        seen = {start.sid}
        found: List[Device] = []
        queue = deque(edges[start.sid])
        while queue:
            sid = queue.popleft()
            if sid in seen:
                continue
            seen.add(sid)
            found.append(self._devices[sid])
            queue.extend(edges[sid])
        return found

    def _require(self, device: Device) -> None:
        if device not in self:
            raise NotFoundError(f"Device {device} is not part of the device graph")

    def _require_blk(self, device: Device) -> None:
        self._require(device)
        if not device.is_blk_device:
            raise InvalidArgumentError(f"{device} is not a block device")


__all__ = ["Devicegraph"]
