"""Data model of the device graph analysed by the core."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple


class DeviceKind(str, Enum):
    """Closed set of device kinds present in a device graph."""

    DISK = "disk"
    DASD = "dasd"
    SOFTWARE_RAID = "software_raid"
    BCACHE = "bcache"
    PARTITION_TABLE = "partition_table"
    PARTITION = "partition"
    LVM_PV = "lvm_pv"
    LVM_VG = "lvm_vg"
    LVM_LV = "lvm_lv"
    ENCRYPTION = "encryption"
    FILESYSTEM = "filesystem"


class DeviceFamily(str, Enum):
    """Coarse classification used by the analyzer."""

    DISK_DEVICE = "disk_device"
    SOFTWARE_RAID = "software_raid"
    BCACHE = "bcache"
    PARTITION = "partition"
    LOGICAL_VOLUME = "logical_volume"
    ENCRYPTION = "encryption"
    CONTAINER = "container"
    FILESYSTEM = "filesystem"


_FAMILIES = {
    DeviceKind.DISK: DeviceFamily.DISK_DEVICE,
    DeviceKind.DASD: DeviceFamily.DISK_DEVICE,
    DeviceKind.SOFTWARE_RAID: DeviceFamily.SOFTWARE_RAID,
    DeviceKind.BCACHE: DeviceFamily.BCACHE,
    DeviceKind.PARTITION_TABLE: DeviceFamily.CONTAINER,
    DeviceKind.PARTITION: DeviceFamily.PARTITION,
    DeviceKind.LVM_PV: DeviceFamily.CONTAINER,
    DeviceKind.LVM_VG: DeviceFamily.CONTAINER,
    DeviceKind.LVM_LV: DeviceFamily.LOGICAL_VOLUME,
    DeviceKind.ENCRYPTION: DeviceFamily.ENCRYPTION,
    DeviceKind.FILESYSTEM: DeviceFamily.FILESYSTEM,
}

_BLK_FAMILIES = frozenset(
    {
        DeviceFamily.DISK_DEVICE,
        DeviceFamily.SOFTWARE_RAID,
        DeviceFamily.BCACHE,
        DeviceFamily.PARTITION,
        DeviceFamily.LOGICAL_VOLUME,
        DeviceFamily.ENCRYPTION,
    }
)

_PARTITIONABLE_FAMILIES = frozenset(
    {
        DeviceFamily.DISK_DEVICE,
        DeviceFamily.SOFTWARE_RAID,
        DeviceFamily.BCACHE,
    }
)


def family_of(kind: DeviceKind) -> DeviceFamily:
    """Returns the family of a device kind.

    Raises ``KeyError`` for a kind without a family, so that a new kind can
    never be silently treated as something else.
    """

    return _FAMILIES[kind]


class PartitionTableType(str, Enum):
    """Partition table formats."""

    MSDOS = "msdos"
    GPT = "gpt"
    DASD = "dasd"
    IMPLICIT = "implicit"


class PartitionType(str, Enum):
    """Slot type of a partition inside its table."""

    PRIMARY = "primary"
    EXTENDED = "extended"
    LOGICAL = "logical"


class PartitionId(str, Enum):
    """On-disk type marker of a partition."""

    LINUX = "linux"
    SWAP = "swap"
    LVM = "lvm"
    RAID = "raid"
    ESP = "esp"
    BIOS_BOOT = "bios_boot"
    PREP = "prep"
    NTFS = "ntfs"
    DOS32 = "dos32"
    WINDOWS_BASIC_DATA = "windows_basic_data"
    MICROSOFT_RESERVED = "microsoft_reserved"
    EXTENDED = "extended"
    UNKNOWN = "unknown"


LINUX_SYSTEM_IDS = frozenset({PartitionId.LINUX, PartitionId.SWAP, PartitionId.LVM, PartitionId.RAID})
WINDOWS_SYSTEM_IDS = frozenset({PartitionId.NTFS, PartitionId.DOS32, PartitionId.WINDOWS_BASIC_DATA})


class FilesystemType(str, Enum):
    """Filesystem types known to the analyzer."""

    EXT2 = "ext2"
    EXT3 = "ext3"
    EXT4 = "ext4"
    BTRFS = "btrfs"
    XFS = "xfs"
    REISERFS = "reiserfs"
    JFS = "jfs"
    NTFS = "ntfs"
    VFAT = "vfat"
    EXFAT = "exfat"
    SWAP = "swap"
    ISO9660 = "iso9660"
    UDF = "udf"
    UNKNOWN = "unknown"


ROOT_SUITABLE_TYPES = frozenset(
    {
        FilesystemType.EXT2,
        FilesystemType.EXT3,
        FilesystemType.EXT4,
        FilesystemType.BTRFS,
        FilesystemType.XFS,
        FilesystemType.REISERFS,
        FilesystemType.JFS,
    }
)
WINDOWS_SUITABLE_TYPES = frozenset({FilesystemType.NTFS, FilesystemType.VFAT})


@dataclass(frozen=True, slots=True)
class Device:
    """Read-only snapshot of a node in the device graph.

    Only the attributes relevant for the kind are set; e.g. ``partition_id``
    is ``None`` for anything but partitions.
    """

    sid: int
    kind: DeviceKind
    name: Optional[str] = None
    udev_names: Tuple[str, ...] = ()
    partition_id: Optional[PartitionId] = None
    partition_type: Optional[PartitionType] = None
    table_type: Optional[PartitionTableType] = None
    fs_type: Optional[FilesystemType] = None
    mount_point: Optional[str] = None
    label: Optional[str] = None

    @property
    def family(self) -> DeviceFamily:
        return family_of(self.kind)

    @property
    def is_blk_device(self) -> bool:
        return self.family in _BLK_FAMILIES

    @property
    def is_partitionable(self) -> bool:
        return self.family in _PARTITIONABLE_FAMILIES

    @property
    def is_filesystem(self) -> bool:
        return self.family is DeviceFamily.FILESYSTEM

    @property
    def is_disk_device(self) -> bool:
        return self.family is DeviceFamily.DISK_DEVICE

    @property
    def is_software_raid(self) -> bool:
        return self.family is DeviceFamily.SOFTWARE_RAID

    @property
    def has_active_mount_point(self) -> bool:
        return bool(self.mount_point)

    def all_names(self) -> Tuple[str, ...]:
        """Kernel name followed by every udev alias."""

        names = (self.name,) if self.name else ()
        return names + tuple(self.udev_names)

    def __str__(self) -> str:
        return self.name or f"{self.kind.value}#{self.sid}"
