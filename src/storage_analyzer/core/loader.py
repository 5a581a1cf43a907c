"""Construction of a device graph from a JSON description.

Example::

    {
      "disks": [
        {
          "name": "/dev/sda",
          "partition_table": "gpt",
          "partitions": [
            {"name": "/dev/sda1", "id": "esp", "filesystem": {"type": "vfat"}},
            {"name": "/dev/sda2", "id": "linux", "filesystem": {"type": "ext4", "mount_point": "/"}}
          ]
        }
      ],
      "software_raids": [{"name": "/dev/md0", "devices": ["/dev/sdb", "/dev/sdc"]}],
      "bcaches": [{"name": "/dev/bcache0", "backing_device": "/dev/sdd"}],
      "lvm_vgs": [{"name": "/dev/system", "pvs": ["/dev/sda3"], "lvs": [{"name": "/dev/system/root"}]}]
    }

Sections are processed in the order disks, dasds, software_raids, bcaches,
lvm_vgs; references to other devices use kernel names or aliases.
"""

from __future__ import annotations

import json
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Mapping, Tuple, Type, TypeVar

from .devicegraph import Devicegraph
from .errors import InvalidArgumentError
from .models import Device, FilesystemType, PartitionId, PartitionTableType, PartitionType

_E = TypeVar("_E", bound=Enum)


def load_devicegraph(path: Path) -> Devicegraph:
    """Reads a JSON description from ``path``."""

    with Path(path).open("r", encoding="utf-8") as handle:
        try:
            data = json.load(handle)
        except ValueError as exc:
            raise InvalidArgumentError(f"Invalid device graph description {path}: {exc}") from exc
    return devicegraph_from_dict(data)


def devicegraph_from_dict(data: Mapping[str, Any]) -> Devicegraph:
    if not isinstance(data, Mapping):
        raise InvalidArgumentError("A device graph description must be a JSON object")

    graph = Devicegraph()
    try:
        _build(graph, data)
    except KeyError as exc:
        raise InvalidArgumentError(f"Missing field in device graph description: {exc.args[0]}") from exc
    except (TypeError, AttributeError) as exc:
        raise InvalidArgumentError(f"Malformed device graph description: {exc}") from exc
    return graph


def _build(graph: Devicegraph, data: Mapping[str, Any]) -> None:
    for spec in data.get("disks", ()):
        _add_partitionable(graph, graph.add_disk(spec["name"], udev_names=_udev_names(spec)), spec)
    for spec in data.get("dasds", ()):
        _add_partitionable(graph, graph.add_dasd(spec["name"], udev_names=_udev_names(spec)), spec)
    for spec in data.get("software_raids", ()):
        members = [_lookup(graph, name) for name in spec.get("devices", ())]
        raid = graph.add_software_raid(spec["name"], members, udev_names=_udev_names(spec))
        _add_partitionable(graph, raid, spec)
    for spec in data.get("bcaches", ()):
        backing = _lookup(graph, spec["backing_device"])
        bcache = graph.add_bcache(spec["name"], backing, udev_names=_udev_names(spec))
        _add_partitionable(graph, bcache, spec)
    for spec in data.get("lvm_vgs", ()):
        vg = graph.add_lvm_vg(spec["name"], [_lookup(graph, name) for name in spec.get("pvs", ())])
        for lv_spec in spec.get("lvs", ()):
            lv = graph.add_lvm_lv(vg, lv_spec["name"], udev_names=_udev_names(lv_spec))
            _add_content(graph, lv, lv_spec)


def _add_partitionable(graph: Devicegraph, device: Device, spec: Dict[str, Any]) -> None:
    table_type = spec.get("partition_table")
    partitions = spec.get("partitions", ())
    if table_type is None and partitions:
        raise InvalidArgumentError(f"{device} lists partitions but no partition table")

    if table_type is not None:
        table = graph.add_partition_table(device, _enum(PartitionTableType, table_type, "partition_table"))
        for part_spec in partitions:
            partition = graph.add_partition(
                table,
                part_spec["name"],
                _enum(PartitionId, part_spec.get("id", "linux"), "id"),
                partition_type=_enum(PartitionType, part_spec.get("type", "primary"), "type"),
                udev_names=_udev_names(part_spec),
            )
            _add_content(graph, partition, part_spec)

    _add_content(graph, device, spec)


def _add_content(graph: Devicegraph, device: Device, spec: Dict[str, Any]) -> None:
    encryption_spec = spec.get("encryption")
    if encryption_spec is not None:
        encryption = graph.add_encryption(
            device,
            encryption_spec["name"],
            udev_names=_udev_names(encryption_spec),
        )
        _add_content(graph, encryption, encryption_spec)

    fs_spec = spec.get("filesystem")
    if fs_spec is not None:
        graph.add_filesystem(
            device,
            _enum(FilesystemType, fs_spec.get("type", "unknown"), "filesystem type"),
            mount_point=fs_spec.get("mount_point"),
            label=fs_spec.get("label"),
        )


def _udev_names(spec: Dict[str, Any]) -> Tuple[str, ...]:
    names = spec.get("udev_names", ())
    if not isinstance(names, (list, tuple)) or not all(isinstance(name, str) for name in names):
        raise InvalidArgumentError(f"udev_names must be a list of strings, got {names!r}")
    return tuple(names)


def _lookup(graph: Devicegraph, name: str) -> Device:
    device = graph.find_by_name(name)
    if device is None:
        raise InvalidArgumentError(f"Unknown device referenced: {name}")
    return device


def _enum(enum_cls: Type[_E], value: Any, field_name: str) -> _E:
    try:
        return enum_cls(str(value).lower())
    except ValueError as exc:
        raise InvalidArgumentError(f"Unknown {field_name}: {value}") from exc


__all__ = ["devicegraph_from_dict", "load_devicegraph"]
