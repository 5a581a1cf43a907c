"""Resolution of every name a device can be referred to by."""

from __future__ import annotations

from typing import Set

from .devicegraph import Devicegraph
from .errors import NotFoundError
from .models import Device


class NameResolver:
    """Computes the full set of names of a device and its nested devices.

    The names of every block device built on top of the device count as
    names of the device itself: a disk whose partition is an LVM PV is also
    known by the names of the logical volumes in that volume group.
    """

    def __init__(self, devicegraph: Devicegraph) -> None:
        self._devicegraph = devicegraph

    def names_of(self, device: Device) -> Set[str]:
        if not self._devicegraph.contains(device):
            raise NotFoundError(f"Device {device} is not part of the device graph")

        devices = [device] + [d for d in self._devicegraph.descendants(device) if d.is_blk_device]
        return {name for d in devices for name in d.all_names()}


__all__ = ["NameResolver"]
