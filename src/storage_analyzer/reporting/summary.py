"""Summary of a disk analysis, ready to be exported."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List

from storage_analyzer.core.disk_analyzer import DiskAnalyzer
from storage_analyzer.etc_files import Crypttab, Fstab


@dataclass(slots=True)
class DeviceRow:
    """Per-device verdicts of the analysis."""

    name: str
    kind: str
    candidate: bool = False
    linux_partition: bool = False
    windows_partition: bool = False


@dataclass(slots=True)
class AnalysisSummary:
    """Everything the analyzer found about one device graph."""

    candidate_disks: List[str] = field(default_factory=list)
    windows_system: bool = False
    windows_partitions: List[str] = field(default_factory=list)
    linux_partitions: List[str] = field(default_factory=list)
    installed_systems: List[str] = field(default_factory=list)
    fstabs: List[Fstab] = field(default_factory=list)
    crypttabs: List[Crypttab] = field(default_factory=list)
    devices: List[DeviceRow] = field(default_factory=list)


def summarize(analyzer: DiskAnalyzer) -> AnalysisSummary:
    graph = analyzer.devicegraph
    candidates = analyzer.candidate_disks()
    windows_partitions = analyzer.windows_partitions()
    linux_partitions = analyzer.linux_partitions()

    rows: List[DeviceRow] = []
    for disk in graph.disk_devices() + graph.software_raids() + graph.bcaches():
        for device in [disk] + graph.partitions(disk):
            rows.append(
                DeviceRow(
                    name=str(device),
                    kind=device.kind.value,
                    candidate=device in candidates,
                    linux_partition=device in linux_partitions,
                    windows_partition=device in windows_partitions,
                )
            )

    return AnalysisSummary(
        candidate_disks=[str(disk) for disk in candidates],
        windows_system=analyzer.windows_system(),
        windows_partitions=[str(device) for device in windows_partitions],
        linux_partitions=[str(device) for device in linux_partitions],
        installed_systems=analyzer.installed_systems(),
        fstabs=list(analyzer.fstabs()),
        crypttabs=list(analyzer.crypttabs()),
        devices=rows,
    )


__all__ = ["AnalysisSummary", "DeviceRow", "summarize"]
