"""Tests for the candidate disk analysis and installed system detection."""

from __future__ import annotations

import pytest

from storage_analyzer.core.devicegraph import Devicegraph
from storage_analyzer.core.disk_analyzer import DiskAnalyzer
from storage_analyzer.core.errors import InvalidArgumentError, NotFoundError
from storage_analyzer.core.models import FilesystemType, PartitionId, PartitionType
from storage_analyzer.os_detection import InspectionResult


def _names(devices) -> list:
    return [device.name for device in devices]


# ----------------------------------------------------------------------
# Construction
# ----------------------------------------------------------------------


def test_missing_devicegraph_fails_fast() -> None:
    with pytest.raises(InvalidArgumentError):
        DiskAnalyzer(None)  # type: ignore[arg-type]


# ----------------------------------------------------------------------
# Candidate disks
# ----------------------------------------------------------------------


def test_disk_with_mounted_root_is_not_a_candidate(make_analyzer) -> None:
    graph = Devicegraph()
    graph.add_disk("/dev/sda")
    sdb = graph.add_disk("/dev/sdb")
    graph.add_filesystem(sdb, FilesystemType.EXT4, mount_point="/")

    analyzer = make_analyzer(graph)

    assert _names(analyzer.candidate_disks()) == ["/dev/sda"]


def test_mounted_partition_excludes_its_disk(make_analyzer) -> None:
    graph = Devicegraph()
    sda = graph.add_disk("/dev/sda")
    graph.add_partition_table(sda)
    sda1 = graph.add_partition(sda, "/dev/sda1")
    graph.add_filesystem(sda1, FilesystemType.XFS, mount_point="/run/media")
    graph.add_disk("/dev/sdb")

    assert _names(make_analyzer(graph).candidate_disks()) == ["/dev/sdb"]


def test_mounted_logical_volume_excludes_every_physical_volume_disk(make_analyzer) -> None:
    graph = Devicegraph()
    sda = graph.add_disk("/dev/sda")
    sdb = graph.add_disk("/dev/sdb")
    graph.add_disk("/dev/sdc")
    vg = graph.add_lvm_vg("/dev/system", [sda, sdb])
    root = graph.add_lvm_lv(vg, "/dev/system/root")
    graph.add_filesystem(root, FilesystemType.BTRFS, mount_point="/")

    assert _names(make_analyzer(graph).candidate_disks()) == ["/dev/sdc"]


def test_unmounted_filesystems_do_not_exclude(make_analyzer) -> None:
    graph = Devicegraph()
    sda = graph.add_disk("/dev/sda")
    graph.add_filesystem(sda, FilesystemType.NTFS)

    assert _names(make_analyzer(graph).candidate_disks()) == ["/dev/sda"]


def test_partitioned_raid_supersedes_its_members(make_analyzer) -> None:
    graph = Devicegraph()
    sda = graph.add_disk("/dev/sda")
    sdb = graph.add_disk("/dev/sdb")
    md0 = graph.add_software_raid("/dev/md0", [sda, sdb])
    graph.add_partition_table(md0)

    assert _names(make_analyzer(graph).candidate_disks()) == ["/dev/md0"]


def test_empty_raid_is_a_candidate_and_supersedes_its_members(make_analyzer) -> None:
    graph = Devicegraph()
    sda = graph.add_disk("/dev/sda")
    sdb = graph.add_disk("/dev/sdb")
    graph.add_disk("/dev/sdc")
    graph.add_software_raid("/dev/md0", [sda, sdb])

    assert _names(make_analyzer(graph).candidate_disks()) == ["/dev/md0", "/dev/sdc"]


def test_formatted_raid_without_partition_table_is_not_a_candidate(make_analyzer) -> None:
    graph = Devicegraph()
    sda = graph.add_disk("/dev/sda")
    sdb = graph.add_disk("/dev/sdb")
    md0 = graph.add_software_raid("/dev/md0", [sda, sdb])
    graph.add_filesystem(md0, FilesystemType.XFS)

    assert _names(make_analyzer(graph).candidate_disks()) == ["/dev/sda", "/dev/sdb"]


def test_raid_with_mounted_filesystem_leaves_members_out_too(make_analyzer) -> None:
    graph = Devicegraph()
    sda = graph.add_disk("/dev/sda")
    sdb = graph.add_disk("/dev/sdb")
    md0 = graph.add_software_raid("/dev/md0", [sda, sdb])
    graph.add_partition_table(md0)
    md0p1 = graph.add_partition(md0, "/dev/md0p1")
    graph.add_filesystem(md0p1, FilesystemType.EXT4, mount_point="/")

    assert make_analyzer(graph).candidate_disks() == ()


def test_candidates_never_include_members_of_candidate_raids(make_analyzer) -> None:
    graph = Devicegraph()
    disks = [graph.add_disk(f"/dev/sd{letter}") for letter in "abcd"]
    md0 = graph.add_software_raid("/dev/md0", disks[:2])
    graph.add_partition_table(md0)
    graph.add_software_raid("/dev/md1", disks[2:])

    candidates = make_analyzer(graph).candidate_disks()

    raids = [device for device in candidates if device.is_software_raid]
    for raid in raids:
        for ancestor in graph.ancestors(raid):
            assert ancestor not in candidates
    assert _names(candidates) == ["/dev/md0", "/dev/md1"]


def test_disk_referenced_by_repository_partition_is_excluded(make_analyzer) -> None:
    graph = Devicegraph()
    sda = graph.add_disk("/dev/sda")
    graph.add_partition_table(sda)
    graph.add_partition(sda, "/dev/sda1")
    graph.add_disk("/dev/sdb")

    analyzer = make_analyzer(graph, repositories=["hd:/subdir?device=/dev/sda1&filesystem=reiserfs"])

    assert _names(analyzer.candidate_disks()) == ["/dev/sdb"]


def test_disk_referenced_by_alias_is_excluded(make_analyzer) -> None:
    graph = Devicegraph()
    graph.add_disk("/dev/sda", udev_names=["/dev/disk/by-id/usb-STICK"])
    graph.add_disk("/dev/sdb")

    analyzer = make_analyzer(graph, repositories=["hd:/?device=/dev/disk/by-id/usb-STICK"])

    assert _names(analyzer.candidate_disks()) == ["/dev/sdb"]


def test_disk_referenced_through_logical_volume_is_excluded(make_analyzer) -> None:
    graph = Devicegraph()
    sda = graph.add_disk("/dev/sda")
    graph.add_partition_table(sda)
    sda1 = graph.add_partition(sda, "/dev/sda1", PartitionId.LVM)
    vg = graph.add_lvm_vg("/dev/data", [sda1])
    graph.add_lvm_lv(vg, "/dev/data/isos")

    analyzer = make_analyzer(graph, repositories=["iso:/?iso=sle.iso&device=/dev/data/isos"])

    assert analyzer.candidate_disks() == ()


def test_sole_disk_holding_the_media_is_still_excluded(make_analyzer) -> None:
    graph = Devicegraph()
    graph.add_disk("/dev/sda")

    analyzer = make_analyzer(graph, repositories=["dvd:/?devices=/dev/sda"])

    assert analyzer.candidate_disks() == ()


def test_network_repository_does_not_exclude(make_analyzer) -> None:
    graph = Devicegraph()
    graph.add_disk("/dev/sda")

    analyzer = make_analyzer(graph, repositories=["https://example.org/repo?device=/dev/sda"])

    assert _names(analyzer.candidate_disks()) == ["/dev/sda"]


def test_candidate_disks_is_cached(make_analyzer) -> None:
    graph = Devicegraph()
    graph.add_disk("/dev/sda")
    analyzer = make_analyzer(graph)

    first = analyzer.candidate_disks()
    second = analyzer.candidate_disks()

    assert first is second
    assert first == second


def test_equivalent_graphs_give_equal_candidates(make_analyzer) -> None:
    def build() -> Devicegraph:
        graph = Devicegraph()
        sda = graph.add_disk("/dev/sda")
        sdb = graph.add_disk("/dev/sdb")
        md = graph.add_software_raid("/dev/md0", [sda, sdb])
        graph.add_partition_table(md)
        graph.add_disk("/dev/sdc")
        return graph

    first = make_analyzer(build())
    second = make_analyzer(build())
    second.linux_partitions()
    second.installed_systems()

    assert first.candidate_disks() == second.candidate_disks()


def test_dasd_devices_are_candidates(make_analyzer) -> None:
    graph = Devicegraph()
    graph.add_dasd("/dev/dasda")

    assert _names(make_analyzer(graph).candidate_disks()) == ["/dev/dasda"]


# ----------------------------------------------------------------------
# Windows
# ----------------------------------------------------------------------


def _windows_graph():
    graph = Devicegraph()
    sda = graph.add_disk("/dev/sda")
    graph.add_partition_table(sda)
    graph.add_partition(sda, "/dev/sda1", PartitionId.ESP)
    sda2 = graph.add_partition(sda, "/dev/sda2", PartitionId.WINDOWS_BASIC_DATA)
    graph.add_filesystem(sda2, FilesystemType.NTFS)
    sdb = graph.add_disk("/dev/sdb")
    graph.add_filesystem(sdb, FilesystemType.EXT4)
    return graph, sda2


def test_windows_system_detected_on_x86(make_analyzer, inspector) -> None:
    graph, sda2 = _windows_graph()
    inspector.results["/dev/sda2"] = InspectionResult(windows=True, system_name="Windows")

    analyzer = make_analyzer(graph)

    assert analyzer.windows_system() is True
    assert analyzer.windows_partitions() == [sda2]
    assert analyzer.windows_systems() == ["Windows"]


def test_windows_system_false_on_other_architectures(make_analyzer, inspector) -> None:
    graph, _sda2 = _windows_graph()
    inspector.results["/dev/sda2"] = InspectionResult(windows=True, system_name="Windows")

    analyzer = make_analyzer(graph, machine="aarch64")

    assert analyzer.windows_system() is False
    assert analyzer.windows_partitions() == []
    assert inspector.calls == []


def test_windows_system_restricted_to_given_disks(make_analyzer, inspector) -> None:
    graph, _sda2 = _windows_graph()
    inspector.results["/dev/sda2"] = InspectionResult(windows=True)

    analyzer = make_analyzer(graph)

    assert analyzer.windows_system("/dev/sdb") is False
    assert analyzer.windows_system("/dev/sda") is True


def test_possible_windows_partitions_use_partition_ids(make_analyzer) -> None:
    graph = Devicegraph()
    sda = graph.add_disk("/dev/sda")
    graph.add_partition_table(sda)
    ntfs = graph.add_partition(sda, "/dev/sda1", PartitionId.NTFS)
    graph.add_partition(sda, "/dev/sda2", PartitionId.EXTENDED, partition_type=PartitionType.EXTENDED)
    graph.add_partition(sda, "/dev/sda5", PartitionId.NTFS, partition_type=PartitionType.LOGICAL)

    assert make_analyzer(graph).possible_windows_partitions() == [ntfs]


# ----------------------------------------------------------------------
# Linux
# ----------------------------------------------------------------------


def test_linux_partitions_by_partition_id(make_analyzer) -> None:
    graph = Devicegraph()
    sda = graph.add_disk("/dev/sda")
    graph.add_partition_table(sda)
    sda1 = graph.add_partition(sda, "/dev/sda1", PartitionId.SWAP)
    sda2 = graph.add_partition(sda, "/dev/sda2", PartitionId.LINUX)
    graph.add_partition(sda, "/dev/sda3", PartitionId.UNKNOWN)

    assert make_analyzer(graph).linux_partitions(sda) == [sda1, sda2]


def test_linux_partitions_skip_extended(make_analyzer) -> None:
    graph = Devicegraph()
    sda = graph.add_disk("/dev/sda")
    graph.add_partition_table(sda)
    graph.add_partition(sda, "/dev/sda1", PartitionId.LINUX, partition_type=PartitionType.EXTENDED)
    sda5 = graph.add_partition(sda, "/dev/sda5", PartitionId.LVM, partition_type=PartitionType.LOGICAL)

    assert make_analyzer(graph).linux_partitions() == [sda5]


def test_linux_partitions_include_raids_by_default(make_analyzer) -> None:
    graph = Devicegraph()
    sda = graph.add_disk("/dev/sda")
    sdb = graph.add_disk("/dev/sdb")
    md0 = graph.add_software_raid("/dev/md0", [sda, sdb])
    graph.add_partition_table(md0)
    md0p1 = graph.add_partition(md0, "/dev/md0p1")

    assert make_analyzer(graph).linux_partitions() == [md0p1]


def test_installed_systems_lists_windows_first(make_analyzer, inspector) -> None:
    graph, _sda2 = _windows_graph()
    inspector.results["/dev/sda2"] = InspectionResult(windows=True, system_name="Windows")
    inspector.results["/dev/sdb"] = InspectionResult(linux_root=True, release_name="openSUSE Leap 15.5")

    assert make_analyzer(graph).installed_systems() == ["Windows", "openSUSE Leap 15.5"]


def test_installed_systems_drop_missing_names(make_analyzer, inspector) -> None:
    graph, _sda2 = _windows_graph()
    inspector.results["/dev/sda2"] = InspectionResult(windows=True)
    inspector.results["/dev/sdb"] = InspectionResult(linux_root=True)

    assert make_analyzer(graph).installed_systems() == []


def test_linux_systems_ignore_logical_volumes(make_analyzer, inspector) -> None:
    graph = Devicegraph()
    sda = graph.add_disk("/dev/sda")
    vg = graph.add_lvm_vg("/dev/system", [sda])
    root = graph.add_lvm_lv(vg, "/dev/system/root")
    graph.add_filesystem(root, FilesystemType.EXT4)
    inspector.results["/dev/system/root"] = InspectionResult(linux_root=True, release_name="Fedora Linux 39")

    assert make_analyzer(graph).linux_systems() == []


def test_fstabs_cover_the_whole_graph(make_analyzer, inspector) -> None:
    graph = Devicegraph()
    sda = graph.add_disk("/dev/sda")
    vg = graph.add_lvm_vg("/dev/system", [sda])
    root = graph.add_lvm_lv(vg, "/dev/system/root")
    root_fs = graph.add_filesystem(root, FilesystemType.BTRFS)
    sdb = graph.add_disk("/dev/sdb")
    graph.add_filesystem(sdb, FilesystemType.EXT4)
    inspector.results["/dev/system/root"] = InspectionResult(
        linux_root=True,
        fstab="/dev/system/root / btrfs defaults 0 0\n",
        crypttab="cr_home /dev/sdc1 none luks\n",
    )
    inspector.results["/dev/sdb"] = InspectionResult(linux_root=True)

    analyzer = make_analyzer(graph)
    fstabs = analyzer.fstabs()
    crypttabs = analyzer.crypttabs()

    assert len(fstabs) == 1
    assert fstabs[0].filesystem == root_fs
    assert fstabs[0].root_entry().spec == "/dev/system/root"
    assert [entry.name for entry in crypttabs[0].entries] == ["cr_home"]
    assert analyzer.fstabs() is fstabs


def test_crypttabs_without_prior_fstabs(make_analyzer, inspector) -> None:
    graph = Devicegraph()
    sda = graph.add_disk("/dev/sda")
    graph.add_filesystem(sda, FilesystemType.EXT4)
    inspector.results["/dev/sda"] = InspectionResult(linux_root=True, crypttab="cr_data /dev/sdb1 none\n")

    analyzer = make_analyzer(graph)

    assert [table.entries[0].name for table in analyzer.crypttabs()] == ["cr_data"]
    assert analyzer.fstabs() == ()


def test_tables_of_graph_without_filesystems_are_empty(make_analyzer) -> None:
    graph = Devicegraph()
    graph.add_disk("/dev/sda")

    analyzer = make_analyzer(graph)

    assert analyzer.fstabs() == ()
    assert analyzer.crypttabs() == ()


def test_filesystems_are_inspected_once(make_analyzer, inspector) -> None:
    graph, _sda2 = _windows_graph()
    inspector.results["/dev/sda2"] = InspectionResult(windows=True, system_name="Windows")
    analyzer = make_analyzer(graph)

    analyzer.windows_system()
    analyzer.windows_partitions()
    analyzer.installed_systems()

    assert inspector.calls.count("/dev/sda2") == 1


# ----------------------------------------------------------------------
# Lookups and disk arguments
# ----------------------------------------------------------------------


def test_device_by_name_finds_partitions_and_aliases(make_analyzer) -> None:
    graph = Devicegraph()
    sda = graph.add_disk("/dev/sda")
    graph.add_partition_table(sda)
    sda1 = graph.add_partition(sda, "/dev/sda1", udev_names=["/dev/disk/by-label/ROOT"])
    analyzer = make_analyzer(graph)

    assert analyzer.device_by_name("/dev/sda1") == sda1
    assert analyzer.device_by_name("/dev/disk/by-label/ROOT") == sda1
    assert analyzer.device_by_name("/dev/nope") is None


def test_unknown_disk_names_are_ignored(make_analyzer) -> None:
    graph = Devicegraph()
    sda = graph.add_disk("/dev/sda")
    graph.add_partition_table(sda)
    sda1 = graph.add_partition(sda, "/dev/sda1")

    assert make_analyzer(graph).linux_partitions("/dev/nope", "/dev/sda") == [sda1]


def test_foreign_device_argument_raises(make_analyzer) -> None:
    graph = Devicegraph()
    graph.add_disk("/dev/sda")
    other = Devicegraph()
    other.add_disk("/dev/sda")
    foreign = other.add_disk("/dev/sdb")

    with pytest.raises(NotFoundError):
        make_analyzer(graph).linux_partitions(foreign)


def test_equal_device_from_another_graph_raises(make_analyzer) -> None:
    graph = Devicegraph()
    graph.add_disk("/dev/sda")
    twin = Devicegraph().add_disk("/dev/sda")

    with pytest.raises(NotFoundError):
        make_analyzer(graph).windows_system(twin)
    with pytest.raises(NotFoundError):
        make_analyzer(graph).device_names(twin)


def test_device_names_delegate_to_resolver(make_analyzer) -> None:
    graph = Devicegraph()
    sda = graph.add_disk("/dev/sda")
    graph.add_partition_table(sda)
    graph.add_partition(sda, "/dev/sda1")

    assert make_analyzer(graph).device_names(sda) == {"/dev/sda", "/dev/sda1"}
