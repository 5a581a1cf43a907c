"""Shared fixtures: a scriptable content inspector and analyzer factory."""

from __future__ import annotations

from typing import Callable, Dict, Iterable, List

import pytest

from storage_analyzer.core.devicegraph import Devicegraph
from storage_analyzer.core.disk_analyzer import DiskAnalyzer
from storage_analyzer.core.models import Device
from storage_analyzer.os_detection import Architecture, InspectionResult, OsDetector
from storage_analyzer.repositories import Repository


class StubInspector:
    """Returns prepared results per device path and records every call."""

    def __init__(self, results: Dict[str, InspectionResult] | None = None) -> None:
        self.results = dict(results or {})
        self.calls: List[str] = []

    def inspect(self, filesystem: Device, device_path: str) -> InspectionResult:
        self.calls.append(device_path)
        return self.results.get(device_path, InspectionResult())


@pytest.fixture()
def inspector() -> StubInspector:
    return StubInspector()


@pytest.fixture()
def make_analyzer(inspector: StubInspector) -> Callable[..., DiskAnalyzer]:
    """Builds an analyzer wired to the stub inspector (x86_64 by default)."""

    def _factory(
        graph: Devicegraph,
        *,
        repositories: Iterable[str] = (),
        machine: str = "x86_64",
    ) -> DiskAnalyzer:
        architecture = Architecture(machine=machine)
        detector = OsDetector(graph, inspector=inspector, architecture=architecture, timeout=None)
        return DiskAnalyzer(
            graph,
            repositories=[Repository(url) for url in repositories],
            os_detector=detector,
            architecture=architecture,
        )

    return _factory
