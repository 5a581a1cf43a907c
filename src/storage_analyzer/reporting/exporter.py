"""Report export interfaces."""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Protocol

from .summary import AnalysisSummary


class ExportFormat(str, Enum):
    """Report formats."""

    CSV = "csv"
    JSON = "json"


class ReportExporter(Protocol):
    """Interface of report writers."""

    def export(self, summary: AnalysisSummary, destination: Path, fmt: ExportFormat) -> Path:
        """Writes the summary in the chosen format and returns the destination."""
