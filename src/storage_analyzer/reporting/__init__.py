"""Reports of analysis results."""

from .default import DefaultReportExporter
from .exporter import ExportFormat, ReportExporter
from .summary import AnalysisSummary, DeviceRow, summarize

__all__ = ["AnalysisSummary", "DefaultReportExporter", "DeviceRow", "ExportFormat", "ReportExporter", "summarize"]
