"""Default report exporter (JSON/CSV)."""

from __future__ import annotations

import csv
import json
from dataclasses import asdict
from pathlib import Path
from typing import Dict, List

from storage_analyzer.etc_files import Crypttab, Fstab
from .exporter import ExportFormat, ReportExporter
from .summary import AnalysisSummary

_CSV_FIELDS = ["device", "kind", "candidate", "linux_partition", "windows_partition"]


class DefaultReportExporter(ReportExporter):
    """Writes analysis summaries to JSON or CSV files."""

    def export(self, summary: AnalysisSummary, destination: Path, fmt: ExportFormat) -> Path:
        destination.parent.mkdir(parents=True, exist_ok=True)

        if fmt is ExportFormat.JSON:
            payload = self._build_json_payload(summary)
            destination.write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")
        elif fmt is ExportFormat.CSV:
            self._write_csv(summary, destination)
        else:  # pragma: no cover - future formats
            raise ValueError(f"Unsupported export format: {fmt}")

        return destination

    # ------------------------------------------------------------------
    # JSON
    # ------------------------------------------------------------------

    def _build_json_payload(self, summary: AnalysisSummary) -> Dict[str, object]:
        return {
            "candidate_disks": summary.candidate_disks,
            "windows_system": summary.windows_system,
            "windows_partitions": summary.windows_partitions,
            "linux_partitions": summary.linux_partitions,
            "installed_systems": summary.installed_systems,
            "fstabs": [self._fstab_to_dict(fstab) for fstab in summary.fstabs],
            "crypttabs": [self._crypttab_to_dict(crypttab) for crypttab in summary.crypttabs],
            "devices": [asdict(row) for row in summary.devices],
        }

    @staticmethod
    def _fstab_to_dict(fstab: Fstab) -> Dict[str, object]:
        return {
            "filesystem": str(fstab.filesystem),
            "entries": [
                {
                    "spec": entry.spec,
                    "mount_point": entry.mount_point,
                    "fs_type": entry.fs_type,
                    "options": list(entry.options),
                    "dump": entry.dump,
                    "passno": entry.passno,
                }
                for entry in fstab.entries
            ],
        }

    @staticmethod
    def _crypttab_to_dict(crypttab: Crypttab) -> Dict[str, object]:
        return {
            "filesystem": str(crypttab.filesystem),
            "entries": [
                {
                    "name": entry.name,
                    "device": entry.device,
                    "password": entry.password,
                    "options": list(entry.options),
                }
                for entry in crypttab.entries
            ],
        }

    # ------------------------------------------------------------------
    # CSV
    # ------------------------------------------------------------------

    def _write_csv(self, summary: AnalysisSummary, destination: Path) -> None:
        rows: List[Dict[str, object]] = [
            {
                "device": row.name,
                "kind": row.kind,
                "candidate": row.candidate,
                "linux_partition": row.linux_partition,
                "windows_partition": row.windows_partition,
            }
            for row in summary.devices
        ]
        with destination.open("w", newline="", encoding="utf-8") as handle:
            writer = csv.DictWriter(handle, fieldnames=_CSV_FIELDS)
            writer.writeheader()
            writer.writerows(rows)


__all__ = ["DefaultReportExporter"]
