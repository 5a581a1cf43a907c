"""Command line interface running the analysis on a device graph description."""

from __future__ import annotations

import dataclasses
import logging
import sys
from argparse import ArgumentParser, Namespace
from pathlib import Path

import structlog

from storage_analyzer.core.disk_analyzer import DiskAnalyzer
from storage_analyzer.core.errors import InvalidArgumentError
from storage_analyzer.core.loader import load_devicegraph
from storage_analyzer.repositories import Repository
from storage_analyzer.reporting import DefaultReportExporter, ExportFormat, summarize
from storage_analyzer.shared import AnalyzerConfig, configure_logging, write_error_report


def _build_parser() -> ArgumentParser:
    parser = ArgumentParser(
        prog="storage-analyzer",
        description="Finds installation candidate disks and installed systems in a device graph.",
    )
    parser.add_argument(
        "devicegraph",
        type=Path,
        nargs="?",
        help="JSON description of the device graph",
    )
    parser.add_argument(
        "--repository",
        action="append",
        default=[],
        metavar="URL",
        help="Installation repository URL (can be repeated)",
    )
    parser.add_argument(
        "--machine",
        help="Machine architecture to assume, e.g. x86_64 (default: host)",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        help="Seconds allowed for inspecting one filesystem, 0 disables the limit",
    )
    parser.add_argument(
        "--output",
        type=Path,
        default=Path("report.json"),
        help="Report file (default: report.json)",
    )
    parser.add_argument(
        "--format",
        choices=["json", "csv"],
        default="json",
        help="Report format (default: json)",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Show debug logs",
    )
    return parser


def _config_from_args(args: Namespace) -> AnalyzerConfig:
    config = AnalyzerConfig.from_env()
    if args.machine:
        config = dataclasses.replace(config, machine=args.machine)
    if args.timeout is not None:
        config = dataclasses.replace(config, inspection_timeout=args.timeout if args.timeout > 0 else None)
    return config


def _run_analysis(args: Namespace) -> int:
    logger = structlog.get_logger(__name__)

    if args.devicegraph is None:
        logger.error("devicegraph-not-provided")
        return 1
    if not args.devicegraph.exists():
        logger.error("devicegraph-not-found", path=str(args.devicegraph))
        return 1

    try:
        graph = load_devicegraph(args.devicegraph)
    except InvalidArgumentError as exc:
        logger.error("devicegraph-invalid", path=str(args.devicegraph), error=str(exc))
        return 1

    try:
        analyzer = DiskAnalyzer(
            graph,
            repositories=[Repository(url) for url in args.repository],
            config=_config_from_args(args),
        )
        logger.info("starting-analysis", devices=len(graph), repositories=len(args.repository))
        summary = summarize(analyzer)

        fmt = ExportFormat.JSON if args.format == "json" else ExportFormat.CSV
        output_path = DefaultReportExporter().export(summary, args.output, fmt)

        logger.info(
            "analysis-complete",
            candidate_disks=summary.candidate_disks,
            installed_systems=summary.installed_systems,
            report=str(output_path),
        )
        return 0

    except Exception as exc:  # pragma: no cover - unexpected environment failures
        report = write_error_report(exc, where="cli", context={"devicegraph": str(args.devicegraph)})
        logger.exception("analysis-failed", error=str(exc), error_report=str(report.path))
        return 1


def main() -> int:
    parser = _build_parser()
    args = parser.parse_args()
    configure_logging(level=logging.DEBUG if args.verbose else logging.INFO)
    return _run_analysis(args)


if __name__ == "__main__":
    sys.exit(main())
