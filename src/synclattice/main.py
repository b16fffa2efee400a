import argparse
import json
import logging
import sys
from pathlib import Path

import structlog

from synclattice.config import SyncSettings, get_settings
from synclattice.ingest.loader import (
    EventLoadError,
    load_events,
    observed_days,
    settings_for_events,
)
from synclattice.ingest.scoring import to_network_records
from synclattice.models import SynchronizationResult
from synclattice.network.graph import NetworkGraph
from synclattice.report import build_report_lines


def configure_logging(log_level: str) -> None:
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.dev.set_exc_info,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(getattr(logging, log_level.upper())),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=getattr(logging, log_level.upper()),
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="synclattice", description="Pairwise synchronization analysis of interaction logs"
    )
    sub = parser.add_subparsers(dest="command", required=True)

    analyze = sub.add_parser("analyze", help="Analyze one or more event files")
    analyze.add_argument("files", nargs="+", type=Path, help="JSON or JSON-lines event files")
    analyze.add_argument("--json", action="store_true", help="Print a JSON snapshot per file")
    analyze.add_argument(
        "--static-tolerances",
        action="store_true",
        help="Use configured tolerances instead of deriving them per file",
    )
    return parser


def run_dataset(
    path: Path, base: SyncSettings, static_tolerances: bool = False
) -> tuple[NetworkGraph, list[SynchronizationResult], float]:
    raw = load_events(path)
    records = to_network_records(raw, base.privileged_types)
    settings = base if static_tolerances else settings_for_events(records, base)

    network = NetworkGraph(settings, profile_settings=base)
    network.add_events(records)
    results = network.analyze_all_pairs()
    return network, results, observed_days(records)


def analyze_files(
    files: list[Path], base: SyncSettings, as_json: bool, static_tolerances: bool
) -> int:
    logger = structlog.get_logger()
    analyzed = 0
    for path in files:
        try:
            network, results, days = run_dataset(path, base, static_tolerances)
        except EventLoadError as e:
            logger.error("Skipping event file", path=str(path), error=str(e))
            continue

        if not network.events:
            logger.warning("No events found", path=str(path))
            continue

        analyzed += 1
        if as_json:
            snapshot = network.snapshot()
            snapshot["source"] = str(path)
            snapshot["results"] = [r.to_dict() for r in results]
            print(json.dumps(snapshot, indent=2, ensure_ascii=False))
        else:
            print("=" * 50)
            print(f"DATASET: {path}")
            print("=" * 50)
            print("\n".join(build_report_lines(network, results, days)))
    return analyzed


def main(argv: list[str] | None = None) -> None:
    args = build_parser().parse_args(argv)
    settings = get_settings()
    configure_logging(settings.log_level)

    logger = structlog.get_logger()
    try:
        analyzed = analyze_files(args.files, settings, args.json, args.static_tolerances)
    except Exception:
        logger.exception("Fatal error")
        sys.exit(1)

    if analyzed == 0:
        logger.error("No dataset could be analyzed")
        sys.exit(1)


if __name__ == "__main__":
    main()
