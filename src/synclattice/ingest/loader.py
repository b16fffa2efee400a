from __future__ import annotations

import json
from pathlib import Path
from typing import TYPE_CHECKING, Any

import structlog

from synclattice.models import InvalidEventError, parse_timestamp

if TYPE_CHECKING:
    from collections.abc import Mapping

    from synclattice.config import SyncSettings

logger = structlog.get_logger(__name__)

BASE_LENGTH_TOLERANCE = 1.1
RESONANT_TOLERANCE_BOOST = 0.6
DATASET_ANGLE_TOLERANCE = 20.0


class EventLoadError(Exception):
    """Raised when an event file cannot be read or has the wrong shape."""


def _parse_json_lines(text: str, path: Path) -> list[Any]:
    records: list[Any] = []
    for line_no, line in enumerate(text.splitlines(), start=1):
        line = line.strip()
        if not line:
            continue
        try:
            records.append(json.loads(line))
        except json.JSONDecodeError as e:
            logger.warning("Skipping invalid JSON line", path=str(path), line=line_no, error=str(e))
    return records


def load_events(path: str | Path) -> list[dict[str, Any]]:
    """Load raw event records from a JSON array file or a JSON-lines file."""
    source = Path(path)
    try:
        text = source.read_text(encoding="utf-8")
    except OSError as e:
        raise EventLoadError(f"Cannot read {source}: {e}") from e

    if source.suffix == ".jsonl":
        data: Any = _parse_json_lines(text, source)
    else:
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise EventLoadError(f"Invalid JSON in {source}: {e}") from e

    if isinstance(data, dict) and isinstance(data.get("events"), list):
        data = data["events"]
    if not isinstance(data, list):
        raise EventLoadError(f"Expected a list of events in {source}")

    records = [r for r in data if isinstance(r, dict)]
    if len(records) != len(data):
        logger.warning(
            "Dropped non-object entries", path=str(source), dropped=len(data) - len(records)
        )
    logger.info("Loaded event records", path=str(source), count=len(records))
    return records


def has_resonance(records: list[Mapping[str, Any]], privileged_types: frozenset[str]) -> bool:
    return any(
        r.get("reactions") or str(r.get("type") or "").upper() in privileged_types
        for r in records
    )


def settings_for_events(records: list[Mapping[str, Any]], base: SyncSettings) -> SyncSettings:
    """Derive per-dataset classifier tolerances.

    Datasets with any reactions or privileged types get a looser edge-length
    tolerance.
    """
    boost = RESONANT_TOLERANCE_BOOST if has_resonance(records, base.privileged_types) else 0.0
    return base.model_copy(
        update={
            "length_tolerance": BASE_LENGTH_TOLERANCE + boost,
            "angle_tolerance": DATASET_ANGLE_TOLERANCE,
        }
    )


def observed_days(records: list[Mapping[str, Any]]) -> float:
    """Elapsed days between the first and last record in file order."""
    if not records:
        return 0.0
    try:
        start = parse_timestamp(records[0].get("timestamp"))
        end = parse_timestamp(records[-1].get("timestamp"))
    except InvalidEventError:
        return 0.0
    return (end - start).total_seconds() / 86400
