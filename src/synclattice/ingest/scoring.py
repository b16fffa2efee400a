from __future__ import annotations

from typing import TYPE_CHECKING, Any

from synclattice.models import InvalidEventError, parse_timestamp

if TYPE_CHECKING:
    from collections.abc import Mapping

REACTION_BONUS = 0.25
PRIVILEGED_BONUS = 0.3
RAPID_REPLY_HOURS = 0.25
RAPID_REPLY_BONUS = 0.15
PROMPT_REPLY_HOURS = 2.0
PROMPT_REPLY_BONUS = 0.1
STALE_REPLY_HOURS = 72.0
STALE_REPLY_PENALTY = 0.15
MIN_ATTENTION = 0.1
MAX_ATTENTION = 1.0

DEFAULT_PAIR = ("AgentA", "AgentB")


def _hours_between(previous: Mapping[str, Any], current: Mapping[str, Any]) -> float | None:
    try:
        then = parse_timestamp(previous.get("timestamp"))
        now = parse_timestamp(current.get("timestamp"))
    except InvalidEventError:
        return None
    return (now - then).total_seconds() / 3600


def measure_attention(
    record: Mapping[str, Any],
    previous: Mapping[str, Any] | None,
    privileged_types: frozenset[str],
) -> float:
    score = 0.0
    if record.get("reactions"):
        score += REACTION_BONUS
    if str(record.get("type") or "").upper() in privileged_types:
        score += PRIVILEGED_BONUS

    if previous is not None:
        hours = _hours_between(previous, record)
        if hours is not None:
            if hours < RAPID_REPLY_HOURS:
                score += RAPID_REPLY_BONUS
            elif hours < PROMPT_REPLY_HOURS:
                score += PROMPT_REPLY_BONUS
            if hours > STALE_REPLY_HOURS:
                score -= STALE_REPLY_PENALTY

    return max(MIN_ATTENTION, min(MAX_ATTENTION, score))


def infer_receiver(record: Mapping[str, Any]) -> str | None:
    """Two-party logs may omit the receiver; it is then the other default agent."""
    receiver = record.get("receiver")
    if receiver:
        return str(receiver)
    first, second = DEFAULT_PAIR
    return second if record.get("sender") == first else first


def to_network_records(
    records: list[Mapping[str, Any]], privileged_types: frozenset[str]
) -> list[dict[str, Any]]:
    """Fill in receivers and attach attention/engagement scores to raw records.

    Records are scored in file order against their predecessor.
    """
    converted: list[dict[str, Any]] = []
    for index, record in enumerate(records):
        previous = records[index - 1] if index > 0 else None
        score = measure_attention(record, previous, privileged_types)
        converted.append(
            {
                **record,
                "receiver": infer_receiver(record),
                "attention": score,
                "engagement": score,
            }
        )
    return converted
