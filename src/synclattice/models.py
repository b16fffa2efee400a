from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from synclattice.constants import DEFAULT_TYPE_TAG, SyncPhase

if TYPE_CHECKING:
    from collections.abc import Mapping

    import numpy as np


class InvalidEventError(ValueError):
    """Raised when a raw event record cannot be admitted."""


def parse_timestamp(value: object) -> datetime:
    """Parse an ISO-8601 string (or pass a datetime through) into an aware UTC datetime.

    Naive values are taken to be UTC; only elapsed durations matter downstream.
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str) and value.strip():
        try:
            parsed = datetime.fromisoformat(value.strip())
        except ValueError as e:
            raise InvalidEventError(f"Invalid timestamp: {value!r}") from e
    else:
        raise InvalidEventError(f"Invalid timestamp: {value!r}")

    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=UTC)
    try:
        return parsed.astimezone(UTC)
    except (ValueError, OverflowError) as e:
        raise InvalidEventError(f"Timestamp out of range: {value!r}") from e


@dataclass(frozen=True)
class InteractionEvent:
    """A single directed interaction. Equality (and hashing) covers every field."""

    sender: str
    receiver: str
    timestamp: datetime
    type: str | None = None
    reactions: tuple[str, ...] = ()
    engagement: float = 0.0

    @property
    def type_tag(self) -> str:
        return self.type or DEFAULT_TYPE_TAG

    @property
    def has_reactions(self) -> bool:
        return len(self.reactions) > 0

    def is_privileged(self, privileged_types: frozenset[str]) -> bool:
        return self.type is not None and self.type in privileged_types

    def involves(self, agent_a: str, agent_b: str) -> bool:
        return (self.sender == agent_a and self.receiver == agent_b) or (
            self.sender == agent_b and self.receiver == agent_a
        )

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> InteractionEvent:
        if not hasattr(record, "get"):
            raise InvalidEventError(f"Event is not a mapping: {record!r}")

        sender = str(record.get("sender") or "").strip()
        receiver = str(record.get("receiver") or "").strip()
        if not sender or not receiver:
            raise InvalidEventError("Missing sender or receiver")
        if sender == receiver:
            raise InvalidEventError(f"Sender and receiver are the same: {sender}")

        timestamp = parse_timestamp(record.get("timestamp"))

        raw_type = record.get("type")
        event_type = str(raw_type).strip().upper() if raw_type else None

        raw_reactions = record.get("reactions") or ()
        if not isinstance(raw_reactions, list | tuple):
            raw_reactions = (raw_reactions,)
        reactions = tuple(str(r) for r in raw_reactions)

        engagement = record.get("engagement", record.get("attention", 0.0))
        try:
            engagement_value = float(engagement) if engagement is not None else 0.0
        except (TypeError, ValueError) as e:
            raise InvalidEventError(f"Invalid engagement score: {engagement!r}") from e

        return cls(
            sender=sender,
            receiver=receiver,
            timestamp=timestamp,
            type=event_type,
            reactions=reactions,
            engagement=engagement_value,
        )


@dataclass
class Session:
    start: datetime
    end: datetime
    types: set[str] = field(default_factory=set)
    events: list[InteractionEvent] = field(default_factory=list)

    def add(self, event: InteractionEvent) -> None:
        self.end = event.timestamp
        self.types.add(event.type_tag)
        self.events.append(event)

    @property
    def has_reactions(self) -> bool:
        return any(e.has_reactions for e in self.events)


@dataclass(frozen=True, eq=False)
class InteractionGeometry:
    a: np.ndarray
    b: np.ndarray
    c: np.ndarray
    d: np.ndarray
    span: float
    angle: float
    val_a: int
    val_b: int
    session_count: int

    def boosted(self, factor: float) -> InteractionGeometry:
        """Return a copy with vectors a and b scaled by ``factor``; c and d are untouched."""
        return dataclasses.replace(self, a=self.a * factor, b=self.b * factor)


@dataclass(frozen=True)
class GeometryClassification:
    category: str
    category_id: int
    symmetry_score: float


@dataclass(frozen=True)
class DirectionalMetrics:
    engagement_symmetry: float
    directional_balance: float
    forward_count: int
    backward_count: int


@dataclass(frozen=True)
class SubjectiveTime:
    time_effect: float
    perceived_minutes: float

    @property
    def description(self) -> str:
        return f"1 hour feels like {self.perceived_minutes:.0f} minutes"


@dataclass
class SynchronizationResult:
    agents: tuple[str, str]
    phase: SyncPhase
    score: float
    synchronized: bool = False
    classification: GeometryClassification | None = None
    subjective_time: SubjectiveTime | None = None
    fingerprint: str | None = None
    directional: DirectionalMetrics | None = None

    @property
    def is_insufficient(self) -> bool:
        return self.phase == SyncPhase.INSUFFICIENT_DATA

    @property
    def category_name(self) -> str:
        return self.classification.category if self.classification else "NONE"

    @property
    def category_id(self) -> int:
        return self.classification.category_id if self.classification else 0

    @property
    def sync_percent(self) -> str:
        return f"{self.score * 100:.1f}%"

    def to_dict(self) -> dict[str, Any]:
        return {
            "agents": list(self.agents),
            "phase": self.phase.value,
            "score": self.score,
            "synchronized": self.synchronized,
            "category": self.category_name,
            "category_id": self.category_id,
            "symmetry_score": (
                self.classification.symmetry_score if self.classification else None
            ),
            "subjective_time": (
                {
                    "time_effect": self.subjective_time.time_effect,
                    "perceived_minutes": self.subjective_time.perceived_minutes,
                    "description": self.subjective_time.description,
                }
                if self.subjective_time
                else None
            ),
            "fingerprint": self.fingerprint,
            "directional": dataclasses.asdict(self.directional) if self.directional else None,
        }


@dataclass(frozen=True)
class AgentFingerprint:
    agent_id: str
    receptivity: float
    assertiveness: float
    capacity: float
    reliability: float


@dataclass(frozen=True)
class FingerprintComparison:
    potential: float
    alignment: float
    actualized_sync: float
    final_score: float
    balance: float
    verified: bool


@dataclass
class Cluster:
    agents: list[str]
    pair_count: int
    average_score: float

    @property
    def size(self) -> int:
        return len(self.agents)

    def to_dict(self) -> dict[str, Any]:
        return {
            "agents": list(self.agents),
            "size": self.size,
            "pair_count": self.pair_count,
            "average_score": self.average_score,
        }


@dataclass(frozen=True)
class NetworkMetrics:
    total_events: int
    total_agents: int
    total_pairs: int
    synchronized_pairs: int
    synchronization_rate: float
    network_density: float
    average_sync_score: float
    cluster_count: int
    largest_cluster: int


@dataclass(frozen=True)
class AnalysisRecord:
    timestamp: str
    pair_key: str
    result: SynchronizationResult


@dataclass
class MotifGroup:
    category: str
    pairs: list[SynchronizationResult] = field(default_factory=list)

    @property
    def pair_count(self) -> int:
        return len(self.pairs)
