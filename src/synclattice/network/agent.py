from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from synclattice.constants import NEUTRAL_ANGLE_DEG
from synclattice.geometry.classifier import GeometryClassifier
from synclattice.geometry.vectors import VectorSynthesizer
from synclattice.models import AgentFingerprint

if TYPE_CHECKING:
    from synclattice.config import SyncSettings
    from synclattice.models import GeometryClassification, InteractionEvent, InteractionGeometry


@dataclass(frozen=True)
class StreamReading:
    geometry: InteractionGeometry | None
    classification: GeometryClassification | None


class _StreamAnalyzer:
    def __init__(self, settings: SyncSettings) -> None:
        self._synthesizer = VectorSynthesizer(settings)
        self._classifier = GeometryClassifier(settings.length_tolerance, settings.angle_tolerance)

    def read(self, events: list[InteractionEvent]) -> StreamReading:
        geometry = self._synthesizer.synthesize(events)
        if geometry is None:
            return StreamReading(geometry=None, classification=None)
        classification = self._classifier.classify(geometry.a, geometry.b, geometry.c, geometry.d)
        return StreamReading(geometry=geometry, classification=classification)


class AgentProfile:
    """Directional traits of one agent.

    Incoming and outgoing streams are analyzed by separate synthesizer and
    classifier instances so neither direction can influence the other.
    """

    def __init__(self, settings: SyncSettings) -> None:
        self._incoming = _StreamAnalyzer(settings)
        self._outgoing = _StreamAnalyzer(settings)

    def read_incoming(self, events: list[InteractionEvent]) -> StreamReading:
        return self._incoming.read(events)

    def read_outgoing(self, events: list[InteractionEvent]) -> StreamReading:
        return self._outgoing.read(events)

    def fingerprint(
        self,
        agent_id: str,
        incoming: list[InteractionEvent],
        outgoing: list[InteractionEvent],
    ) -> AgentFingerprint:
        received = self.read_incoming(incoming)
        sent = self.read_outgoing(outgoing)
        return AgentFingerprint(
            agent_id=agent_id,
            receptivity=received.geometry.angle if received.geometry else NEUTRAL_ANGLE_DEG,
            assertiveness=sent.geometry.angle if sent.geometry else NEUTRAL_ANGLE_DEG,
            capacity=float(sent.geometry.val_b) if sent.geometry else 1.0,
            reliability=sent.classification.symmetry_score if sent.classification else 0.0,
        )


class Agent:
    def __init__(self, agent_id: str, settings: SyncSettings, name: str | None = None) -> None:
        self.id = agent_id
        self.name = name or f"Agent_{agent_id}"
        self.outgoing: list[InteractionEvent] = []
        self.incoming: list[InteractionEvent] = []
        self.partners: set[str] = set()
        self.last_update: datetime = datetime.now(UTC)
        self._profile = AgentProfile(settings)

    @property
    def interaction_count(self) -> int:
        return len(self.incoming) + len(self.outgoing)

    def record_outgoing(self, event: InteractionEvent) -> None:
        self.partners.add(event.receiver)
        self.outgoing.append(event)
        self.last_update = datetime.now(UTC)

    def record_incoming(self, event: InteractionEvent) -> None:
        self.partners.add(event.sender)
        self.incoming.append(event)
        self.last_update = datetime.now(UTC)

    def fingerprint(self) -> AgentFingerprint:
        return self._profile.fingerprint(self.id, self.incoming, self.outgoing)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "interaction_count": self.interaction_count,
            "interaction_partners": sorted(self.partners),
            "last_update": self.last_update.isoformat(),
        }
