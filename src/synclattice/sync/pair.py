from __future__ import annotations

import math
from typing import TYPE_CHECKING

import structlog

from synclattice.constants import MAX_CATEGORY_ID, SyncPhase, phase_for_score
from synclattice.geometry.classifier import GeometryClassifier
from synclattice.geometry.linalg import magnitude
from synclattice.geometry.vectors import VectorSynthesizer
from synclattice.models import (
    DirectionalMetrics,
    GeometryClassification,
    InteractionEvent,
    InteractionGeometry,
    SubjectiveTime,
    SynchronizationResult,
)
from synclattice.sync.fingerprint import pair_fingerprint

if TYPE_CHECKING:
    from collections.abc import Sequence

    from synclattice.config import SyncSettings

logger = structlog.get_logger(__name__)

W_SYMMETRY = 0.45
W_BALANCE = 0.25
W_RESONANCE = 0.25

W_DILATION_STRUCTURE = 0.4
W_DILATION_SYNC = 0.6

BOOST_FLOOR = 0.4
BOOST_SLOPE = 0.6


def _mean(values: list[float]) -> float:
    return sum(values) / len(values) if values else 0.0


class PairSynchronizer:
    """Synchronization analysis for one unordered agent pair.

    Holds the pair's private sublog: the events strictly between the two
    agents, in either direction, sorted by time. The sublog is rebuilt from
    the global log on demand; it is never patched incrementally.
    """

    def __init__(
        self,
        agent_a: str,
        agent_b: str,
        events: Sequence[InteractionEvent],
        settings: SyncSettings,
    ) -> None:
        self.agent_a = agent_a
        self.agent_b = agent_b
        self._settings = settings
        self._synthesizer = VectorSynthesizer(settings)
        self._classifier = GeometryClassifier(settings.length_tolerance, settings.angle_tolerance)
        self._all_events: Sequence[InteractionEvent] = ()
        self._sublog: list[InteractionEvent] = []
        self.analysis_count = 0
        self.rebuild(events)

    @property
    def agents(self) -> tuple[str, str]:
        return (self.agent_a, self.agent_b)

    @property
    def sublog(self) -> list[InteractionEvent]:
        return list(self._sublog)

    def rebuild(self, events: Sequence[InteractionEvent]) -> list[InteractionEvent]:
        self._all_events = events
        self._sublog = sorted(
            (e for e in events if e.involves(self.agent_a, self.agent_b)),
            key=lambda e: e.timestamp,
        )
        return self.sublog

    def directional_metrics(self) -> DirectionalMetrics:
        forward = [e for e in self._sublog if e.sender == self.agent_a]
        backward = [e for e in self._sublog if e.sender == self.agent_b]

        forward_engagement = _mean([e.engagement for e in forward])
        backward_engagement = _mean([e.engagement for e in backward])

        longest = max(len(forward), len(backward))
        balance = min(len(forward), len(backward)) / longest if longest > 0 else 0.0

        return DirectionalMetrics(
            engagement_symmetry=1.0 - abs(forward_engagement - backward_engagement),
            directional_balance=balance,
            forward_count=len(forward),
            backward_count=len(backward),
        )

    def reciprocity_boost(self, balance: float) -> float:
        if balance > self._settings.reciprocity_limit:
            return 1.0
        return BOOST_FLOOR + BOOST_SLOPE * balance

    def joint_geometry(self, directional: DirectionalMetrics) -> InteractionGeometry | None:
        geometry = self._synthesizer.synthesize(self._sublog)
        if geometry is None:
            return None
        return geometry.boosted(self.reciprocity_boost(directional.directional_balance))

    def resonance_density(self) -> float:
        """Share of the whole global log that is privileged or reacted to."""
        if not self._all_events:
            return 0.0
        privileged = self._settings.privileged_types
        resonant = sum(
            1 for e in self._all_events if e.is_privileged(privileged) or e.has_reactions
        )
        return resonant / len(self._all_events)

    def synchronization_score(
        self, classification: GeometryClassification, directional: DirectionalMetrics
    ) -> float:
        score = (
            W_SYMMETRY * classification.symmetry_score
            + W_BALANCE * directional.directional_balance
            + W_RESONANCE * self.resonance_density()
        )
        return max(0.0, min(1.0, score))

    @staticmethod
    def subjective_time(
        geometry: InteractionGeometry,
        classification: GeometryClassification,
        sync_score: float,
    ) -> SubjectiveTime:
        mag_a = max(1.0, magnitude(geometry.a))
        mag_b = max(1.0, magnitude(geometry.b))
        symmetry_multiplier = classification.category_id / MAX_CATEGORY_ID
        combined_magnitude = mag_a * mag_b * (0.5 + symmetry_multiplier)
        combined_weight = (
            W_DILATION_STRUCTURE * classification.symmetry_score + W_DILATION_SYNC * sync_score
        )
        time_effect = 1.0 / (1.0 + math.log(max(1.0, combined_magnitude) + 1.0) * combined_weight)
        return SubjectiveTime(time_effect=time_effect, perceived_minutes=60.0 * time_effect)

    def analyze(self) -> SynchronizationResult:
        self.analysis_count += 1
        directional = self.directional_metrics()
        geometry = self.joint_geometry(directional)
        if geometry is None:
            return SynchronizationResult(
                agents=self.agents,
                phase=SyncPhase.INSUFFICIENT_DATA,
                score=0.0,
                synchronized=False,
                directional=directional,
            )

        classification = self._classifier.classify(geometry.a, geometry.b, geometry.c, geometry.d)
        score = self.synchronization_score(classification, directional)
        result = SynchronizationResult(
            agents=self.agents,
            phase=phase_for_score(score),
            score=score,
            synchronized=score >= self._settings.synchronized_threshold,
            classification=classification,
            subjective_time=self.subjective_time(geometry, classification, score),
            fingerprint=pair_fingerprint(
                self.agent_a, self.agent_b, classification.category_id, geometry.angle
            ),
            directional=directional,
        )
        logger.debug(
            "Pair analyzed",
            agents=self.agents,
            phase=result.phase.value,
            score=round(score, 4),
            category=classification.category,
        )
        return result
