from __future__ import annotations

import dataclasses
from collections import deque
from datetime import UTC, datetime
from itertools import combinations
from typing import TYPE_CHECKING, Any

import structlog

from synclattice.constants import SyncPhase
from synclattice.models import (
    AnalysisRecord,
    FingerprintComparison,
    InteractionEvent,
    InvalidEventError,
    MotifGroup,
    NetworkMetrics,
    SynchronizationResult,
)
from synclattice.network.agent import Agent
from synclattice.network.clusters import find_clusters, pair_key
from synclattice.sync.pair import PairSynchronizer

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

    from synclattice.config import SyncSettings
    from synclattice.models import Cluster

logger = structlog.get_logger(__name__)

W_POTENTIAL = 0.4
W_ALIGNMENT = 0.3
W_ACTUALIZED = 0.3
VERIFIED_SYNC = 0.6
VERIFIED_ALIGNMENT = 0.5
SNAPSHOT_HISTORY = 20


class NetworkGraph:
    """Owner of the event log and the agent and pair registries.

    Agents and pairs are created lazily on first reference. Admitting an
    event rebuilds the sublog of the registered pair it touches; nothing is
    cached beyond that, so every analysis reflects the current log.

    ``profile_settings`` sets the classifier tolerances used for agent
    fingerprints when they should stay fixed while pair tolerances are
    tuned per dataset. It defaults to ``settings``.
    """

    def __init__(
        self, settings: SyncSettings, profile_settings: SyncSettings | None = None
    ) -> None:
        self.settings = settings
        self.profile_settings = profile_settings or settings
        self.events: list[InteractionEvent] = []
        self.agents: dict[str, Agent] = {}
        self.pairs: dict[str, PairSynchronizer] = {}
        self.analysis_history: deque[AnalysisRecord] = deque(
            maxlen=settings.analysis_history_limit
        )
        self._admitted: set[InteractionEvent] = set()
        self._clusters: list[Cluster] = []

    @property
    def clusters(self) -> list[Cluster]:
        return list(self._clusters)

    def register_agent(self, agent_id: str, name: str | None = None) -> Agent | None:
        if not agent_id or not agent_id.strip():
            logger.warning("Attempted to register agent with empty ID")
            return None
        if agent_id not in self.agents:
            self.agents[agent_id] = Agent(agent_id, self.profile_settings, name=name)
            logger.debug("Registered agent", agent_id=agent_id)
        return self.agents[agent_id]

    def add_event(self, record: Mapping[str, Any] | InteractionEvent) -> bool:
        try:
            event = (
                record
                if isinstance(record, InteractionEvent)
                else InteractionEvent.from_record(record)
            )
        except InvalidEventError as e:
            logger.warning("Rejected event", reason=str(e))
            return False

        if not event.sender or not event.receiver or event.sender == event.receiver:
            logger.warning("Rejected event", reason="Invalid endpoints", sender=event.sender)
            return False

        if event in self._admitted:
            logger.debug("Ignored duplicate event", sender=event.sender, receiver=event.receiver)
            return False

        sender = self.register_agent(event.sender)
        receiver = self.register_agent(event.receiver)
        if sender is None or receiver is None:
            logger.warning("Failed to register agents for event", sender=event.sender)
            return False

        self._admitted.add(event)
        self.events.append(event)
        sender.record_outgoing(event)
        receiver.record_incoming(event)

        pair = self.pairs.get(pair_key(event.sender, event.receiver))
        if pair is not None:
            pair.rebuild(self.events)
        return True

    def add_events(self, records: Iterable[Mapping[str, Any] | InteractionEvent]) -> int:
        total = 0
        added = 0
        for record in records:
            total += 1
            if self.add_event(record):
                added += 1
        logger.info("Added events", added=added, total=total)
        return added

    def get_pair(self, agent_a: str, agent_b: str) -> PairSynchronizer | None:
        return self.pairs.get(pair_key(agent_a, agent_b))

    def _get_or_create_pair(self, agent_a: str, agent_b: str) -> PairSynchronizer:
        key = pair_key(agent_a, agent_b)
        if key not in self.pairs:
            first, second = sorted((agent_a, agent_b))
            self.pairs[key] = PairSynchronizer(first, second, self.events, self.settings)
        return self.pairs[key]

    def analyze_pair(self, agent_a: str, agent_b: str) -> SynchronizationResult:
        if agent_a == agent_b or agent_a not in self.agents or agent_b not in self.agents:
            logger.debug("Pair has no registered agents", agent_a=agent_a, agent_b=agent_b)
            return SynchronizationResult(
                agents=(agent_a, agent_b), phase=SyncPhase.INSUFFICIENT_DATA, score=0.0
            )

        pair = self._get_or_create_pair(agent_a, agent_b)
        result = pair.analyze()
        self.analysis_history.append(
            AnalysisRecord(
                timestamp=datetime.now(UTC).isoformat(),
                pair_key=pair_key(agent_a, agent_b),
                result=result,
            )
        )
        return result

    def analyze_all_pairs(self) -> list[SynchronizationResult]:
        results = [self.analyze_pair(a, b) for a, b in combinations(list(self.agents), 2)]
        self._clusters = find_clusters(results)
        logger.info(
            "Analyzed all pairs",
            pairs=len(results),
            synchronized=sum(1 for r in results if r.synchronized),
            clusters=len(self._clusters),
        )
        return results

    def _analyzed_pairs(self) -> list[PairSynchronizer]:
        return [p for p in self.pairs.values() if p.analysis_count > 0]

    def compare_fingerprints(self, agent_a: str, agent_b: str) -> FingerprintComparison | None:
        first = self.agents.get(agent_a)
        second = self.agents.get(agent_b)
        if first is None or second is None:
            return None

        fp_a = first.fingerprint()
        fp_b = second.fingerprint()
        pair = self.get_pair(agent_a, agent_b)
        actualized = pair.analyze().score if pair is not None else 0.0

        alignment = (fp_a.reliability + fp_b.reliability) / 2
        if fp_a.capacity > 0 and fp_b.capacity > 0:
            potential = 1.0 - abs(fp_a.assertiveness - fp_b.receptivity) / 180.0
        else:
            potential = 0.0

        return FingerprintComparison(
            potential=potential,
            alignment=alignment,
            actualized_sync=actualized,
            final_score=(
                W_POTENTIAL * potential + W_ALIGNMENT * alignment + W_ACTUALIZED * actualized
            ),
            balance=min(fp_a.capacity, fp_b.capacity) / max(fp_a.capacity, fp_b.capacity, 1.0),
            verified=actualized > VERIFIED_SYNC and alignment > VERIFIED_ALIGNMENT,
        )

    def find_motifs(self) -> list[MotifGroup]:
        """Group analyzed pairs by geometry category, largest group first."""
        groups: dict[str, MotifGroup] = {}
        for pair in self._analyzed_pairs():
            result = pair.analyze()
            if result.is_insufficient:
                continue
            group = groups.setdefault(result.category_name, MotifGroup(result.category_name))
            group.pairs.append(result)
        for group in groups.values():
            group.pairs.sort(key=lambda r: r.score, reverse=True)
        return sorted(groups.values(), key=lambda g: g.pair_count, reverse=True)

    def network_metrics(self) -> NetworkMetrics:
        total_agents = len(self.agents)
        total_pairs = len(self.pairs)
        synchronized = [
            result
            for result in (p.analyze() for p in self._analyzed_pairs())
            if result.synchronized
        ]
        possible_pairs = total_agents * (total_agents - 1) / 2
        return NetworkMetrics(
            total_events=len(self.events),
            total_agents=total_agents,
            total_pairs=total_pairs,
            synchronized_pairs=len(synchronized),
            synchronization_rate=len(synchronized) / total_pairs if total_pairs else 0.0,
            network_density=total_pairs / possible_pairs if possible_pairs else 0.0,
            average_sync_score=(
                sum(r.score for r in synchronized) / len(synchronized) if synchronized else 0.0
            ),
            cluster_count=len(self._clusters),
            largest_cluster=max((c.size for c in self._clusters), default=0),
        )

    def snapshot(self) -> dict[str, Any]:
        metrics = self.network_metrics()
        return {
            "network_metrics": dataclasses.asdict(metrics),
            "agents": [agent.to_dict() for agent in self.agents.values()],
            "clusters": [cluster.to_dict() for cluster in self._clusters],
            "analysis_history": [
                {
                    "timestamp": record.timestamp,
                    "pair_key": record.pair_key,
                    "result": record.result.to_dict(),
                }
                for record in list(self.analysis_history)[-SNAPSHOT_HISTORY:]
            ],
            "total_events": len(self.events),
        }
