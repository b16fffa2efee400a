from __future__ import annotations

from typing import TYPE_CHECKING

from synclattice.constants import ARTIFACT_MAX_DAYS, ARTIFACT_MIN_CATEGORY_ID, ARTIFACT_MIN_EVENTS

if TYPE_CHECKING:
    from synclattice.models import NetworkMetrics, SynchronizationResult
    from synclattice.network.graph import NetworkGraph

RULE_WIDTH = 50


def bar(value: float, width: int = 10) -> str:
    filled = round(value * width)
    filled = max(0, min(width, filled))
    return "█" * filled + "░" * (width - filled)


def is_artifact(result: SynchronizationResult, total_events: int, days: float) -> bool:
    """High symmetry from very little data over a short window."""
    return (
        total_events < ARTIFACT_MIN_EVENTS
        and result.category_id >= ARTIFACT_MIN_CATEGORY_ID
        and days < ARTIFACT_MAX_DAYS
    )


def topology_lines(metrics: NetworkMetrics) -> list[str]:
    return [
        "NETWORK TOPOLOGY REPORT",
        "=" * RULE_WIDTH,
        f"Nodes:            {metrics.total_agents}",
        f"Edges (Pairs):    {metrics.total_pairs}",
        f"Sync Rate:        {metrics.synchronization_rate * 100:.1f}%",
        f"Network Density:  {metrics.network_density * 100:.1f}%",
        f"Clusters:         {metrics.cluster_count}",
    ]


def pair_lines(
    network: NetworkGraph,
    result: SynchronizationResult,
    days: float,
) -> list[str]:
    agent_a, agent_b = result.agents
    lines = ["-" * RULE_WIDTH, f"CONNECTION: {agent_a} ↔ {agent_b}", "-" * RULE_WIDTH]

    if result.is_insufficient:
        lines.append("STATUS: INSUFFICIENT DATA")
        return lines

    comparison = network.compare_fingerprints(agent_a, agent_b)
    if comparison is None:
        lines.append(f"WARNING: Could not calculate fingerprints for {agent_a} ↔ {agent_b}")
        return lines

    fp_a = network.agents[agent_a].fingerprint()
    fp_b = network.agents[agent_b].fingerprint()

    lines.append("PRE-SYNC STATUS:")
    lines.append(f"  Sync Likelihood:  {comparison.final_score * 100:.1f}%")
    lines.append(f"  Balance:          {comparison.balance * 100:.1f}%")
    lines.append(f"  Status:           {'VERIFIED' if comparison.verified else 'UNVERIFIED'}")
    lines.append("")
    lines.append("AGENT FINGERPRINTS:")
    for fp in (fp_a, fp_b):
        lines.append(
            f"  {fp.agent_id}: [Rx: {fp.receptivity:.1f}° | Tx: {fp.assertiveness:.1f}°]"
        )
    lines.append("")
    lines.append("ANALYSIS:")
    lines.append(f"  PHASE STATE:      [ {result.phase.value} ] ({result.sync_percent})")
    lines.append(f"  PATTERN:          {result.category_name} (ID: {result.category_id})")
    lines.append(f"  SYNC SCORE:       {bar(result.score)} {result.score:.3f}")

    if result.subjective_time is not None:
        st = result.subjective_time
        lines.append("")
        lines.append("SUBJECTIVE TIME:")
        lines.append(f"  Time Effect:      {st.time_effect:.3f}x")
        lines.append(
            f"  Subjective Hour:  60 minutes feels like {st.perceived_minutes:.0f} minutes"
        )
    lines.append(f"  Fingerprint:      {result.fingerprint}")

    if is_artifact(result, len(network.events), days):
        lines.append("WARNING: Artifact detected (High Symmetry / Low Volume)")
    return lines


def build_report_lines(
    network: NetworkGraph,
    results: list[SynchronizationResult],
    days: float,
) -> list[str]:
    lines = topology_lines(network.network_metrics())
    for result in results:
        lines.append("")
        lines.extend(pair_lines(network, result, days))
    return lines
