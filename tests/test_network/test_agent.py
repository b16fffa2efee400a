from datetime import UTC, datetime

import pytest

from synclattice.config import SyncSettings
from synclattice.models import InteractionEvent
from synclattice.network.agent import Agent, AgentProfile


def _event(sender: str, receiver: str, day: int, event_type: str = "TEXT") -> InteractionEvent:
    return InteractionEvent(
        sender=sender,
        receiver=receiver,
        timestamp=datetime(2025, 1, day, 9, tzinfo=UTC),
        type=event_type,
    )


@pytest.fixture
def settings() -> SyncSettings:
    return SyncSettings(_env_file=None)


class TestAgent:
    def test_default_name(self, settings: SyncSettings) -> None:
        assert Agent("x", settings).name == "Agent_x"
        assert Agent("x", settings, name="Xavier").name == "Xavier"

    def test_records_interactions(self, settings: SyncSettings) -> None:
        agent = Agent("A", settings)
        before = agent.last_update
        agent.record_outgoing(_event("A", "B", 1))
        agent.record_incoming(_event("C", "A", 2))
        assert agent.partners == {"B", "C"}
        assert agent.interaction_count == 2
        assert len(agent.outgoing) == 1
        assert len(agent.incoming) == 1
        assert agent.last_update >= before

    def test_to_dict(self, settings: SyncSettings) -> None:
        agent = Agent("A", settings)
        agent.record_outgoing(_event("A", "B", 1))
        data = agent.to_dict()
        assert data["id"] == "A"
        assert data["name"] == "Agent_A"
        assert data["interaction_count"] == 1
        assert data["interaction_partners"] == ["B"]
        assert datetime.fromisoformat(data["last_update"]).tzinfo is not None


class TestAgentFingerprint:
    def test_defaults_without_history(self, settings: SyncSettings) -> None:
        fp = Agent("A", settings).fingerprint()
        assert fp.agent_id == "A"
        assert fp.receptivity == 90.0
        assert fp.assertiveness == 90.0
        assert fp.capacity == 1.0
        assert fp.reliability == 0.0

    def test_outgoing_privileged_stream(self, settings: SyncSettings) -> None:
        agent = Agent("A", settings)
        for day in (1, 2, 3):
            agent.record_outgoing(_event("A", "B", day, "VOICE"))
        fp = agent.fingerprint()
        assert fp.assertiveness == 120.0
        assert fp.capacity == 3.0
        assert 0.0 < fp.reliability <= 1.0
        assert fp.receptivity == 90.0

    def test_incoming_stream_sets_receptivity(self, settings: SyncSettings) -> None:
        agent = Agent("A", settings)
        agent.record_incoming(_event("B", "A", 1, "VIDEO"))
        agent.record_incoming(_event("B", "A", 2, "TEXT"))
        fp = agent.fingerprint()
        assert fp.receptivity == 105.0
        assert fp.assertiveness == 90.0
        assert fp.reliability == 0.0


class TestAgentProfile:
    def test_directions_use_separate_analyzers(self, settings: SyncSettings) -> None:
        profile = AgentProfile(settings)
        assert profile._incoming is not profile._outgoing
        assert profile._incoming._classifier is not profile._outgoing._classifier

    def test_reading_without_geometry(self, settings: SyncSettings) -> None:
        reading = AgentProfile(settings).read_outgoing([_event("A", "B", 1)])
        assert reading.geometry is None
        assert reading.classification is None
