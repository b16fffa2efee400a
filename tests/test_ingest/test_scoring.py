from synclattice.constants import DEFAULT_PRIVILEGED_TYPES
from synclattice.ingest.scoring import infer_receiver, measure_attention, to_network_records


def _record(timestamp: str, **extra: object) -> dict[str, object]:
    return {"sender": "AgentA", "timestamp": timestamp, **extra}


class TestMeasureAttention:
    def test_floor(self) -> None:
        record = _record("2025-01-01T10:00:00Z", type="TEXT")
        assert measure_attention(record, None, DEFAULT_PRIVILEGED_TYPES) == 0.1

    def test_rapid_privileged_reply_with_reactions(self) -> None:
        previous = _record("2025-01-01T10:00:00Z")
        record = _record("2025-01-01T10:10:00Z", type="voice", reactions=["heart"])
        score = measure_attention(record, previous, DEFAULT_PRIVILEGED_TYPES)
        assert abs(score - 0.7) < 1e-10

    def test_prompt_reply(self) -> None:
        previous = _record("2025-01-01T10:00:00Z")
        record = _record("2025-01-01T11:00:00Z", type="VIDEO")
        score = measure_attention(record, previous, DEFAULT_PRIVILEGED_TYPES)
        assert abs(score - 0.4) < 1e-10

    def test_stale_reply_penalty(self) -> None:
        previous = _record("2025-01-01T10:00:00Z")
        record = _record("2025-01-05T10:00:00Z", type="CALL", reactions=["like"])
        score = measure_attention(record, previous, DEFAULT_PRIVILEGED_TYPES)
        assert abs(score - 0.4) < 1e-10

    def test_unparseable_previous_timestamp_is_ignored(self) -> None:
        previous = _record("yesterday")
        record = _record("2025-01-01T10:00:00Z", reactions=["like"])
        assert measure_attention(record, previous, DEFAULT_PRIVILEGED_TYPES) == 0.25

    def test_custom_privileged_types(self) -> None:
        record = _record("2025-01-01T10:00:00Z", type="image")
        assert abs(measure_attention(record, None, frozenset({"IMAGE"})) - 0.3) < 1e-10


class TestInferReceiver:
    def test_explicit_receiver(self) -> None:
        assert infer_receiver({"sender": "AgentA", "receiver": "Carol"}) == "Carol"

    def test_default_pair(self) -> None:
        assert infer_receiver({"sender": "AgentA"}) == "AgentB"
        assert infer_receiver({"sender": "AgentB"}) == "AgentA"


class TestToNetworkRecords:
    def test_fills_receiver_and_scores(self) -> None:
        records = [
            _record("2025-01-01T10:00:00Z", type="TEXT"),
            {"sender": "AgentB", "timestamp": "2025-01-01T10:05:00Z", "type": "VOICE"},
        ]
        converted = to_network_records(records, DEFAULT_PRIVILEGED_TYPES)

        assert [r["receiver"] for r in converted] == ["AgentB", "AgentA"]
        assert converted[0]["engagement"] == 0.1
        assert abs(converted[1]["engagement"] - 0.45) < 1e-10
        assert all(r["attention"] == r["engagement"] for r in converted)
        assert converted[1]["type"] == "VOICE"

    def test_does_not_mutate_input(self) -> None:
        records = [_record("2025-01-01T10:00:00Z")]
        to_network_records(records, DEFAULT_PRIVILEGED_TYPES)
        assert "receiver" not in records[0]
