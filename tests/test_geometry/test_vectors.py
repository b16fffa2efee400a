from datetime import UTC, datetime

import numpy as np
import pytest

from synclattice.config import SyncSettings
from synclattice.geometry.vectors import VectorSynthesizer
from synclattice.models import InteractionEvent, Session


def _ts(day: int = 1, hour: int = 12, minute: int = 0) -> datetime:
    return datetime(2025, 1, day, hour, minute, tzinfo=UTC)


def _event(
    when: datetime,
    event_type: str | None = None,
    reactions: tuple[str, ...] = (),
    sender: str = "A",
    receiver: str = "B",
) -> InteractionEvent:
    return InteractionEvent(
        sender=sender,
        receiver=receiver,
        timestamp=when,
        type=event_type,
        reactions=reactions,
    )


@pytest.fixture
def synth() -> VectorSynthesizer:
    return VectorSynthesizer(SyncSettings(_env_file=None))


class TestGroupSessions:
    def test_empty(self, synth: VectorSynthesizer) -> None:
        assert synth.group_sessions([]) == []

    def test_gap_splits_sessions(self, synth: VectorSynthesizer) -> None:
        events = [
            _event(_ts(1, 12, 0)),
            _event(_ts(1, 12, 30)),
            _event(_ts(1, 15, 0)),
        ]
        sessions = synth.group_sessions(events)
        assert len(sessions) == 2
        assert len(sessions[0].events) == 2
        assert sessions[0].end == _ts(1, 12, 30)

    def test_gap_equal_to_threshold_extends_session(self, synth: VectorSynthesizer) -> None:
        sessions = synth.group_sessions([_event(_ts(1, 10)), _event(_ts(1, 12))])
        assert len(sessions) == 1

    def test_sorts_input(self, synth: VectorSynthesizer) -> None:
        events = [_event(_ts(3)), _event(_ts(1)), _event(_ts(2))]
        sessions = synth.group_sessions(events)
        starts = [s.start for s in sessions]
        assert starts == sorted(starts)

    def test_types_default_tag(self, synth: VectorSynthesizer) -> None:
        sessions = synth.group_sessions([_event(_ts(1)), _event(_ts(1, 12, 5), "VOICE")])
        assert sessions[0].types == {"DEFAULT", "VOICE"}


class TestQuantize:
    def test_span_floor(self) -> None:
        assert VectorSynthesizer.quantize_span(0.0) == 1

    def test_span_log_scale(self) -> None:
        assert VectorSynthesizer.quantize_span(1.0) == 1
        assert VectorSynthesizer.quantize_span(2.0) == 2
        assert VectorSynthesizer.quantize_span(3.0) == 2
        assert VectorSynthesizer.quantize_span(7.0) == 3

    def test_span_cap(self) -> None:
        assert VectorSynthesizer.quantize_span(1000.0) == 5

    def test_payload_plain(self, synth: VectorSynthesizer) -> None:
        session = Session(start=_ts(), end=_ts(), types={"TEXT"})
        assert synth.quantize_payload(session) == 1

    def test_payload_unknown_type_weighs_one(self, synth: VectorSynthesizer) -> None:
        session = Session(start=_ts(), end=_ts(), types={"MYSTERY"})
        assert synth.quantize_payload(session) == 1

    def test_payload_reaction_bonus(self, synth: VectorSynthesizer) -> None:
        session = Session(start=_ts(), end=_ts())
        session.add(_event(_ts(), "VOICE", reactions=("like",)))
        assert synth.quantize_payload(session) == 4

    def test_payload_cap(self) -> None:
        synth = VectorSynthesizer(SyncSettings(_env_file=None, payload_weights={"BIG": 9.0}))
        session = Session(start=_ts(), end=_ts(), types={"BIG"})
        assert synth.quantize_payload(session) == 5


class TestInteractionAngle:
    def test_privileged_ratio_opens_angle(self) -> None:
        assert VectorSynthesizer.interaction_angle(1.0, 5.0) == 120.0
        assert VectorSynthesizer.interaction_angle(0.5, 5.0) == 105.0

    def test_neutral(self) -> None:
        assert VectorSynthesizer.interaction_angle(0.0, 10.0) == 90.0

    def test_long_span_drifts(self) -> None:
        assert abs(VectorSynthesizer.interaction_angle(0.0, 197.5) - 82.5) < 1e-10
        assert VectorSynthesizer.interaction_angle(0.0, 365.0) == 75.0
        assert VectorSynthesizer.interaction_angle(0.0, 5000.0) == 75.0

    def test_privileged_ratio(self, synth: VectorSynthesizer) -> None:
        sessions = synth.group_sessions(
            [_event(_ts(1), "VIDEO"), _event(_ts(2), "TEXT"), _event(_ts(3), "TEXT")]
        )
        assert abs(synth.privileged_ratio(sessions) - 1 / 3) < 1e-10


class TestSynthesize:
    def test_single_session_is_none(self, synth: VectorSynthesizer) -> None:
        assert synth.synthesize([_event(_ts(1)), _event(_ts(1, 13))]) is None

    def test_no_events_is_none(self, synth: VectorSynthesizer) -> None:
        assert synth.synthesize([]) is None

    def test_plain_history(self, synth: VectorSynthesizer) -> None:
        geometry = synth.synthesize([_event(_ts(1), "TEXT"), _event(_ts(3), "TEXT")])
        assert geometry is not None
        assert abs(geometry.span - 2.0) < 1e-10
        assert geometry.val_a == 2
        assert geometry.val_b == 1
        assert geometry.angle == 90.0
        assert geometry.session_count == 2
        np.testing.assert_array_almost_equal(geometry.a, [2.0, 0.0, 0.0, 0.0])
        np.testing.assert_array_almost_equal(geometry.b, [0.0, 1.0, 0.0, 0.0])
        np.testing.assert_array_equal(geometry.c, [0.0, 0.0, 1.0, 0.0])
        np.testing.assert_array_equal(geometry.d, [0.0, 0.0, 0.0, 1.0])

    def test_privileged_history(self, synth: VectorSynthesizer) -> None:
        geometry = synth.synthesize(
            [
                _event(_ts(1), "VOICE", ("like",)),
                _event(_ts(2), "VOICE", ("like",)),
                _event(_ts(3), "VOICE", ("like",)),
            ]
        )
        assert geometry is not None
        assert geometry.angle == 120.0
        assert geometry.val_b == 4
        np.testing.assert_array_almost_equal(
            geometry.b, [4 * np.cos(np.radians(120)), 4 * np.sin(np.radians(120)), 0.0, 0.0]
        )

    def test_latest_session_drives_payload(self, synth: VectorSynthesizer) -> None:
        geometry = synth.synthesize([_event(_ts(1), "VIDEO"), _event(_ts(2), "TEXT")])
        assert geometry is not None
        assert geometry.val_b == 1

    def test_boosted_scales_only_a_and_b(self, synth: VectorSynthesizer) -> None:
        geometry = synth.synthesize([_event(_ts(1), "TEXT"), _event(_ts(3), "TEXT")])
        assert geometry is not None
        boosted = geometry.boosted(0.5)
        np.testing.assert_array_almost_equal(boosted.a, geometry.a * 0.5)
        np.testing.assert_array_almost_equal(boosted.b, geometry.b * 0.5)
        np.testing.assert_array_equal(boosted.c, geometry.c)
        np.testing.assert_array_equal(boosted.d, geometry.d)
