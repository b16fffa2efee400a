import re

from synclattice.sync.fingerprint import format_angle, pair_fingerprint, rolling_hash


class TestRollingHash:
    def test_empty(self) -> None:
        assert rolling_hash("") == 0

    def test_small_values(self) -> None:
        assert rolling_hash("a") == 97
        assert rolling_hash("ab") == 97 * 31 + 98

    def test_wraps_to_signed_32_bit(self) -> None:
        value = rolling_hash("x" * 200)
        assert -(2**31) <= value < 2**31

    def test_utf16_code_units(self) -> None:
        # Characters outside the BMP hash as two surrogate units.
        assert rolling_hash("\U0001f600") == 0xD83D * 31 + 0xDE00


class TestFormatAngle:
    def test_integral(self) -> None:
        assert format_angle(90.0) == "90"
        assert format_angle(120.0) == "120"

    def test_fractional(self) -> None:
        assert format_angle(93.5) == "93.5"


class TestPairFingerprint:
    def test_known_value(self) -> None:
        assert pair_fingerprint("a", "b", 1, 90.0) == "sync_2fed451"

    def test_format(self) -> None:
        fp = pair_fingerprint("AgentA", "AgentB", 17, 120.0)
        assert re.fullmatch(r"sync_[0-9a-f]{1,12}", fp)

    def test_deterministic(self) -> None:
        first = pair_fingerprint("AgentA", "AgentB", 17, 120.0)
        second = pair_fingerprint("AgentA", "AgentB", 17, 120.0)
        assert first == second

    def test_order_sensitive(self) -> None:
        assert pair_fingerprint("AgentA", "AgentB", 17, 120.0) != pair_fingerprint(
            "AgentB", "AgentA", 17, 120.0
        )

    def test_inputs_change_hash(self) -> None:
        base = pair_fingerprint("AgentA", "AgentB", 17, 120.0)
        assert pair_fingerprint("AgentA", "AgentB", 10, 120.0) != base
        assert pair_fingerprint("AgentA", "AgentB", 17, 105.0) != base
