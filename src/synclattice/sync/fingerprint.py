"""Deterministic pair-analysis fingerprint.

The fingerprint is a 32-bit rolling hash meant as a short display label for a
specific analysis outcome. It is not collision resistant: never use it to
deduplicate results or for anything security related.
"""

from __future__ import annotations

from synclattice.constants import FINGERPRINT_HEX_LENGTH, FINGERPRINT_PREFIX

_MASK_32 = 0xFFFFFFFF


def _to_int32(value: int) -> int:
    value &= _MASK_32
    return value - (1 << 32) if value & 0x80000000 else value


def format_angle(angle: float) -> str:
    if float(angle).is_integer():
        return str(int(angle))
    return repr(float(angle))


def rolling_hash(text: str) -> int:
    """``h = h * 31 + unit`` over UTF-16 code units, wrapped to signed 32 bits."""
    encoded = text.encode("utf-16-be")
    h = 0
    for i in range(0, len(encoded), 2):
        unit = (encoded[i] << 8) | encoded[i + 1]
        h = _to_int32(h * 31 + unit)
    return h


def pair_fingerprint(agent_a: str, agent_b: str, category_id: int, angle: float) -> str:
    components = ":".join([agent_a, agent_b, str(category_id), format_angle(angle)])
    digest = format(abs(rolling_hash(components)), "x")
    return f"{FINGERPRINT_PREFIX}{digest[:FINGERPRINT_HEX_LENGTH]}"
