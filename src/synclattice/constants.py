import enum

MAX_CATEGORY_ID: int = 23
UNCLASSIFIED_ID: int = 0
UNCLASSIFIED_NAME: str = "Unclassified configuration"

DEFAULT_TYPE_TAG: str = "DEFAULT"

DEFAULT_PAYLOAD_WEIGHTS: dict[str, float] = {
    "TEXT": 1.0,
    "LINK": 1.5,
    "IMAGE": 2.0,
    "FILE": 2.0,
    "VOICE": 3.0,
    "VIDEO": 4.0,
    "CALL": 4.0,
}
DEFAULT_PRIVILEGED_TYPES: frozenset[str] = frozenset({"VOICE", "VIDEO", "CALL"})

MAX_QUANTUM: int = 5

NEUTRAL_ANGLE_DEG: float = 90.0
PRIVILEGED_ANGLE_SWING_DEG: float = 30.0
DRIFT_ANGLE_SWING_DEG: float = 15.0
DRIFT_ONSET_DAYS: float = 30.0
DRIFT_WINDOW_DAYS: float = 335.0

FINGERPRINT_PREFIX: str = "sync_"
FINGERPRINT_HEX_LENGTH: int = 12

ARTIFACT_MIN_EVENTS: int = 15
ARTIFACT_MIN_CATEGORY_ID: int = 17
ARTIFACT_MAX_DAYS: float = 60.0


class SyncPhase(enum.StrEnum):
    INSUFFICIENT_DATA = "INSUFFICIENT_DATA"
    DECOHERENT = "DECOHERENT"
    COHERENT = "COHERENT"
    ALIGNED = "ALIGNED"
    ENTANGLED = "ENTANGLED"


PHASE_THRESHOLDS: list[tuple[float, SyncPhase]] = [
    (0.8, SyncPhase.ENTANGLED),
    (0.6, SyncPhase.ALIGNED),
    (0.4, SyncPhase.COHERENT),
]


def phase_for_score(score: float) -> SyncPhase:
    for threshold, phase in PHASE_THRESHOLDS:
        if score >= threshold:
            return phase
    return SyncPhase.DECOHERENT
