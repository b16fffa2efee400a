from __future__ import annotations

import math
from datetime import timedelta
from typing import TYPE_CHECKING

import numpy as np
import structlog

from synclattice.constants import (
    DRIFT_ANGLE_SWING_DEG,
    DRIFT_ONSET_DAYS,
    DRIFT_WINDOW_DAYS,
    MAX_QUANTUM,
    NEUTRAL_ANGLE_DEG,
    PRIVILEGED_ANGLE_SWING_DEG,
)
from synclattice.models import InteractionGeometry, Session

if TYPE_CHECKING:
    from collections.abc import Iterable

    from synclattice.config import SyncSettings
    from synclattice.models import InteractionEvent

logger = structlog.get_logger(__name__)

MIN_SESSIONS = 2


class VectorSynthesizer:
    """Turns a chronological event history into a four-vector interaction geometry.

    Events are grouped into sessions separated by silences longer than the
    configured gap. From the sessions three quantities are derived:

    - the total span, quantized on a log2 scale into ``val_a``
    - the latest session's payload weight into ``val_b``
    - an angle that opens past 90 degrees with privileged-type density,
      or closes toward 75 degrees over long unprivileged spans
    """

    def __init__(self, settings: SyncSettings) -> None:
        self._settings = settings
        self._gap = timedelta(minutes=settings.session_gap_minutes)
        self._day_seconds = settings.day_unit_minutes * 60.0

    def group_sessions(self, events: Iterable[InteractionEvent]) -> list[Session]:
        sessions: list[Session] = []
        current: Session | None = None
        for event in sorted(events, key=lambda e: e.timestamp):
            if current is None or event.timestamp - current.end > self._gap:
                current = Session(start=event.timestamp, end=event.timestamp)
                sessions.append(current)
            current.add(event)
        return sessions

    @staticmethod
    def quantize_span(span_days: float) -> int:
        if span_days <= 0:
            return 1
        return max(1, min(MAX_QUANTUM, math.ceil(math.log2(span_days + 1))))

    def quantize_payload(self, session: Session) -> int:
        weights = self._settings.payload_weights
        type_weight = max((weights.get(tag) or 1.0 for tag in session.types), default=1.0)
        reaction_bonus = 1 if session.has_reactions else 0
        return max(1, min(MAX_QUANTUM, math.ceil(type_weight + reaction_bonus)))

    def privileged_ratio(self, sessions: list[Session]) -> float:
        if not sessions:
            return 0.0
        privileged = self._settings.privileged_types
        hits = sum(1 for s in sessions if s.types & privileged)
        return hits / len(sessions)

    @staticmethod
    def interaction_angle(ratio: float, span_days: float) -> float:
        if ratio > 0:
            return NEUTRAL_ANGLE_DEG + PRIVILEGED_ANGLE_SWING_DEG * ratio
        if span_days > DRIFT_ONSET_DAYS:
            drift = min(1.0, (span_days - DRIFT_ONSET_DAYS) / DRIFT_WINDOW_DAYS)
            return NEUTRAL_ANGLE_DEG - DRIFT_ANGLE_SWING_DEG * drift
        return NEUTRAL_ANGLE_DEG

    def synthesize(self, events: Iterable[InteractionEvent]) -> InteractionGeometry | None:
        """Build the geometry, or return None when fewer than two sessions exist."""
        sessions = self.group_sessions(events)
        if len(sessions) < MIN_SESSIONS:
            logger.debug("Not enough sessions for geometry", sessions=len(sessions))
            return None

        latest = sessions[-1]
        span = (latest.end - sessions[0].start).total_seconds() / self._day_seconds
        val_a = self.quantize_span(span)
        val_b = self.quantize_payload(latest)
        angle = self.interaction_angle(self.privileged_ratio(sessions), span)

        theta = math.radians(angle)
        return InteractionGeometry(
            a=np.array([val_a, 0.0, 0.0, 0.0]),
            b=np.array([val_b * math.cos(theta), val_b * math.sin(theta), 0.0, 0.0]),
            c=np.array([0.0, 0.0, val_b, 0.0]),
            d=np.array([0.0, 0.0, 0.0, val_b]),
            span=span,
            angle=angle,
            val_a=val_a,
            val_b=val_b,
            session_count=len(sessions),
        )
