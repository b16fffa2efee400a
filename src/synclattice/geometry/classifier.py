from __future__ import annotations

import enum
from collections.abc import Callable
from dataclasses import dataclass, field

import numpy as np
import structlog

from synclattice.constants import MAX_CATEGORY_ID, UNCLASSIFIED_ID, UNCLASSIFIED_NAME
from synclattice.geometry.linalg import angle_between, magnitude
from synclattice.models import GeometryClassification

logger = structlog.get_logger(__name__)

ANGLE_LABELS: tuple[str, ...] = ("alpha", "beta", "gamma", "delta", "epsilon", "zeta")
RIGHT_ANGLE = 90.0
HEXAGONAL_ANGLE = 120.0


class EdgeConstraint(enum.StrEnum):
    EQUAL = "equal"
    AB_EQUAL = "ab_equal"
    UNEQUAL = "unequal"


@dataclass(frozen=True)
class SymmetryMap:
    """Boolean predicates over measured edges and angles."""

    lengths: dict[str, float]
    angles: dict[str, float]
    angle_tolerance: float
    all_edges_equal: bool
    ab_equal: bool

    def is_right(self, label: str) -> bool:
        return abs(self.angles[label] - RIGHT_ANGLE) < self.angle_tolerance

    def is_hexagonal(self, label: str) -> bool:
        return abs(self.angles[label] - HEXAGONAL_ANGLE) < self.angle_tolerance

    @property
    def all_right(self) -> bool:
        return all(self.is_right(label) for label in ANGLE_LABELS)


@dataclass(frozen=True)
class CategoryRule:
    category_id: int
    name: str
    edges: EdgeConstraint
    check: Callable[[SymmetryMap], bool] = field(repr=False)
    # None means the rule makes no angle claim and earns no angle term.
    ideal_angles: dict[str, float] | None = None

    def ideal(self, label: str) -> float:
        if self.ideal_angles is None:
            return RIGHT_ANGLE
        return self.ideal_angles.get(label, RIGHT_ANGLE)


def _monoclinic(s: SymmetryMap) -> bool:
    return (
        not s.all_right
        and not s.is_right("alpha")
        and all(s.is_right(label) for label in ANGLE_LABELS if label != "alpha")
    )


# Evaluated top-down, first match wins. Reordering changes results.
TAXONOMY: tuple[CategoryRule, ...] = (
    CategoryRule(
        23,
        "Hypercubic",
        EdgeConstraint.EQUAL,
        lambda s: s.all_edges_equal and s.all_right,
        ideal_angles={},
    ),
    CategoryRule(
        20,
        "Hexagonal",
        EdgeConstraint.EQUAL,
        lambda s: s.all_edges_equal and s.is_hexagonal("gamma"),
        ideal_angles={"gamma": HEXAGONAL_ANGLE},
    ),
    CategoryRule(
        17,
        "Trigonal",
        EdgeConstraint.UNEQUAL,
        lambda s: s.is_hexagonal("gamma"),
        ideal_angles={"gamma": HEXAGONAL_ANGLE},
    ),
    CategoryRule(
        15,
        "Tetragonal",
        EdgeConstraint.AB_EQUAL,
        lambda s: s.all_right and s.ab_equal,
        ideal_angles={},
    ),
    CategoryRule(
        10,
        "Orthorhombic",
        EdgeConstraint.UNEQUAL,
        lambda s: s.all_right,
        ideal_angles={},
    ),
    CategoryRule(
        4,
        "Monoclinic",
        EdgeConstraint.UNEQUAL,
        _monoclinic,
        ideal_angles={"gamma": 75.0},
    ),
    CategoryRule(
        3,
        "Diclinic",
        EdgeConstraint.UNEQUAL,
        lambda s: not s.all_right and not s.is_right("alpha") and not s.is_right("zeta"),
        ideal_angles={"gamma": 75.0, "zeta": 75.0},
    ),
    CategoryRule(
        1,
        "Triclinic",
        EdgeConstraint.UNEQUAL,
        lambda s: True,
    ),
)


class GeometryClassifier:
    """Matches a four-vector geometry against the symmetry taxonomy.

    ``length_tolerance`` is scaled by ``angle_tolerance / 100`` to form the
    relative edge-equality threshold. The same ``angle_tolerance / 100`` is
    the weight of the edge and angle refinements added on top of the
    category's base score ``id / 23``.
    """

    def __init__(
        self,
        length_tolerance: float,
        angle_tolerance: float,
        taxonomy: tuple[CategoryRule, ...] = TAXONOMY,
    ) -> None:
        self.length_tolerance = length_tolerance
        self.angle_tolerance = angle_tolerance
        self.deviation = angle_tolerance * 0.01
        self._taxonomy = taxonomy

    @property
    def taxonomy(self) -> tuple[CategoryRule, ...]:
        return self._taxonomy

    def measure(
        self,
        a: np.ndarray,
        b: np.ndarray,
        c: np.ndarray,
        d: np.ndarray,
    ) -> tuple[dict[str, float], dict[str, float]]:
        lengths = {"a": magnitude(a), "b": magnitude(b), "c": magnitude(c), "d": magnitude(d)}
        angles = {
            "alpha": angle_between(b, c),
            "beta": angle_between(a, c),
            "gamma": angle_between(a, b),
            "delta": angle_between(a, d),
            "epsilon": angle_between(b, d),
            "zeta": angle_between(c, d),
        }
        return lengths, angles

    def edges_equal(self, x: float, y: float, length_tolerance: float) -> bool:
        if x == 0 and y == 0:
            return True
        return abs(x - y) / max(x, y) < length_tolerance * self.angle_tolerance * 0.01

    def symmetry_map(
        self,
        lengths: dict[str, float],
        angles: dict[str, float],
        length_tolerance: float,
        angle_tolerance: float,
    ) -> SymmetryMap:
        ab = self.edges_equal(lengths["a"], lengths["b"], length_tolerance)
        bc = self.edges_equal(lengths["b"], lengths["c"], length_tolerance)
        cd = self.edges_equal(lengths["c"], lengths["d"], length_tolerance)
        return SymmetryMap(
            lengths=lengths,
            angles=angles,
            angle_tolerance=angle_tolerance,
            all_edges_equal=ab and bc and cd,
            ab_equal=ab,
        )

    def match(self, symmetry: SymmetryMap) -> CategoryRule | None:
        for rule in self._taxonomy:
            if rule.check(symmetry):
                return rule
        return None

    def classify(
        self,
        a: np.ndarray,
        b: np.ndarray,
        c: np.ndarray,
        d: np.ndarray,
        length_tolerance: float | None = None,
        angle_tolerance: float | None = None,
    ) -> GeometryClassification:
        active_length_tol = self.length_tolerance if length_tolerance is None else length_tolerance
        active_angle_tol = self.angle_tolerance if angle_tolerance is None else angle_tolerance

        lengths, angles = self.measure(a, b, c, d)
        symmetry = self.symmetry_map(lengths, angles, active_length_tol, active_angle_tol)
        rule = self.match(symmetry)
        if rule is None:
            logger.warning("Geometry matched no category", lengths=lengths, angles=angles)
            return GeometryClassification(UNCLASSIFIED_NAME, UNCLASSIFIED_ID, 0.0)

        return GeometryClassification(
            category=rule.name,
            category_id=rule.category_id,
            symmetry_score=self.symmetry_score(rule, lengths, angles),
        )

    def symmetry_score(
        self,
        rule: CategoryRule,
        lengths: dict[str, float],
        angles: dict[str, float],
    ) -> float:
        if rule.category_id == UNCLASSIFIED_ID:
            return 0.0

        score = rule.category_id / MAX_CATEGORY_ID

        if rule.edges == EdgeConstraint.EQUAL:
            edges = np.array(list(lengths.values()))
            mean_edge = float(edges.mean()) or 1.0
            consistency = 1.0 - min(1.0, float(edges.std()) / mean_edge)
            score += self.deviation * consistency
        else:
            score += self.deviation

        if rule.ideal_angles is not None:
            avg_dev = sum(abs(angles[label] - rule.ideal(label)) for label in ANGLE_LABELS) / len(
                ANGLE_LABELS
            )
            precision = max(0.0, 1.0 - avg_dev / self.angle_tolerance)
            score += self.deviation * precision

        return max(0.0, min(1.0, score))
