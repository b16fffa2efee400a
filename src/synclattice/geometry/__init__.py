from synclattice.geometry.classifier import TAXONOMY, CategoryRule, GeometryClassifier
from synclattice.geometry.vectors import VectorSynthesizer

__all__ = ["TAXONOMY", "CategoryRule", "GeometryClassifier", "VectorSynthesizer"]
