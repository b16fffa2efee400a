from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from synclattice.constants import DEFAULT_PAYLOAD_WEIGHTS, DEFAULT_PRIVILEGED_TYPES


class SyncSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="SYNCLATTICE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Logging level",
    )

    # Classifier
    length_tolerance: float = Field(
        default=1.1, gt=0.0, le=10.0, description="Relative edge-length tolerance factor"
    )
    angle_tolerance: float = Field(
        default=20.0, gt=0.0, le=90.0, description="Angle tolerance in degrees"
    )

    # Sessions
    time_unit_minutes: float = Field(
        default=60.0, gt=0.0, description="Base time unit in minutes"
    )
    session_gap_multiplier: float = Field(
        default=2.0,
        gt=0.0,
        description="Time units of silence that close a session",
    )
    span_unit_multiplier: float = Field(
        default=24.0,
        gt=0.0,
        description="Time units per day when measuring history span",
    )

    # Bias
    payload_weights: dict[str, float] = Field(
        default_factory=lambda: dict(DEFAULT_PAYLOAD_WEIGHTS),
        description="Payload weight per event type tag",
    )
    privileged_types: frozenset[str] = Field(
        default=DEFAULT_PRIVILEGED_TYPES,
        description="Type tags that bias the interaction angle and resonance density",
    )
    time_bias_factor: float = Field(
        default=1.0, ge=0.0, description="Time bias factor, reserved for callers"
    )

    # Synchronization
    reciprocity_limit: float = Field(
        default=0.9,
        ge=0.0,
        le=1.0,
        description="Directional balance above which vectors are not damped",
    )
    synchronized_threshold: float = Field(
        default=0.6,
        ge=0.0,
        le=1.0,
        description="Minimum synchronization score for a pair to count as synchronized",
    )

    # Network
    analysis_history_limit: int = Field(
        default=20, ge=1, le=10000, description="Pair analyses kept in history"
    )

    @field_validator("payload_weights")
    @classmethod
    def normalize_weight_tags(cls, v: dict[str, float]) -> dict[str, float]:
        return {tag.upper(): weight for tag, weight in v.items()}

    @field_validator("privileged_types")
    @classmethod
    def normalize_privileged_tags(cls, v: frozenset[str]) -> frozenset[str]:
        return frozenset(tag.upper() for tag in v)

    @property
    def session_gap_minutes(self) -> float:
        return self.time_unit_minutes * self.session_gap_multiplier

    @property
    def day_unit_minutes(self) -> float:
        return self.time_unit_minutes * self.span_unit_multiplier


@lru_cache
def get_settings() -> SyncSettings:
    return SyncSettings()
