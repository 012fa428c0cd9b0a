"""Centralised fusion settings loaded from environment / .env file."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

_PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent

_DEFAULT_MODALITY_RELIABILITY = {
    # Affective modalities
    "vocal": 0.9,
    "physiological": 0.7,
    "textual": 0.6,
    "behavioral": 0.5,
    # Biometric sensor channels
    "heart_rate": 0.9,
    "hrv": 0.8,
    "accelerometer": 0.7,
    "skin_temperature": 0.6,
    "spo2": 0.8,
    "respiration": 0.7,
}

_DEFAULT_STATE_MODEL_RELIABILITY = {
    "hmm": 0.8,
    "kalman": 0.7,
    "neural": 0.9,
}


class Settings(BaseSettings):
    """All runtime configuration for the fusion engines.

    Values are read from ``BIOFUSION_``-prefixed environment variables
    first, then from a *.env* file at the project root.  Mapping fields
    accept JSON, e.g. ``BIOFUSION_MODALITY_RELIABILITY='{"vocal": 0.8}'``.

    Engines never read these directly at fusion time: they receive the
    values as constructor arguments and only fall back to
    :func:`get_settings` for defaults.
    """

    model_config = SettingsConfigDict(
        env_prefix="BIOFUSION_",
        env_file=str(_PROJECT_ROOT / ".env"),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Logging ───────────────────────────────────────────────
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_format: Literal["auto", "console", "json"] = "auto"

    # ── Core fusion ───────────────────────────────────────────
    uncertainty_epsilon: float = Field(1e-6, gt=0.0)  # floor substituted by callers
    fusion_strategy: str = "uncertainty_weighted"
    fusion_missing: Literal["zero", "exclude"] = "zero"
    fallback_strategy: str = ""  # empty → propagate fusion errors

    # ── Reliability tables ────────────────────────────────────
    modality_reliability: dict[str, float] = Field(
        default_factory=lambda: dict(_DEFAULT_MODALITY_RELIABILITY)
    )
    state_model_reliability: dict[str, float] = Field(
        default_factory=lambda: dict(_DEFAULT_STATE_MODEL_RELIABILITY)
    )
    default_reliability: float = Field(0.5, gt=0.0, le=1.0)

    # ── Call-site behaviour ───────────────────────────────────
    biometric_min_samples: int = Field(3, ge=1)
    state_smoothing_alpha: float = Field(0.3, ge=0.0, le=1.0)
    wellbeing_risk_threshold: float = Field(0.35, ge=0.0, le=1.0)


@lru_cache
def get_settings() -> Settings:
    """Return a cached :class:`Settings` singleton."""
    return Settings()
