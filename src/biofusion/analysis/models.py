"""Pydantic models for the fusion call sites.

These models represent:
- Fused biometric feature vectors with quality-gate bookkeeping
- Physiological-state estimates derived from several estimators
- Emotion-category scores and the composite wellbeing assessment
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field


# ── Enums ─────────────────────────────────────────────────────


class EmotionCategory(str, Enum):
    """Emotion categories every emotion modality is fused over."""

    HAPPY = "happy"
    SAD = "sad"
    ANGRY = "angry"
    FEARFUL = "fearful"
    NEUTRAL = "neutral"
    SURPRISED = "surprised"


NEGATIVE_EMOTIONS = (EmotionCategory.SAD, EmotionCategory.ANGRY, EmotionCategory.FEARFUL)


class WellbeingLevel(str, Enum):
    """Coarse band of the composite wellbeing score."""

    LOW = "low"
    MODERATE = "moderate"
    GOOD = "good"


# ── Biometric fusion ─────────────────────────────────────────


class BiometricFusionOutput(BaseModel):
    """Fused feature vector across biometric sensor channels."""

    fused_features: list[float]
    feature_names: list[str] = Field(default_factory=list)
    weights: dict[str, float] = Field(default_factory=dict)
    uncertainties: dict[str, float] = Field(
        default_factory=dict,
        description="Floored uncertainty actually used per modality.",
    )
    modalities_used: list[str] = Field(default_factory=list)
    modalities_dropped: list[str] = Field(
        default_factory=list,
        description="Streams rejected by the quality gate.",
    )
    strategy: str = "uncertainty_weighted"


# ── Physiological state ──────────────────────────────────────


class StateTransition(BaseModel):
    """Change of most-probable state relative to a previous estimate."""

    previous: str
    current: str

    @property
    def changed(self) -> bool:
        return self.previous != self.current


class PhysiologicalStateEstimate(BaseModel):
    """Most probable physiological state and the fused distribution."""

    state: str
    probabilities: dict[str, float]
    confidence: float = Field(ge=0.0, le=1.0)
    weights: dict[str, float] = Field(
        default_factory=dict,
        description="Normalised weight of each state model.",
    )
    model_uncertainty: dict[str, float] = Field(default_factory=dict)
    transition: StateTransition | None = None
    strategy: str = "uncertainty_weighted"


# ── Affect & wellbeing ───────────────────────────────────────


class EmotionReading(BaseModel):
    """One modality's emotion-category scores plus its self-reported confidence."""

    scores: dict[str, float]
    confidence: float = Field(1.0, ge=0.0, le=1.0)


class EmotionalState(BaseModel):
    """Fused, normalised emotion-category distribution."""

    scores: dict[str, float]
    dominant: EmotionCategory
    weights: dict[str, float] = Field(default_factory=dict)
    modalities: list[str] = Field(default_factory=list)
    strategy: str = "uncertainty_weighted"

    @property
    def negative_affect(self) -> float:
        return sum(self.scores.get(e.value, 0.0) for e in NEGATIVE_EMOTIONS)


class WellbeingComponent(BaseModel):
    """A 0-1 wellbeing sub-score (higher is better) with its uncertainty."""

    score: float = Field(ge=0.0, le=1.0)
    uncertainty: float
    reliability: float = 1.0


class WellbeingAssessment(BaseModel):
    """Composite wellbeing score with its components and risk flags."""

    score: float = Field(ge=0.0, le=1.0)
    level: WellbeingLevel
    components: dict[str, float] = Field(default_factory=dict)
    weights: dict[str, float] = Field(default_factory=dict)
    risk_factors: list[str] = Field(
        default_factory=list,
        description="Components scoring below the risk threshold.",
    )
    dominant_emotion: EmotionCategory | None = None
