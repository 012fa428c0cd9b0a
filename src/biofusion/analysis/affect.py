"""Affective computing — emotion fusion and composite wellbeing.

Emotion modalities (vocal, textual, physiological, behavioural, ...) are
classified independently and fused over a fixed set of
:class:`EmotionCategory` values.  A classifier reports a confidence
rather than an uncertainty; it enters the fusion core as
``uncertainty = 1 / confidence``, which makes the fusion weight exactly
``confidence * reliability``.

The composite wellbeing score fuses a 0-1 emotional sub-score with any
further sub-scores the caller provides (stress, mood, engagement, ...).
"""

from __future__ import annotations

import asyncio
import math
from typing import Any, Mapping, Sequence

import structlog

from biofusion.analysis.collaborators import EmotionClassifier
from biofusion.analysis.engine import FusionEngine
from biofusion.analysis.features import distribution_entropy
from biofusion.analysis.models import (
    EmotionalState,
    EmotionCategory,
    WellbeingAssessment,
    WellbeingComponent,
    WellbeingLevel,
)
from biofusion.config import get_settings
from biofusion.fusion.core import normalize_distribution
from biofusion.fusion.errors import InvalidInputError
from biofusion.fusion.strategies import FusionStrategy

logger = structlog.get_logger(__name__)

EMOTION_CATEGORIES = [e.value for e in EmotionCategory]

# Wellbeing at or above this score is reported as GOOD.
_GOOD_WELLBEING = 0.65


def confidence_to_uncertainty(confidence: float) -> float:
    """Map a confidence in ``[0, 1]`` to an uncertainty (``1 / confidence``)."""
    if math.isnan(confidence) or not 0.0 <= confidence <= 1.0:
        raise InvalidInputError(f"Confidence must be in [0, 1], got {confidence}.")
    if confidence == 0.0:
        return math.inf
    return 1.0 / confidence


def _dominant(scores: Mapping[str, float]) -> EmotionCategory:
    best = min(
        EMOTION_CATEGORIES,
        key=lambda c: (-scores.get(c, 0.0), EMOTION_CATEGORIES.index(c)),
    )
    return EmotionCategory(best)


class AffectiveComputingEngine(FusionEngine):
    """Fuse emotion modalities and derive a composite wellbeing score.

    Parameters
    ----------
    classifiers : Sequence[EmotionClassifier]
        One classifier per emotion modality; modality names must be unique.
    reliabilities : Mapping[str, float] | None
        Reliability per modality (default ``Settings.modality_reliability``).
    default_reliability : float | None
        Reliability for modalities missing from *reliabilities*.
    risk_threshold : float | None
        Wellbeing sub-scores below this are reported as risk factors
        (default ``Settings.wellbeing_risk_threshold``).
    """

    event_prefix = "affect"

    def __init__(
        self,
        classifiers: Sequence[EmotionClassifier],
        *,
        reliabilities: Mapping[str, float] | None = None,
        default_reliability: float | None = None,
        risk_threshold: float | None = None,
        strategy: FusionStrategy | str | None = None,
        fallback: FusionStrategy | str | None = None,
        epsilon: float | None = None,
    ) -> None:
        super().__init__(strategy=strategy, fallback=fallback, epsilon=epsilon)
        modalities = [c.modality for c in classifiers]
        if len(set(modalities)) != len(modalities):
            raise InvalidInputError(f"Emotion modalities must be unique, got {modalities}.")

        settings = get_settings()
        self._classifiers = {c.modality: c for c in classifiers}
        self._reliabilities = dict(
            settings.modality_reliability if reliabilities is None else reliabilities
        )
        self._default_reliability = (
            settings.default_reliability if default_reliability is None else default_reliability
        )
        self._risk_threshold = (
            settings.wellbeing_risk_threshold if risk_threshold is None else risk_threshold
        )

    # ── Emotions ──────────────────────────────────────────────

    async def analyze_emotions(self, inputs: Mapping[str, Any]) -> EmotionalState:
        """Classify every modality present in *inputs* and fuse the scores.

        Inputs without a matching classifier are ignored; ``None`` values
        count as absent.

        Raises
        ------
        InvalidInputError
            If no input has a matching classifier.
        DivisionByZeroError
            If every present modality reports zero confidence, or the fused
            scores carry no mass (and no fallback strategy is configured).
        """
        present = [m for m in self._classifiers if inputs.get(m) is not None]
        if not present:
            raise InvalidInputError(
                f"No emotion input for any configured modality {sorted(self._classifiers)}."
            )

        readings = await asyncio.gather(
            *(self._classifiers[m].classify(inputs[m]) for m in present)
        )

        records = [
            self._record(
                modality,
                dict(reading.scores),
                confidence_to_uncertainty(reading.confidence),
                self._reliabilities.get(modality, self._default_reliability),
            )
            for modality, reading in zip(present, readings)
        ]
        result = self._fuse(records, components=EMOTION_CATEGORIES)
        scores = normalize_distribution(result.value)

        state = EmotionalState(
            scores=scores,
            dominant=_dominant(scores),
            weights=result.weights,
            modalities=sorted(present),
            strategy=result.strategy,
        )
        logger.info(
            "affect.emotions_fused",
            modalities=state.modalities,
            dominant=state.dominant.value,
            weights={k: round(v, 3) for k, v in result.weights.items()},
        )
        return state

    # ── Wellbeing ─────────────────────────────────────────────

    def assess_wellbeing(
        self,
        emotional: EmotionalState | None = None,
        components: Mapping[str, WellbeingComponent] | None = None,
    ) -> WellbeingAssessment:
        """Fuse wellbeing sub-scores into one composite score.

        The emotional sub-score is ``1 - (sad + angry + fearful)`` with the
        normalised entropy of the emotion distribution as its uncertainty.
        """
        components = dict(components or {})
        if emotional is not None:
            if "emotional" in components:
                raise InvalidInputError("Component name 'emotional' is reserved.")
            components["emotional"] = WellbeingComponent(
                score=min(1.0, max(0.0, 1.0 - emotional.negative_affect)),
                uncertainty=distribution_entropy(emotional.scores),
            )
        if not components:
            raise InvalidInputError("At least one wellbeing component is required.")

        records = [
            self._record(name, [c.score], c.uncertainty, c.reliability)
            for name, c in components.items()
        ]
        result = self._fuse(records)
        score = min(1.0, max(0.0, result.value[0]))

        if score < self._risk_threshold:
            level = WellbeingLevel.LOW
        elif score < _GOOD_WELLBEING:
            level = WellbeingLevel.MODERATE
        else:
            level = WellbeingLevel.GOOD

        risk_factors = sorted(
            name for name, c in components.items() if c.score < self._risk_threshold
        )

        assessment = WellbeingAssessment(
            score=score,
            level=level,
            components={name: c.score for name, c in components.items()},
            weights=result.weights,
            risk_factors=risk_factors,
            dominant_emotion=emotional.dominant if emotional is not None else None,
        )
        logger.info(
            "affect.wellbeing_assessed",
            score=round(score, 3),
            level=level.value,
            risk_factors=risk_factors,
        )
        return assessment

    async def assess(
        self,
        inputs: Mapping[str, Any],
        components: Mapping[str, WellbeingComponent] | None = None,
    ) -> WellbeingAssessment:
        """Analyse emotions from *inputs*, then assess overall wellbeing."""
        emotional = await self.analyze_emotions(inputs)
        return self.assess_wellbeing(emotional, components)
