"""Physiological state estimation by fusing several state models.

Each injected :class:`StateModel` returns a score per state label.  The
scores are normalised to a distribution; the model's uncertainty is the
normalised entropy of that distribution, so a decisive model outweighs a
hesitant one of equal reliability.  The fused distribution may be
smoothed against an explicitly passed previous estimate.
"""

from __future__ import annotations

import asyncio
from typing import Mapping, Sequence

import structlog

from biofusion.analysis.collaborators import StateModel
from biofusion.analysis.engine import FusionEngine
from biofusion.analysis.features import distribution_entropy
from biofusion.analysis.models import PhysiologicalStateEstimate, StateTransition
from biofusion.config import get_settings
from biofusion.fusion.core import normalize_distribution
from biofusion.fusion.errors import InvalidInputError
from biofusion.fusion.strategies import FusionStrategy

logger = structlog.get_logger(__name__)


def smooth_distribution(
    previous: Mapping[str, float],
    current: Mapping[str, float],
    alpha: float,
) -> dict[str, float]:
    """EWMA blend: ``alpha * current + (1 - alpha) * previous``, renormalised.

    States present in only one of the two distributions count as 0 in the
    other.
    """
    if not 0.0 <= alpha <= 1.0:
        raise InvalidInputError(f"Smoothing factor must be in [0, 1], got {alpha}.")
    keys = list(dict.fromkeys([*current, *previous]))
    blended = {
        k: alpha * current.get(k, 0.0) + (1.0 - alpha) * previous.get(k, 0.0)
        for k in keys
    }
    return normalize_distribution(blended)


def most_probable(distribution: Mapping[str, float]) -> str:
    """Return the most probable label; ties go to the smallest label."""
    return min(distribution, key=lambda k: (-distribution[k], k))


class PhysiologicalStateEstimator(FusionEngine):
    """Fuse state-probability distributions from several state models.

    Parameters
    ----------
    models : Sequence[StateModel]
        At least one state model; names must be unique.
    reliabilities : Mapping[str, float] | None
        Reliability per model name (default
        ``Settings.state_model_reliability``).
    default_reliability : float | None
        Reliability for models missing from *reliabilities*.
    smoothing_alpha : float | None
        Weight of the current estimate when smoothing against a previous
        one (default ``Settings.state_smoothing_alpha``).
    """

    event_prefix = "state"

    def __init__(
        self,
        models: Sequence[StateModel],
        *,
        reliabilities: Mapping[str, float] | None = None,
        default_reliability: float | None = None,
        smoothing_alpha: float | None = None,
        strategy: FusionStrategy | str | None = None,
        fallback: FusionStrategy | str | None = None,
        epsilon: float | None = None,
    ) -> None:
        super().__init__(strategy=strategy, fallback=fallback, epsilon=epsilon)
        if not models:
            raise InvalidInputError("At least one state model is required.")
        names = [m.name for m in models]
        if len(set(names)) != len(names):
            raise InvalidInputError(f"State model names must be unique, got {names}.")

        settings = get_settings()
        self._models = list(models)
        self._reliabilities = dict(
            settings.state_model_reliability if reliabilities is None else reliabilities
        )
        self._default_reliability = (
            settings.default_reliability if default_reliability is None else default_reliability
        )
        self._alpha = settings.state_smoothing_alpha if smoothing_alpha is None else smoothing_alpha

    async def estimate(
        self,
        features: Sequence[float],
        *,
        previous: Mapping[str, float] | None = None,
    ) -> PhysiologicalStateEstimate:
        """Estimate the current physiological state from *features*.

        Parameters
        ----------
        features
            Feature vector handed unchanged to every state model (e.g. the
            output of :class:`~biofusion.analysis.biometric.BiometricFusion`).
        previous
            Distribution from the preceding estimate.  When given, the
            fused distribution is smoothed against it and a
            :class:`StateTransition` is reported.
        """
        predictions = await asyncio.gather(*(m.predict(features) for m in self._models))

        records = []
        model_uncertainty: dict[str, float] = {}
        for model, scores in zip(self._models, predictions):
            distribution = normalize_distribution(scores)
            record = self._record(
                model.name,
                distribution,
                distribution_entropy(distribution),
                self._reliabilities.get(model.name, self._default_reliability),
            )
            model_uncertainty[model.name] = record.uncertainty
            records.append(record)

        result = self._fuse(records)
        probabilities = normalize_distribution(result.value)

        transition = None
        if previous:
            probabilities = smooth_distribution(previous, probabilities, self._alpha)
            transition = StateTransition(
                previous=most_probable(previous),
                current=most_probable(probabilities),
            )

        state = most_probable(probabilities)
        estimate = PhysiologicalStateEstimate(
            state=state,
            probabilities=probabilities,
            confidence=min(1.0, probabilities[state]),
            weights=result.weights,
            model_uncertainty=model_uncertainty,
            transition=transition,
            strategy=result.strategy,
        )

        logger.info(
            "state.estimated",
            state=state,
            confidence=round(estimate.confidence, 3),
            weights={k: round(v, 3) for k, v in result.weights.items()},
            transitioned=bool(transition and transition.changed),
        )
        return estimate
