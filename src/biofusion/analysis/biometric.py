"""Biometric fusion — one feature vector from several sensor streams.

Pipeline
--------
1. **Quality gate**: drop streams with too few finite samples.
2. **Feature extraction** and **uncertainty estimation**, run
   concurrently for every surviving stream.
3. **Fusion**: weight each stream by ``reliability / uncertainty`` and
   average the feature vectors.
"""

from __future__ import annotations

import asyncio
from typing import Mapping, Sequence

import structlog

from biofusion.analysis.collaborators import FeatureExtractor, UncertaintyEstimator
from biofusion.analysis.engine import FusionEngine
from biofusion.analysis.features import (
    StandardErrorEstimator,
    SummaryFeatureExtractor,
    finite_samples,
    l2_normalize,
)
from biofusion.analysis.models import BiometricFusionOutput
from biofusion.config import get_settings
from biofusion.fusion.errors import InvalidInputError
from biofusion.fusion.strategies import FusionStrategy

logger = structlog.get_logger(__name__)


class BiometricFusion(FusionEngine):
    """Fuse per-sensor feature vectors into one biometric representation.

    Parameters
    ----------
    extractor : FeatureExtractor | None
        Produces a fixed-arity feature vector per stream
        (default :class:`SummaryFeatureExtractor`).
    estimator : UncertaintyEstimator | None
        Produces one uncertainty per stream
        (default :class:`StandardErrorEstimator`).
    reliabilities : Mapping[str, float] | None
        Reliability per modality name (default
        ``Settings.modality_reliability``).
    default_reliability : float | None
        Reliability for modalities missing from *reliabilities*.
    min_samples : int | None
        Quality-gate threshold on finite samples per stream.
    normalize : bool
        Scale every feature vector to unit length before fusing, so that
        sensors on different physical scales contribute comparably.
    """

    event_prefix = "biometric"

    def __init__(
        self,
        extractor: FeatureExtractor | None = None,
        estimator: UncertaintyEstimator | None = None,
        *,
        reliabilities: Mapping[str, float] | None = None,
        default_reliability: float | None = None,
        min_samples: int | None = None,
        normalize: bool = False,
        strategy: FusionStrategy | str | None = None,
        fallback: FusionStrategy | str | None = None,
        epsilon: float | None = None,
    ) -> None:
        super().__init__(strategy=strategy, fallback=fallback, epsilon=epsilon)
        settings = get_settings()
        self._extractor = extractor or SummaryFeatureExtractor()
        self._estimator = estimator or StandardErrorEstimator()
        self._reliabilities = dict(
            settings.modality_reliability if reliabilities is None else reliabilities
        )
        self._default_reliability = (
            settings.default_reliability if default_reliability is None else default_reliability
        )
        self._min_samples = settings.biometric_min_samples if min_samples is None else min_samples
        self._normalize = normalize

    def _quality_gate(
        self, streams: Mapping[str, Sequence[float]]
    ) -> tuple[dict[str, list[float]], list[str]]:
        accepted: dict[str, list[float]] = {}
        dropped: list[str] = []
        for name in sorted(streams):
            samples = finite_samples(streams[name])
            if samples.size < self._min_samples:
                dropped.append(name)
                logger.info(
                    "biometric.modality_dropped",
                    modality=name,
                    finite_samples=int(samples.size),
                    min_samples=self._min_samples,
                )
                continue
            accepted[name] = samples.tolist()
        return accepted, dropped

    async def process(
        self, streams: Mapping[str, Sequence[float]]
    ) -> BiometricFusionOutput:
        """Run the quality gate, collaborators and fusion over *streams*.

        Raises
        ------
        InvalidInputError
            If no stream survives the quality gate.
        """
        accepted, dropped = self._quality_gate(streams)
        if not accepted:
            raise InvalidInputError(
                f"No biometric stream has at least {self._min_samples} finite samples."
            )

        names = list(accepted)
        features, uncertainties = await asyncio.gather(
            asyncio.gather(*(self._extractor.extract(n, accepted[n]) for n in names)),
            asyncio.gather(*(self._estimator.estimate(n, accepted[n]) for n in names)),
        )

        records = []
        for name, vector, uncertainty in zip(names, features, uncertainties):
            if self._normalize:
                vector = l2_normalize(vector)
            records.append(
                self._record(
                    name,
                    list(vector),
                    uncertainty,
                    self._reliabilities.get(name, self._default_reliability),
                )
            )

        result = self._fuse(records)
        feature_names = list(self._extractor.feature_names)
        if len(feature_names) != len(result.value):
            feature_names = []

        logger.info(
            "biometric.fused",
            modalities=names,
            dropped=dropped,
            strategy=result.strategy,
            weights={k: round(v, 3) for k, v in result.weights.items()},
        )
        return BiometricFusionOutput(
            fused_features=result.value,
            feature_names=feature_names,
            weights=result.weights,
            uncertainties={r.label: r.uncertainty for r in records},
            modalities_used=names,
            modalities_dropped=dropped,
            strategy=result.strategy,
        )
