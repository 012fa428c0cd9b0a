"""Default upstream collaborators: summary features and uncertainty estimates.

These are deliberately simple stand-ins for the spectral, nonlinear and
classifier-based extractors a production deployment would inject.  They
give every call site a working default:

1. **Summary features** — mean, std, min, max and least-squares slope of
   a sample stream.
2. **Standard error** — ``std / sqrt(n)`` as the noise of a stream's mean.
3. **Distribution entropy** — normalised Shannon entropy as the
   uncertainty of a state-probability distribution.
"""

from __future__ import annotations

import math
from typing import Mapping, Sequence

import numpy as np

from biofusion.analysis.collaborators import FeatureExtractor, UncertaintyEstimator

SUMMARY_FEATURES = ("mean", "std", "min", "max", "slope")


def finite_samples(samples: Sequence[float]) -> np.ndarray:
    """Return the finite samples of a stream as a float array."""
    arr = np.asarray(samples, dtype=np.float64)
    return arr[np.isfinite(arr)]


def _linear_slope(arr: np.ndarray) -> float:
    """Least-squares slope per sample index."""
    if arr.size < 2:
        return 0.0
    x = np.arange(arr.size, dtype=np.float64)
    x_mean = x.mean()
    denom = float(np.sum((x - x_mean) ** 2))
    return float(np.sum((x - x_mean) * (arr - arr.mean())) / denom)


class SummaryFeatureExtractor(FeatureExtractor):
    """Mean, standard deviation, min, max and slope of a sample stream."""

    feature_names = SUMMARY_FEATURES

    async def extract(self, modality: str, samples: Sequence[float]) -> list[float]:
        arr = finite_samples(samples)
        if arr.size == 0:
            return [0.0] * len(SUMMARY_FEATURES)
        std = float(np.std(arr, ddof=1)) if arr.size >= 2 else 0.0
        return [
            float(arr.mean()),
            std,
            float(arr.min()),
            float(arr.max()),
            _linear_slope(arr),
        ]


class StandardErrorEstimator(UncertaintyEstimator):
    """Standard error of the mean; a single sample is infinitely uncertain."""

    async def estimate(self, modality: str, samples: Sequence[float]) -> float:
        arr = finite_samples(samples)
        if arr.size < 2:
            return math.inf
        return float(np.std(arr, ddof=1) / math.sqrt(arr.size))


def distribution_entropy(probabilities: Mapping[str, float]) -> float:
    """Shannon entropy of a distribution normalised by ``log(K)``.

    Returns a value in ``[0, 1]``: ``0`` for a one-hot distribution (or a
    single state), ``1`` for a uniform one.
    """
    k = len(probabilities)
    if k < 2:
        return 0.0
    total = math.fsum(probabilities.values())
    if total <= 0.0:
        return 1.0
    h = -math.fsum(
        (p / total) * math.log(p / total) for p in probabilities.values() if p > 0.0
    )
    return max(0.0, min(1.0, h / math.log(k)))


def l2_normalize(vector: Sequence[float]) -> list[float]:
    """Scale *vector* to unit length; the zero vector is returned as is."""
    arr = np.asarray(vector, dtype=np.float64)
    norm = float(np.linalg.norm(arr))
    if norm == 0.0:
        return [float(x) for x in arr]
    return [float(x) for x in arr / norm]
