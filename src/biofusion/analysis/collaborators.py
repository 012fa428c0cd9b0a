"""Abstract base classes for the upstream collaborators of each call site.

Fusion itself never looks inside a signal: it only sees value vectors,
uncertainties and reliabilities.  These contracts describe who produces
them.  Engines receive concrete instances at construction.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Mapping, Sequence

from biofusion.analysis.models import EmotionReading


class FeatureExtractor(ABC):
    """Turn one modality's raw samples into a fixed-arity feature vector."""

    #: Names of the features returned by :meth:`extract`, in order.
    feature_names: tuple[str, ...] = ()

    @abstractmethod
    async def extract(self, modality: str, samples: Sequence[float]) -> list[float]:
        """Return the feature vector for *samples*."""


class UncertaintyEstimator(ABC):
    """Estimate the noise of one modality's features (non-negative)."""

    @abstractmethod
    async def estimate(self, modality: str, samples: Sequence[float]) -> float:
        """Return the uncertainty of *samples*; lower is more trustworthy."""


class StateModel(ABC):
    """A physiological-state estimator (HMM, Kalman bank, neural net, ...)."""

    name: str

    @abstractmethod
    async def predict(self, features: Sequence[float]) -> Mapping[str, float]:
        """Return non-negative scores per state label."""


class EmotionClassifier(ABC):
    """Classify emotion-category scores from one modality's input."""

    modality: str

    @abstractmethod
    async def classify(self, data: Any) -> EmotionReading:
        """Return category scores and a confidence in ``[0, 1]``."""
