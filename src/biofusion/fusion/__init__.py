"""Uncertainty-weighted multi-modal fusion.

The same numeric contract serves every call site:

- **Biometric fusion**: per-sensor feature vectors
- **Physiological-state fusion**: state-probability distributions from
  several estimators
- **Emotion fusion**: emotion-category scores from several modalities

``raw_i = reliability_i / uncertainty_i`` is normalised across the present
modalities and used to average their values component by component.
"""

from biofusion.fusion.core import (
    compute_weights,
    floor_uncertainty,
    fuse,
    fuse_records,
    normalize_distribution,
)
from biofusion.fusion.errors import DivisionByZeroError, FusionError, InvalidInputError
from biofusion.fusion.registry import (
    available_strategies,
    build_strategy,
    get_strategy,
    register_strategy,
)
from biofusion.fusion.strategies import (
    FusionStrategy,
    MostReliableFusion,
    UncertaintyWeightedFusion,
)

__all__ = [
    "DivisionByZeroError",
    "FusionError",
    "FusionStrategy",
    "InvalidInputError",
    "MostReliableFusion",
    "UncertaintyWeightedFusion",
    "available_strategies",
    "build_strategy",
    "compute_weights",
    "floor_uncertainty",
    "fuse",
    "fuse_records",
    "get_strategy",
    "normalize_distribution",
    "register_strategy",
]
