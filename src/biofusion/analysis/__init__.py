"""Fusion call sites — biometric, physiological-state and affect engines.

Architecture
------------
1. **Collaborators** (`collaborators.py`)
   - Abstract feature extractors, uncertainty estimators, state models
     and emotion classifiers, injected into the engines
   - Simple defaults in `features.py` (summary statistics, standard
     error, distribution entropy)

2. **Engines**
   - `biometric.py`: quality-gated sensor streams → fused feature vector
   - `state.py`: state-model distributions → most probable state
   - `affect.py`: emotion modalities → fused emotions → wellbeing score

Every engine delegates the numeric work to :mod:`biofusion.fusion` and
takes its calibration (reliabilities, thresholds, smoothing) as explicit
constructor arguments, defaulting to :class:`biofusion.config.Settings`.
"""

from biofusion.analysis.affect import AffectiveComputingEngine
from biofusion.analysis.biometric import BiometricFusion
from biofusion.analysis.models import (
    BiometricFusionOutput,
    EmotionalState,
    EmotionCategory,
    EmotionReading,
    PhysiologicalStateEstimate,
    StateTransition,
    WellbeingAssessment,
    WellbeingComponent,
    WellbeingLevel,
)
from biofusion.analysis.state import PhysiologicalStateEstimator

__all__ = [
    "AffectiveComputingEngine",
    "BiometricFusion",
    "BiometricFusionOutput",
    "EmotionCategory",
    "EmotionReading",
    "EmotionalState",
    "PhysiologicalStateEstimate",
    "PhysiologicalStateEstimator",
    "StateTransition",
    "WellbeingAssessment",
    "WellbeingComponent",
    "WellbeingLevel",
]
