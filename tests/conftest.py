"""Shared pytest fixtures and stub collaborators."""

from __future__ import annotations

from typing import Any, Mapping, Sequence

import pytest

from biofusion.analysis.collaborators import (
    EmotionClassifier,
    FeatureExtractor,
    StateModel,
    UncertaintyEstimator,
)
from biofusion.analysis.models import EmotionReading
from biofusion.config import get_settings
from biofusion.models import ModalityRecord


@pytest.fixture(autouse=True)
def _fresh_settings():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


# ── Stub collaborators ───────────────────────────────────────


class FixedExtractor(FeatureExtractor):
    feature_names = ("f0", "f1")

    def __init__(self, vectors: Mapping[str, list[float]]) -> None:
        self.vectors = dict(vectors)

    async def extract(self, modality: str, samples: Sequence[float]) -> list[float]:
        return self.vectors[modality]


class FixedEstimator(UncertaintyEstimator):
    def __init__(self, uncertainties: Mapping[str, float]) -> None:
        self.uncertainties = dict(uncertainties)

    async def estimate(self, modality: str, samples: Sequence[float]) -> float:
        return self.uncertainties[modality]


class FixedStateModel(StateModel):
    def __init__(self, name: str, scores: Mapping[str, float]) -> None:
        self.name = name
        self.scores = dict(scores)
        self.seen: list[Sequence[float]] = []

    async def predict(self, features: Sequence[float]) -> Mapping[str, float]:
        self.seen.append(features)
        return self.scores


class FixedClassifier(EmotionClassifier):
    def __init__(self, modality: str, scores: Mapping[str, float], confidence: float = 1.0) -> None:
        self.modality = modality
        self.reading = EmotionReading(scores=dict(scores), confidence=confidence)
        self.calls: list[Any] = []

    async def classify(self, data: Any) -> EmotionReading:
        self.calls.append(data)
        return self.reading


# ── Records ──────────────────────────────────────────────────


@pytest.fixture
def vocal_record() -> ModalityRecord:
    return ModalityRecord(label="vocal", value=[0.8], uncertainty=0.2, reliability=0.9)


@pytest.fixture
def physio_record() -> ModalityRecord:
    return ModalityRecord(label="physio", value=[0.4], uncertainty=0.5, reliability=0.7)


@pytest.fixture
def emotion_records() -> list[ModalityRecord]:
    return [
        ModalityRecord(
            label="vocal",
            value={"happy": 0.7, "sad": 0.1, "neutral": 0.2},
            uncertainty=0.2,
            reliability=0.9,
        ),
        ModalityRecord(
            label="textual",
            value={"happy": 0.3, "sad": 0.5, "angry": 0.2},
            uncertainty=0.4,
            reliability=0.6,
        ),
        ModalityRecord(
            label="behavioral",
            value={"neutral": 0.6, "fearful": 0.4},
            uncertainty=1.0,
            reliability=0.5,
        ),
    ]
