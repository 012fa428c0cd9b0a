"""Fusion strategies injected into the call-site engines."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Iterable, Sequence

import structlog

from biofusion.fusion.core import MissingMode, fuse_records, validate_records
from biofusion.models import FusionResult, ModalityRecord

logger = structlog.get_logger(__name__)


class FusionStrategy(ABC):
    """Contract every fusion strategy implements.

    A strategy turns a complete set of modality records into one
    :class:`FusionResult`.  Strategies are stateless; engines receive one
    at construction time.
    """

    name: str
    handles_missing: bool = False  # accepts a ``missing`` constructor argument

    @abstractmethod
    def fuse(
        self,
        records: Sequence[ModalityRecord],
        *,
        components: Iterable[str] | None = None,
    ) -> FusionResult:
        """Fuse *records* into a single composite."""


class UncertaintyWeightedFusion(FusionStrategy):
    """Weight each modality by ``reliability / uncertainty``."""

    name = "uncertainty_weighted"
    handles_missing = True

    def __init__(self, missing: MissingMode = "zero") -> None:
        self.missing = missing

    def fuse(
        self,
        records: Sequence[ModalityRecord],
        *,
        components: Iterable[str] | None = None,
    ) -> FusionResult:
        result = fuse_records(records, missing=self.missing, components=components)
        result.strategy = self.name
        return result


class MostReliableFusion(FusionStrategy):
    """Degrade to the single most trustworthy modality.

    The winner has the largest ``reliability / uncertainty``; when every
    uncertainty is infinite the highest reliability wins instead, so this
    strategy still answers where weighted fusion raises
    :class:`~biofusion.fusion.errors.DivisionByZeroError`.  Ties go to the
    smallest label.
    """

    name = "most_reliable"

    def fuse(
        self,
        records: Sequence[ModalityRecord],
        *,
        components: Iterable[str] | None = None,
    ) -> FusionResult:
        ordered = validate_records(records)
        raw = {r.label: r.reliability / r.uncertainty for r in ordered}
        best = min(ordered, key=lambda r: (-raw[r.label], -r.reliability, r.label))

        value = best.value
        if isinstance(value, dict):
            keys = value if components is None else dict.fromkeys(components)
            value = {k: value.get(k, 0.0) for k in keys}
        else:
            value = list(value)

        logger.debug("fusion.most_reliable", selected=best.label, n_modalities=len(ordered))
        return FusionResult(
            value=value,
            weights={r.label: 1.0 if r is best else 0.0 for r in ordered},
            raw_weights=raw,
            strategy=self.name,
        )
