"""Shared plumbing for the fusion call sites.

Every engine owns a primary :class:`FusionStrategy`, an optional fallback
used when the primary raises :class:`DivisionByZeroError`, and the epsilon
floor it substitutes for vanishing uncertainties.  All three default to
:class:`~biofusion.config.Settings` values but are plain constructor
arguments so that tests and callers can pin them explicitly.
"""

from __future__ import annotations

from typing import Iterable, Sequence

import structlog

from biofusion.config import get_settings
from biofusion.fusion.core import floor_uncertainty
from biofusion.fusion.errors import DivisionByZeroError
from biofusion.fusion.registry import build_strategy
from biofusion.fusion.strategies import FusionStrategy
from biofusion.models import FusionResult, ModalityRecord, ModalityValue

logger = structlog.get_logger(__name__)


class FusionEngine:
    """Base class for the biometric, state and affect engines.

    Parameters
    ----------
    strategy : FusionStrategy | str | None
        Primary strategy (instance or registered name).  ``None`` uses
        ``Settings.fusion_strategy`` with ``Settings.fusion_missing``.
    fallback : FusionStrategy | str | None
        Strategy retried once when the primary raises
        :class:`DivisionByZeroError`.  ``None`` uses
        ``Settings.fallback_strategy``; an empty string disables it.
    epsilon : float | None
        Uncertainty floor.  ``None`` uses ``Settings.uncertainty_epsilon``.
    """

    event_prefix = "fusion"

    def __init__(
        self,
        strategy: FusionStrategy | str | None = None,
        fallback: FusionStrategy | str | None = None,
        epsilon: float | None = None,
    ) -> None:
        settings = get_settings()
        if strategy is None:
            strategy = build_strategy(settings.fusion_strategy, missing=settings.fusion_missing)
        elif isinstance(strategy, str):
            strategy = build_strategy(strategy, missing=settings.fusion_missing)
        self._strategy: FusionStrategy = strategy

        if fallback is None:
            fallback = settings.fallback_strategy
        if isinstance(fallback, str):
            fallback = build_strategy(fallback) if fallback else None
        self._fallback: FusionStrategy | None = fallback

        self._epsilon = settings.uncertainty_epsilon if epsilon is None else epsilon

    @property
    def strategy(self) -> FusionStrategy:
        return self._strategy

    @property
    def fallback(self) -> FusionStrategy | None:
        return self._fallback

    # ── Helpers ───────────────────────────────────────────────

    def _record(
        self,
        label: str,
        value: ModalityValue,
        uncertainty: float,
        reliability: float,
    ) -> ModalityRecord:
        return ModalityRecord(
            label=label,
            value=value,
            uncertainty=floor_uncertainty(uncertainty, self._epsilon),
            reliability=reliability,
        )

    def _fuse(
        self,
        records: Sequence[ModalityRecord],
        *,
        components: Iterable[str] | None = None,
    ) -> FusionResult:
        """Fuse with the primary strategy, degrading to the fallback if set."""
        try:
            return self._strategy.fuse(records, components=components)
        except DivisionByZeroError as exc:
            if self._fallback is None:
                raise
            logger.warning(
                f"{self.event_prefix}.fallback_used",
                primary=self._strategy.name,
                fallback=self._fallback.name,
                error=str(exc),
            )
            return self._fallback.fuse(records, components=components)

