"""Strategy registry — look up fusion strategies by name."""

from __future__ import annotations

from typing import Any, Type

from biofusion.fusion.core import MissingMode
from biofusion.fusion.strategies import (
    FusionStrategy,
    MostReliableFusion,
    UncertaintyWeightedFusion,
)

# ── Registry ──────────────────────────────────────────────────

_REGISTRY: dict[str, Type[FusionStrategy]] = {
    UncertaintyWeightedFusion.name: UncertaintyWeightedFusion,
    MostReliableFusion.name: MostReliableFusion,
}


def register_strategy(name: str, cls: Type[FusionStrategy]) -> None:
    """Register a new strategy class under *name*."""
    _REGISTRY[name] = cls


def get_strategy(name: str, **kwargs: Any) -> FusionStrategy:
    """Instantiate and return the strategy registered under *name*.

    Raises :class:`ValueError` if no strategy is registered.
    """
    cls = _REGISTRY.get(name)
    if cls is None:
        raise ValueError(
            f"No fusion strategy registered as {name!r}. "
            f"Available: {sorted(_REGISTRY)}"
        )
    return cls(**kwargs)


def build_strategy(name: str, *, missing: MissingMode = "zero") -> FusionStrategy:
    """Instantiate *name*, passing *missing* only to strategies that use it."""
    cls = _REGISTRY.get(name)
    if cls is not None and cls.handles_missing:
        return get_strategy(name, missing=missing)
    return get_strategy(name)


def available_strategies() -> list[str]:
    """Return the names of all registered strategies."""
    return sorted(_REGISTRY)
