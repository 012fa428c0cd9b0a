"""Uncertainty-weighted modality fusion.

Every call site (biometric feature vectors, physiological-state
distributions, emotion-category scores) reduces to the same contract:

1. ``raw_i = reliability_i / uncertainty_i``
2. ``weight_i = raw_i / Σ raw_j``
3. ``fused[c] = Σ weight_i · value_i[c]``, absent components counting as 0

Records are always reduced in sorted label order, so the result is
bit-identical for any permutation of the input.
"""

from __future__ import annotations

import math
from typing import Iterable, Literal, Mapping, Sequence

import numpy as np
import structlog

from biofusion.fusion.errors import DivisionByZeroError, InvalidInputError
from biofusion.models import FusionResult, ModalityRecord, ModalityValue

logger = structlog.get_logger(__name__)

MissingMode = Literal["zero", "exclude"]
_MISSING_MODES = ("zero", "exclude")


# ── Validation ────────────────────────────────────────────────


def validate_records(records: Sequence[ModalityRecord]) -> list[ModalityRecord]:
    """Check the record set and return it sorted by label."""
    if not records:
        raise InvalidInputError("At least one modality record is required.")

    labels = [r.label for r in records]
    duplicates = sorted({lbl for lbl in labels if labels.count(lbl) > 1})
    if duplicates:
        raise InvalidInputError(f"Duplicate modality labels: {duplicates}.")

    shapes = {r.is_mapping for r in records}
    if len(shapes) > 1:
        raise InvalidInputError(
            "Cannot fuse vector and mapping values in the same call."
        )

    ordered = sorted(records, key=lambda r: r.label)
    for r in ordered:
        if math.isnan(r.reliability) or not 0.0 < r.reliability <= 1.0:
            raise InvalidInputError(
                f"Modality {r.label!r}: reliability must be in (0, 1], got {r.reliability}."
            )
        if math.isnan(r.uncertainty) or r.uncertainty < 0.0:
            raise InvalidInputError(
                f"Modality {r.label!r}: uncertainty must be positive, got {r.uncertainty}."
            )
        components = r.value.values() if isinstance(r.value, dict) else r.value
        if not all(math.isfinite(c) for c in components):
            raise InvalidInputError(
                f"Modality {r.label!r} contains non-finite component values."
            )

    # Only reached once every record is well-formed.
    for r in ordered:
        if r.uncertainty == 0.0:
            raise DivisionByZeroError(
                f"Modality {r.label!r} has zero uncertainty; "
                "substitute an epsilon floor before fusing."
            )

    return ordered


# ── Weights ───────────────────────────────────────────────────


def compute_weights(
    records: Sequence[ModalityRecord],
) -> tuple[dict[str, float], dict[str, float]]:
    """Return ``(normalised_weights, raw_weights)`` keyed by modality label.

    Raises
    ------
    InvalidInputError
        See :func:`validate_records`.
    DivisionByZeroError
        For a zero uncertainty, or when every raw weight is ``0``
        (e.g. all uncertainties infinite).
    """
    ordered = validate_records(records)
    return _weights(ordered)


def _weights(ordered: list[ModalityRecord]) -> tuple[dict[str, float], dict[str, float]]:
    # Scaled against the smallest uncertainty: every factor u_min / u_i is
    # in [0, 1], so the sum stays finite even when reliability / uncertainty
    # itself overflows.
    raw = {r.label: r.reliability / r.uncertainty for r in ordered}
    u_min = min(r.uncertainty for r in ordered)
    if math.isinf(u_min):
        raise DivisionByZeroError(
            "Total modality weight is zero; every modality has infinite uncertainty."
        )

    scaled = {r.label: r.reliability * (u_min / r.uncertainty) for r in ordered}
    total = math.fsum(scaled.values())
    weights = {label: w / total for label, w in scaled.items()}
    return weights, raw


# ── Reduction ─────────────────────────────────────────────────


def _fuse_vectors(
    ordered: list[ModalityRecord],
    weights: dict[str, float],
    missing: MissingMode,
) -> list[float]:
    dim = max(len(r.value) for r in ordered)
    values = np.zeros((len(ordered), dim), dtype=float)
    present = np.zeros((len(ordered), dim), dtype=bool)
    for i, r in enumerate(ordered):
        values[i, : len(r.value)] = r.value
        present[i, : len(r.value)] = True

    w = np.array([weights[r.label] for r in ordered], dtype=float)
    fused = w @ values

    if missing == "exclude":
        mass = w @ present.astype(float)
        fused = np.divide(fused, mass, out=np.zeros_like(fused), where=mass > 0.0)

    return [float(x) for x in fused]


def _fuse_mappings(
    ordered: list[ModalityRecord],
    weights: dict[str, float],
    missing: MissingMode,
    components: Iterable[str] | None,
) -> dict[str, float]:
    if components is None:
        keys = sorted({k for r in ordered for k in r.value})
    else:
        keys = list(dict.fromkeys(components))

    fused: dict[str, float] = {}
    for key in keys:
        providers = [r for r in ordered if key in r.value]
        total = math.fsum(weights[r.label] * r.value[key] for r in providers)
        if missing == "exclude":
            mass = math.fsum(weights[r.label] for r in providers)
            total = total / mass if mass > 0.0 else 0.0
        fused[key] = total
    return fused


def fuse_records(
    records: Sequence[ModalityRecord],
    *,
    missing: MissingMode = "zero",
    components: Iterable[str] | None = None,
) -> FusionResult:
    """Fuse modality records into one weighted composite.

    Parameters
    ----------
    records
        At least one :class:`ModalityRecord`; all vectors or all mappings.
    missing
        ``"zero"``: a modality lacking a component contributes 0 to it but
        still counts toward the total weight.  ``"exclude"``: such a
        modality is left out of that component and the remaining weights
        are renormalised for it.
    components
        Mapping inputs only.  Fixes the output key set and order; listed
        keys no modality provides come out as ``0.0``.

    Returns
    -------
    FusionResult
        Fused value in the input shape plus normalised and raw weights.
    """
    if missing not in _MISSING_MODES:
        raise InvalidInputError(
            f"Unknown missing-component mode {missing!r}; expected one of {_MISSING_MODES}."
        )

    ordered = validate_records(records)
    weights, raw = _weights(ordered)

    value: ModalityValue
    if ordered[0].is_mapping:
        value = _fuse_mappings(ordered, weights, missing, components)
    else:
        if components is not None:
            raise InvalidInputError("'components' only applies to mapping values.")
        value = _fuse_vectors(ordered, weights, missing)

    logger.debug(
        "fusion.fused",
        n_modalities=len(ordered),
        missing=missing,
        weights={k: round(v, 4) for k, v in weights.items()},
    )
    return FusionResult(value=value, weights=weights, raw_weights=raw)


def fuse(
    values: Mapping[str, ModalityValue],
    uncertainties: Mapping[str, float],
    reliabilities: Mapping[str, float] | None = None,
    *,
    missing: MissingMode = "zero",
    components: Iterable[str] | None = None,
) -> FusionResult:
    """Convenience form of :func:`fuse_records` over label-keyed mappings.

    Modalities absent from *reliabilities* get reliability ``1.0``.
    """
    reliabilities = reliabilities or {}
    records = []
    for label, value in values.items():
        if label not in uncertainties:
            raise InvalidInputError(f"No uncertainty given for modality {label!r}.")
        records.append(
            ModalityRecord(
                label=label,
                value=value,
                uncertainty=uncertainties[label],
                reliability=reliabilities.get(label, 1.0),
            )
        )
    return fuse_records(records, missing=missing, components=components)


# ── Helpers for callers ───────────────────────────────────────


def floor_uncertainty(value: float, epsilon: float) -> float:
    """Substitute *epsilon* for uncertainties below it.

    Negative and NaN values are returned unchanged so that validation still
    rejects them.
    """
    if not epsilon > 0.0:
        raise InvalidInputError(f"Epsilon floor must be positive, got {epsilon}.")
    if math.isnan(value) or value < 0.0:
        return value
    return max(value, epsilon)


def normalize_distribution(scores: Mapping[str, float]) -> dict[str, float]:
    """Rescale non-negative scores so that they sum to 1."""
    for key, v in scores.items():
        if not math.isfinite(v) or v < 0.0:
            raise InvalidInputError(f"Score for {key!r} must be finite and non-negative, got {v}.")
    total = math.fsum(scores.values())
    if total == 0.0:
        raise DivisionByZeroError("Cannot normalise a distribution with zero total mass.")
    return {key: v / total for key, v in scores.items()}
