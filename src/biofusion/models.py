"""Shared Pydantic models used across the fusion core and its call sites."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

# A modality value is either a fixed-arity feature vector or a
# category-keyed score mapping (state probabilities, emotion scores, ...).
ModalityValue = list[float] | dict[str, float]


class ModalityRecord(BaseModel):
    """One modality's contribution to a fusion call.

    Range checks (positive uncertainty, reliability in ``(0, 1]``) are
    performed by the fusion core so that they surface as
    :class:`~biofusion.fusion.errors.FusionError` rather than as
    validation errors.
    """

    model_config = ConfigDict(frozen=True)

    label: str
    value: ModalityValue
    uncertainty: float = Field(
        description="Estimation noise of this modality's value; lower is more trustworthy.",
    )
    reliability: float = Field(
        1.0,
        description="Fixed, modality-specific trust coefficient in (0, 1].",
    )

    @property
    def is_mapping(self) -> bool:
        return isinstance(self.value, dict)


class FusionResult(BaseModel):
    """Fused value in the input shape plus the weights that produced it."""

    value: ModalityValue
    weights: dict[str, float] = Field(
        default_factory=dict,
        description="Normalised per-modality weights (sum to 1).",
    )
    raw_weights: dict[str, float] = Field(
        default_factory=dict,
        description="Un-normalised reliability / uncertainty per modality.",
    )
    strategy: str = "uncertainty_weighted"

    def top_component(self) -> str | int:
        """Return the key (or index, for vectors) of the largest fused component.

        Ties resolve to the smallest key / index.
        """
        if isinstance(self.value, dict):
            if not self.value:
                raise ValueError("Fused mapping is empty.")
            return min(self.value, key=lambda k: (-self.value[k], k))
        if not self.value:
            raise ValueError("Fused vector is empty.")
        return max(range(len(self.value)), key=lambda i: (self.value[i], -i))
