"""Tests for the uncertainty-weighted fusion core."""

from __future__ import annotations

import itertools
import math

import pytest

from biofusion.fusion.core import (
    compute_weights,
    floor_uncertainty,
    fuse,
    fuse_records,
    normalize_distribution,
)
from biofusion.fusion.errors import DivisionByZeroError, FusionError, InvalidInputError
from biofusion.models import FusionResult, ModalityRecord


def _rec(label, value, uncertainty=1.0, reliability=1.0) -> ModalityRecord:
    return ModalityRecord(label=label, value=value, uncertainty=uncertainty, reliability=reliability)


# ── Worked example ───────────────────────────────────────────


class TestWorkedExample:
    def test_vocal_physio_weights(self, vocal_record, physio_record):
        weights, raw = compute_weights([vocal_record, physio_record])
        assert raw["vocal"] == pytest.approx(4.5)
        assert raw["physio"] == pytest.approx(1.4)
        assert weights["vocal"] == pytest.approx(0.763, abs=1e-3)
        assert weights["physio"] == pytest.approx(0.237, abs=1e-3)

    def test_vocal_physio_fused_value(self, vocal_record, physio_record):
        result = fuse_records([vocal_record, physio_record])
        assert result.value == [pytest.approx(0.705, abs=1e-3)]
        assert result.strategy == "uncertainty_weighted"

    def test_convenience_form_matches(self, vocal_record, physio_record):
        result = fuse(
            {"vocal": [0.8], "physio": [0.4]},
            {"vocal": 0.2, "physio": 0.5},
            {"vocal": 0.9, "physio": 0.7},
        )
        assert result == fuse_records([vocal_record, physio_record])


# ── Properties ───────────────────────────────────────────────


class TestProperties:
    @pytest.mark.parametrize(
        "uncertainties",
        [(0.1, 0.2, 0.3), (1e-6, 5.0, 100.0), (0.7, 0.7, 0.7), (2.0, math.inf, 0.5)],
    )
    def test_weights_sum_to_one(self, uncertainties):
        records = [
            _rec(f"m{i}", [float(i)], u, 0.5 + 0.1 * i)
            for i, u in enumerate(uncertainties)
        ]
        weights, _ = compute_weights(records)
        assert math.fsum(weights.values()) == pytest.approx(1.0)
        assert all(w >= 0.0 and math.isfinite(w) for w in weights.values())

    def test_tiny_uncertainties_do_not_overflow(self):
        result = fuse_records([_rec("a", [1.0], 1e-308), _rec("b", [3.0], 1e-308)])
        assert result.weights == {"a": 0.5, "b": 0.5}
        assert result.value == [pytest.approx(2.0)]

    def test_subnormal_uncertainty_dominates(self):
        weights, raw = compute_weights([_rec("a", [1.0], 5e-324), _rec("b", [2.0], 1.0)])
        assert weights["a"] == pytest.approx(1.0)
        assert weights["b"] == pytest.approx(0.0)
        assert math.fsum(weights.values()) == pytest.approx(1.0)
        assert raw["b"] == 1.0

    def test_single_vector_is_unchanged(self):
        result = fuse_records([_rec("hr", [0.13, -7.5, 42.0], 0.3, 0.8)])
        assert result.value == [0.13, -7.5, 42.0]
        assert result.weights == {"hr": 1.0}

    def test_single_mapping_is_unchanged(self):
        value = {"happy": 0.61, "sad": 0.39}
        result = fuse_records([_rec("vocal", value, 0.05, 0.9)])
        assert result.value == value
        assert result.weights == {"vocal": 1.0}

    def test_lower_uncertainty_gets_larger_weight(self):
        weights, _ = compute_weights([_rec("a", [1.0], 0.2, 0.8), _rec("b", [1.0], 0.3, 0.8)])
        assert weights["a"] > weights["b"]

    def test_permutation_invariance(self, emotion_records):
        baseline = fuse_records(emotion_records)
        for perm in itertools.permutations(emotion_records):
            result = fuse_records(list(perm))
            assert result.value == baseline.value
            assert result.weights == baseline.weights

    def test_permutation_invariance_vectors(self):
        records = [
            _rec("a", [0.1, 0.9, 0.3], 0.3, 0.9),
            _rec("b", [0.7, 0.2], 0.11, 0.4),
            _rec("c", [0.5, 0.5, 0.5], 0.9, 1.0),
        ]
        baseline = fuse_records(records, missing="exclude")
        for perm in itertools.permutations(records):
            assert fuse_records(list(perm), missing="exclude") == baseline

    def test_inputs_are_not_mutated(self, emotion_records):
        before = [r.model_dump() for r in emotion_records]
        fuse_records(emotion_records, components=["happy", "sad"])
        assert [r.model_dump() for r in emotion_records] == before

    def test_infinite_uncertainty_gets_zero_weight(self):
        result = fuse_records([_rec("a", [1.0], 0.5), _rec("b", [9.0], math.inf)])
        assert result.weights["b"] == 0.0
        assert result.value == [1.0]


# ── Missing components ───────────────────────────────────────


class TestMissingComponents:
    def test_absent_key_counts_as_zero(self):
        result = fuse_records([_rec("a", {"x": 1.0, "y": 1.0}), _rec("b", {"x": 0.0})])
        assert result.value == {"x": pytest.approx(0.5), "y": pytest.approx(0.5)}

    def test_absent_key_excluded(self):
        result = fuse_records(
            [_rec("a", {"x": 1.0, "y": 1.0}), _rec("b", {"x": 0.0})],
            missing="exclude",
        )
        assert result.value == {"x": pytest.approx(0.5), "y": pytest.approx(1.0)}

    def test_shorter_vector_padded_with_zero(self):
        result = fuse_records([_rec("a", [1.0, 1.0]), _rec("b", [1.0])])
        assert result.value == [pytest.approx(1.0), pytest.approx(0.5)]

    def test_shorter_vector_excluded(self):
        result = fuse_records([_rec("a", [1.0, 1.0]), _rec("b", [1.0])], missing="exclude")
        assert result.value == [pytest.approx(1.0), pytest.approx(1.0)]

    def test_components_fix_output_keys(self, emotion_records):
        result = fuse_records(emotion_records, components=["surprised", "happy"])
        assert list(result.value) == ["surprised", "happy"]
        assert result.value["surprised"] == 0.0
        assert result.value["happy"] > 0.0

    def test_components_rejected_for_vectors(self):
        with pytest.raises(InvalidInputError):
            fuse_records([_rec("a", [1.0])], components=["x"])

    def test_unknown_missing_mode(self):
        with pytest.raises(InvalidInputError):
            fuse_records([_rec("a", [1.0])], missing="drop")


# ── Errors ───────────────────────────────────────────────────


class TestErrors:
    def test_zero_uncertainty_raises_division_by_zero(self):
        with pytest.raises(DivisionByZeroError) as exc_info:
            fuse_records([_rec("a", [1.0], 0.5), _rec("b", [2.0], 0.0)])
        assert isinstance(exc_info.value, FusionError)
        assert isinstance(exc_info.value, ZeroDivisionError)

    def test_error_kind_is_order_independent(self):
        zero = _rec("a", [1.0], 0.0)
        negative = _rec("b", [2.0], -1.0)
        for records in ([zero, negative], [negative, zero]):
            with pytest.raises(InvalidInputError):
                fuse_records(records)

    def test_all_infinite_uncertainty_raises_division_by_zero(self):
        with pytest.raises(DivisionByZeroError):
            fuse_records([_rec("a", [1.0], math.inf), _rec("b", [2.0], math.inf)])

    def test_empty_record_set(self):
        with pytest.raises(InvalidInputError):
            fuse_records([])

    @pytest.mark.parametrize("uncertainty", [-0.1, math.nan])
    def test_invalid_uncertainty(self, uncertainty):
        with pytest.raises(InvalidInputError):
            fuse_records([_rec("a", [1.0], uncertainty)])

    @pytest.mark.parametrize("reliability", [-0.5, 0.0, 1.5, math.nan])
    def test_invalid_reliability(self, reliability):
        with pytest.raises(InvalidInputError) as exc_info:
            fuse_records([_rec("a", [1.0], 0.5, reliability)])
        assert isinstance(exc_info.value, ValueError)

    def test_duplicate_labels(self):
        with pytest.raises(InvalidInputError, match="Duplicate"):
            fuse_records([_rec("a", [1.0]), _rec("a", [2.0])])

    def test_mixed_shapes(self):
        with pytest.raises(InvalidInputError):
            fuse_records([_rec("a", [1.0]), _rec("b", {"x": 1.0})])

    def test_non_finite_component(self):
        with pytest.raises(InvalidInputError):
            fuse_records([_rec("a", {"x": math.nan})])

    def test_missing_uncertainty_in_convenience_form(self):
        with pytest.raises(InvalidInputError):
            fuse({"a": [1.0], "b": [2.0]}, {"a": 0.1})

    def test_convenience_form_defaults_reliability(self):
        result = fuse({"a": [1.0], "b": [3.0]}, {"a": 1.0, "b": 1.0})
        assert result.raw_weights == {"a": 1.0, "b": 1.0}
        assert result.value == [pytest.approx(2.0)]


# ── Helpers ──────────────────────────────────────────────────


class TestHelpers:
    def test_floor_replaces_zero(self):
        assert floor_uncertainty(0.0, 1e-6) == 1e-6

    def test_floor_keeps_larger_values(self):
        assert floor_uncertainty(0.3, 1e-6) == 0.3

    def test_floor_leaves_negative_for_validation(self):
        assert floor_uncertainty(-1.0, 1e-6) == -1.0

    def test_floor_requires_positive_epsilon(self):
        with pytest.raises(InvalidInputError):
            floor_uncertainty(0.0, 0.0)

    def test_normalize_distribution(self):
        assert normalize_distribution({"a": 1.0, "b": 3.0}) == {"a": 0.25, "b": 0.75}

    def test_normalize_zero_mass(self):
        with pytest.raises(DivisionByZeroError):
            normalize_distribution({"a": 0.0, "b": 0.0})

    def test_normalize_negative_score(self):
        with pytest.raises(InvalidInputError):
            normalize_distribution({"a": -0.1, "b": 1.0})

    def test_top_component_mapping(self):
        result = FusionResult(value={"sad": 0.2, "happy": 0.5, "angry": 0.5})
        assert result.top_component() == "angry"

    def test_top_component_vector(self):
        assert FusionResult(value=[0.1, 0.7, 0.7]).top_component() == 1
