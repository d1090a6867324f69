from __future__ import annotations

import numpy as np
import pytest

from metaengine.errors import InvalidInputError
from metaengine.synthesis.publication_bias import (
    begg_rank_correlation,
    egger_regression,
    funnel_asymmetry,
    publication_bias_test,
    ranks,
)

SES = [0.10, 0.12, 0.15, 0.18, 0.20, 0.22, 0.25, 0.30, 0.35, 0.40]


def test_egger_recovers_exact_linear_relationship() -> None:
    effects = [2.0 + 0.1 * (1.0 / se) for se in SES]
    intercept, slope, p_value = egger_regression(np.asarray(effects), np.asarray(SES))
    assert intercept == pytest.approx(2.0)
    assert slope == pytest.approx(0.1)
    assert p_value == 0.05


def test_egger_small_intercept_uses_placeholder_p_value() -> None:
    effects = [0.3 + 0.01 * (1.0 / se) for se in SES]
    intercept, _, p_value = egger_regression(np.asarray(effects), np.asarray(SES))
    assert intercept == pytest.approx(0.3)
    assert p_value == 0.5


def test_egger_constant_precision_has_zero_slope() -> None:
    effects = np.asarray([0.1, 0.2, 0.3, 0.4])
    intercept, slope, _ = egger_regression(effects, np.full(4, 0.2))
    assert slope == 0.0
    assert intercept == pytest.approx(0.25)


def test_ranks_break_ties_by_input_order() -> None:
    assert ranks([3.0, 1.0, 3.0, 2.0]) == [3, 1, 4, 2]


def test_begg_tau_extremes() -> None:
    ses = np.asarray(SES)
    increasing = np.linspace(0.1, 1.0, len(SES))
    tau, p_value = begg_rank_correlation(increasing, ses)
    assert tau == pytest.approx(1.0)
    assert p_value == 0.05

    tau, _ = begg_rank_correlation(increasing[::-1], ses)
    assert tau == pytest.approx(-1.0)


def test_begg_weak_correlation_is_not_flagged() -> None:
    effects = np.asarray([0.3, 0.5, 0.1, 0.4, 0.2])
    ses = np.asarray([0.1, 0.2, 0.3, 0.4, 0.5])
    tau, p_value = begg_rank_correlation(effects, ses)
    assert abs(tau) <= 0.3
    assert p_value == 0.5


def test_funnel_asymmetry_needs_ten_studies() -> None:
    assert funnel_asymmetry([0.0] * 6 + [1.0, 2.0, 3.0]) is False


def test_funnel_asymmetry_distinct_values_are_balanced() -> None:
    assert funnel_asymmetry([0.1 * i for i in range(10)]) is False


def test_funnel_asymmetry_detects_pile_up_at_median() -> None:
    # median 0: nothing below, four above -> 4/10 > 0.3
    assert funnel_asymmetry([0.0] * 6 + [1.0, 2.0, 3.0, 4.0]) is True


def test_publication_bias_test_full_result() -> None:
    effects = [2.0 + 0.1 * (1.0 / se) for se in SES]
    result = publication_bias_test(effects, SES)

    assert result.n_studies == 10
    assert result.egger.intercept == pytest.approx(2.0)
    assert result.egger.significant is False
    assert result.begg.tau == pytest.approx(-1.0)
    assert result.begg.significant is False
    assert result.funnel_asymmetric is False
    assert result.warnings == []


def test_publication_bias_test_flags_small_study_sets() -> None:
    result = publication_bias_test([0.2, 0.3, 0.1, 0.4, 0.25], [0.1, 0.2, 0.15, 0.3, 0.12])
    assert len(result.warnings) == 1
    warning = result.warnings[0]
    assert warning.analysis == "publication_bias"
    assert warning.required == 10
    assert warning.available == 5
    assert result.funnel_asymmetric is False


def test_publication_bias_test_threshold_is_configurable() -> None:
    result = publication_bias_test(
        [0.2, 0.3, 0.1, 0.4, 0.25],
        [0.1, 0.2, 0.15, 0.3, 0.12],
        minimum_studies=5,
    )
    assert result.warnings == []


def test_publication_bias_test_rejects_tiny_inputs() -> None:
    with pytest.raises(InvalidInputError, match="at least 3 studies"):
        publication_bias_test([0.2, 0.3], [0.1, 0.1])


def test_publication_bias_test_rejects_mismatched_lengths() -> None:
    with pytest.raises(InvalidInputError, match="same length"):
        publication_bias_test([0.2, 0.3, 0.4], [0.1, 0.1])


def test_publication_bias_test_rejects_zero_standard_error() -> None:
    with pytest.raises(InvalidInputError, match="standard errors"):
        publication_bias_test([0.2, 0.3, 0.4], [0.1, 0.0, 0.1])


def test_placeholder_p_value_is_not_significant_at_default_level() -> None:
    effects = [2.0 + 0.01 * i for i in range(12)]
    ses = [0.10 + 0.01 * i for i in range(12)]
    result = publication_bias_test(effects, ses)

    assert abs(result.egger.intercept) > 1.0
    assert result.egger.p_value == 0.05
    assert result.egger.significant is False
    assert result.begg.p_value == 0.05
    assert result.begg.significant is False


def test_looser_significance_level_flags_placeholder_p_value() -> None:
    effects = [2.0 + 0.1 * (1.0 / se) for se in SES]
    result = publication_bias_test(effects, SES, significance_level=0.1)

    assert result.egger.significant is True
    assert result.begg.significant is True
