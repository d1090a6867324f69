from __future__ import annotations

import pytest

from metaengine.errors import InvalidInputError
from metaengine.models import Study
from metaengine.synthesis.meta_analysis import pool
from metaengine.synthesis.sensitivity import sensitivity_analysis, sensitivity_analysis_studies


def test_leave_one_out_returns_one_entry_per_study(heterogeneous_data) -> None:
    effects, variances = heterogeneous_data
    entries = sensitivity_analysis(effects, variances)

    assert len(entries) == len(effects)
    assert [e.excluded_index for e in entries] == [1, 2, 3, 4, 5]
    assert len({e.excluded_index for e in entries}) == len(entries)
    for i, entry in enumerate(entries):
        expected = pool(effects[:i] + effects[i + 1 :], variances[:i] + variances[i + 1 :], "random")
        assert entry.pooled_effect == pytest.approx(expected.pooled_effect)
        assert entry.confidence_interval == pytest.approx(expected.confidence_interval)
        assert entry.p_value == pytest.approx(expected.p_value)
        assert entry.n_studies == len(effects) - 1


def test_leave_one_out_keeps_input_order() -> None:
    entries = sensitivity_analysis([0.9, 0.1, 0.5], [0.04, 0.04, 0.04])
    # Dropping the largest effect first gives the smallest remaining mean.
    assert [e.excluded_index for e in entries] == [1, 2, 3]
    assert entries[0].pooled_effect < entries[2].pooled_effect < entries[1].pooled_effect


def test_two_studies_give_no_entries() -> None:
    assert sensitivity_analysis([0.2, 0.4], [0.04, 0.05]) == []


def test_single_study_is_rejected() -> None:
    with pytest.raises(InvalidInputError, match="at least 2 studies"):
        sensitivity_analysis([0.2], [0.04])


def test_mismatched_lengths_are_rejected() -> None:
    with pytest.raises(InvalidInputError, match="same length"):
        sensitivity_analysis([0.2, 0.3, 0.4], [0.04, 0.05])


def test_non_positive_variance_is_rejected() -> None:
    with pytest.raises(InvalidInputError, match="variances"):
        sensitivity_analysis([0.2, 0.3, 0.4], [0.04, 0.0, 0.05])


def test_study_variant_reports_excluded_ids() -> None:
    studies = [
        Study(id="a", name="A", effect_size=0.2, variance=0.04),
        Study(id="b", name="B", effect_size=0.5, variance=0.03),
        Study(id="c", name="C", effect_size=0.35, variance=0.05),
    ]
    entries = sensitivity_analysis_studies(studies)
    assert [e.excluded_study_id for e in entries] == ["a", "b", "c"]


def test_study_variant_rejects_single_study() -> None:
    with pytest.raises(InvalidInputError, match="at least 2 studies"):
        sensitivity_analysis_studies([Study(id="a", name="A", effect_size=0.2, variance=0.04)])


def test_array_and_study_variants_agree(heterogeneous_data) -> None:
    effects, variances = heterogeneous_data
    studies = [
        Study(id=f"study_{i + 1}", name=f"Study {i + 1}", effect_size=es, variance=v)
        for i, (es, v) in enumerate(zip(effects, variances))
    ]
    assert sensitivity_analysis(effects, variances) == sensitivity_analysis_studies(studies)
