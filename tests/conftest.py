"""
Pytest configuration and fixtures.
"""

import pytest

from metaengine.models import Study
from metaengine.utils import structured_log


@pytest.fixture
def three_effects() -> list[float]:
    return [0.5, 0.3, 0.7]


@pytest.fixture
def three_variances() -> list[float]:
    return [0.04, 0.05, 0.03]


@pytest.fixture
def heterogeneous_data() -> tuple[list[float], list[float]]:
    """Effects spread far beyond their sampling error (tau2 > 0)."""
    return (
        [-0.70, 0.10, 0.95, -0.20, 1.10],
        [0.03, 0.02, 0.03, 0.02, 0.03],
    )


@pytest.fixture
def twelve_studies() -> list[Study]:
    """Twelve studies in two designs, with a mild small-study trend."""
    effects = [0.42, 0.35, 0.51, 0.28, 0.60, 0.33, 0.47, 0.55, 0.25, 0.39, 0.71, 0.30]
    variances = [0.020, 0.030, 0.045, 0.015, 0.060, 0.025, 0.040, 0.050, 0.012, 0.035, 0.080, 0.018]
    designs = ["rct", "cohort"] * 6
    return [
        Study(
            id=f"s{i + 1}",
            name=f"Study {i + 1}",
            effect_size=es,
            variance=v,
            sample_size=100 + 10 * i,
            group_label=design,
            region="EU" if i < 4 else "US",
        )
        for i, (es, v, design) in enumerate(zip(effects, variances, designs))
    ]


@pytest.fixture(autouse=True)
def reset_structured_logging():
    """Every test starts and ends with the audit log unconfigured."""
    structured_log.reset_run_logging()
    yield
    structured_log.reset_run_logging()
