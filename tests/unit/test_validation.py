from __future__ import annotations

import io
import json
import subprocess

import pytest
from scipy import stats

from metaengine.errors import ExternalValidationError
from metaengine.models import (
    PoolingModel,
    RecomputedEstimate,
    Study,
    ValidationConfig,
    ValidatorBackend,
)
from metaengine.synthesis.meta_analysis import pool, pool_studies
from metaengine.utils import structured_log
from metaengine.utils.retry_strategies import RetryConfig
from metaengine.validation import (
    StatsmodelsValidator,
    SubprocessValidator,
    build_validator,
    compare_estimates,
    cross_validate,
    recompute_with_statsmodels,
)
from metaengine.validation import worker

NO_WAIT = RetryConfig(max_attempts=3, initial_delay=0.0, max_delay=0.0)


def _studies(effects: list[float], variances: list[float]) -> list[Study]:
    return [
        Study(id=f"s{i + 1}", name=f"Study {i + 1}", effect_size=es, variance=v)
        for i, (es, v) in enumerate(zip(effects, variances))
    ]


class _FlakyValidator:
    name = "flaky"

    def __init__(self, failures: int, inner=None):
        self.failures = failures
        self.calls = 0
        self.inner = inner or StatsmodelsValidator()

    def recompute(self, studies, model):
        self.calls += 1
        if self.calls <= self.failures:
            raise ExternalValidationError(f"transient failure {self.calls}")
        return self.inner.recompute(studies, model)


class _ShiftedValidator:
    name = "shifted"

    def recompute(self, studies, model):
        base = StatsmodelsValidator().recompute(studies, model)
        return base.model_copy(update={"pooled_effect": base.pooled_effect + 0.01})


def test_recompute_matches_fixed_effect_pooling(three_effects, three_variances) -> None:
    pooled = pool(three_effects, three_variances, "fixed")
    payload = recompute_with_statsmodels(three_effects, three_variances, "fixed")

    assert payload["model"] == "fixed"
    assert payload["pooled_effect"] == pytest.approx(pooled.pooled_effect, rel=1e-9)
    assert payload["standard_error"] == pytest.approx(pooled.standard_error, rel=1e-9)
    assert payload["q"] == pytest.approx(pooled.heterogeneity.q, rel=1e-9)
    assert payload["tau_squared"] == 0.0
    assert payload["exact_heterogeneity_p_value"] == pytest.approx(
        stats.chi2.sf(pooled.heterogeneity.q, 2)
    )


def test_recompute_matches_random_effects_pooling(heterogeneous_data) -> None:
    effects, variances = heterogeneous_data
    pooled = pool(effects, variances, "random")
    payload = recompute_with_statsmodels(effects, variances, PoolingModel.RANDOM)

    assert pooled.heterogeneity.tau_squared > 0.0
    assert payload["tau_squared"] == pytest.approx(pooled.heterogeneity.tau_squared, rel=1e-9)
    assert payload["pooled_effect"] == pytest.approx(pooled.pooled_effect, rel=1e-9)
    assert payload["standard_error"] == pytest.approx(pooled.standard_error, rel=1e-9)


def test_cross_validate_agrees_with_statsmodels(heterogeneous_data) -> None:
    pooled = pool(*heterogeneous_data, model="random")
    report = cross_validate(pooled, StatsmodelsValidator(), retry_config=NO_WAIT)

    assert report.agrees is True
    assert report.backend == "statsmodels"
    assert report.attempts == 1
    assert set(report.differences) == {"pooled_effect", "standard_error", "q", "tau_squared"}
    assert max(report.differences.values()) < 1e-9


def test_cross_validate_retries_transient_failures(three_effects, three_variances) -> None:
    pooled = pool(three_effects, three_variances, "fixed")
    validator = _FlakyValidator(failures=1)

    report = cross_validate(pooled, validator, retry_config=NO_WAIT)

    assert report.attempts == 2
    assert validator.calls == 2
    assert report.agrees is True


def test_cross_validate_raises_after_exhausting_attempts(tmp_path, three_effects, three_variances) -> None:
    path = structured_log.configure_run_logging(str(tmp_path))
    pooled = pool(three_effects, three_variances, "fixed")
    validator = _FlakyValidator(failures=5)

    with pytest.raises(ExternalValidationError, match="transient failure 3"):
        cross_validate(pooled, validator, retry_config=NO_WAIT)
    assert validator.calls == 3

    structured_log.reset_run_logging()
    events = structured_log.load_events_from_jsonl(str(path))
    assert events[-1]["event"] == "validation"
    assert events[-1]["agrees"] is False
    assert events[-1]["attempts"] == 3


def test_cross_validate_reports_disagreement(three_effects, three_variances) -> None:
    pooled = pool(three_effects, three_variances, "fixed")

    report = cross_validate(pooled, _ShiftedValidator(), tolerance=1e-6, retry_config=NO_WAIT)

    assert report.agrees is False
    assert report.differences["pooled_effect"] == pytest.approx(0.01)
    assert report.tolerance == 1e-6


def test_compare_estimates_uses_absolute_differences(three_effects, three_variances) -> None:
    pooled = pool(three_effects, three_variances, "fixed")
    recomputed = RecomputedEstimate(
        backend="manual",
        model=PoolingModel.FIXED,
        pooled_effect=pooled.pooled_effect - 0.2,
        standard_error=pooled.standard_error,
        q=pooled.heterogeneity.q + 1.0,
        tau_squared=0.0,
        exact_heterogeneity_p_value=0.5,
    )
    differences = compare_estimates(pooled, recomputed)
    assert differences["pooled_effect"] == pytest.approx(0.2)
    assert differences["q"] == pytest.approx(1.0)
    assert differences["standard_error"] == 0.0


def test_build_validator_follows_config() -> None:
    assert isinstance(build_validator(ValidationConfig()), StatsmodelsValidator)
    validator = build_validator(
        ValidationConfig(backend=ValidatorBackend.SUBPROCESS, timeout_seconds=5.0)
    )
    assert isinstance(validator, SubprocessValidator)
    assert validator.timeout_seconds == 5.0
    assert validator.build_command()[1:] == ["-m", "metaengine.validation.worker"]


def test_subprocess_validator_missing_executable(tmp_path) -> None:
    validator = SubprocessValidator(python_executable=str(tmp_path / "no-such-python"))

    with pytest.raises(ExternalValidationError, match="could not start"):
        validator.recompute(_studies([0.5, 0.3], [0.04, 0.05]), PoolingModel.FIXED)


def test_subprocess_validator_timeout(monkeypatch) -> None:
    def _timeout(*args, **kwargs):
        raise subprocess.TimeoutExpired(cmd=args[0], timeout=kwargs["timeout"])

    monkeypatch.setattr(subprocess, "run", _timeout)
    validator = SubprocessValidator(timeout_seconds=0.5)

    with pytest.raises(ExternalValidationError, match="timed out after 0.5s"):
        validator.recompute(_studies([0.5, 0.3], [0.04, 0.05]), PoolingModel.FIXED)


@pytest.mark.parametrize(
    ("returncode", "stdout", "message"),
    [
        (2, "", "exited with code 2"),
        (0, "not json", "failed to parse"),
        (0, "[1, 2]", "must be a JSON object"),
        (0, json.dumps({"pooled_effect": 0.5}), "unexpected fields"),
    ],
)
def test_subprocess_validator_bad_output(monkeypatch, returncode, stdout, message) -> None:
    def _run(cmd, **kwargs):
        return subprocess.CompletedProcess(cmd, returncode, stdout=stdout, stderr="boom")

    monkeypatch.setattr(subprocess, "run", _run)

    with pytest.raises(ExternalValidationError, match=message):
        SubprocessValidator().recompute(_studies([0.5, 0.3], [0.04, 0.05]), PoolingModel.FIXED)


def test_worker_round_trip(monkeypatch, three_effects, three_variances) -> None:
    request = {"effects": three_effects, "variances": three_variances, "model": "fixed"}
    stdout = io.StringIO()
    monkeypatch.setattr("sys.stdin", io.StringIO(json.dumps(request)))
    monkeypatch.setattr("sys.stdout", stdout)

    assert worker.main() == 0
    payload = json.loads(stdout.getvalue())
    assert payload["pooled_effect"] == pytest.approx(41.8333333 / 78.3333333, rel=1e-6)


def test_worker_rejects_malformed_request(monkeypatch, capsys) -> None:
    monkeypatch.setattr("sys.stdin", io.StringIO(json.dumps({"variances": [0.1]})))

    assert worker.main() == 2
    assert "invalid validation request" in capsys.readouterr().err


def test_statsmodels_validator_returns_recomputed_estimate() -> None:
    studies = _studies([0.5, 0.3, 0.7], [0.04, 0.05, 0.03])
    estimate = StatsmodelsValidator().recompute(studies, PoolingModel.FIXED)

    assert estimate.backend == "statsmodels"
    assert estimate.pooled_effect == pytest.approx(pool_studies(studies, "fixed").pooled_effect)
