"""
Tests for the grouped analysis runner.
"""
import pytest

from contamtrends.analytics.runner import AnalysisRun, GroupedAnalysisRunner, status_frame
from contamtrends.data.preprocessor import yearly_totals
from contamtrends.models.base import GroupResult, ModelBackend, SkipReason
from contamtrends.models.changepoint import ChangePointDetector, ChangePointResult
from contamtrends.models.importance import ImportanceEstimator
from contamtrends.utils.config import AnalysisConfig
from contamtrends.utils.exceptions import ModelFitFailure, SchemaError


class RecordingBackend(ModelBackend):
    """Returns the group length and remembers which groups it saw."""

    name = "recording"

    def __init__(self, fail_on=()):
        self.seen = []
        self.fail_on = set(fail_on)

    def analyze(self, group, value_column):
        self.seen.append(group.key)
        if group.key in self.fail_on:
            raise ModelFitFailure(self.name, "refused")
        return len(group)


@pytest.fixture
def totals(releases):
    return yearly_totals(releases, ["county", "chemical"])


def test_every_group_gets_a_result(totals):
    run = GroupedAnalysisRunner(RecordingBackend()).run(
        totals, ["county", "chemical"], "year", "total_releases"
    )

    assert set(run) == {
        ("COOK", "ATRAZINE"), ("DUPAGE", "ATRAZINE"),
        ("LAKE", "ATRAZINE"), ("WILL", "GLYPHOSATE"),
    }
    assert run.backend == "recording"
    assert run.keys == ("county", "chemical")


def test_skipped_groups_never_reach_the_backend(totals):
    backend = RecordingBackend()

    run = GroupedAnalysisRunner(backend).run(totals, ["county", "chemical"], "year", "total_releases")

    assert ("LAKE", "ATRAZINE") not in backend.seen
    assert ("WILL", "GLYPHOSATE") not in backend.seen
    assert run[("LAKE", "ATRAZINE")].reason is SkipReason.INSUFFICIENT_OBSERVATIONS
    assert run[("WILL", "GLYPHOSATE")].reason is SkipReason.MISSING_VALUES
    assert run[("COOK", "ATRAZINE")] == GroupResult.valid(10)


def test_model_fit_failure_is_recorded(totals):
    backend = RecordingBackend(fail_on=[("COOK", "ATRAZINE")])

    run = GroupedAnalysisRunner(backend).run(totals, ["county", "chemical"], "year", "total_releases")

    result = run[("COOK", "ATRAZINE")]
    assert result.reason is SkipReason.MODEL_FIT_FAILURE
    assert result.detail == "refused"
    assert run.valid() == {("DUPAGE", "ATRAZINE"): 3}


def test_other_errors_propagate(totals):
    class BrokenBackend(RecordingBackend):
        def analyze(self, group, value_column):
            raise RuntimeError("bug")

    with pytest.raises(RuntimeError):
        GroupedAnalysisRunner(BrokenBackend()).run(totals, ["county", "chemical"], "year", "total_releases")


def test_three_increasing_years_give_empty_changepoints(totals):
    run = GroupedAnalysisRunner(ChangePointDetector()).run(
        totals, ["county", "chemical"], "year", "total_releases"
    )

    result = run[("DUPAGE", "ATRAZINE")]
    assert result.is_valid
    assert isinstance(result.payload, ChangePointResult)
    assert result.payload.positions == ()
    assert run[("COOK", "ATRAZINE")].payload.times == (2004,)


def test_search_space_is_enforced_for_changepoints(totals):
    config = AnalysisConfig(min_count=1)
    single = totals.where(county="LAKE", year=2000)

    run = GroupedAnalysisRunner(ChangePointDetector(config), config).run(
        single, ["county", "chemical"], "year", "total_releases"
    )

    assert run[("LAKE", "ATRAZINE")].reason is SkipReason.INSUFFICIENT_OBSERVATIONS


def test_runs_are_idempotent(totals):
    runner = GroupedAnalysisRunner(ChangePointDetector())

    first = runner.run(totals, ["county", "chemical"], "year", "total_releases")
    second = runner.run(totals, ["county", "chemical"], "year", "total_releases")

    assert dict(first.items()) == dict(second.items())


def test_run_is_read_only(totals):
    run = GroupedAnalysisRunner(RecordingBackend()).run(
        totals, ["county", "chemical"], "year", "total_releases"
    )

    assert isinstance(run, AnalysisRun)
    with pytest.raises(TypeError):
        run.results[("NEW", "KEY")] = GroupResult.valid(1)


def test_counts_and_status_frame(totals):
    run = GroupedAnalysisRunner(RecordingBackend()).run(
        totals, ["county", "chemical"], "year", "total_releases"
    )

    assert run.counts() == {
        "valid": 2,
        "insufficient_observations": 1,
        "missing_values": 1,
        "model_fit_failure": 0,
    }
    frame = status_frame(run)
    assert list(frame.columns) == ["county", "chemical", "status", "reason", "detail"]
    assert (frame["status"] == "skipped").sum() == 2


def test_missing_feature_column_raises_schema_error(releases):
    without_county = releases.select("chemical", "year", "total_releases")
    runner = GroupedAnalysisRunner(ImportanceEstimator(["county"]))

    with pytest.raises(SchemaError) as excinfo:
        runner.run(without_county, ["chemical"], "year", "total_releases")

    assert excinfo.value.column == "county"


def test_skip_detail_comes_from_validation_error(totals):
    run = GroupedAnalysisRunner(RecordingBackend()).run(
        totals, ["county", "chemical"], "year", "total_releases"
    )

    assert run[("LAKE", "ATRAZINE")].detail == "Group ('LAKE', 'ATRAZINE') has 2 observations, 3 required"
    assert run[("WILL", "GLYPHOSATE")].detail == "Group ('WILL', 'GLYPHOSATE') has 1 missing values"
