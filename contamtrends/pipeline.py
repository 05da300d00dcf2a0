"""
End-to-end analyses over the Illinois release and water-quality data.

Each function is one parameterised analysis: pick the rows, bucket them in
time, run a backend over every group and reduce the run into a summary table.

Usage:
    python -m contamtrends.pipeline --releases tri_il.csv \
        --samples il_samples.csv --parameter-codes parm_codes.csv
"""
import argparse
from typing import List, Optional, Sequence, Tuple

import pandas as pd

from contamtrends.analytics.aggregator import ResultAggregator
from contamtrends.analytics.runner import AnalysisRun, GroupedAnalysisRunner
from contamtrends.data.dataset import DataSet
from contamtrends.data.loader import DataLoader, describe_parameters
from contamtrends.data.preprocessor import monthly_means, yearly_totals
from contamtrends.data.validator import DataQualityChecker
from contamtrends.models.changepoint import ChangePointDetector
from contamtrends.models.forecaster import SarimaForecaster
from contamtrends.models.importance import ImportanceEstimator
from contamtrends.utils.config import AnalysisConfig, DEFAULT_ANALYSIS_CONFIG
from contamtrends.utils.export import ReportExporter
from contamtrends.utils.logging_config import get_logger
from contamtrends.utils.settings import get_settings

DEFAULT_RELEASE_FEATURES = [
    "year", "county", "carcinogen", "clean_air_act_chemical", "industry_sector",
]


def _only(dataset: DataSet, column: str, values: Optional[Sequence[str]]) -> DataSet:
    if not values:
        return dataset
    wanted = set(values)
    return dataset.filter(lambda df: df[column].isin(wanted))


def analyze_release_change_points(
    releases: DataSet,
    config: AnalysisConfig = None,
    keys: Sequence[str] = ("county", "chemical"),
    chemicals: Sequence[str] = None
) -> Tuple[AnalysisRun, pd.DataFrame]:
    """
    Detect shifts in yearly release totals per county and chemical.

    Returns:
        The run and the frequency table of change-point years.
    """
    config = config or DEFAULT_ANALYSIS_CONFIG
    totals = yearly_totals(_only(releases, "chemical", chemicals), list(keys))
    run = GroupedAnalysisRunner(ChangePointDetector(config), config).run(
        totals, list(keys), "year", "total_releases"
    )
    return run, ResultAggregator().change_point_frequency_table(run)


def forecast_water_quality(
    samples: DataSet,
    config: AnalysisConfig = None,
    keys: Sequence[str] = ("parameter_code",),
    parameter_codes: Sequence[str] = None
) -> Tuple[AnalysisRun, pd.DataFrame]:
    """
    Forecast monthly mean results per parameter and classify their trend.

    Returns:
        The run and the trend table.
    """
    config = config or DEFAULT_ANALYSIS_CONFIG
    monthly = monthly_means(_only(samples, "parameter_code", parameter_codes), list(keys))
    run = GroupedAnalysisRunner(SarimaForecaster(config), config).run(
        monthly, list(keys), "period", "result_value"
    )
    return run, ResultAggregator().trend_table(run)


def rank_release_drivers(
    releases: DataSet,
    config: AnalysisConfig = None,
    keys: Sequence[str] = ("chemical",),
    feature_columns: List[str] = None
) -> Tuple[AnalysisRun, pd.DataFrame]:
    """
    Random-forest importance of facility attributes for release amounts.

    Returns:
        The run and the mean importance ranking across groups.
    """
    config = config or DEFAULT_ANALYSIS_CONFIG
    features = [c for c in (feature_columns or DEFAULT_RELEASE_FEATURES) if c not in keys]
    # facility rows without a reported amount carry no signal here
    reported = releases.filter(lambda df: df["total_releases"].notna())
    run = GroupedAnalysisRunner(ImportanceEstimator(features, config), config).run(
        reported, list(keys), "year", "total_releases"
    )
    return run, ResultAggregator().importance_ranking(run)


def county_delta_table(releases: DataSet) -> pd.DataFrame:
    """County → average yearly change of total releases."""
    return ResultAggregator.average_yearly_delta(releases, "county", "year", "total_releases")


def main(argv: List[str] = None) -> int:
    settings = get_settings()
    logger = get_logger("contamtrends")

    parser = argparse.ArgumentParser(description="Illinois contamination trend analysis")
    parser.add_argument("--releases", required=True, help="TRI basic data CSV")
    parser.add_argument("--samples", help="Water-quality sample CSV")
    parser.add_argument("--parameter-codes", help="Parameter code lookup CSV")
    parser.add_argument("--chemical", action="append", help="Restrict to chemical (repeatable)")
    parser.add_argument("--format", default="xlsx", choices=["xlsx", "csv"])
    parser.add_argument("--output-dir", default=str(settings.outputs_path))
    args = parser.parse_args(argv)

    config = settings.to_analysis_config()
    loader = DataLoader(settings.data_raw_path)

    releases = loader.load_releases(args.releases, state=settings.state)
    quality = DataQualityChecker(["total_releases"]).check(releases)
    for issue in quality.issues:
        logger.warning(str(issue))

    change_run, frequencies = analyze_release_change_points(releases, config, chemicals=args.chemical)
    _, ranking = rank_release_drivers(_only(releases, "chemical", args.chemical), config)

    aggregator = ResultAggregator()
    tables = {
        "change_points": aggregator.change_point_table(change_run),
        "change_point_years": frequencies,
        "change_point_status": aggregator.status_table(change_run),
        "importance": ranking,
        "county_deltas": county_delta_table(releases),
    }

    if args.samples:
        samples = loader.load_samples(args.samples)
        if args.parameter_codes:
            codes = loader.load_parameter_codes(args.parameter_codes)
            samples = describe_parameters(samples, codes)
        forecast_run, trends = forecast_water_quality(samples, config)
        tables["forecast_trends"] = trends
        tables["forecast_status"] = aggregator.status_table(forecast_run)

    paths = ReportExporter(args.output_dir).export_tables(tables, format=args.format)
    logger.info(f"Wrote {len(tables)} tables to {sorted({str(p) for p in paths.values()})}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
