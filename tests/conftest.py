"""
Shared fixtures: small synthetic release and water-quality tables.
"""
import pandas as pd
import pytest

from contamtrends.data.dataset import DataSet
from contamtrends.data.schema import RELEASE_SCHEMA, TableSchema
from contamtrends.utils.config import AnalysisConfig


@pytest.fixture
def release_frame() -> pd.DataFrame:
    """
    County/chemical/year release records.

    COOK/ATRAZINE shifts upward after 2004, DUPAGE/ATRAZINE has three
    strictly increasing years, LAKE/ATRAZINE has only two years and
    WILL/GLYPHOSATE is missing a value.
    """
    rows = []
    cook = [10, 11, 10, 12, 11, 50, 52, 51, 49, 50]
    for year, amount in zip(range(2000, 2010), cook):
        rows.append(("COOK", "ATRAZINE", year, amount, True, False, "Chemicals"))
    for year, amount in zip(range(2000, 2003), [100, 200, 300]):
        rows.append(("DUPAGE", "ATRAZINE", year, amount, True, False, "Chemicals"))
    for year, amount in zip(range(2000, 2002), [5, 7]):
        rows.append(("LAKE", "ATRAZINE", year, amount, True, False, "Food"))
    for year, amount in zip(range(2000, 2004), [3.0, None, 4.0, 5.0]):
        rows.append(("WILL", "GLYPHOSATE", year, amount, False, True, "Food"))

    return pd.DataFrame(rows, columns=[
        "county", "chemical", "year", "total_releases",
        "carcinogen", "clean_air_act_chemical", "industry_sector",
    ])


@pytest.fixture
def releases(release_frame) -> DataSet:
    return DataSet(release_frame, RELEASE_SCHEMA)


@pytest.fixture
def simple_schema() -> TableSchema:
    return TableSchema.of(county="str", chemical="str", year="int", total_releases="float")


@pytest.fixture
def fast_config() -> AnalysisConfig:
    """Small search spaces so model tests stay quick."""
    return AnalysisConfig(
        max_p=1,
        max_d=1,
        max_q=1,
        horizon=6,
        n_estimators=25,
    )
