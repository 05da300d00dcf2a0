"""
Tests for the typed DataSet container and its schemas.
"""
import numpy as np
import pandas as pd
import pytest

from contamtrends.data.dataset import DataSet
from contamtrends.data.schema import ColumnSpec, TableSchema
from contamtrends.utils.exceptions import SchemaError


def test_missing_column_fails_at_construction():
    frame = pd.DataFrame({"county": ["COOK"]})

    with pytest.raises(SchemaError) as excinfo:
        DataSet(frame, TableSchema.of(county="str", year="int"))

    assert excinfo.value.column == "year"
    assert excinfo.value.to_dict()["error_code"] == "SCHEMA_ERROR"


def test_mistyped_column_fails_at_construction():
    frame = pd.DataFrame({"year": ["2001", "two thousand"]})

    with pytest.raises(SchemaError):
        DataSet(frame, TableSchema.of(year="int"))


def test_fractional_year_is_rejected():
    with pytest.raises(SchemaError):
        DataSet(pd.DataFrame({"year": [2001.5]}), TableSchema.of(year="int"))


def test_numeric_text_is_coerced():
    frame = pd.DataFrame({"total_releases": ["1,250.5", "", " 3 "]})

    dataset = DataSet(frame, TableSchema.of(total_releases="float"))
    values = dataset.column("total_releases")

    assert values.iloc[0] == pytest.approx(1250.5)
    assert np.isnan(values.iloc[1])
    assert values.iloc[2] == pytest.approx(3.0)


def test_string_dtype_text_is_cleaned_like_object_text():
    frame = pd.DataFrame({
        "total_releases": pd.Series(["1,250.5", "", " 3 "], dtype="string"),
        "county": pd.Series([" Cook ", "LAKE", ""], dtype="string"),
    })

    dataset = DataSet(frame, TableSchema.of(total_releases="float", county="str"))
    values = dataset.column("total_releases")
    counties = dataset.column("county")

    assert values.iloc[0] == pytest.approx(1250.5)
    assert np.isnan(values.iloc[1])
    assert values.iloc[2] == pytest.approx(3.0)
    assert counties.iloc[0] == "Cook"
    assert pd.isna(counties.iloc[2])


def test_flags_are_parsed_to_booleans():
    frame = pd.DataFrame({"carcinogen": ["Y", "NO", "yes", None]})

    dataset = DataSet(frame, TableSchema.of(carcinogen="bool"))
    flags = dataset.column("carcinogen").tolist()

    assert flags[:3] == [True, False, True]
    assert flags[3] is pd.NA


def test_unknown_flag_value_is_rejected():
    with pytest.raises(SchemaError):
        DataSet(pd.DataFrame({"carcinogen": ["maybe"]}), TableSchema.of(carcinogen="bool"))


def test_non_nullable_column_rejects_nulls():
    schema = TableSchema((ColumnSpec("county", "str", nullable=False),))

    with pytest.raises(SchemaError):
        DataSet(pd.DataFrame({"county": ["COOK", None]}), schema)


def test_unsupported_dtype_is_rejected():
    with pytest.raises(ValueError):
        ColumnSpec("county", "complex")


def test_construction_copies_input(release_frame, simple_schema):
    dataset = DataSet(release_frame, simple_schema)
    release_frame.loc[0, "total_releases"] = -1.0

    assert dataset.column("total_releases").iloc[0] == 10.0


def test_group_by_sorts_each_group_by_time(simple_schema):
    frame = pd.DataFrame({
        "county": ["COOK", "COOK", "COOK", "LAKE"],
        "chemical": ["ATRAZINE"] * 4,
        "year": [2003, 2001, 2002, 2001],
        "total_releases": [3.0, 1.0, 2.0, 9.0],
    })

    groups = DataSet(frame, simple_schema).group_by(["county", "chemical"], time_column="year")

    assert [g.key for g in groups] == [("COOK", "ATRAZINE"), ("LAKE", "ATRAZINE")]
    assert groups[0].times() == [2001, 2002, 2003]
    assert groups[0].values("total_releases").tolist() == [1.0, 2.0, 3.0]
    assert groups[0].label == {"county": "COOK", "chemical": "ATRAZINE"}
    assert len(groups[1]) == 1


def test_group_by_single_key_string(releases):
    groups = releases.group_by("chemical", time_column="year")

    assert [g.key for g in groups] == [("ATRAZINE",), ("GLYPHOSATE",)]


def test_group_by_unknown_key_raises(releases):
    with pytest.raises(SchemaError):
        releases.group_by(["state"])


def test_filter_returns_new_dataset(releases):
    cook = releases.filter(lambda df: df["county"] == "COOK")

    assert len(cook) == 10
    assert len(releases) == 19
    assert set(cook.column("county")) == {"COOK"}


def test_where_matches_column_values(releases):
    subset = releases.where(county="WILL", chemical="GLYPHOSATE")

    assert len(subset) == 4


def test_left_join_fills_unmatched_rows_with_nulls(releases):
    regions = DataSet(
        pd.DataFrame({"county": ["COOK", "LAKE"], "region": ["Chicago", "North"]}),
        TableSchema.of(county="str", region="str"),
    )

    joined = releases.join(regions, on="county")
    frame = joined.to_frame()

    assert len(joined) == len(releases)
    assert set(frame.loc[frame["county"] == "COOK", "region"]) == {"Chicago"}
    assert frame.loc[frame["county"] == "DUPAGE", "region"].isna().all()
    assert "region" in joined.schema


def test_join_on_missing_column_raises(releases):
    other = DataSet(pd.DataFrame({"site": ["A"]}), TableSchema.of(site="str"))

    with pytest.raises(SchemaError):
        releases.join(other, on="county")


def test_iter_rows_sorted(simple_schema):
    frame = pd.DataFrame({
        "county": ["B", "A"],
        "chemical": ["X", "X"],
        "year": [2001, 2000],
        "total_releases": [1.0, 2.0],
    })

    rows = list(DataSet(frame, simple_schema).iter_rows(sort_by="year"))

    assert [r["county"] for r in rows] == ["A", "B"]
    assert isinstance(rows[0]["year"], int)


def test_schema_is_inferred_without_explicit_schema():
    dataset = DataSet(pd.DataFrame({"year": [2000, 2001], "value": [1.5, 2.5], "site": ["a", "b"]}))

    kinds = {c.name: c.dtype for c in dataset.schema.columns}

    assert kinds == {"year": "int", "value": "float", "site": "str"}
