"""
Tests for report export.
"""
import pandas as pd
import pytest

from contamtrends.utils.export import ReportExporter
from contamtrends.utils.exceptions import ExportFormatError


@pytest.fixture
def tables():
    return {
        "change_point_years": pd.DataFrame({"year": [2005, 2010], "count": [2, 1]}),
        "forecast_trends": pd.DataFrame({
            "parameter_code": ["00680"],
            "period": pd.Series([pd.Period("2020-01", freq="M")]),
            "trend": ["increasing"],
        }),
    }


def test_csv_export_writes_one_file_per_table(tmp_path, tables):
    paths = ReportExporter(tmp_path).export_tables(tables, format="csv", name="report")

    assert set(paths) == set(tables)
    written = pd.read_csv(paths["change_point_years"])
    assert written["count"].tolist() == [2, 1]
    assert pd.read_csv(paths["forecast_trends"], dtype=str)["period"].iloc[0] == "2020-01"


def test_xlsx_export_writes_single_workbook(tmp_path, tables):
    paths = ReportExporter(tmp_path).export_tables(tables, format="XLSX", name="report")

    assert set(paths.values()) == {tmp_path / "report.xlsx"}
    assert (tmp_path / "report.xlsx").stat().st_size > 0


def test_unsupported_format_raises(tmp_path, tables):
    with pytest.raises(ExportFormatError) as excinfo:
        ReportExporter(tmp_path).export_tables(tables, format="json")

    assert excinfo.value.details["supported_formats"] == ["xlsx", "csv"]


def test_output_directory_is_created(tmp_path):
    target = tmp_path / "nested" / "out"

    ReportExporter(target)

    assert target.is_dir()


def test_tuples_and_text_columns_are_written_as_text(tmp_path):
    table = pd.DataFrame({
        "group": pd.Series([("COOK", "ATRAZINE")], dtype=object),
        "county": pd.Series(["COOK"], dtype="string"),
    })

    paths = ReportExporter(tmp_path).export_tables({"groups": table}, format="csv", name="report")
    written = pd.read_csv(paths["groups"], dtype=str)

    assert written["group"].iloc[0] == "('COOK', 'ATRAZINE')"
    assert written["county"].iloc[0] == "COOK"
