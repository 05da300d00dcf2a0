"""
Data loader for the TRI and water-quality CSV exports.
Handles header normalisation, column aliases and value cleanup, and returns
schema-validated DataSets.
"""
import re
import pandas as pd
from pathlib import Path
from typing import Dict, List, Optional, Union
import logging

from contamtrends.data.dataset import DataSet
from contamtrends.data.schema import (
    TableSchema,
    RELEASE_SCHEMA,
    SAMPLE_SCHEMA,
    PARAMETER_CODE_SCHEMA,
)
from contamtrends.utils.config import DATA_RAW, DEFAULT_STATE
from contamtrends.utils.exceptions import DataLoadError, SchemaError

logger = logging.getLogger(__name__)


# Canonical column → accepted (normalised) header names
RELEASE_ALIASES: Dict[str, List[str]] = {
    "year": ["year", "reporting_year"],
    "state": ["st", "state", "facility_state"],
    "county": ["county", "county_name"],
    "chemical": ["chemical", "chemical_name"],
    "total_releases": ["total_releases", "on_site_release_total", "releases"],
    "carcinogen": ["carcinogen"],
    "clean_air_act_chemical": ["clean_air_act_chemical", "clean_air_act_chem", "caa_chemical"],
    "industry_sector": ["industry_sector", "industry_sector_code"],
}

SAMPLE_ALIASES: Dict[str, List[str]] = {
    "site_id": ["site_id", "site_no", "monitoringlocationidentifier"],
    "sample_date": ["sample_date", "sample_dt", "activitystartdate"],
    "parameter_code": ["parameter_code", "parm_cd", "usgspcode", "pcode"],
    "result_value": ["result_value", "result_va", "resultmeasurevalue"],
}

PARAMETER_ALIASES: Dict[str, List[str]] = {
    "parameter_code": ["parameter_code", "parm_cd", "pcode"],
    "parameter_name": ["parameter_name", "parm_nm", "description", "parameter_nm"],
}

OPTIONAL_RELEASE_COLUMNS = ["carcinogen", "clean_air_act_chemical", "industry_sector"]


def normalize_header(name: str) -> str:
    """``"7. COUNTY"`` → ``"county"``; ``"ActivityStartDate"`` → ``"activitystartdate"``."""
    name = re.sub(r"^\s*\d+\.\s*", "", str(name))
    name = re.sub(r"[^0-9a-zA-Z]+", "_", name.strip().lower())
    return name.strip("_")


class DataLoader:
    """
    Load the input tables from CSV files.
    """

    def __init__(self, data_dir: Path = None):
        """
        Initialize the data loader.

        Args:
            data_dir: Directory containing raw data files. Defaults to DATA_RAW.
        """
        self.data_dir = Path(data_dir or DATA_RAW)

    def _resolve(self, filepath: Union[str, Path]) -> Path:
        path = Path(filepath)
        if not path.is_absolute() and not path.exists():
            path = self.data_dir / path
        return path

    def _read_file(self, filepath: Union[str, Path]) -> pd.DataFrame:
        """
        Read a CSV file with every column as text and normalised headers.
        """
        path = self._resolve(filepath)
        if not path.exists():
            raise DataLoadError(str(path), "file not found")
        try:
            df = pd.read_csv(path, dtype=str, keep_default_na=True, low_memory=False)
        except (pd.errors.ParserError, pd.errors.EmptyDataError, UnicodeDecodeError) as e:
            raise DataLoadError(str(path), str(e)) from e

        df.columns = [normalize_header(c) for c in df.columns]
        logger.info(f"Read {len(df)} rows from: {path}")
        return df

    def _apply_aliases(
        self,
        df: pd.DataFrame,
        aliases: Dict[str, List[str]],
        optional: List[str] = None
    ) -> pd.DataFrame:
        """Rename alias headers to canonical names; missing optional columns become null."""
        optional = optional or []
        renames = {}
        for canonical, candidates in aliases.items():
            found = self._find_column(df, candidates)
            if found is not None:
                renames[found] = canonical
            elif canonical in optional:
                df[canonical] = pd.NA
            else:
                raise SchemaError(canonical, f"none of {candidates} present", list(df.columns))
        return df.rename(columns=renames)

    def _find_column(self, df: pd.DataFrame, candidates: List[str]) -> Optional[str]:
        """Find first matching column from candidates."""
        for col in candidates:
            if col in df.columns:
                return col
        return None

    def load_releases(
        self,
        filepath: Union[str, Path],
        state: Optional[str] = DEFAULT_STATE
    ) -> DataSet:
        """
        Load TRI release records.

        Args:
            filepath: TRI basic data CSV.
            state: Two-letter state filter; None keeps every state.

        Returns:
            DataSet with RELEASE_SCHEMA columns (plus state).
        """
        df = self._read_file(filepath)
        df = self._apply_aliases(df, RELEASE_ALIASES, optional=OPTIONAL_RELEASE_COLUMNS + ["state"])

        df["county"] = clean_county(df["county"])
        df["chemical"] = df["chemical"].str.strip().str.upper()
        df["state"] = df["state"].str.strip().str.upper()

        if state is not None:
            before = len(df)
            if df["state"].notna().any():
                df = df[df["state"] == state.upper()]
            logger.info(f"Kept {len(df)} of {before} release rows for state {state}")

        df = df.dropna(subset=["year", "county", "chemical"])
        schema = RELEASE_SCHEMA.merge(TableSchema.of(state="str"))
        return DataSet(df[schema.names], schema)

    def load_samples(self, filepath: Union[str, Path]) -> DataSet:
        """
        Load water-quality samples.

        Adds ``year`` and monthly ``period`` columns derived from the sample date.
        """
        df = self._read_file(filepath)
        df = self._apply_aliases(df, SAMPLE_ALIASES)
        df["parameter_code"] = clean_parameter_code(df["parameter_code"])
        df = df.dropna(subset=["site_id", "sample_date", "parameter_code"])

        dataset = DataSet(df[SAMPLE_SCHEMA.names], SAMPLE_SCHEMA)
        frame = dataset.to_frame()
        frame["year"] = frame["sample_date"].dt.year
        frame["period"] = frame["sample_date"].dt.to_period("M")

        schema = SAMPLE_SCHEMA.merge(TableSchema.of(year="int", period="period"))
        return DataSet(frame, schema)

    def load_parameter_codes(self, filepath: Union[str, Path]) -> DataSet:
        """Load the parameter-code → description lookup."""
        df = self._read_file(filepath)
        df = self._apply_aliases(df, PARAMETER_ALIASES)
        df["parameter_code"] = clean_parameter_code(df["parameter_code"])
        df = df.dropna(subset=["parameter_code"]).drop_duplicates(subset=["parameter_code"])
        return DataSet(df[PARAMETER_CODE_SCHEMA.names], PARAMETER_CODE_SCHEMA)


def clean_county(values: pd.Series) -> pd.Series:
    """Upper-case county names and drop a trailing 'COUNTY'."""
    cleaned = values.str.strip().str.upper()
    cleaned = cleaned.str.replace(r"\s+COUNTY$", "", regex=True)
    return cleaned.str.replace(r"\s+", " ", regex=True)


def clean_parameter_code(values: pd.Series) -> pd.Series:
    """USGS parameter codes are five digits; restore dropped leading zeros."""
    cleaned = values.str.strip().str.upper().str.replace(r"^P", "", regex=True)
    numeric = cleaned.str.fullmatch(r"\d{1,5}").fillna(False).astype(bool)
    return cleaned.mask(numeric, cleaned.str.zfill(5))


def describe_parameters(samples: DataSet, codes: DataSet) -> DataSet:
    """Attach parameter names to samples (left join; unknown codes get null)."""
    return samples.join(codes, on="parameter_code")
