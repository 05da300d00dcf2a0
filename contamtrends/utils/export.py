"""
Export of summary tables to CSV and Excel.

Writes the aggregated analysis tables (trend classifications, change-point
frequencies, importance rankings, county deltas) for downstream reporting.
"""
import pandas as pd
from pathlib import Path
from datetime import datetime
from typing import Dict
import logging

from contamtrends.utils.config import OUTPUTS_DIR
from contamtrends.utils.exceptions import ExportFormatError

logger = logging.getLogger(__name__)

SUPPORTED_FORMATS = ["xlsx", "csv"]


def _printable(frame: pd.DataFrame) -> pd.DataFrame:
    """Periods and tuples as text so both writers accept them."""
    df = frame.copy()
    for col in df.columns:
        if isinstance(df[col].dtype, pd.PeriodDtype):
            df[col] = df[col].astype(str)
        elif pd.api.types.is_object_dtype(df[col]) or pd.api.types.is_string_dtype(df[col]):
            df[col] = df[col].map(lambda v: str(v) if isinstance(v, (pd.Period, tuple)) else v)
    return df


class ReportExporter:
    """
    Export analysis summaries.

    Creates either one CSV per table or a single workbook with one sheet per
    table.
    """

    def __init__(self, output_dir: Path = None):
        """
        Initialize exporter.

        Args:
            output_dir: Directory for output files.
        """
        self.output_dir = Path(output_dir or OUTPUTS_DIR)
        self.output_dir.mkdir(parents=True, exist_ok=True)

    def _add_header_format(self, workbook):
        """Create header format for Excel."""
        return workbook.add_format({
            "bold": True,
            "font_color": "white",
            "bg_color": "#4472C4",
            "border": 1,
            "align": "center",
            "valign": "vcenter"
        })

    def export_tables(
        self,
        tables: Dict[str, pd.DataFrame],
        format: str = "xlsx",
        name: str = None
    ) -> Dict[str, Path]:
        """
        Export named tables.

        Args:
            tables: Sheet/file name → table.
            format: "xlsx" (one workbook) or "csv" (one file per table).
            name: Base file name; defaults to a timestamped one.

        Returns:
            Table name → written path.
        """
        format = format.lower()
        if format not in SUPPORTED_FORMATS:
            raise ExportFormatError(format, SUPPORTED_FORMATS)

        name = name or f"contamination_report_{datetime.now().strftime('%Y%m%d_%H%M%S')}"

        if format == "csv":
            paths = {}
            for table_name, frame in tables.items():
                path = self.output_dir / f"{name}_{table_name}.csv"
                _printable(frame).to_csv(path, index=False)
                paths[table_name] = path
            logger.info(f"Exported {len(paths)} CSV tables to: {self.output_dir}")
            return paths

        filepath = self.output_dir / f"{name}.xlsx"
        with pd.ExcelWriter(filepath, engine="xlsxwriter") as writer:
            header_fmt = self._add_header_format(writer.book)
            for table_name, frame in tables.items():
                sheet = table_name[:31]  # Excel sheet name limit
                df = _printable(frame)
                df.to_excel(writer, sheet_name=sheet, index=False)

                worksheet = writer.sheets[sheet]
                for col_num, value in enumerate(df.columns):
                    worksheet.write(0, col_num, value, header_fmt)
                worksheet.set_column(0, max(len(df.columns) - 1, 0), 16)

        logger.info(f"Exported report to: {filepath}")
        return {table_name: filepath for table_name in tables}
