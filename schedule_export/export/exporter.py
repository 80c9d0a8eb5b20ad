from pathlib import Path
from typing import Sequence

import pandas as pd
from loguru import logger
from openpyxl.styles import Font
from openpyxl.utils import get_column_letter
from openpyxl.worksheet.worksheet import Worksheet

from schedule_export.models.records import OutputRecord

SHEET_NAME = "Spielplan"
CSV_DELIMITER = ";"

MIN_COLUMN_WIDTH = 10
MAX_COLUMN_WIDTH = 60


def records_to_frame(records: Sequence[OutputRecord]) -> pd.DataFrame:
    return pd.DataFrame(
        [record.to_row() for record in records], columns=OutputRecord.columns()
    )


def _style_sheet(ws: Worksheet) -> None:
    """Bold frozen header, auto filter and content-fitted column widths."""
    header_font = Font(bold=True)
    for cell in ws[1]:
        cell.font = header_font
    ws.freeze_panes = "A2"
    ws.auto_filter.ref = ws.dimensions

    for idx, column in enumerate(ws.iter_cols(), start=1):
        longest = max(len(str(cell.value)) for cell in column if cell.value is not None)
        width = max(MIN_COLUMN_WIDTH, min(MAX_COLUMN_WIDTH, longest + 2))
        ws.column_dimensions[get_column_letter(idx)].width = width


def write_spreadsheet(df: pd.DataFrame, path: Path) -> None:
    with pd.ExcelWriter(path, engine="openpyxl") as xw:
        df.to_excel(xw, sheet_name=SHEET_NAME, index=False)
        _style_sheet(xw.sheets[SHEET_NAME])


def write_csv(df: pd.DataFrame, path: Path) -> None:
    df.to_csv(path, sep=CSV_DELIMITER, index=False, encoding="utf-8-sig")


def export(records: Sequence[OutputRecord], path: Path) -> Path:
    """Writes the records as a spreadsheet, or as CSV next to it if that fails.

    Returns:
        The path that was actually written.
    """
    path = Path(path)
    df = records_to_frame(records)
    try:
        write_spreadsheet(df, path)
        logger.success(f"Wrote {len(df)} games to {path}")
        return path
    except Exception as e:
        logger.error(f"Spreadsheet export to {path} failed, falling back to CSV: {e}")

    csv_path = path.with_suffix(".csv")
    write_csv(df, csv_path)
    logger.success(f"Wrote {len(df)} games to {csv_path}")
    return csv_path
