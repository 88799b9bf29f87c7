# -*- coding: utf-8 -*-
"""
Excel (.xlsx) → row dicts.

Produces the same shape as csv_parser.parse_csv (every value a string, headers
from the first row) so any importer can take rows from a workbook sheet.
"""
from __future__ import annotations

import io
import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import pandas as pd

from merch_hub.services.coercion import parse_numeric, parse_date

logger = logging.getLogger(__name__)

# Excel's day 0 (accounts for the 1900 leap-year bug)
EXCEL_EPOCH = datetime(1899, 12, 30)

ExcelSource = Union[bytes, str, Path]


@dataclass
class ExcelSheet:
    name: str
    data: List[Dict[str, str]] = field(default_factory=list)


def _cell_to_str(value: Any, trim: bool) -> str:
    if value is None or (not isinstance(value, str) and pd.isna(value)):
        return ""
    s = str(value)
    return s.strip() if trim else s


def _frame_to_rows(df: pd.DataFrame, skip_empty_rows: bool, trim_fields: bool) -> List[Dict[str, str]]:
    headers = [_cell_to_str(c, True) for c in df.columns]
    rows: List[Dict[str, str]] = []
    for record in df.itertuples(index=False, name=None):
        values = [_cell_to_str(v, trim_fields) for v in record]
        if skip_empty_rows and not any(values):
            continue
        rows.append(dict(zip(headers, values)))
    return rows


def parse_excel(
    content: ExcelSource,
    sheet_name: Optional[str] = None,
    skip_empty_rows: bool = True,
    trim_fields: bool = True,
) -> List[ExcelSheet]:
    """Parse every sheet (or only `sheet_name`) of a workbook."""
    source = io.BytesIO(content) if isinstance(content, bytes) else content
    frames = pd.read_excel(source, sheet_name=sheet_name if sheet_name else None, dtype=str)
    if isinstance(frames, pd.DataFrame):
        frames = {sheet_name: frames}

    sheets = [
        ExcelSheet(name=str(name), data=_frame_to_rows(df, skip_empty_rows, trim_fields))
        for name, df in frames.items()
    ]
    logger.info(f"Parsed workbook: {', '.join(f'{s.name} ({len(s.data)} rows)' for s in sheets)}")
    return sheets


def parse_excel_sheet(content: ExcelSource, sheet_name: Optional[str] = None, **options) -> List[Dict[str, str]]:
    """Rows of one sheet; the first sheet when no name is given."""
    if sheet_name is None:
        sheets = parse_excel(content, **options)
        if not sheets:
            raise ValueError("Workbook has no sheets")
        return sheets[0].data

    sheets = parse_excel(content, sheet_name=sheet_name, **options)
    sheet = next((s for s in sheets if s.name == sheet_name), None)
    if sheet is None:
        raise ValueError(f'Sheet "{sheet_name}" not found')
    return sheet.data


def clean_excel_number(value: Any) -> Optional[float]:
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return None if pd.isna(value) else float(value)
    if isinstance(value, str):
        return parse_numeric(value)
    return None


def clean_excel_date(value: Any) -> Optional[datetime]:
    if value is None or value == "":
        return None
    if isinstance(value, pd.Timestamp):
        return None if pd.isna(value) else value.to_pydatetime()
    if isinstance(value, datetime):
        return value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        # serial day number
        return EXCEL_EPOCH + timedelta(days=float(value))
    if isinstance(value, str):
        return parse_date(value)
    return None
