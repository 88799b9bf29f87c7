# merch_hub/services/coercion.py
"""
Field coercion for raw CSV strings.

All helpers accept None/"" and return "no value" (None) instead of raising;
parse_boolean defaults to False. Numbers are read from the leading literal of
the cleaned string, so "12 units" -> 12 and "3.5kg" -> 3.5.
"""
from __future__ import annotations
import re
from datetime import datetime
from typing import List, Optional

import pandas as pd

_FLOAT_RE = re.compile(r"^\s*([+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)")
_INT_RE = re.compile(r"^\s*([+-]?\d+)")
_TRUE_VALUES = {"true", "yes", "1"}


def parse_numeric(value: Optional[str]) -> Optional[float]:
    """"$1,234.50" -> 1234.5"""
    if not value:
        return None
    cleaned = re.sub(r"[$,]", "", str(value))
    m = _FLOAT_RE.match(cleaned)
    return float(m.group(1)) if m else None


def parse_integer(value: Optional[str]) -> Optional[int]:
    if not value:
        return None
    cleaned = str(value).replace(",", "")
    m = _INT_RE.match(cleaned)
    return int(m.group(1)) if m else None


def parse_boolean(value: Optional[str]) -> bool:
    if not value:
        return False
    return str(value).strip().lower() in _TRUE_VALUES


def parse_date(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    ts = pd.to_datetime(str(value).strip(), errors="coerce")
    if ts is None or pd.isna(ts):
        return None
    return ts.to_pydatetime()


def parse_list(value: Optional[str], delimiter: str = ",") -> List[str]:
    if not value:
        return []
    return [item.strip() for item in str(value).split(delimiter) if item.strip()]
