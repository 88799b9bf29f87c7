# merch_hub/services/csv_parser.py
"""
CSV parsing for vendor exports.

Line-oriented: each physical line is one record. A quote toggles the in-quotes
state anywhere in a field. Malformed quoting never raises; the last field is
always flushed.
"""
from __future__ import annotations
from typing import Dict, List

BOM = "\ufeff"


def decode_bytes_auto(b: bytes) -> str:
    try:
        return b.decode("utf-8-sig")
    except UnicodeDecodeError:
        try:
            return b.decode("cp1250")
        except UnicodeDecodeError:
            return b.decode("utf-8", errors="ignore")


def parse_csv_line(line: str, delimiter: str = ",", trim: bool = True) -> List[str]:
    """Split one line into fields, honouring double quotes and "" escapes."""
    fields: List[str] = []
    current: List[str] = []
    in_quotes = False
    i = 0
    n = len(line)

    while i < n:
        ch = line[i]
        if ch == '"':
            if in_quotes and i + 1 < n and line[i + 1] == '"':
                current.append('"')
                i += 2
                continue
            in_quotes = not in_quotes
            i += 1
            continue
        if ch == delimiter and not in_quotes:
            value = "".join(current)
            fields.append(value.strip() if trim else value)
            current = []
            i += 1
            continue
        current.append(ch)
        i += 1

    value = "".join(current)
    fields.append(value.strip() if trim else value)
    return fields


def parse_csv(
    text: str,
    delimiter: str = ",",
    skip_empty_lines: bool = True,
    trim_fields: bool = True,
) -> List[Dict[str, str]]:
    """
    Parse CSV text into a list of {header: value} dicts.

    Line 1 is the header (BOM stripped). Columns missing from a short row come
    back as "". Rows that parse to a single empty field are always dropped.
    """
    if not text:
        return []

    lines = [ln[:-1] if ln.endswith("\r") else ln for ln in text.split("\n")]
    first = lines[0]
    if first.startswith(BOM):
        first = first[len(BOM):]
    headers = parse_csv_line(first, delimiter, trim_fields)

    rows: List[Dict[str, str]] = []
    for line in lines[1:]:
        if skip_empty_lines and not line.strip():
            continue
        values = parse_csv_line(line, delimiter, trim_fields)
        if len(values) == 1 and values[0] == "":
            continue
        row = {h: (values[i] if i < len(values) else "") for i, h in enumerate(headers)}
        rows.append(row)
    return rows
