"""
CSV parsing for site-audit exports.

The first line holds the headers; every following line becomes a row dict of
header -> trimmed cell value. Exports from crawlers frequently start with a
UTF-8 byte order mark, which is stripped so that an "Address" header is still
recognised as such.
"""

import csv
import io
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Union


class CsvParseError(Exception):
    """Raised when a file cannot be read as a CSV export."""
    pass


@dataclass
class CsvData:
    """Parsed CSV: header list plus data rows."""
    headers: List[str] = field(default_factory=list)
    rows: List[Dict[str, str]] = field(default_factory=list)

    def to_dict(self) -> Dict:
        return {
            'headers': self.headers,
            'data': self.rows,
            'total_rows': len(self.rows),
        }


def parse_csv_file(source: Union[str, Path, io.IOBase]) -> CsvData:
    """
    Parse a CSV file from a path or an open file object.

    Text and binary file objects are both accepted (Django uploads are
    binary). Raises CsvParseError when the file is missing or has no headers.
    """
    if isinstance(source, (str, Path)):
        path = Path(source)
        if not path.exists():
            raise CsvParseError(f"CSV file not found: {path}")
        try:
            with open(path, 'r', encoding='utf-8-sig', newline='') as f:
                return parse_csv_text(f.read())
        except UnicodeDecodeError as e:
            raise CsvParseError(f"Cannot read CSV file {path}: {e}")

    content = source.read()
    if isinstance(content, bytes):
        try:
            content = content.decode('utf-8-sig')
        except UnicodeDecodeError as e:
            raise CsvParseError(f"CSV file is not valid UTF-8: {e}")
    return parse_csv_text(content)


def parse_csv_text(text: str) -> CsvData:
    """Parse CSV content already held in memory."""
    reader = csv.reader(io.StringIO(text.lstrip('\ufeff')))

    headers = []
    for line in reader:
        if line:
            headers = [cell.strip() for cell in line]
            break

    if not any(headers):
        raise CsvParseError("CSV file has no valid headers")

    rows = []
    for line in reader:
        if not line or not any(cell.strip() for cell in line):
            continue
        cells = [cell.strip() for cell in line[:len(headers)]]
        cells += [''] * (len(headers) - len(cells))
        rows.append(dict(zip(headers, cells)))

    return CsvData(headers=headers, rows=rows)
