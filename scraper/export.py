"""
Row Export

CSV and JSON renderings of an extracted row set.
"""

import csv
import io
import json
import logging
from enum import Enum
from pathlib import Path
from typing import List, Optional, Sequence, Union

from config import config
from models import Row, ScrapedField

logger = logging.getLogger(__name__)


class ExportFormat(str, Enum):
    CSV = 'csv'
    JSON = 'json'


def _columns(rows: Sequence[Row], fields: Optional[Sequence[ScrapedField]]) -> List[str]:
    if fields is not None:
        return [field.id for field in fields]
    return [key for key in rows[0] if key != 'id']


def to_csv(rows: Sequence[Row], fields: Optional[Sequence[ScrapedField]] = None) -> str:
    """Every cell quoted, embedded quotes doubled, header of field ids"""
    if not rows:
        return ''

    columns = _columns(rows, fields)
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator='\n')
    writer.writerow(columns)
    for row in rows:
        writer.writerow(['' if row.get(column) is None else str(row.get(column))
                         for column in columns])
    return buffer.getvalue()


def to_json(rows: Sequence[Row]) -> str:
    return json.dumps(list(rows), indent=2, ensure_ascii=False)


def render(rows: Sequence[Row], fmt: Union[ExportFormat, str],
           fields: Optional[Sequence[ScrapedField]] = None) -> str:
    fmt = ExportFormat(fmt)
    if fmt == ExportFormat.CSV:
        return to_csv(rows, fields)
    return to_json(rows)


def export_rows(rows: Sequence[Row], fmt: Union[ExportFormat, str],
                path: Optional[Union[str, Path]] = None,
                fields: Optional[Sequence[ScrapedField]] = None) -> Path:
    """Write rows to ``path`` (default ``<EXPORT_BASENAME>.<format>``)"""
    fmt = ExportFormat(fmt)
    path = Path(path) if path else Path(f"{config.EXPORT_BASENAME}.{fmt.value}")
    path.write_text(render(rows, fmt, fields), encoding='utf-8')
    logger.info(f"Exported {len(rows)} rows to {path}")
    return path
