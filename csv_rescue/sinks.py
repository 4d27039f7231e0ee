"""Output sinks: a sequence of normalized records + a destination path."""

from __future__ import annotations

import datetime as dt
import unicodedata
from pathlib import Path
from typing import Any, Dict, List, Protocol, Sequence

from openpyxl import Workbook
from pydantic import TypeAdapter

from .models import Record


class RecordSink(Protocol):
    suffix: str

    def write(self, records: Sequence[Record], path: Path) -> None: ...


def _columns(records: Sequence[Record]) -> List[str]:
    seen: Dict[str, None] = {}
    for record in records:
        for key in record:
            seen.setdefault(key, None)
    return list(seen)


class JsonSink:
    suffix = ".json"
    _adapter = TypeAdapter(List[Dict[str, Any]])

    def write(self, records: Sequence[Record], path: Path) -> None:
        payload = [
            {key: unicodedata.normalize("NFC", v) if isinstance(v, str) else v for key, v in record.items()}
            for record in records
        ]
        path.write_bytes(self._adapter.dump_json(payload, indent=2))


class XlsxSink:
    suffix = ".xlsx"
    sheet_title = "Sheet1"
    date_format = "yyyy-mm-dd"

    def write(self, records: Sequence[Record], path: Path) -> None:
        wb = Workbook()
        wb.properties.title = path.stem
        ws = wb.active
        ws.title = self.sheet_title

        columns = _columns(records)
        if columns:
            ws.append(columns)
        for record in records:
            ws.append([record.get(column) for column in columns])

        for row in ws.iter_rows():
            for cell in row:
                if isinstance(cell.value, (dt.date, dt.datetime)):
                    cell.number_format = self.date_format
                elif cell.data_type == "f":
                    # text such as "=1+2" is data, never a formula
                    cell.data_type = "s"

        wb.save(path)


SINKS = {
    "json": JsonSink,
    "xlsx": XlsxSink,
}


def get_sink(fmt: str) -> RecordSink:
    try:
        return SINKS[fmt]()
    except KeyError:
        raise ValueError(f"unknown output format {fmt!r}; expected one of {', '.join(SINKS)}") from None
