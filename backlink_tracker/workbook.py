# backlink_tracker/workbook.py
"""
Tabular storage for datasets and the email queue.

A workbook holds named sheets. Rows and columns are 1-based, row 1 is the
header. Two implementations share the same contract:

- MemoryWorkbook: plain lists, used by tests and ad hoc runs.
- XlsxWorkbook: an .xlsx file on disk via openpyxl; colors become solid fills.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Protocol, Sequence

import openpyxl
from openpyxl.styles import PatternFill
from openpyxl.worksheet.worksheet import Worksheet

log = logging.getLogger(__name__)


class Sheet(Protocol):
    name: str

    def column_values(self, column: int) -> List[Any]: ...

    def row_values(self, start_row: int, end_row: int) -> List[List[Any]]: ...

    def write_cell(self, row: int, column: int, value: Any) -> None: ...

    def set_cell_color(self, row: int, column: int, color: str) -> None: ...

    def append_row(self, values: Sequence[Any]) -> None: ...


class Workbook(Protocol):
    def get_sheet(self, name: str) -> Optional[Sheet]: ...

    def create_sheet(self, name: str) -> Sheet: ...

    def save(self) -> None: ...


def cell_text(value: Any) -> str:
    """Cell value as stripped text; empty cells become ''."""
    if value is None:
        return ""
    return str(value).strip()


# ---------- in-memory ----------


class MemorySheet:
    def __init__(self, name: str, rows: Sequence[Sequence[Any]] | None = None) -> None:
        self.name = name
        self.rows: List[List[Any]] = [list(r) for r in (rows or [])]
        self.colors: Dict[tuple[int, int], str] = {}

    def _ensure(self, row: int, column: int) -> None:
        while len(self.rows) < row:
            self.rows.append([])
        r = self.rows[row - 1]
        while len(r) < column:
            r.append(None)

    def column_values(self, column: int) -> List[Any]:
        return [r[column - 1] if len(r) >= column else None for r in self.rows]

    def row_values(self, start_row: int, end_row: int) -> List[List[Any]]:
        width = max((len(r) for r in self.rows), default=0)
        out = []
        for i in range(start_row, end_row + 1):
            r = self.rows[i - 1] if i <= len(self.rows) else []
            out.append(list(r) + [None] * (width - len(r)))
        return out

    def cell(self, row: int, column: int) -> Any:
        if row > len(self.rows) or column > len(self.rows[row - 1]):
            return None
        return self.rows[row - 1][column - 1]

    def write_cell(self, row: int, column: int, value: Any) -> None:
        self._ensure(row, column)
        self.rows[row - 1][column - 1] = value

    def set_cell_color(self, row: int, column: int, color: str) -> None:
        self.colors[(row, column)] = color

    def append_row(self, values: Sequence[Any]) -> None:
        self.rows.append(list(values))


class MemoryWorkbook:
    def __init__(self, sheets: Dict[str, Sequence[Sequence[Any]]] | None = None) -> None:
        self.sheets: Dict[str, MemorySheet] = {
            name: MemorySheet(name, rows) for name, rows in (sheets or {}).items()
        }

    def get_sheet(self, name: str) -> Optional[MemorySheet]:
        return self.sheets.get(name)

    def create_sheet(self, name: str) -> MemorySheet:
        sheet = MemorySheet(name)
        self.sheets[name] = sheet
        return sheet

    def save(self) -> None:
        pass


# ---------- openpyxl ----------


def _fill(color: str) -> PatternFill:
    argb = color.lstrip("#").upper()
    return PatternFill(start_color=argb, end_color=argb, fill_type="solid")


class XlsxSheet:
    def __init__(self, ws: Worksheet) -> None:
        self._ws = ws
        self.name = ws.title

    def column_values(self, column: int) -> List[Any]:
        return [
            row[0]
            for row in self._ws.iter_rows(
                min_col=column, max_col=column, values_only=True
            )
        ]

    def row_values(self, start_row: int, end_row: int) -> List[List[Any]]:
        width = self._ws.max_column
        return [
            list(row)
            for row in self._ws.iter_rows(
                min_row=start_row,
                max_row=end_row,
                min_col=1,
                max_col=width,
                values_only=True,
            )
        ]

    def write_cell(self, row: int, column: int, value: Any) -> None:
        self._ws.cell(row=row, column=column, value=value)

    def set_cell_color(self, row: int, column: int, color: str) -> None:
        self._ws.cell(row=row, column=column).fill = _fill(color)

    def append_row(self, values: Sequence[Any]) -> None:
        self._ws.append(list(values))


class XlsxWorkbook:
    """
    An .xlsx file. Loaded once; nothing is written until save().
    A missing file starts as an empty workbook.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        if self.path.exists():
            log.info("Loading workbook %s", self.path)
            self._wb = openpyxl.load_workbook(self.path)
        else:
            log.warning("Workbook %s does not exist; starting empty.", self.path)
            self._wb = openpyxl.Workbook()
            # Drop the default "Sheet" so lookups by name stay honest.
            self._wb.remove(self._wb.active)

    def get_sheet(self, name: str) -> Optional[XlsxSheet]:
        if name not in self._wb.sheetnames:
            return None
        return XlsxSheet(self._wb[name])

    def create_sheet(self, name: str) -> XlsxSheet:
        return XlsxSheet(self._wb.create_sheet(title=name))

    def save(self) -> None:
        if not self._wb.sheetnames:
            log.debug("Workbook %s has no sheets; nothing to save.", self.path)
            return
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._wb.save(self.path)
        log.debug("Saved workbook %s", self.path)
