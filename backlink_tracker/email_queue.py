# backlink_tracker/email_queue.py
# Append-only sink for records whose backlink went missing.

from __future__ import annotations

import logging
from datetime import datetime
from typing import List

from backlink_tracker.models import QueueEntry
from backlink_tracker.workbook import Sheet, Workbook

log = logging.getLogger(__name__)

QUEUE_HEADER = ["Website URL", "Target URL", "Time Checked", "Remark"]


class EmailQueue:
    """
    Rows appended to a sheet of the workbook. The sheet, with its header row,
    is created on first use.
    """

    def __init__(self, workbook: Workbook, sheet_name: str = "EmailQueue") -> None:
        self.workbook = workbook
        self.sheet_name = sheet_name
        self._sheet: Sheet | None = None

    def _queue_sheet(self) -> Sheet:
        if self._sheet is None:
            sheet = self.workbook.get_sheet(self.sheet_name)
            if sheet is None:
                log.info("Creating email queue sheet %r", self.sheet_name)
                sheet = self.workbook.create_sheet(self.sheet_name)
                sheet.append_row(QUEUE_HEADER)
            self._sheet = sheet
        return self._sheet

    def append(
        self, source_url: str, target_url: str, checked_at: datetime, remark: str
    ) -> QueueEntry:
        entry = QueueEntry(source_url, target_url, checked_at, remark)
        self._queue_sheet().append_row([source_url, target_url, checked_at, remark])
        log.debug("Queued %s -> %s", source_url, target_url)
        return entry


class MemoryEmailQueue:
    """Collects entries in a list. Handy in tests and dry runs."""

    def __init__(self) -> None:
        self.entries: List[QueueEntry] = []

    def append(
        self, source_url: str, target_url: str, checked_at: datetime, remark: str
    ) -> QueueEntry:
        entry = QueueEntry(source_url, target_url, checked_at, remark)
        self.entries.append(entry)
        return entry
