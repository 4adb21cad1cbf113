# backlink_tracker/runner.py
"""
Batch runner.

Walks a window of dataset rows strictly in order, one record at a time:
fetch the source page, fetch the target, look for the link, classify,
write status/time/remark/colors back to the row, and hand missing
backlinks to the email queue.
"""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Callable, Dict, List, Protocol

from backlink_tracker.classifier import classify, color_hint
from backlink_tracker.config import DEFAULT_COLUMNS
from backlink_tracker.fetcher import Fetcher
from backlink_tracker.matcher import LinkPresenceMatcher, related_match
from backlink_tracker.models import (
    BatchReport,
    FetchResponse,
    MatchResult,
    Outcome,
    QueueEntry,
    VerificationRecord,
)
from backlink_tracker.workbook import Sheet, cell_text

log = logging.getLogger(__name__)


class FailureSink(Protocol):
    def append(
        self, source_url: str, target_url: str, checked_at: datetime, remark: str
    ) -> QueueEntry: ...


async def verify_link(
    fetcher: Fetcher,
    matcher: LinkPresenceMatcher,
    source_url: str,
    target_url: str,
    max_related_links: int = 10,
) -> Outcome:
    """Fetch both pages and classify one source/target pair. No side effects."""
    source = await fetcher.fetch(source_url)
    if not isinstance(source, FetchResponse) or source.status_code != 200:
        return classify(source)

    target = await fetcher.fetch(target_url)
    match: MatchResult | None = None
    if isinstance(target, FetchResponse):
        if target.status_code == 200:
            match = matcher.match(source.text, target_url)
        elif target.status_code == 400:
            match = related_match(source.text, target_url, max_related_links)
    return classify(source, target, match)


def read_records(
    sheet: Sheet, start_row: int, end_row: int, columns: Dict[str, int]
) -> List[VerificationRecord]:
    records = []
    src_col, tgt_col = columns["source"], columns["target"]
    for offset, values in enumerate(sheet.row_values(start_row, end_row)):
        source = cell_text(values[src_col - 1]) if len(values) >= src_col else ""
        target = cell_text(values[tgt_col - 1]) if len(values) >= tgt_col else ""
        records.append(VerificationRecord(start_row + offset, source, target))
    return records


class BatchRunner:
    """
    Config keys consumed:
      - columns: dict with 1-based "source", "target", "status",
        "checked_at", "remark" columns
      - max_related_links: int
    """

    def __init__(
        self,
        fetcher: Fetcher,
        matcher: LinkPresenceMatcher,
        email_queue: FailureSink,
        config: Dict[str, Any] | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        config = config or {}
        self.fetcher = fetcher
        self.matcher = matcher
        self.email_queue = email_queue
        self.columns: Dict[str, int] = {**DEFAULT_COLUMNS, **config.get("columns", {})}
        self.max_related_links = int(config.get("max_related_links", 10))
        self.clock = clock

    async def _check(self, record: VerificationRecord) -> Outcome:
        try:
            return await verify_link(
                self.fetcher,
                self.matcher,
                record.source_url,
                record.target_url,
                self.max_related_links,
            )
        except Exception as e:
            log.error(
                "Unexpected error checking row %d (%s): %s",
                record.row,
                record.source_url,
                e,
                exc_info=True,
            )
            return Outcome("missing", f"Check failed: {e}", "internal-error")

    def _write(self, sheet: Sheet, row: int, outcome: Outcome, checked_at: datetime) -> None:
        cols = self.columns
        sheet.write_cell(row, cols["status"], outcome.status)
        sheet.write_cell(row, cols["checked_at"], checked_at)
        sheet.write_cell(row, cols["remark"], outcome.remark)
        colors = color_hint(outcome)
        sheet.set_cell_color(row, cols["status"], colors.status)
        sheet.set_cell_color(row, cols["remark"], colors.remark)

    async def process_batch(self, sheet: Sheet, start_row: int, end_row: int) -> BatchReport:
        """Check rows start_row..end_row inclusive. Row 1 (header) is never touched."""
        start_row = max(start_row, 2)
        report = BatchReport(dataset=sheet.name, start_row=start_row, end_row=end_row)
        if end_row < start_row:
            return report

        checked_at = self.clock()
        log.info("Processing %s rows %d to %d", sheet.name, start_row, end_row)

        for record in read_records(sheet, start_row, end_row, self.columns):
            if record.is_empty:
                log.debug("Skipping row %d because the source URL is empty.", record.row)
                report.skipped += 1
                continue

            outcome = await self._check(record)
            self._write(sheet, record.row, outcome, checked_at)
            report.count(outcome.status)
            log.info(
                "Row %d: %s -> %s [%s] %s",
                record.row,
                record.source_url,
                record.target_url,
                outcome.status,
                outcome.remark,
            )

            if outcome.status == "missing":
                self.email_queue.append(
                    record.source_url, record.target_url, checked_at, outcome.remark
                )
                report.queued += 1

        return report
