# backlink_tracker/progress.py
"""
Progress tracker: which dataset, which row.

The tracker holds no state between calls. Each tick takes a ProgressState
and returns the next one; persisting it is the caller's job.

    Idle --start()--> Running(dataset_index, row) --tick()*--> Done

A dataset is exhausted once a batch reaches its last data row, or when it
cannot be found in the workbook. The cycle is done when the dataset index
runs past the end of the list.
"""
from __future__ import annotations

import dataclasses
import logging
from typing import List

from backlink_tracker.models import ProgressState, TickReport
from backlink_tracker.properties import FIRST_DATA_ROW, fresh_state
from backlink_tracker.runner import BatchRunner
from backlink_tracker.workbook import Sheet, Workbook, cell_text

log = logging.getLogger(__name__)


def last_data_row(sheet: Sheet, source_column: int) -> int:
    """
    Header row plus the number of non-empty source cells below it.

    Trailing blank rows never widen the range.
    """
    values = sheet.column_values(source_column)[1:]
    return sum(1 for v in values if cell_text(v)) + 1


def next_dataset(state: ProgressState) -> ProgressState:
    return dataclasses.replace(
        state,
        current_dataset_index=state.current_dataset_index + 1,
        current_row=FIRST_DATA_ROW,
    )


class ProgressTracker:
    def __init__(
        self,
        workbook: Workbook,
        runner: BatchRunner,
        batch_size: int = 250,
    ) -> None:
        if batch_size < 1:
            raise ValueError(f"batch_size must be positive, got {batch_size}")
        self.workbook = workbook
        self.runner = runner
        self.batch_size = batch_size

    def start(self, dataset_names: List[str]) -> ProgressState:
        state = fresh_state(dataset_names)
        log.info("Starting cycle over datasets: %s", state.dataset_names)
        return state

    async def tick(self, state: ProgressState) -> TickReport:
        """Process one batch and return the advanced state."""
        if state.done:
            log.info("All datasets processed.")
            return TickReport(state=state, action="done")

        name = state.current_dataset
        assert name is not None
        sheet = self.workbook.get_sheet(name)
        if sheet is None:
            log.warning("Dataset %r not found; skipping it.", name)
            return TickReport(state=next_dataset(state), action="skipped-dataset", dataset=name)

        last_row = last_data_row(sheet, self.runner.columns["source"])
        start_row = state.current_row
        end_row = min(start_row + self.batch_size - 1, last_row)

        batch = await self.runner.process_batch(sheet, start_row, end_row)

        if end_row >= last_row:
            log.info("Dataset %r exhausted at row %d.", name, last_row)
            new_state = next_dataset(state)
        else:
            new_state = dataclasses.replace(state, current_row=end_row + 1)

        return TickReport(state=new_state, action="processed", batch=batch, dataset=name)
