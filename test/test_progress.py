# test/test_progress.py
from __future__ import annotations

import asyncio

import pytest

from backlink_tracker.config import DEFAULT_CONFIG
from backlink_tracker.email_queue import MemoryEmailQueue
from backlink_tracker.fetcher import Fetcher
from backlink_tracker.matcher import RegexLinkMatcher
from backlink_tracker.models import ProgressState
from backlink_tracker.progress import ProgressTracker, last_data_row
from backlink_tracker.runner import BatchRunner
from backlink_tracker.workbook import MemorySheet, MemoryWorkbook

COLUMNS = {"source": 1, "target": 2, "status": 3, "checked_at": 4, "remark": 5}
CONFIG = {**DEFAULT_CONFIG, "columns": COLUMNS}
HEADER = ["Website", "Target", "Status", "Checked", "Remark"]
TGT = "https://target.example/x"


def rows(n: int, prefix: str = "https://src.example/"):
    return [HEADER] + [[f"{prefix}{i}", TGT] for i in range(2, n + 2)]


def tick(web, workbook, state, batch_size, clock, queue=None):
    async def go():
        async with Fetcher(CONFIG, transport=web.transport) as fetcher:
            runner = BatchRunner(
                fetcher, RegexLinkMatcher(), queue or MemoryEmailQueue(), CONFIG, clock=clock
            )
            return await ProgressTracker(workbook, runner, batch_size).tick(state)

    return asyncio.run(go())


# ---------- last_data_row ----------

def test_last_data_row_ignores_trailing_empty_rows():
    data = [HEADER] + [[f"https://s.example/{i}", TGT] for i in range(2, 6)]
    data += [["", TGT] for _ in range(6, 11)]
    sheet = MemorySheet("d", data)
    assert last_data_row(sheet, 1) == 5


def test_last_data_row_of_header_only_sheet():
    assert last_data_row(MemorySheet("d", [HEADER]), 1) == 1
    assert last_data_row(MemorySheet("d", []), 1) == 1


def test_last_data_row_counts_whitespace_as_empty():
    sheet = MemorySheet("d", [HEADER, ["https://a.example", TGT], ["   ", TGT], [None, TGT]])
    assert last_data_row(sheet, 1) == 2


# ---------- state machine ----------

def test_start_resets_to_first_row():
    tracker = ProgressTracker(MemoryWorkbook(), runner=None, batch_size=10)  # type: ignore[arg-type]
    state = tracker.start(["a", "b"])
    assert state == ProgressState(["a", "b"], 0, 2)


def test_batch_size_must_be_positive():
    with pytest.raises(ValueError):
        ProgressTracker(MemoryWorkbook(), runner=None, batch_size=0)  # type: ignore[arg-type]


def test_tick_advances_row_within_dataset(web, fixed_clock):
    wb = MemoryWorkbook({"A": rows(5)})  # data rows 2..6
    report = tick(web, wb, ProgressState(["A"], 0, 2), 2, fixed_clock)
    assert report.action == "processed"
    assert (report.batch.start_row, report.batch.end_row) == (2, 3)
    assert report.state == ProgressState(["A"], 0, 4)


def test_tick_moves_to_next_dataset_when_exhausted(web, fixed_clock):
    wb = MemoryWorkbook({"A": rows(3), "B": rows(1)})
    report = tick(web, wb, ProgressState(["A", "B"], 0, 3), 10, fixed_clock)
    assert (report.batch.start_row, report.batch.end_row) == (3, 4)
    assert report.state == ProgressState(["A", "B"], 1, 2)


def test_missing_dataset_is_skipped_without_processing(web, fixed_clock):
    wb = MemoryWorkbook({"B": rows(1)})
    report = tick(web, wb, ProgressState(["ghost", "B"], 0, 7), 10, fixed_clock)
    assert report.action == "skipped-dataset"
    assert report.dataset == "ghost"
    assert report.batch is None
    assert report.state == ProgressState(["ghost", "B"], 1, 2)
    assert web.requests == []


def test_done_state_is_a_no_op(web, fixed_clock):
    wb = MemoryWorkbook({"A": rows(3)})
    state = ProgressState(["A"], 1, 2)
    report = tick(web, wb, state, 10, fixed_clock)
    assert report.action == "done"
    assert report.state is state
    assert web.requests == []


def test_empty_dataset_is_exhausted_immediately(web, fixed_clock):
    wb = MemoryWorkbook({"A": [HEADER], "B": rows(1)})
    report = tick(web, wb, ProgressState(["A", "B"], 0, 2), 10, fixed_clock)
    assert report.batch.checked == 0
    assert report.state == ProgressState(["A", "B"], 1, 2)


def test_split_batches_equal_one_big_batch(web, fixed_clock):
    """Ticking through [2, N] in small steps writes what one batch would."""
    n = 7
    for i in range(2, n + 2):
        body = f'<a href="{TGT}">x</a>' if i % 2 else "<p>none</p>"
        web.pages[f"https://src.example/{i}"] = (200, body)
    web.pages[TGT] = (200, "target")

    whole = MemoryWorkbook({"A": rows(n)})
    whole_queue = MemoryEmailQueue()
    tick(web, whole, ProgressState(["A"], 0, 2), 1000, fixed_clock, whole_queue)

    split = MemoryWorkbook({"A": rows(n)})
    split_queue = MemoryEmailQueue()
    state = ProgressState(["A"], 0, 2)
    ticks = 0
    while not state.done:
        state = tick(web, split, state, 3, fixed_clock, split_queue).state
        ticks += 1

    assert ticks == 3
    assert split.sheets["A"].rows == whole.sheets["A"].rows
    assert split.sheets["A"].colors == whole.sheets["A"].colors
    assert split_queue.entries == whole_queue.entries
