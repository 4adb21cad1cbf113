# example.py
# A small example that builds an in-memory dataset, runs a whole
# verification cycle over it, and prints what landed in each row.

import asyncio
import logging

from backlink_tracker import SchedulerAdapter, run_cycle
from backlink_tracker.config import load_config
from backlink_tracker.properties import MemoryPropertyStore
from backlink_tracker.scheduler import MemoryTriggerRegistry
from backlink_tracker.workbook import MemoryWorkbook

# --- Configuration ---
# You can enable logging to see each row's outcome as it is checked.
logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")

# Source pages expected to link to the target. Replace with your own.
PAIRS = [
    ("https://www.python.org/", "https://docs.python.org/3/"),
    ("https://pypi.org/", "https://www.python.org/psf/"),
    ("", "https://example.com/"),  # empty source: skipped
]


async def main():
    config = load_config()
    # Sources in column A, targets in column B, results in C..E.
    config["columns"] = {"source": 1, "target": 2, "status": 3, "checked_at": 4, "remark": 5}
    config["datasets"] = ["Demo"]

    header = ["Website", "Target", "Status", "Checked", "Remark"]
    workbook = MemoryWorkbook({"Demo": [header] + [list(p) for p in PAIRS]})
    adapter = SchedulerAdapter(
        config, workbook, MemoryPropertyStore(), MemoryTriggerRegistry()
    )

    print("[*] Checking backlinks...\n")
    await run_cycle(adapter, interval_seconds=0)

    sheet = workbook.get_sheet("Demo")
    for row in sheet.rows[1:]:
        source, target, status, _, remark = (row + [None] * 5)[:5]
        if not source:
            continue
        print(f"{status or '-':<8} {source} -> {target} {remark or ''}")

    queue = workbook.get_sheet("EmailQueue")
    if queue is not None:
        print(f"\n{len(queue.rows) - 1} record(s) queued for outreach.")


if __name__ == "__main__":
    # The library is async, so we use asyncio.run() to start it.
    asyncio.run(main())
