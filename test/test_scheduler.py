# test/test_scheduler.py
from __future__ import annotations

import asyncio

from backlink_tracker.config import DEFAULT_CONFIG, TICK_HANDLER
from backlink_tracker.models import ProgressState
from backlink_tracker.properties import MemoryPropertyStore, save_state
from backlink_tracker.scheduler import (
    MemoryTriggerRegistry,
    PropertyTriggerRegistry,
    SchedulerAdapter,
    run_cycle,
)
from backlink_tracker.workbook import MemoryWorkbook

COLUMNS = {"source": 1, "target": 2, "status": 3, "checked_at": 4, "remark": 5}
HEADER = ["Website", "Target", "Status", "Checked", "Remark"]
TGT = "https://target.example/x"


def config(**overrides):
    cfg = {**DEFAULT_CONFIG, "columns": COLUMNS, "datasets": ["A"], "batch_size": 2}
    cfg.update(overrides)
    return cfg


class CountingRegistry(MemoryTriggerRegistry):
    def __init__(self):
        super().__init__()
        self.deleted = []

    def delete(self, trigger_id):
        self.deleted.append(trigger_id)
        super().delete(trigger_id)


def make_adapter(web, fixed_clock, workbook=None, triggers=None, **cfg):
    workbook = workbook or MemoryWorkbook(
        {"A": [HEADER] + [[f"https://src.example/{i}", TGT] for i in range(2, 5)]}
    )
    return SchedulerAdapter(
        config(**cfg),
        workbook,
        MemoryPropertyStore(),
        triggers or MemoryTriggerRegistry(),
        transport=web.transport,
        clock=fixed_clock,
    )


def test_start_cycle_persists_state_and_arms_one_trigger(web, fixed_clock):
    adapter = make_adapter(web, fixed_clock)
    adapter.start_cycle()
    adapter.start_cycle(["A", "B"])

    assert adapter.load_state() == ProgressState(["A", "B"], 0, 2)
    triggers = adapter.triggers.list()
    assert len(triggers) == 1
    assert triggers[0].handler == TICK_HANDLER
    assert triggers[0].interval_minutes == 5
    assert adapter.is_armed()


def test_cancel_ticks_leaves_other_handlers(web, fixed_clock):
    adapter = make_adapter(web, fixed_clock)
    other = adapter.triggers.create("send_emails", 60)
    adapter.start_cycle()
    assert adapter.cancel_ticks() == 1
    assert adapter.triggers.list() == [other]
    assert not adapter.is_armed()


def test_ticks_run_to_completion_and_cancel_exactly_once(web, fixed_clock):
    registry = CountingRegistry()
    adapter = make_adapter(web, fixed_clock, triggers=registry)
    adapter.start_cycle()

    first = asyncio.run(adapter.tick())
    assert first.action == "processed"
    assert adapter.load_state() == ProgressState(["A"], 0, 4)
    assert adapter.is_armed()

    second = asyncio.run(adapter.tick())
    assert (second.batch.start_row, second.batch.end_row) == (4, 4)
    assert adapter.load_state().done
    assert not adapter.is_armed()
    assert len(registry.deleted) == 1

    for _ in range(2):
        report = asyncio.run(adapter.tick())
        assert report.action == "done"
    assert len(registry.deleted) == 1


def test_missing_rows_reach_the_email_queue_sheet(web, fixed_clock):
    web.pages["https://src.example/2"] = (200, "<p>no link</p>")
    web.pages[TGT] = (200, "target")
    adapter = make_adapter(web, fixed_clock)
    adapter.start_cycle()
    asyncio.run(adapter.tick())

    queue = adapter.workbook.get_sheet("EmailQueue")
    assert queue is not None
    assert queue.rows[0] == ["Website URL", "Target URL", "Time Checked", "Remark"]
    # row 2: no link; row 3: source 404
    assert [r[0] for r in queue.rows[1:]] == ["https://src.example/2", "https://src.example/3"]


def test_corrupt_state_restarts_cycle(web, fixed_clock):
    adapter = make_adapter(web, fixed_clock)
    adapter.properties.set_property("currentRow", "banana")
    adapter.properties.set_property("datasetNames", '["A"]')
    assert adapter.load_state() == ProgressState(["A"], 0, 2)

    adapter.properties.set_property("currentRow", "3")
    adapter.properties.set_property("datasetNames", "{not json")
    assert adapter.load_state() == ProgressState(["A"], 0, 2)


def test_resumes_from_persisted_state(web, fixed_clock):
    adapter = make_adapter(web, fixed_clock)
    adapter.start_cycle()
    save_state(adapter.properties, ProgressState(["A"], 0, 4))
    report = asyncio.run(adapter.tick())
    assert (report.batch.start_row, report.batch.end_row) == (4, 4)
    assert web.requests == ["https://src.example/4"]


def test_run_cycle_ticks_until_disarmed(web, fixed_clock):
    naps = []

    async def fake_sleep(seconds):
        naps.append(seconds)

    adapter = make_adapter(web, fixed_clock)
    reports = asyncio.run(run_cycle(adapter, 300, sleep=fake_sleep))

    assert [r.action for r in reports] == ["processed", "processed"]
    assert naps == [300]
    assert not adapter.is_armed()
    assert adapter.workbook.get_sheet("A").cell(4, 3) == "missing"


def test_run_cycle_skips_unknown_datasets(web, fixed_clock):
    adapter = make_adapter(web, fixed_clock)
    reports = asyncio.run(run_cycle(adapter, 0, dataset_names=["ghost", "A"]))
    assert [r.action for r in reports] == ["skipped-dataset", "processed", "processed"]


def test_empty_dataset_list_finishes_on_first_tick(web, fixed_clock):
    adapter = make_adapter(web, fixed_clock, datasets=[])
    reports = asyncio.run(run_cycle(adapter, 0))
    assert [r.action for r in reports] == ["done"]
    assert not adapter.is_armed()


# ---------- trigger registries ----------

def test_property_trigger_registry_round_trip():
    store = MemoryPropertyStore()
    registry = PropertyTriggerRegistry(store)
    a = registry.create(TICK_HANDLER, 5)
    b = registry.create("other", 10)
    assert PropertyTriggerRegistry(store).list() == [a, b]
    registry.delete(a.id)
    assert registry.list() == [b]


def test_property_trigger_registry_ignores_garbage():
    store = MemoryPropertyStore({"triggers": "][" })
    assert PropertyTriggerRegistry(store).list() == []
