# backlink_tracker/scheduler.py
"""
Scheduler adapter.

The thing that actually fires ticks (cron, a hosted scheduler, or the
in-process `run_cycle` loop) is external. This module gives it three entry
points, start_cycle(), tick() and cancel_ticks(), and keeps the list of
armed triggers in a TriggerRegistry.

Ticks must never overlap: the progress state is read, advanced and written
back without a lock.
"""
from __future__ import annotations

import asyncio
import dataclasses
import json
import logging
import uuid
from datetime import datetime
from typing import Any, Awaitable, Callable, Dict, List, Optional, Protocol

import httpx

from backlink_tracker.config import TICK_HANDLER
from backlink_tracker.email_queue import EmailQueue
from backlink_tracker.fetcher import Fetcher
from backlink_tracker.matcher import make_matcher
from backlink_tracker.models import ProgressState, TickReport
from backlink_tracker.progress import ProgressTracker
from backlink_tracker.properties import PropertyStore, load_state, save_state
from backlink_tracker.runner import BatchRunner, FailureSink
from backlink_tracker.workbook import Workbook

log = logging.getLogger(__name__)

TRIGGERS_PROPERTY = "triggers"


@dataclasses.dataclass(frozen=True)
class Trigger:
    id: str
    handler: str
    interval_minutes: int


class TriggerRegistry(Protocol):
    def create(self, handler: str, interval_minutes: int) -> Trigger: ...

    def list(self) -> List[Trigger]: ...

    def delete(self, trigger_id: str) -> None: ...


def _new_trigger(handler: str, interval_minutes: int) -> Trigger:
    return Trigger(id=uuid.uuid4().hex, handler=handler, interval_minutes=interval_minutes)


class MemoryTriggerRegistry:
    def __init__(self) -> None:
        self.triggers: Dict[str, Trigger] = {}

    def create(self, handler: str, interval_minutes: int) -> Trigger:
        trigger = _new_trigger(handler, interval_minutes)
        self.triggers[trigger.id] = trigger
        return trigger

    def list(self) -> List[Trigger]:
        return list(self.triggers.values())

    def delete(self, trigger_id: str) -> None:
        self.triggers.pop(trigger_id, None)


class PropertyTriggerRegistry:
    """Triggers kept as a JSON list in the property store."""

    def __init__(self, store: PropertyStore) -> None:
        self.store = store

    def list(self) -> List[Trigger]:
        raw = self.store.get_property(TRIGGERS_PROPERTY)
        if not raw:
            return []
        try:
            return [Trigger(**item) for item in json.loads(raw)]
        except (TypeError, ValueError) as e:
            log.warning("Ignoring unreadable trigger list: %s", e)
            return []

    def _save(self, triggers: List[Trigger]) -> None:
        self.store.set_property(
            TRIGGERS_PROPERTY, json.dumps([dataclasses.asdict(t) for t in triggers])
        )

    def create(self, handler: str, interval_minutes: int) -> Trigger:
        trigger = _new_trigger(handler, interval_minutes)
        self._save(self.list() + [trigger])
        return trigger

    def delete(self, trigger_id: str) -> None:
        self._save([t for t in self.list() if t.id != trigger_id])


class SchedulerAdapter:
    """
    Config keys consumed:
      - datasets: list[str]
      - batch_size: int
      - tick_interval_minutes: int
      - email_queue_sheet: str
      - matcher: "regex" | "soup"
      - max_related_links: int
      - columns, timeout, user_agent (passed through)
    """

    def __init__(
        self,
        config: Dict[str, Any],
        workbook: Workbook,
        properties: PropertyStore,
        triggers: TriggerRegistry,
        email_queue: FailureSink | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self.config = config
        self.workbook = workbook
        self.properties = properties
        self.triggers = triggers
        self.email_queue = email_queue or EmailQueue(
            workbook, config.get("email_queue_sheet", "EmailQueue")
        )
        self.transport = transport
        self.clock = clock

    def _tick_triggers(self) -> List[Trigger]:
        return [t for t in self.triggers.list() if t.handler == TICK_HANDLER]

    def is_armed(self) -> bool:
        return bool(self._tick_triggers())

    def load_state(self) -> ProgressState:
        return load_state(self.properties, list(self.config.get("datasets", [])))

    def start_cycle(self, dataset_names: Optional[List[str]] = None) -> ProgressState:
        """(Re)initialize progress and arm exactly one recurring tick."""
        names = list(dataset_names or self.config.get("datasets", []))
        state = ProgressState(dataset_names=names)
        save_state(self.properties, state)

        self.cancel_ticks()
        interval = int(self.config.get("tick_interval_minutes", 5))
        trigger = self.triggers.create(TICK_HANDLER, interval)
        log.info(
            "Cycle started over %d dataset(s); tick trigger %s every %d minutes.",
            len(names),
            trigger.id,
            interval,
        )
        return state

    def cancel_ticks(self) -> int:
        """Remove this engine's tick triggers, leaving other handlers alone."""
        removed = 0
        for trigger in self._tick_triggers():
            self.triggers.delete(trigger.id)
            log.info("Deleted trigger: %s", trigger.id)
            removed += 1
        return removed

    def _build_tracker(self, fetcher: Fetcher) -> ProgressTracker:
        matcher = make_matcher(
            self.config.get("matcher", "regex"),
            int(self.config.get("max_related_links", 10)),
        )
        runner = BatchRunner(
            fetcher, matcher, self.email_queue, self.config, clock=self.clock
        )
        return ProgressTracker(
            self.workbook, runner, int(self.config.get("batch_size", 250))
        )

    async def tick(self) -> TickReport:
        state = self.load_state()
        async with Fetcher(self.config, transport=self.transport) as fetcher:
            report = await self._build_tracker(fetcher).tick(state)

        if report.action != "done":
            self.workbook.save()
        save_state(self.properties, report.state)

        if report.state.done:
            if self.cancel_ticks():
                log.info("Batch processing complete. Tick trigger removed.")
        return report


async def run_cycle(
    adapter: SchedulerAdapter,
    interval_seconds: float,
    dataset_names: Optional[List[str]] = None,
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
) -> List[TickReport]:
    """
    Start a cycle and tick in-process until it disarms itself.
    Ticks run back to back in this coroutine, so they cannot overlap.
    """
    adapter.start_cycle(dataset_names)
    reports = []
    while adapter.is_armed():
        reports.append(await adapter.tick())
        if adapter.is_armed() and interval_seconds > 0:
            await sleep(interval_seconds)
    return reports
