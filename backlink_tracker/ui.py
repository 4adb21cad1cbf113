# backlink_tracker/ui.py
# Presentation-only utilities for CLI output.
from __future__ import annotations

from typing import IO, Iterable

from backlink_tracker.models import Outcome, ProgressState, TickReport


def _writeln(text: str = "", *, file: IO[str]) -> None:
    file.write(text + "\n")


def render_outcome(source_url: str, target_url: str, outcome: Outcome, *, file: IO[str]) -> None:
    _writeln(f"Source: {source_url}", file=file)
    _writeln(f"Target: {target_url}", file=file)
    _writeln(f"\nStatus: {outcome.status}", file=file)
    if outcome.remark:
        _writeln(f"Remark: {outcome.remark}", file=file)


def render_state(state: ProgressState, *, file: IO[str]) -> None:
    _writeln("--- Progress ---", file=file)
    if not state.dataset_names:
        _writeln("No datasets configured.", file=file)
        return
    for i, name in enumerate(state.dataset_names):
        if i < state.current_dataset_index:
            mark = "done"
        elif i == state.current_dataset_index:
            mark = f"next row {state.current_row}"
        else:
            mark = "pending"
        _writeln(f"- {name:<20} [{mark}]", file=file)
    if state.done:
        _writeln("Cycle complete.", file=file)


def render_triggers(triggers: Iterable, *, file: IO[str]) -> None:
    items = list(triggers)
    _writeln("\n--- Triggers ---", file=file)
    if not items:
        _writeln("None armed.", file=file)
        return
    for t in items:
        _writeln(f"- {t.handler} every {t.interval_minutes} min ({t.id})", file=file)


def render_tick(report: TickReport, *, file: IO[str]) -> None:
    if report.action == "done":
        _writeln("All datasets processed.", file=file)
        return
    if report.action == "skipped-dataset":
        _writeln(f"Dataset not found, skipped: {report.dataset}", file=file)
        return
    b = report.batch
    if b is None:
        return
    _writeln(
        f"{b.dataset}: rows {b.start_row}-{b.end_row}, checked {b.checked} "
        f"(live {b.live}, missing {b.missing}, unknown {b.unknown}), "
        f"skipped {b.skipped}, queued {b.queued}",
        file=file,
    )
