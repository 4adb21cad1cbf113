# Defines the data structures shared by the fetcher, matcher, classifier and runner.

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Literal, Union

# Type definitions for clarity.
Status = Literal["live", "missing", "unknown"]
MatchKind = Literal[
    "not-found", "found-default", "found-nofollow", "found-alternate-scheme", "found-loose"
]
# What the remark is about. Drives the display color only.
RemarkCategory = Literal[
    "none",
    "nofollow",
    "alternate-scheme",
    "loose-match",
    "related-fallback",
    "http-error",
    "access-denied",
    "transport-error",
    "tls-error",
    "internal-error",
]


@dataclass(frozen=True)
class FetchResponse:
    """An HTTP response was obtained. Any status code, 2xx or not."""

    url: str
    status_code: int
    text: str = ""
    final_url: str = ""

    @property
    def ok(self) -> bool:
        return self.status_code == 200


@dataclass(frozen=True)
class TransportFailure:
    """No HTTP response was obtained (DNS, TLS, connect, timeout...)."""

    url: str
    error: str


FetchResult = Union[FetchResponse, TransportFailure]


@dataclass(frozen=True)
class MatchResult:
    """Outcome of searching a page for a link to the target."""

    kind: MatchKind
    alternate_scheme: bool = False
    matched_tag: str = ""
    related_links: List[str] = field(default_factory=list)

    @property
    def found(self) -> bool:
        return self.kind != "not-found"


@dataclass(frozen=True)
class ColorHint:
    """Background colors for the status and remark cells. Display only."""

    status: str
    remark: str


@dataclass(frozen=True)
class Outcome:
    status: Status
    remark: str = ""
    category: RemarkCategory = "none"


@dataclass
class VerificationRecord:
    """One data row of a dataset."""

    row: int
    source_url: str
    target_url: str

    @property
    def is_empty(self) -> bool:
        return not self.source_url.strip()


@dataclass(frozen=True)
class QueueEntry:
    source_url: str
    target_url: str
    checked_at: datetime
    remark: str


@dataclass
class ProgressState:
    """
    Resumption point of a processing cycle.

    `current_row` is a 1-based sheet row; row 1 is the header.
    """

    dataset_names: List[str] = field(default_factory=list)
    current_dataset_index: int = 0
    current_row: int = 2

    @property
    def done(self) -> bool:
        return self.current_dataset_index >= len(self.dataset_names)

    @property
    def current_dataset(self) -> str | None:
        if self.done:
            return None
        return self.dataset_names[self.current_dataset_index]


@dataclass
class BatchReport:
    """Counts for one processed row window."""

    dataset: str
    start_row: int
    end_row: int
    checked: int = 0
    skipped: int = 0
    live: int = 0
    missing: int = 0
    unknown: int = 0
    queued: int = 0

    def count(self, status: Status) -> None:
        self.checked += 1
        setattr(self, status, getattr(self, status) + 1)


@dataclass
class TickReport:
    """What a single tick did."""

    state: ProgressState
    action: Literal["processed", "skipped-dataset", "done"]
    batch: BatchReport | None = None
    dataset: str | None = None
