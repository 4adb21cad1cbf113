# Entrypoint for the backlink_tracker package.
# This file makes the public API available to programmers.

from __future__ import annotations

from backlink_tracker.__about__ import __version__
from backlink_tracker.classifier import classify, color_hint
from backlink_tracker.matcher import RegexLinkMatcher, SoupLinkMatcher
from backlink_tracker.models import (
    FetchResponse,
    MatchResult,
    Outcome,
    ProgressState,
    TransportFailure,
)
from backlink_tracker.scheduler import SchedulerAdapter, run_cycle

# The __all__ variable defines the public API of the package.
# When a user writes `from backlink_tracker import *`, only these names will be imported.
__all__ = [
    "classify",
    "color_hint",
    "FetchResponse",
    "MatchResult",
    "Outcome",
    "ProgressState",
    "RegexLinkMatcher",
    "SchedulerAdapter",
    "SoupLinkMatcher",
    "TransportFailure",
    "run_cycle",
    "__version__",
]
