# backlink_tracker/classifier.py
"""
Reduces fetch and match results for one record to an Outcome.

    source transport error, TLS-flavoured  -> unknown  (error text)
    source transport error, other          -> missing  (error text)
    source 401 / 403                       -> unknown  (unauthorized / forbidden)
    source other non-200                   -> missing  (short label for the code)
    target transport error                 -> as for the source
    target 400 + related link on source    -> live     (related link fallback)
    target other non-200                   -> missing
    target 200                             -> by match kind

Pure functions: the same inputs always give the same Outcome.
"""
from __future__ import annotations

from backlink_tracker.models import (
    ColorHint,
    FetchResult,
    MatchResult,
    Outcome,
    TransportFailure,
)

TLS_MARKERS = ("ssl", "certificate", "handshake", "secure connection")

STATUS_LABELS = {
    400: "bad request",
    401: "unauthorized",
    403: "forbidden",
    404: "not found",
    408: "request timeout",
    410: "gone",
    429: "too many requests",
    500: "server error",
    502: "bad gateway",
    503: "service unavailable",
    504: "gateway timeout",
}

# Status cell backgrounds.
LIVE_COLOR = "#1BB544"
MISSING_COLOR = "#C63A3A"
UNKNOWN_COLOR = "#F7B32B"

# Remark cell backgrounds.
BLANK_REMARK_COLOR = "#FFFFFF"
NOFOLLOW_COLOR = "#1C9AB6"
ALTERNATE_SCHEME_COLOR = "#1BB559"
LOOSE_MATCH_COLOR = "#1BB58C"
FETCH_ERROR_COLOR = "#C75F3A"
OTHER_MISSING_COLOR = "#C7723A"
UNKNOWN_REMARK_COLOR = "#E6E6FA"


def is_tls_error(message: str) -> bool:
    lowered = message.lower()
    return any(marker in lowered for marker in TLS_MARKERS)


def describe_status_code(code: int) -> str:
    """'404 (not found)'; unmapped codes pass through as the bare number."""
    label = STATUS_LABELS.get(code)
    if label is None and 500 <= code < 600:
        label = "server error"
    return f"{code} ({label})" if label else str(code)


def classify_transport_failure(failure: TransportFailure) -> Outcome:
    if is_tls_error(failure.error):
        return Outcome("unknown", failure.error, "tls-error")
    return Outcome("missing", failure.error, "transport-error")


def classify_source_response(code: int) -> Outcome:
    """Outcome for a source page that answered with a non-200 code."""
    remark = f"Source fetch error: {describe_status_code(code)}"
    if code in (401, 403):
        return Outcome("unknown", remark, "access-denied")
    return Outcome("missing", remark, "http-error")


def classify_match(match: MatchResult) -> Outcome:
    """Outcome once both pages answered 200."""
    if match.kind == "found-default":
        return Outcome("live", "", "none")
    if match.kind == "found-nofollow":
        remark = "nofollow link (alternate scheme)" if match.alternate_scheme else "nofollow link"
        return Outcome("live", remark, "nofollow")
    if match.kind == "found-alternate-scheme":
        return Outcome("live", "alternate scheme match", "alternate-scheme")
    if match.kind == "found-loose":
        return Outcome(
            "live",
            "different link(s) found: " + ", ".join(match.related_links),
            "loose-match",
        )
    return Outcome("missing", "", "none")


def classify(
    source: FetchResult,
    target: FetchResult | None = None,
    match: MatchResult | None = None,
) -> Outcome:
    """
    Classify one record.

    `target` is only consulted when the source answered 200. `match` must be
    the full matcher result when the target answered 200, and the related-link
    scan of the source page when the target answered 400.
    """
    if isinstance(source, TransportFailure):
        return classify_transport_failure(source)
    if source.status_code != 200:
        return classify_source_response(source.status_code)

    if target is None:
        raise ValueError("target fetch result required when the source answered 200")
    if isinstance(target, TransportFailure):
        return classify_transport_failure(target)

    if target.status_code == 400:
        if match is not None and match.kind == "found-loose":
            return Outcome(
                "live",
                "target unreachable (400) but related link(s) found: "
                + ", ".join(match.related_links),
                "related-fallback",
            )
        return Outcome("missing", "Target fetch error: 400 (bad request)", "http-error")

    if target.status_code != 200:
        return Outcome(
            "missing",
            f"Target fetch error: {describe_status_code(target.status_code)}",
            "http-error",
        )

    if match is None:
        raise ValueError("match result required when both pages answered 200")
    return classify_match(match)


def color_hint(outcome: Outcome) -> ColorHint:
    """Cell colors for an outcome. Presentation only."""
    if outcome.status == "unknown":
        return ColorHint(UNKNOWN_COLOR, UNKNOWN_REMARK_COLOR)

    if outcome.status == "live":
        remark_colors = {
            "nofollow": NOFOLLOW_COLOR,
            "alternate-scheme": ALTERNATE_SCHEME_COLOR,
            "loose-match": LOOSE_MATCH_COLOR,
            "related-fallback": LOOSE_MATCH_COLOR,
        }
        if not outcome.remark:
            return ColorHint(LIVE_COLOR, BLANK_REMARK_COLOR)
        return ColorHint(LIVE_COLOR, remark_colors.get(outcome.category, BLANK_REMARK_COLOR))

    if not outcome.remark:
        return ColorHint(MISSING_COLOR, BLANK_REMARK_COLOR)
    if outcome.category == "http-error":
        return ColorHint(MISSING_COLOR, FETCH_ERROR_COLOR)
    return ColorHint(MISSING_COLOR, OTHER_MISSING_COLOR)
