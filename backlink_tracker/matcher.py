# backlink_tracker/matcher.py
"""
Link-presence matching.

Given page HTML and a target URL, decide whether the page carries an anchor
pointing at the target, whether that anchor is rel="nofollow", and, failing
that, whether the page links anywhere else on the target's site.

Order of checks (first hit wins):
  1. <a href="TARGET"> with the target exactly as given.
  2. The same with a leading https:// swapped for http://.
  3. Any URL on the target's registrable domain (subdomains included).
  4. Nothing.
"""
from __future__ import annotations

import logging
import re
from typing import List, Protocol
from urllib.parse import urlparse

import tldextract
from bs4 import BeautifulSoup, Tag

from backlink_tracker.models import MatchResult

log = logging.getLogger(__name__)

# Bundled public suffix snapshot only; never hit the network for it.
_EXTRACT = tldextract.TLDExtract(suffix_list_urls=())

_NOFOLLOW_RE = re.compile(r"""rel\s*=\s*["'][^"']*nofollow[^"']*["']""", re.IGNORECASE)


class LinkPresenceMatcher(Protocol):
    def match(self, html: str, target_url: str) -> MatchResult: ...


def candidate_urls(target_url: str) -> List[str]:
    """The target as given, then with https:// downgraded to http://."""
    target = target_url.strip()
    out = [target]
    if target[:8].lower() == "https://":
        out.append("http://" + target[8:])
    return out


def _registrable_domain_or(host: str, fallback_to_host: bool = True) -> str:
    """
    Returns eTLD+1 for host. Falls back to host (minus a leading 'www.').
    """
    try:
        ext = _EXTRACT(host)
        if ext.domain and ext.suffix:
            return f"{ext.domain}.{ext.suffix}".lower()
    except Exception as e:
        log.debug("tldextract failed for %s: %s", host, e)
    if fallback_to_host:
        return host[4:] if host.startswith("www.") else host
    return host


def site_family_pattern(target_url: str) -> re.Pattern[str] | None:
    """
    Regex matching any http(s) URL on the target's registrable domain,
    any subdomain and any path. None when the target has no host.
    """
    try:
        host = (urlparse(target_url.strip()).hostname or "").lower()
    except ValueError:
        return None
    if not host:
        return None
    domain = _registrable_domain_or(host)
    return re.compile(
        r"https?://(?:[\w-]+\.)*"
        + re.escape(domain)
        + r"(?::\d+)?(?:[/?#][^\s\"'<>]*)?(?![\w.-])",
        re.IGNORECASE,
    )


def find_related_links(html: str, target_url: str, limit: int = 10) -> List[str]:
    """
    Every URL in the raw page text on the target's site family.
    Deduplicated in page order, at most `limit` entries.
    """
    pattern = site_family_pattern(target_url)
    if pattern is None:
        return []
    out: List[str] = []
    for m in pattern.finditer(html or ""):
        url = m.group(0)
        if url in out:
            continue
        out.append(url)
        if len(out) >= limit:
            break
    return out


def related_match(html: str, target_url: str, limit: int = 10) -> MatchResult:
    """Loose match only. Used on its own when the target page itself is unreachable."""
    links = find_related_links(html, target_url, limit)
    if links:
        return MatchResult(kind="found-loose", related_links=links)
    return MatchResult(kind="not-found")


def _anchor_result(tag_text: str, alternate: bool) -> MatchResult:
    if _NOFOLLOW_RE.search(tag_text):
        return MatchResult(
            kind="found-nofollow", alternate_scheme=alternate, matched_tag=tag_text
        )
    if alternate:
        return MatchResult(
            kind="found-alternate-scheme", alternate_scheme=True, matched_tag=tag_text
        )
    return MatchResult(kind="found-default", matched_tag=tag_text)


class RegexLinkMatcher:
    """
    Literal, case-insensitive search for the anchor's href in the raw HTML.

    The target is regex-escaped, so this is a substring match on the
    attribute value, not URL-semantic equality.
    """

    def __init__(self, max_related_links: int = 10) -> None:
        self.max_related_links = max_related_links

    def match(self, html: str, target_url: str) -> MatchResult:
        html = html or ""
        for i, candidate in enumerate(candidate_urls(target_url)):
            regex = re.compile(
                r"<a\s[^>]*href=[\"']" + re.escape(candidate) + r"[\"'][^>]*>",
                re.IGNORECASE,
            )
            m = regex.search(html)
            if m:
                return _anchor_result(m.group(0), alternate=i == 1)
        return related_match(html, target_url, self.max_related_links)


def _rel_list(tag: Tag) -> List[str]:
    rel = tag.get("rel", None)
    if not rel:
        return []
    if isinstance(rel, str):
        rel = rel.split()
    return [r.strip().lower() for r in rel if isinstance(r, str)]


class SoupLinkMatcher:
    """
    Same contract as RegexLinkMatcher, but walks parsed <a> elements.
    Tolerates unquoted attributes and attribute order the regex cannot.
    """

    def __init__(self, max_related_links: int = 10) -> None:
        self.max_related_links = max_related_links

    def match(self, html: str, target_url: str) -> MatchResult:
        html = html or ""
        soup = BeautifulSoup(html, "html.parser")
        anchors = soup.find_all("a", href=True)
        for i, candidate in enumerate(candidate_urls(target_url)):
            wanted = candidate.lower()
            for a in anchors:
                href = a.get("href")
                if not isinstance(href, str) or href.strip().lower() != wanted:
                    continue
                alternate = i == 1
                if "nofollow" in _rel_list(a):
                    return MatchResult(
                        kind="found-nofollow", alternate_scheme=alternate, matched_tag=str(a)
                    )
                if alternate:
                    return MatchResult(
                        kind="found-alternate-scheme", alternate_scheme=True, matched_tag=str(a)
                    )
                return MatchResult(kind="found-default", matched_tag=str(a))
        return related_match(html, target_url, self.max_related_links)


def make_matcher(name: str, max_related_links: int = 10) -> LinkPresenceMatcher:
    if name == "regex":
        return RegexLinkMatcher(max_related_links)
    if name == "soup":
        return SoupLinkMatcher(max_related_links)
    raise ValueError(f"Unknown matcher: {name!r} (expected 'regex' or 'soup')")
