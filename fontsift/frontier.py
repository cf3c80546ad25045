"""
Same-origin link discovery and the crawl frontier.
"""

from typing import Iterable, List, Optional, Set, Tuple
from urllib.parse import parse_qsl, urlencode, urljoin, urlsplit, urlunsplit

DEFAULT_PORTS = {"http": 80, "https": 443}


def _origin(url: str) -> Optional[Tuple[str, str, Optional[int]]]:
    try:
        parts = urlsplit(url)
        port = parts.port
    except ValueError:
        return None
    scheme = parts.scheme.lower()
    if scheme not in DEFAULT_PORTS or not parts.hostname:
        return None
    return scheme, parts.hostname.lower(), port or DEFAULT_PORTS[scheme]


def same_origin(url: str, other: str) -> bool:
    origin = _origin(url)
    return origin is not None and origin == _origin(other)


def normalize_url(url: str) -> str:
    """
    Canonical form used for dedup: no fragment, no trailing slash on non-root
    paths, query parameters sorted by name (stable for repeated names).
    """
    try:
        parts = urlsplit(url)
    except ValueError:
        return url
    path = parts.path or "/"
    if path != "/" and path.endswith("/"):
        path = path[:-1]
    query = parts.query
    if query:
        params = parse_qsl(query, keep_blank_values=True)
        query = urlencode(sorted(params, key=lambda kv: kv[0]))
    return urlunsplit((parts.scheme.lower(), parts.netloc.lower(), path, query, ""))


def filter_links(page_url: str, hrefs: Iterable[str], limit: int = 0) -> List[str]:
    """
    Reduce a page's anchors to normalized same-origin links, in document
    order, deduplicated. ``limit`` caps the result; 0 means no cap.
    """
    seen: Set[str] = set()
    links: List[str] = []
    for href in hrefs:
        if not isinstance(href, str) or not href.strip():
            continue
        absolute = urljoin(page_url, href.strip())
        if not same_origin(page_url, absolute):
            continue
        normalized = normalize_url(absolute)
        if normalized in seen:
            continue
        seen.add(normalized)
        links.append(normalized)
        if limit > 0 and len(links) >= limit:
            break
    return links


class CrawlFrontier:
    """
    Pending URLs plus what has already been visited, for one session.

    Pending URLs form a stack, so the crawl runs depth-first: the links found
    on the page just visited are explored before older discoveries. Seeds are
    always visited; discovered pages only while the visit budget lasts.
    ``spider_limit`` of 0 turns link discovery off.
    """

    def __init__(self, seeds: Iterable[str], spider_limit: int = 0):
        self.spider_limit = max(spider_limit, 0)
        self.seeds: List[str] = list(seeds)
        self.visited: List[str] = []
        self._visited_keys: Set[str] = set()
        # stack top is the end of the list; seeds are popped in given order
        self._pending: List[Tuple[str, bool]] = [(url, True) for url in reversed(self.seeds)]

    def __len__(self) -> int:
        return len(self._pending)

    @property
    def spidering(self) -> bool:
        return self.spider_limit > 0

    def is_visited(self, url: str) -> bool:
        return normalize_url(url) in self._visited_keys

    def remaining_budget(self) -> int:
        if not self.spidering:
            return 0
        return max(self.spider_limit - len(self.visited), 0)

    def next_url(self) -> Optional[str]:
        """Pop the next URL to visit and mark it visited, or None when done."""
        while self._pending:
            url, is_seed = self._pending.pop()
            if self.is_visited(url):
                continue
            if not is_seed and self.remaining_budget() == 0:
                continue
            self.visited.append(url)
            self._visited_keys.add(normalize_url(url))
            return url
        return None

    def push_links(self, links: Iterable[str]) -> int:
        if not self.spidering:
            return 0
        added = 0
        for link in links:
            if self.is_visited(link):
                continue
            self._pending.append((link, False))
            added += 1
        return added
