"""
Dynamic glyph scanning: drive a real browser over a set of pages and collect
the codepoints rendered per font-family.

One browser context is driven sequentially, one page at a time. Session state
(frontier, aggregate, failures) lives on the ScanSession object.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Set

from playwright.async_api import BrowserContext, Page, Response, async_playwright

from .browser_scripts import GLYPH_SCRIPT, LINKS_SCRIPT
from .frontier import CrawlFrontier, filter_links
from .glyph_sets import GlyphSets

logger = logging.getLogger(__name__)

DEFAULT_NAVIGATION_TIMEOUT_MS = 60000
DEFAULT_WAIT_UNTIL = "load"
DEFAULT_USER_AGENT = "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"

FONT_EXTENSIONS = (".woff", ".woff2", ".ttf", ".otf")


class ScanError(Exception):
    def __init__(self, url: str, message: str):
        super().__init__(f"{url}: {message}")
        self.url = url
        self.message = message


class NavigationError(ScanError):
    """The page could not be loaded (including navigation timeouts)."""


class ScriptEvaluationError(ScanError):
    """An in-page script failed or returned something of the wrong shape."""


@dataclass
class PageFailure:
    url: str
    stage: str
    error: str


@dataclass
class FontRequest:
    url: str
    status: Optional[int]
    content_type: Optional[str]
    page_url: str


@dataclass
class ScanOptions:
    spider_limit: int = 0
    navigation_timeout_ms: int = DEFAULT_NAVIGATION_TIMEOUT_MS
    wait_until: str = DEFAULT_WAIT_UNTIL
    settle_ms: int = 0
    headless: bool = True
    user_agent: str = DEFAULT_USER_AGENT


@dataclass
class ScanResult:
    glyph_sets: GlyphSets
    visited: List[str] = field(default_factory=list)
    failures: List[PageFailure] = field(default_factory=list)
    font_requests: List[FontRequest] = field(default_factory=list)


class FontRequestLogger:
    """Records font files the scanned pages pulled in."""

    def __init__(self):
        self.entries: List[FontRequest] = []

    def attach(self, page: Page) -> None:
        def on_response(response: Response):
            url = response.url
            content_type = response.headers.get("content-type", "")
            if not is_font_response(url, content_type):
                return
            self.entries.append(FontRequest(
                url=url,
                status=response.status,
                content_type=content_type,
                page_url=page.url,
            ))

        page.on("response", on_response)

    def unique(self) -> List[FontRequest]:
        seen = set()
        out = []
        for entry in self.entries:
            if entry.url in seen:
                continue
            seen.add(entry.url)
            out.append(entry)
        return out


def is_font_response(url: str, content_type: Optional[str]) -> bool:
    path = url.split("?", 1)[0].lower()
    return path.endswith(FONT_EXTENSIONS) or "font" in (content_type or "").lower()


def parse_glyph_result(url: str, value: Any) -> Dict[str, Set[int]]:
    if not isinstance(value, dict):
        raise ScriptEvaluationError(url, f"glyph script returned {type(value).__name__}, expected an object")
    sets: Dict[str, Set[int]] = {}
    for family, codes in value.items():
        if not isinstance(codes, list):
            raise ScriptEvaluationError(url, f"glyph set for {family!r} is {type(codes).__name__}, expected an array")
        codepoints = set()
        for code in codes:
            if isinstance(code, bool) or not isinstance(code, (int, float)) or int(code) != code or code < 0:
                raise ScriptEvaluationError(url, f"invalid codepoint {code!r} for {family!r}")
            codepoints.add(int(code))
        sets[str(family)] = codepoints
    return sets


async def extract_glyphs(page: Page) -> Dict[str, Set[int]]:
    try:
        value = await page.evaluate(GLYPH_SCRIPT)
    except Exception as exc:
        raise ScriptEvaluationError(page.url, f"glyph extraction failed: {exc}") from exc
    return parse_glyph_result(page.url, value)


async def discover_links(page: Page, limit: int = 0) -> List[str]:
    try:
        hrefs = await page.eval_on_selector_all("a[href]", LINKS_SCRIPT)
    except Exception as exc:
        raise ScriptEvaluationError(page.url, f"link discovery failed: {exc}") from exc
    if not isinstance(hrefs, list):
        raise ScriptEvaluationError(page.url, f"link script returned {type(hrefs).__name__}, expected an array")
    return filter_links(page.url, hrefs, limit)


class ScanSession:
    def __init__(self, seed_urls: Iterable[str], options: Optional[ScanOptions] = None):
        self.options = options or ScanOptions()
        self.seed_urls = list(seed_urls)
        self.frontier = CrawlFrontier(self.seed_urls, self.options.spider_limit)
        self.glyph_sets = GlyphSets()
        self.failures: List[PageFailure] = []
        self.font_logger = FontRequestLogger()

    @property
    def result(self) -> ScanResult:
        return ScanResult(
            glyph_sets=self.glyph_sets,
            visited=list(self.frontier.visited),
            failures=list(self.failures),
            font_requests=self.font_logger.unique(),
        )

    async def run(self) -> ScanResult:
        async with async_playwright() as p:
            browser = await p.chromium.launch(headless=self.options.headless)
            try:
                context = await browser.new_context(user_agent=self.options.user_agent)
                try:
                    await self.scan_with_context(context)
                finally:
                    await context.close()
            finally:
                await browser.close()
        return self.result

    async def scan_with_context(self, context: BrowserContext) -> None:
        while True:
            url = self.frontier.next_url()
            if url is None:
                break
            await self.scan_page(context, url)
        logger.info(
            f"Scanned {len(self.frontier.visited)} page(s), {len(self.failures)} failure(s), "
            f"{len(self.glyph_sets)} font families"
        )

    async def scan_page(self, context: BrowserContext, url: str) -> None:
        logger.info(f"Processing URL: {url}")
        page: Optional[Page] = None
        stage = "new_page"
        try:
            try:
                page = await context.new_page()
            except Exception as exc:
                raise NavigationError(url, f"could not open a page: {exc}") from exc
            self.font_logger.attach(page)

            stage = "goto"
            try:
                await page.goto(url, wait_until=self.options.wait_until, timeout=self.options.navigation_timeout_ms)
            except Exception as exc:
                raise NavigationError(url, str(exc)) from exc
            if self.options.settle_ms:
                stage = "settle"
                await page.wait_for_timeout(self.options.settle_ms)

            stage = "extract_glyphs"
            glyphs = await extract_glyphs(page)
            self.glyph_sets.merge(glyphs)
            logger.info(f"Found {len(glyphs)} font families with glyphs on {url}")

            budget = self.frontier.remaining_budget()
            if budget > 0:
                stage = "discover_links"
                links = await discover_links(page, budget)
                added = self.frontier.push_links(links)
                logger.debug(f"Queued {added} of {len(links)} discovered link(s) from {url}")
        except ScanError as exc:
            self._record_failure(url, stage, exc)
        finally:
            if page is not None:
                try:
                    await page.close()
                except Exception as exc:
                    logger.debug(f"Closing page for {url} failed: {exc}")

    def _record_failure(self, url: str, stage: str, exc: ScanError) -> None:
        # glyphs are already merged once link discovery runs
        sole_seed = len(self.seed_urls) == 1 and url == self.seed_urls[0]
        if sole_seed and stage != "discover_links":
            raise exc
        logger.warning(f"Skipping {url} at {stage}: {exc.message}")
        self.failures.append(PageFailure(url=url, stage=stage, error=exc.message))


async def scan_site(seed_urls: Iterable[str], spider_limit: int = 0, **options) -> GlyphSets:
    session = ScanSession(seed_urls, ScanOptions(spider_limit=spider_limit, **options))
    result = await session.run()
    return result.glyph_sets
