"""Tests for the dynamic scanner, driven by fake browser pages."""

import asyncio

import pytest

from fontsift.browser_scripts import GLYPH_SCRIPT
from fontsift.scanner import (
    FontRequestLogger,
    NavigationError,
    ScanOptions,
    ScanSession,
    ScriptEvaluationError,
    is_font_response,
    parse_glyph_result,
)


class FakeResponse:
    def __init__(self, url, content_type="", status=200):
        self.url = url
        self.status = status
        self.headers = {"content-type": content_type}


class FakePage:
    def __init__(self, site):
        self.site = site
        self.url = "about:blank"
        self.handlers = {}
        self.closed = False

    def on(self, event, handler):
        self.handlers.setdefault(event, []).append(handler)

    async def goto(self, url, wait_until=None, timeout=None):
        entry = self.site.get(url)
        if entry is None or entry.get("nav_error"):
            raise RuntimeError("net::ERR_NAME_NOT_RESOLVED")
        self.url = url
        for font_url in entry.get("fonts", []):
            for handler in self.handlers.get("response", []):
                handler(FakeResponse(font_url, "font/woff2"))

    async def wait_for_timeout(self, ms):
        return None

    async def evaluate(self, script):
        assert script == GLYPH_SCRIPT
        entry = self.site[self.url]
        if "script_error" in entry:
            raise RuntimeError(entry["script_error"])
        return entry["glyphs"]

    async def eval_on_selector_all(self, selector, script):
        entry = self.site[self.url]
        if "links_error" in entry:
            raise RuntimeError(entry["links_error"])
        return list(entry.get("links", []))

    async def close(self):
        self.closed = True
        if self.site.get(self.url, {}).get("close_error"):
            raise RuntimeError("Target page, context or browser has been closed")


class FakeContext:
    def __init__(self, site, failing_opens=0):
        self.site = site
        self.pages = []
        self.failing_opens = failing_opens

    async def new_page(self):
        if self.failing_opens:
            self.failing_opens -= 1
            raise RuntimeError("Browser has been closed")
        page = FakePage(self.site)
        self.pages.append(page)
        return page


def run_session(site, seeds, spider_limit=0, failing_opens=0):
    session = ScanSession(seeds, ScanOptions(spider_limit=spider_limit, settle_ms=10))
    context = FakeContext(site, failing_opens)
    asyncio.run(session.scan_with_context(context))
    return session, context


def glyphs(family, text):
    codes = sorted({ord(c) for c in text})
    return {family: codes, "*": codes}


class TestParseGlyphResult:
    def test_valid_shape(self):
        assert parse_glyph_result("u", {"A": [65, 66], "*": [65, 66.0]}) == {"A": {65, 66}, "*": {65, 66}}

    @pytest.mark.parametrize(
        "value",
        [None, [], "x", {"A": "AB"}, {"A": [65, "B"]}, {"A": [True]}, {"A": [-1]}, {"A": [1.5]}],
    )
    def test_unexpected_shapes_raise(self, value):
        with pytest.raises(ScriptEvaluationError):
            parse_glyph_result("https://a/", value)


class TestScanSession:
    def test_single_page(self):
        site = {"https://a/": {"glyphs": glyphs("Inter", "hi")}}
        session, context = run_session(site, ["https://a/"])
        assert session.glyph_sets["Inter"] == {ord("h"), ord("i")}
        assert session.glyph_sets["*"] == {ord("h"), ord("i")}
        assert all(page.closed for page in context.pages)

    def test_spider_follows_same_origin_links_depth_first(self):
        site = {
            "https://a/": {
                "glyphs": glyphs("Inter", "a"),
                "links": ["https://a/one", "https://a/two#x", "https://b/elsewhere"],
            },
            "https://a/one": {"glyphs": glyphs("Inter", "1")},
            "https://a/two": {"glyphs": glyphs("Mono", "2"), "links": ["https://a/"]},
        }
        session, _ = run_session(site, ["https://a/"], spider_limit=10)
        assert session.frontier.visited == ["https://a/", "https://a/two", "https://a/one"]
        assert session.glyph_sets["Inter"] == {ord("a"), ord("1")}
        assert session.glyph_sets["Mono"] == {ord("2")}

    def test_spider_limit_caps_visits(self):
        site = {
            "https://a/": {"glyphs": glyphs("F", "a"), "links": [f"https://a/{i}" for i in range(5)]},
        }
        for i in range(5):
            site[f"https://a/{i}"] = {"glyphs": glyphs("F", str(i))}
        session, _ = run_session(site, ["https://a/"], spider_limit=3)
        assert len(session.frontier.visited) == 3

    def test_no_spidering_by_default(self):
        site = {"https://a/": {"glyphs": glyphs("F", "a"), "links": ["https://a/more"]}}
        session, _ = run_session(site, ["https://a/"])
        assert session.frontier.visited == ["https://a/"]

    def test_navigation_failure_skipped_when_other_pages_remain(self):
        site = {
            "https://a/ok": {"glyphs": glyphs("F", "k")},
            "https://a/down": {"nav_error": True},
        }
        session, _ = run_session(site, ["https://a/down", "https://a/ok"])
        assert session.glyph_sets["F"] == {ord("k")}
        assert [(f.url, f.stage) for f in session.failures] == [("https://a/down", "goto")]

    def test_script_failure_skipped_when_other_pages_remain(self):
        site = {
            "https://a/": {"glyphs": glyphs("F", "a"), "links": ["https://a/bad"]},
            "https://a/bad": {"script_error": "ReferenceError"},
        }
        session, _ = run_session(site, ["https://a/"], spider_limit=5)
        assert session.failures[0].stage == "extract_glyphs"
        assert session.glyph_sets["F"] == {ord("a")}

    def test_sole_page_navigation_failure_is_fatal(self):
        with pytest.raises(NavigationError):
            run_session({}, ["https://a/"])

    def test_sole_page_script_failure_is_fatal(self):
        site = {"https://a/": {"script_error": "boom"}}
        with pytest.raises(ScriptEvaluationError):
            run_session(site, ["https://a/"])

    def test_page_that_cannot_be_opened_is_skipped(self):
        site = {"https://a/ok": {"glyphs": glyphs("F", "k")}}
        session, _ = run_session(site, ["https://a/gone", "https://a/ok"], failing_opens=1)
        assert [(f.url, f.stage) for f in session.failures] == [("https://a/gone", "new_page")]
        assert session.glyph_sets["F"] == {ord("k")}

    def test_sole_page_that_cannot_be_opened_is_fatal(self):
        with pytest.raises(NavigationError):
            run_session({"https://a/": {"glyphs": {}}}, ["https://a/"], failing_opens=1)

    def test_close_failure_does_not_hide_results(self):
        site = {"https://a/": {"glyphs": glyphs("F", "a"), "close_error": True}}
        session, _ = run_session(site, ["https://a/"])
        assert session.glyph_sets["F"] == {ord("a")}
        assert session.failures == []

    def test_sole_page_link_failure_keeps_glyphs(self):
        site = {"https://a/": {"glyphs": glyphs("F", "a"), "links_error": "detached"}}
        session, _ = run_session(site, ["https://a/"], spider_limit=5)
        assert session.glyph_sets["F"] == {ord("a")}
        assert [(f.url, f.stage) for f in session.failures] == [("https://a/", "discover_links")]

    def test_font_requests_recorded_once(self):
        site = {
            "https://a/": {"glyphs": {}, "fonts": ["https://a/f.woff2", "https://a/f.woff2"], "links": ["https://a/2"]},
            "https://a/2": {"glyphs": {}, "fonts": ["https://a/f.woff2?v=2"]},
        }
        session, _ = run_session(site, ["https://a/"], spider_limit=2)
        assert [r.url for r in session.result.font_requests] == ["https://a/f.woff2", "https://a/f.woff2?v=2"]


def test_font_response_detection():
    assert is_font_response("https://a/x.WOFF2?v=1", "")
    assert is_font_response("https://a/font", "application/font-woff")
    assert not is_font_response("https://a/style.css", "text/css")


def test_font_logger_ignores_other_responses():
    logger = FontRequestLogger()
    page = FakePage({})
    logger.attach(page)
    page.handlers["response"][0](FakeResponse("https://a/app.js", "text/javascript"))
    assert logger.entries == []
