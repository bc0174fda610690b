"""
Pytest configuration and fixtures for bbplus tests.
"""
import pytest
from unittest.mock import MagicMock

import logger
from errors import ElementTimeout
from media import Cookie
from page_selectors import ITEM_PAGE, LISTING_PAGE, LOGIN_PAGE, PLAYER_PAGE


class FakeSession:
    """
    Stand-in for BrowserSession driven by per-URL page descriptions.

    Each page is a dict with optional keys:
        visible: selectors that wait_visible finds
        present: selectors only wait_present finds (attached but hidden)
        attributes: selector -> list of attribute dicts, one per element
        markup: value returned by page_markup()
    """

    def __init__(self, pages=None, cookies=(), start_url="about:blank"):
        self.pages = pages or {}
        self._cookies = list(cookies)
        self.current_url = start_url
        self.calls = []
        self.closed = False

    @property
    def page(self):
        return self.pages.get(self.current_url, {})

    def navigate(self, url, referrer=None):
        self.calls.append(("navigate", url, referrer))
        self.current_url = url

    def wait_visible(self, selector, timeout=None):
        self.calls.append(("wait", selector))
        if selector not in self.page.get("visible", ()):
            raise ElementTimeout(selector, timeout or 0.0)

    def wait_present(self, selector, timeout=None):
        self.calls.append(("wait_present", selector))
        page = self.page
        if selector not in page.get("present", ()) and selector not in page.get("visible", ()):
            raise ElementTimeout(selector, timeout or 0.0)

    def click(self, selector):
        self.calls.append(("click", selector))

    def type_text(self, selector, text):
        self.calls.append(("type", selector, text))

    def submit(self, selector):
        self.calls.append(("submit", selector))

    def query_attributes(self, selector, name):
        return [element.get(name) for element in self.page.get("attributes", {}).get(selector, [])]

    def attribute(self, selector, name):
        values = self.query_attributes(selector, name)
        return values[0] if values else None

    def page_markup(self):
        return self.page.get("markup", "")

    def cookies(self):
        return list(self._cookies)

    def capture(self, as_pdf=False):
        self.calls.append(("capture", self.current_url, as_pdf))
        return b"%PDF-snapshot" if as_pdf else b"\x89PNG-snapshot"

    def settle(self, seconds):
        self.calls.append(("settle", seconds))

    def close(self):
        self.closed = True

    def navigations(self):
        return [call[1] for call in self.calls if call[0] == "navigate"]


@pytest.fixture(autouse=True)
def quiet_logger():
    """Keep test runs from writing log files."""
    if logger._logger is None:
        logger.setup_logger(log_to_file=False)
    yield


@pytest.fixture
def sample_cookies():
    return [
        Cookie(name="wordpress_logged_in", value="abc", path="/", domain="www.brunobarbieri.blog",
               expires=1893456000, secure=True, http_only=True, same_site="Lax"),
        Cookie(name="vuid", value="xyz", path="/", domain=".vimeo.com",
               expires=None, secure=False, http_only=False, same_site=None),
    ]


@pytest.fixture
def login_page():
    return {
        "visible": {
            LOGIN_PAGE.cookie_reject_button,
            LOGIN_PAGE.username_field,
            LOGIN_PAGE.password_field,
            LOGIN_PAGE.post_login_marker,
        },
    }


@pytest.fixture
def player_markup():
    """Rendered Vimeo player page with progressive and segmented sources."""
    return """
    <html><head></head><body>
    <div class="player"><button class="play rounded-box" aria-label="Play"></button></div>
    <script>
      window.playerConfig = {"request":{"files":{
        "dash":{"cdns":{"akfire_interconnect_quic":{"url":"https://vod-adaptive.akamaized.net/exp=1/acl=%2F/sep/video/a1,b2/master.json?base64_init=1&query_string_ranges=1"}}},
        "progressive":[{"url":"https://vod-progressive.akamaized.net/exp=1/vimeo-prod/01/720p.mp4","quality":"720p"}]
      }}};
    </script>
    </body></html>
    """


@pytest.fixture
def manifest_only_markup():
    return """
    <html><body><script>
      var config = {"dash":{"url":"https://vod-adaptive.akamaized.net/exp=1/sep/video/a1/master.json?base64_init=1"}};
    </script></body></html>
    """


@pytest.fixture
def make_site(login_page):
    """Build a FakeSession for the whole site from item descriptions."""

    def _make(items, cookies=()):
        pages = {LOGIN_PAGE.url: login_page}
        listing = {
            "visible": {LISTING_PAGE.item_link} if items else set(),
            "attributes": {LISTING_PAGE.item_link: [{"href": url} for url, _ in items]},
        }
        pages[LISTING_PAGE.url] = listing
        for url, page in items:
            pages[url] = page
        return FakeSession(pages=pages, cookies=cookies)

    return _make


@pytest.fixture
def document_page():
    return {
        "visible": {ITEM_PAGE.heading, ITEM_PAGE.content_container, ITEM_PAGE.document_link},
        "attributes": {
            ITEM_PAGE.content_container: [
                {"class": "elementor elementor-location-single post-12 category-membership-dispensa-testo"},
            ],
            ITEM_PAGE.document_link: [
                {"href": "https://www.brunobarbieri.blog/wp-content/uploads/dispensa.pdf", "target": "_blank"},
                {"href": "https://www.instagram.com/brunobarbieri", "target": "_blank"},
            ],
        },
    }


@pytest.fixture
def video_pages(player_markup):
    """An item page embedding a player, and the player page itself."""
    frame_url = "https://player.vimeo.com/video/123456789?h=abc"
    item = {
        "visible": {ITEM_PAGE.heading, ITEM_PAGE.content_container, ITEM_PAGE.video_frame},
        "attributes": {
            ITEM_PAGE.content_container: [
                {"class": "elementor-location-single category-membership-videoricetta"},
            ],
            ITEM_PAGE.video_frame: [{"src": "about:blank", "suppressedsrc": frame_url}],
        },
    }
    player = {"visible": {PLAYER_PAGE.play_button}, "markup": player_markup}
    return item, frame_url, player


@pytest.fixture
def mock_fetcher():
    return MagicMock()
