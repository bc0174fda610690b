"""
Selector registry for the Barbieri+ pages.

Each page the downloader visits gets one immutable value object holding its URL
(where it has a fixed one) and the XPath expressions for the elements the
pipeline touches. All site coupling lives here.
"""
from dataclasses import dataclass

SITE_URL = "https://www.brunobarbieri.blog"


@dataclass(frozen=True)
class LoginPage:
    url: str
    cookie_reject_button: str
    username_field: str
    password_field: str
    post_login_marker: str


@dataclass(frozen=True)
class ListingPage:
    url: str
    item_link: str
    link_wait_timeout: float = 10.0


@dataclass(frozen=True)
class ItemPage:
    heading: str
    content_container: str
    video_frame: str
    document_link: str


@dataclass(frozen=True)
class PlayerPage:
    play_button: str


# The iubenda consent banner, then the Ultimate Member login form; the profile
# meta block only renders for a logged-in member.
LOGIN_PAGE = LoginPage(
    url=f"{SITE_URL}/login/",
    cookie_reject_button="//button[contains(@class, 'iubenda-cs-reject-btn')]",
    username_field="//input[contains(@data-key, 'username')]",
    password_field="//input[contains(@data-key, 'user_password')]",
    post_login_marker="//div[contains(@class, 'um-main-meta')]",
)

# Elementor posts widget; one thumbnail link per member item.
LISTING_PAGE = ListingPage(
    url=f"{SITE_URL}/barbieriplus-membri/",
    item_link="//a[contains(@class, 'elementor-post__thumbnail__link')]",
    link_wait_timeout=10.0,
)

# Elementor single-post template. The container's class list carries the
# WordPress category of the item.
ITEM_PAGE = ItemPage(
    heading="//*[contains(@class, 'elementor-heading-title')]",
    content_container="//*[contains(@class, 'elementor-location-single')]",
    video_frame="//iframe[contains(@class, 'elementor-video-iframe')]",
    document_link="//a[contains(@target, '_blank')]",
)

# Vimeo embedded player.
PLAYER_PAGE = PlayerPage(
    play_button="//button[contains(@class, 'play')]",
)
