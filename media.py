"""
Media model and classification for Barbieri+ items.

An item page tells what it holds through the WordPress category classes on its
content container. This module maps those classes to a MediaKind and defines
the small records passed between the locator and the fetcher.
"""
import enum
from dataclasses import dataclass
from typing import List, Optional, Union

from errors import ContainerNotFound, ElementTimeout
from page_selectors import ITEM_PAGE

import logger
log = logger


class MediaKind(enum.Enum):
    UNRECOGNIZED = 0
    VIDEO = 1
    DOCUMENT = 2


# Checked top to bottom; the first row with a matching token wins
CLASSIFICATION_TABLE = (
    (MediaKind.VIDEO, frozenset([
        "category-membership-pillola-video",
        "category-membership-videoricetta",
    ])),
    (MediaKind.DOCUMENT, frozenset([
        "category-membership-dispensa-testo",
    ])),
)

# Output file extension per media kind
MEDIA_EXTENSIONS = {
    MediaKind.VIDEO: ".mp4",
    MediaKind.DOCUMENT: ".pdf",
}


_CDP_SAME_SITE = {"Strict": "Strict", "Lax": "Lax", "None": "None"}


@dataclass(frozen=True)
class DirectURL:
    """A URL whose response body is the media file itself."""

    url: str


@dataclass(frozen=True)
class ManifestURL:
    """A streaming manifest; separate audio and video tracks must be rebuilt."""

    url: str


@dataclass(frozen=True)
class Cookie:
    """A browser cookie snapshot."""

    name: str
    value: str
    path: str
    domain: str
    expires: Optional[int]
    secure: bool
    http_only: bool
    same_site: Optional[str]

    @classmethod
    def from_cdp(cls, data):
        """
        Build a Cookie from a DevTools Network.Cookie object.

        Session cookies have a negative or missing expiry and get expires=None.
        """
        expires = data.get("expires")
        if expires is None or expires < 0 or data.get("session"):
            expires = None
        else:
            expires = int(expires)
        return cls(
            name=data["name"],
            value=data.get("value", ""),
            path=data.get("path", "/"),
            domain=data.get("domain", ""),
            expires=expires,
            secure=bool(data.get("secure", False)),
            http_only=bool(data.get("httpOnly", False)),
            same_site=_CDP_SAME_SITE.get(data.get("sameSite")),
        )


@dataclass(frozen=True)
class LocatedMedia:
    """What the fetcher needs to download an item's media."""

    reference: Union[DirectURL, ManifestURL]
    cookies: List[Cookie]
    referrer: str


def classify_tokens(tokens):
    """
    Map a set of class tokens to a MediaKind.

    Args:
        tokens (iterable): Class names

    Returns:
        MediaKind: The kind of the first table row sharing a token, else UNRECOGNIZED
    """
    token_set = frozenset(tokens)
    for kind, known in CLASSIFICATION_TABLE:
        if token_set & known:
            return kind
    return MediaKind.UNRECOGNIZED


def classify(session, selectors=ITEM_PAGE):
    """
    Determine the media kind of the item page currently loaded in session.

    Raises:
        ContainerNotFound: If the content container does not appear
    """
    try:
        session.wait_visible(selectors.content_container)
    except ElementTimeout as e:
        raise ContainerNotFound(f"no content container on the page: {e}") from e
    classes = session.attribute(selectors.content_container, "class") or ""
    kind = classify_tokens(classes.split())
    log.debug(f"Container classes '{classes}' classified as {kind.name}")
    return kind
