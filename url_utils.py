"""
URL Utilities Module for Barbieri+ downloads

Helpers for naming artifacts after item URLs, scanning player markup for URLs
and choosing which of the found URLs points at the video.
"""
import re
from urllib.parse import urlparse

# Regular expression patterns
# Strict matching: a scheme is required, and the URL runs until whitespace,
# a quote, markup delimiters or a JSON/JS string escape.
STRICT_URL_PATTERN = re.compile(r"""(?:https?|ftp)://[^\s"'<>`\\{}|^]+""", re.IGNORECASE)

# Characters that commonly trail a URL in prose or code but are not part of it
TRAILING_PUNCTUATION = ".,;:!?"

VIDEO_FILE_EXTENSIONS = (".mp4",)

# In preference order: Vimeo's segmented master.json, then HLS playlists
MANIFEST_PATTERNS = (
    re.compile(r"/master\.json\?"),
    re.compile(r"\.m3u8(?:\?|$)"),
)


def item_slug(item_url):
    """
    Return the final path segment of an item URL.

    Args:
        item_url (str): Detail page URL, e.g. https://site/membri/ricetta-1/

    Returns:
        str: The slug ("ricetta-1"), or None if the path is empty
    """
    if not item_url:
        return None
    path = urlparse(item_url).path.strip("/")
    if not path:
        return None
    return path.split("/")[-1] or None


def is_secure_url(url):
    """Whether url is an absolute https:// URL with a host."""
    if not url:
        return False
    parsed = urlparse(url)
    return parsed.scheme == "https" and bool(parsed.netloc)


def _trim(url):
    # Drop trailing punctuation and closing brackets that have no opening pair
    while url:
        last = url[-1]
        if last in TRAILING_PUNCTUATION:
            url = url[:-1]
        elif last == ")" and url.count("(") < url.count(")"):
            url = url[:-1]
        elif last == "]" and url.count("[") < url.count("]"):
            url = url[:-1]
        else:
            break
    return url


def find_urls(content):
    """
    Find every absolute URL in a block of text, in order of appearance.

    HTML-escaped ampersands are unescaped so query strings come out usable.

    Args:
        content (str): Markup or script text

    Returns:
        list: URL strings, duplicates preserved
    """
    if not content:
        return []
    urls = []
    for match in STRICT_URL_PATTERN.finditer(content):
        url = _trim(match.group(0).replace("&amp;", "&"))
        if url and urlparse(url).netloc:
            urls.append(url)
    return urls


def is_direct_video_url(url):
    path = urlparse(url).path.lower()
    return path.endswith(VIDEO_FILE_EXTENSIONS)


def select_video_url(urls):
    """
    Choose the video URL among those found in the player markup.

    A direct video file always wins over a manifest; among direct files the
    first one found is used. Among manifests, master.json beats HLS, then
    document order decides.

    Args:
        urls (list): Candidate URLs in document order

    Returns:
        tuple: (url, is_manifest), or (None, False) if nothing qualifies
    """
    for url in urls:
        if is_direct_video_url(url):
            return url, False
    for pattern in MANIFEST_PATTERNS:
        for url in urls:
            if pattern.search(url):
                return url, True
    return None, False
