"""
Media Locator Module for Barbieri+ items

Resolves the authoritative download URL of an item once its media kind is
known. Videos sit in an embedded Vimeo player: the player page is opened with
the item page as referrer, started, and its rendered markup scanned for the
progressive MP4 or the segmented master.json. Documents are a plain external
link on the item page.
"""
from errors import ElementTimeout, NoDocumentLink, NoValidVideoFrame, NoVideoURL, UnknownMediaType
from media import DirectURL, LocatedMedia, ManifestURL, MediaKind
from page_selectors import ITEM_PAGE, PLAYER_PAGE
from url_utils import find_urls, is_secure_url, select_video_url

import logger
log = logger

DEFAULT_SETTLE_INTERVAL = 1.0


def locate(session, kind, settle_interval=DEFAULT_SETTLE_INTERVAL):
    """
    Resolve the media of the item page loaded in session.

    Args:
        session (BrowserSession): Session positioned on the item page
        kind (MediaKind): Result of classification
        settle_interval (float): Seconds to let the player scripts run after play

    Returns:
        LocatedMedia: Reference, cookie snapshot and referrer for the fetcher
    """
    if kind is MediaKind.VIDEO:
        return locate_video(session, settle_interval)
    if kind is MediaKind.DOCUMENT:
        return locate_document(session)
    raise UnknownMediaType(f"cannot locate media of kind {kind.name}")


def choose_frame_url(main_url, alternate_url):
    """
    Pick the player frame URL.

    The site sometimes blanks the src attribute and keeps the real player URL
    in suppressedsrc.

    Raises:
        NoValidVideoFrame: If neither is an absolute https URL
    """
    if is_secure_url(main_url):
        return main_url
    if is_secure_url(alternate_url):
        log.debug(f"Using alternate frame URL, main is '{main_url}'")
        return alternate_url
    raise NoValidVideoFrame(
        f"invalid video URLs: main: '{main_url}', alternate: '{alternate_url}'"
    )


def extract_video_reference(markup):
    """
    Find the video reference in player markup.

    Returns:
        DirectURL or ManifestURL

    Raises:
        NoVideoURL: If the markup has neither a video file nor a manifest URL
    """
    urls = find_urls(markup)
    log.debug(f"Found {len(urls)} URLs in player markup")
    url, is_manifest = select_video_url(urls)
    if url is None:
        raise NoVideoURL("no video file or manifest URL in player markup")
    if is_manifest:
        log.info(f"Manifest URL: {url}")
        return ManifestURL(url)
    log.info(f"MP4 URL: {url}")
    return DirectURL(url)


def locate_video(session, settle_interval=DEFAULT_SETTLE_INTERVAL,
                 item_selectors=ITEM_PAGE, player_selectors=PLAYER_PAGE):
    """
    Resolve the video of the current item page.

    Leaves the session on the player page.

    Raises:
        NoValidVideoFrame: If the player frame is missing or has no usable source
        NoVideoURL: If the player does not start or exposes no video URL
    """
    frame = item_selectors.video_frame
    try:
        session.wait_visible(frame)
    except ElementTimeout as e:
        raise NoValidVideoFrame(f"player frame not found: {e}") from e

    frame_url = choose_frame_url(
        session.attribute(frame, "src"),
        session.attribute(frame, "suppressedsrc"),
    )

    # Private Vimeo videos only load when embedded from the owning page
    referrer = session.current_url
    log.info(f"Navigating to player URL '{frame_url}'")
    session.navigate(frame_url, referrer=referrer)

    try:
        session.wait_visible(player_selectors.play_button)
    except ElementTimeout as e:
        raise NoVideoURL(f"player did not show a play button: {e}") from e
    session.click(player_selectors.play_button)
    session.settle(settle_interval)

    reference = extract_video_reference(session.page_markup())
    cookies = session.cookies()
    return LocatedMedia(reference, cookies, referrer)


def locate_document(session, selectors=ITEM_PAGE):
    """
    Resolve the document link of the current item page.

    Raises:
        NoDocumentLink: If no external link is found
    """
    log.info("Retrieving PDF URL")
    try:
        session.wait_present(selectors.document_link)
    except ElementTimeout as e:
        raise NoDocumentLink(f"no document link on the page: {e}") from e

    links = [href for href in session.query_attributes(selectors.document_link, "href") if href]
    if not links:
        raise NoDocumentLink("document link has no target")
    log.info(f"PDF URL: {links[0]}")
    cookies = session.cookies()
    return LocatedMedia(DirectURL(links[0]), cookies, "")
