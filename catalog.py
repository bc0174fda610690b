"""
Enumeration of the items on the members listing page.
"""
from errors import ElementTimeout
from page_selectors import LISTING_PAGE

import logger
log = logger


def list_items(session, as_pdf=False, selectors=LISTING_PAGE):
    """
    Collect item detail URLs from the listing page and snapshot it.

    An empty listing is valid and yields no URLs.

    Args:
        session (BrowserSession): Logged-in browser session
        as_pdf (bool): Snapshot as PDF instead of PNG
        selectors (ListingPage): Listing page selectors

    Returns:
        tuple: (list of item URLs in document order, snapshot bytes)
    """
    log.info("Fetching item list")
    session.navigate(selectors.url)
    try:
        session.wait_visible(selectors.item_link, timeout=selectors.link_wait_timeout)
    except ElementTimeout:
        log.warning("No item links visible on the listing page")

    urls = [href for href in session.query_attributes(selectors.item_link, "href") if href]
    log.info(f"Found {len(urls)} items")
    for i, url in enumerate(urls, 1):
        log.debug(f"{i}. {url}")

    snapshot = session.capture(as_pdf=as_pdf)
    return urls, snapshot
