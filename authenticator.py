"""
Login to the Barbieri+ members area.
"""
from errors import ElementTimeout, InvalidCredentials, LoginFailed
from page_selectors import LOGIN_PAGE

import logger
log = logger


def login(session, username, password, expect_cookie_banner=True, selectors=LOGIN_PAGE):
    """
    Log into the site through the browser session.

    Args:
        session (BrowserSession): The run's browser session
        username (str): Member username
        password (str): Member password
        expect_cookie_banner (bool): Wait for the consent banner and decline it.
            When set, the banner is mandatory.
        selectors (LoginPage): Login page selectors

    Raises:
        InvalidCredentials: If username or password is empty, before any navigation
        LoginFailed: If a step times out; the exception names the step
        DeadlineExceeded: If the run deadline elapses
    """
    if not username:
        raise InvalidCredentials("username cannot be empty")
    if not password:
        raise InvalidCredentials("password cannot be empty")

    log.info("Navigating to login page")
    session.navigate(selectors.url)

    if expect_cookie_banner:
        log.info("Declining cookies notice")
        _wait(session, selectors.cookie_reject_button, "cookie_banner")
        session.click(selectors.cookie_reject_button)

    log.info("Filling login credentials")
    _wait(session, selectors.username_field, "username")
    session.type_text(selectors.username_field, username)
    _wait(session, selectors.password_field, "password")
    session.type_text(selectors.password_field, password)
    session.submit(selectors.password_field)

    log.info("Waiting for login to complete")
    _wait(session, selectors.post_login_marker, "post_login")
    log.info("Login successful")


def _wait(session, selector, step):
    try:
        session.wait_visible(selector)
    except ElementTimeout as e:
        raise LoginFailed(step, str(e)) from e
