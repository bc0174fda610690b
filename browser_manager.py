"""
Browser Management Module for bbplus

This module owns the single Chrome session a run uses. It handles driver
start-up, applies the run deadline to every browser operation, and exposes the
small set of primitives the pipeline needs: navigation, element waits,
attribute and markup reads, cookies and full-page captures.
"""
import base64
import threading
import time
from contextlib import contextmanager

from selenium import webdriver
from selenium.webdriver.common.by import By
from selenium.webdriver.support.ui import WebDriverWait
from selenium.webdriver.support import expected_conditions as EC
from selenium.common.exceptions import TimeoutException, WebDriverException

from errors import BrowserError, DeadlineExceeded, ElementTimeout, LaunchError
from media import Cookie

import logger
log = logger

WINDOW_SIZE = (1366, 768)


class BrowserSession:
    """
    An authenticated-capable Chrome session bound to a run deadline.

    All selectors are XPath expressions.
    """

    def __init__(self, driver, deadline, wait_timeout=30.0):
        """
        Args:
            driver: Selenium WebDriver (Chrome)
            deadline (Deadline): Run deadline shared with the rest of the pipeline
            wait_timeout (float): Default element wait budget in seconds
        """
        self.driver = driver
        self.deadline = deadline
        self.wait_timeout = wait_timeout
        self._watchdog = None
        self._closed = False

    @classmethod
    def open(cls, config, deadline):
        """
        Start Chrome with the configured options.

        Args:
            config (Config): Run configuration
            deadline (Deadline): Run deadline

        Returns:
            BrowserSession: The started session

        Raises:
            LaunchError: If Chrome cannot be started
            DeadlineExceeded: If the deadline elapsed before start-up
        """
        deadline.check("launch")
        if config.debug:
            log.attach("selenium")
        options = configure_chrome_options(config)
        driver = initialize_chrome_driver(options, verbose=config.debug)
        driver.set_window_size(*WINDOW_SIZE)
        session = cls(driver, deadline, wait_timeout=config.wait_timeout)
        session.start_watchdog()
        return session

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False

    def start_watchdog(self):
        """Quit the driver when the deadline elapses, interrupting any pending command."""
        self._watchdog = threading.Timer(self.deadline.remaining(), self._on_deadline)
        self._watchdog.daemon = True
        self._watchdog.start()

    def _on_deadline(self):
        if self._closed:
            return
        log.warning("Global deadline reached, stopping the browser")
        self.close()

    @contextmanager
    def _operation(self, step):
        self.deadline.check(step)
        try:
            yield
        except DeadlineExceeded:
            raise
        except WebDriverException as e:
            if self.deadline.expired():
                raise DeadlineExceeded(step) from e
            raise BrowserError(step, e.msg or type(e).__name__) from e
        except Exception as e:
            if self.deadline.expired():
                raise DeadlineExceeded(step) from e
            raise

    def _apply_timeouts(self):
        remaining = self.deadline.remaining()
        self.driver.set_page_load_timeout(remaining)
        self.driver.set_script_timeout(remaining)

    def navigate(self, url, referrer=None):
        """
        Load url in the current tab and wait for the document to be ready.

        Args:
            url (str): Target URL
            referrer (str, optional): Referrer to send; some embedded players
                refuse private content without the page that embeds them
        """
        with self._operation("navigate"):
            self._apply_timeouts()
            if not referrer:
                log.debug(f"Navigating to {url}")
                self.driver.get(url)
                return
            log.debug(f"Navigating to {url} with referrer {referrer}")
            self.driver.execute_cdp_cmd("Page.navigate", {"url": url, "referrer": referrer})
            WebDriverWait(self.driver, self.deadline.cap(self.wait_timeout)).until(
                lambda d: d.execute_script("return document.readyState") == "complete"
            )

    def wait_visible(self, selector, timeout=None):
        """
        Wait for an element to become visible.

        Args:
            selector (str): XPath of the element
            timeout (float, optional): Wait budget, the session default if None

        Returns:
            WebElement: The visible element

        Raises:
            ElementTimeout: If the element is not visible within the budget
            DeadlineExceeded: If the run deadline elapsed while waiting
        """
        return self._wait_for(EC.visibility_of_element_located, selector, timeout)

    def wait_present(self, selector, timeout=None):
        """
        Wait for an element to be attached to the document, shown or not.

        Same arguments and errors as wait_visible.
        """
        return self._wait_for(EC.presence_of_element_located, selector, timeout)

    def _wait_for(self, condition, selector, timeout):
        budget = self.wait_timeout if timeout is None else timeout
        with self._operation("wait"):
            try:
                return WebDriverWait(self.driver, self.deadline.cap(budget)).until(
                    condition((By.XPATH, selector))
                )
            except TimeoutException:
                if self.deadline.expired():
                    raise DeadlineExceeded("wait")
                raise ElementTimeout(selector, budget)

    def click(self, selector):
        with self._operation("click"):
            self.driver.find_element(By.XPATH, selector).click()

    def type_text(self, selector, text):
        with self._operation("type"):
            element = self.driver.find_element(By.XPATH, selector)
            element.clear()
            element.send_keys(text)

    def submit(self, selector):
        """Submit the form that contains the element."""
        with self._operation("submit"):
            self.driver.find_element(By.XPATH, selector).submit()

    def query_attributes(self, selector, name):
        """
        Read an attribute from every element matching selector, in document order.

        Returns:
            list: Attribute values; None for elements that lack the attribute
        """
        with self._operation("query"):
            elements = self.driver.find_elements(By.XPATH, selector)
            return [element.get_attribute(name) for element in elements]

    def attribute(self, selector, name):
        """Read an attribute from the first element matching selector."""
        with self._operation("attribute"):
            return self.driver.find_element(By.XPATH, selector).get_attribute(name)

    @property
    def current_url(self):
        with self._operation("location"):
            return self.driver.current_url

    def page_markup(self):
        """Return the full rendered markup of the current document."""
        with self._operation("markup"):
            return self.driver.execute_script("return document.documentElement.outerHTML")

    def cookies(self):
        """
        Snapshot every cookie the browser holds, for all domains.

        Returns:
            list: Cookie records
        """
        with self._operation("cookies"):
            result = self.driver.execute_cdp_cmd("Network.getAllCookies", {})
        return [Cookie.from_cdp(c) for c in result.get("cookies", [])]

    def capture_image(self):
        """Capture the whole page, beyond the viewport, as PNG bytes."""
        with self._operation("screenshot"):
            result = self.driver.execute_cdp_cmd("Page.captureScreenshot", {
                "format": "png",
                "captureBeyondViewport": True,
            })
        return base64.b64decode(result["data"])

    def capture_pdf(self):
        """Print the current page to PDF bytes."""
        with self._operation("print_pdf"):
            result = self.driver.execute_cdp_cmd("Page.printToPDF", {"printBackground": False})
        return base64.b64decode(result["data"])

    def capture(self, as_pdf=False):
        return self.capture_pdf() if as_pdf else self.capture_image()

    def settle(self, seconds):
        """
        Give asynchronous page scripts time to run.

        The embedded player exposes no ready signal, so this is a fixed wait,
        cut short by the deadline.
        """
        self.deadline.check("settle")
        time.sleep(self.deadline.cap(seconds))
        self.deadline.check("settle")

    def close(self):
        """Close the browser. Safe to call more than once."""
        if self._watchdog is not None:
            self._watchdog.cancel()
        if self._closed:
            return
        self._closed = True
        if self.driver:
            try:
                self.driver.quit()
                log.debug("Browser closed successfully")
            except Exception as e:
                log.warning(f"Error closing browser: {e}")


def configure_chrome_options(config):
    """
    Configure Chrome options from the run configuration.

    Args:
        config (Config): Run configuration

    Returns:
        webdriver.ChromeOptions: Configured options
    """
    chrome_options = webdriver.ChromeOptions()

    chrome_options.add_argument("--disable-notifications")
    chrome_options.add_argument("--disable-popup-blocking")
    chrome_options.add_argument("--disable-infobars")
    chrome_options.add_argument("--disable-extensions")
    chrome_options.add_argument("--no-sandbox")
    chrome_options.add_argument("--disable-dev-shm-usage")

    if config.headless:
        chrome_options.add_argument("--headless=new")
    else:
        chrome_options.add_argument("--no-first-run")
        chrome_options.add_argument("--no-default-browser-check")

    if config.chrome_path:
        chrome_options.binary_location = config.chrome_path

    if config.proxy:
        chrome_options.add_argument(f"--proxy-server={config.proxy}")

    if config.disable_gpu:
        chrome_options.add_argument("--disable-gpu")

    return chrome_options


def initialize_chrome_driver(options, verbose=False):
    """
    Initialize Chrome driver, falling back to webdriver_manager.

    Args:
        options (webdriver.ChromeOptions): Chrome options
        verbose (bool): Enable chromedriver verbose logging

    Returns:
        webdriver.Chrome: Chrome WebDriver instance

    Raises:
        LaunchError: If every initialization method fails
    """
    from selenium.webdriver.chrome.service import Service as ChromeService

    service_args = ["--verbose"] if verbose else None

    # Method 1: Selenium's own driver resolution
    try:
        log.debug("Attempting to initialize Chrome driver with system Chrome")
        driver = webdriver.Chrome(service=ChromeService(service_args=service_args), options=options)
        log.info("Successfully initialized Chrome driver with system Chrome")
        return driver
    except WebDriverException as e:
        log.warning(f"Failed to create Chrome driver with default settings: {e}")
        last_error = e

    # Method 2: ChromeDriverManager
    try:
        log.debug("Attempting to initialize Chrome driver with ChromeDriverManager")
        from webdriver_manager.chrome import ChromeDriverManager

        driver_path = ChromeDriverManager().install()
        service = ChromeService(executable_path=driver_path, service_args=service_args)
        driver = webdriver.Chrome(service=service, options=options)
        log.info("Successfully initialized Chrome driver with ChromeDriverManager")
        return driver
    except Exception as e:
        log.error(f"All Chrome driver initialization methods failed: {e}")
        last_error = e

    raise LaunchError(f"cannot start Chrome: {last_error}") from last_error
