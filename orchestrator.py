"""
Run orchestration.

Sequences login, enumeration and the per-item stages (snapshot, classify,
locate, fetch) over one browser session, strictly in listing order.
"""
import enum
import os
import sys

from selenium.common.exceptions import WebDriverException

from authenticator import login
from browser_manager import BrowserSession
from catalog import list_items
from config import ON_ERROR_CONTINUE
from deadline import Deadline
from errors import BBPlusError, DeadlineExceeded, InvalidItemURL, ItemFailed, UnknownMediaType
from fetcher import Fetcher
from media import MEDIA_EXTENSIONS, MediaKind, classify
from media_locator import locate
from page_selectors import ITEM_PAGE
from url_utils import item_slug

import logger
log = logger


class RunState(enum.Enum):
    IDLE = "idle"
    AUTHENTICATING = "authenticating"
    ENUMERATING = "enumerating"
    PROCESSING_ITEM = "processing_item"
    DONE = "done"
    FAILED = "failed"


class RunReport:
    """Outcome of a run: artifacts written and, in continue mode, item failures."""

    def __init__(self):
        self.items = []
        self.artifacts = []
        self.failures = []

    @property
    def succeeded(self):
        return len(self.items) - len(self.failures)

    def summary(self):
        return f"{len(self.items)} items: {self.succeeded} succeeded, {len(self.failures)} failed"


class _Stage:
    """Names the item stage running, for error context."""

    def __init__(self):
        self.name = "start"


class Orchestrator:
    """Runs the whole download for one configuration."""

    def __init__(self, config, session_factory=None, fetcher_factory=None, out=None):
        """
        Args:
            config (Config): Run configuration
            session_factory (callable, optional): (config, deadline) -> session;
                BrowserSession.open by default
            fetcher_factory (callable, optional): (deadline) -> Fetcher
            out (file, optional): Stream for printed URLs, stdout by default
        """
        self.config = config
        self.session_factory = session_factory or BrowserSession.open
        self.fetcher_factory = fetcher_factory or Fetcher
        self.out = out or sys.stdout
        self.state = RunState.IDLE
        self.report = RunReport()

    def _enter(self, state):
        log.debug(f"State {self.state.value} -> {state.value}")
        self.state = state

    def run(self):
        """
        Execute the run.

        Returns:
            RunReport: What was processed

        Raises:
            BBPlusError: LaunchError, InvalidCredentials, LoginFailed,
                DeadlineExceeded, or ItemFailed in abort mode
        """
        deadline = Deadline(self.config.timeout)
        session = None
        try:
            session = self.session_factory(self.config, deadline)
            fetcher = self.fetcher_factory(deadline)

            self._enter(RunState.AUTHENTICATING)
            login(session, self.config.username, self.config.password,
                  self.config.expect_cookie_banner)

            self._enter(RunState.ENUMERATING)
            os.makedirs(self.outdir, exist_ok=True)
            urls, snapshot = list_items(session, as_pdf=self.config.screenshot_as_pdf)
            self._write_artifact("index" + self.config.snapshot_extension, snapshot)

            for i, url in enumerate(urls, 1):
                self._enter(RunState.PROCESSING_ITEM)
                log.info(f"Processing item {i}/{len(urls)}: {url}")
                self.report.items.append(url)
                self._process_item(session, fetcher, url)

            self._enter(RunState.DONE)
            log.info(f"Run completed: {self.report.summary()}")
            return self.report
        except BaseException:
            self._enter(RunState.FAILED)
            raise
        finally:
            if session is not None:
                log.info("Closing browser and cleaning up")
                session.close()

    @property
    def outdir(self):
        return self.config.outdir or "."

    def _process_item(self, session, fetcher, url):
        stage = _Stage()
        try:
            self.process_item(session, fetcher, url, stage)
        except DeadlineExceeded:
            raise
        except (BBPlusError, WebDriverException, OSError) as e:
            failure = ItemFailed(url, stage.name, e)
            if self.config.on_error == ON_ERROR_CONTINUE:
                log.error(str(failure))
                self.report.failures.append(failure)
                return
            raise failure from e

    def process_item(self, session, fetcher, url, stage=None):
        """
        Snapshot, classify, locate and fetch one item.

        stage, when given, is updated with the name of the running step.
        """
        stage = stage or _Stage()

        stage.name = "slug"
        slug = item_slug(url)
        if not slug:
            raise InvalidItemURL(f"cannot derive a file name from '{url}'")
        log.info(f"Retrieving {slug}")

        stage.name = "snapshot"
        session.navigate(url)
        session.wait_visible(ITEM_PAGE.heading)
        snapshot = session.capture(as_pdf=self.config.screenshot_as_pdf)

        stage.name = "classify"
        kind = MediaKind.UNRECOGNIZED
        try:
            kind = classify(session)
        finally:
            self._write_artifact(self._snapshot_name(slug, kind), snapshot)
        if kind is MediaKind.UNRECOGNIZED:
            raise UnknownMediaType(f"unknown media type for '{url}'")

        stage.name = "locate"
        located = locate(session, kind, self.config.settle_interval)

        if self.config.just_print_urls:
            print(located.reference.url, file=self.out)
            return located

        stage.name = "fetch"
        destination = os.path.join(self.outdir, slug + MEDIA_EXTENSIONS[kind])
        fetcher.fetch(located.reference, located.cookies, located.referrer, destination)
        self.report.artifacts.append(destination)
        return located

    def _snapshot_name(self, slug, kind):
        extension = self.config.snapshot_extension
        # A PDF snapshot of a document item would collide with the document itself
        if kind in MEDIA_EXTENSIONS and MEDIA_EXTENSIONS[kind] == extension:
            return f"{slug}-page{extension}"
        return slug + extension

    def _write_artifact(self, name, data):
        path = os.path.join(self.outdir, name)
        with open(path, "wb") as f:
            f.write(data)
        self.report.artifacts.append(path)
        log.info(f"Screenshot saved at '{path}'")
        return path
