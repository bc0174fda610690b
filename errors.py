"""
Error types for the bbplus downloader.

Every failure the pipeline can report is a subclass of BBPlusError, so the
command-line entry point can tell expected failures apart from bugs.
"""


class BBPlusError(Exception):
    """Base class for all bbplus failures."""


class ConfigError(BBPlusError):
    """The configuration file could not be read or parsed."""


class LaunchError(BBPlusError):
    """The browser could not be started."""


class BrowserError(BBPlusError):
    """A WebDriver command failed."""

    def __init__(self, step, detail=""):
        self.step = step
        message = f"browser command failed during '{step}'"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class InvalidCredentials(BBPlusError):
    """Username or password missing."""


class LoginFailed(BBPlusError):
    """A login step did not complete."""

    def __init__(self, step, detail=""):
        self.step = step
        message = f"login failed at step '{step}'"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class ElementTimeout(BBPlusError):
    """An element did not become visible within the wait budget."""

    def __init__(self, selector, timeout):
        self.selector = selector
        self.timeout = timeout
        super().__init__(f"element {selector!r} not visible after {timeout:.1f}s")


class ContainerNotFound(BBPlusError):
    """The item page has no content container."""


class UnknownMediaType(BBPlusError):
    """The content container carries no known category class."""


class NoValidVideoFrame(BBPlusError):
    """No player frame with a usable https source."""


class NoVideoURL(BBPlusError):
    """The player markup contains no video file or manifest URL."""


class NoDocumentLink(BBPlusError):
    """The item page has no external document link."""


class InvalidItemURL(BBPlusError):
    """An item URL has no path segment to name its artifacts after."""


class FetchError(BBPlusError):
    """An HTTP retrieval or the write of its body failed."""


class RemuxError(BBPlusError):
    """ffmpeg could not combine the downloaded tracks."""

    def __init__(self, message, stderr=""):
        self.stderr = stderr
        super().__init__(message)


class DeadlineExceeded(BBPlusError):
    """The global run deadline elapsed."""

    def __init__(self, step=None):
        self.step = step
        message = "global deadline exceeded"
        if step:
            message = f"{message} during '{step}'"
        super().__init__(message)


class ItemFailed(BBPlusError):
    """Processing of a single catalog item failed."""

    def __init__(self, url, step, cause):
        self.url = url
        self.step = step
        self.cause = cause
        super().__init__(f"failed to process '{url}' at step '{step}': {cause}")
