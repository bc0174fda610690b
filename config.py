"""
Configuration for the bbplus downloader.

The configuration is read once at startup from a JSON file, merged with
command-line overrides and frozen into a Config that is passed explicitly to
every component.
"""
import json
import os
import re
from dataclasses import dataclass, fields

from errors import ConfigError

import logger
log = logger

PROGNAME = "bbplus"
DEFAULT_CONFIG_FILE = os.path.join(
    os.environ.get("XDG_CONFIG_HOME") or os.path.expanduser("~/.config"),
    PROGNAME,
    "config.json",
)

ON_ERROR_ABORT = "abort"
ON_ERROR_CONTINUE = "continue"

# Keys accepted in the JSON configuration file, mapped to Config fields
FILE_KEYS = {
    "proxy": "proxy",
    "username": "username",
    "password": "password",
    "expect_cookies_prompt": "expect_cookie_banner",
    "outdir": "outdir",
}

_DURATION_PART = re.compile(r"(\d+(?:\.\d+)?)(ms|h|m|s)")


@dataclass(frozen=True)
class Config:
    """Immutable run configuration."""

    username: str = ""
    password: str = ""
    proxy: str = ""
    expect_cookie_banner: bool = True
    outdir: str = ""
    headless: bool = True
    chrome_path: str = ""
    disable_gpu: bool = False
    debug: bool = False
    timeout: float = 2 * 60 * 60
    just_print_urls: bool = False
    screenshot_as_pdf: bool = False
    settle_interval: float = 1.0
    wait_timeout: float = 30.0
    on_error: str = ON_ERROR_ABORT

    def __post_init__(self):
        if self.on_error not in (ON_ERROR_ABORT, ON_ERROR_CONTINUE):
            raise ConfigError(f"invalid on_error mode: {self.on_error!r}")
        if self.timeout <= 0:
            raise ConfigError("timeout must be positive")

    @property
    def snapshot_extension(self):
        return ".pdf" if self.screenshot_as_pdf else ".png"

    def describe(self):
        """Return (label, value) pairs for the startup banner, password masked."""
        masked_password = "***" if self.password else "<not set>"
        return [
            ("Timeout", format_duration(self.timeout)),
            ("Proxy", self.proxy),
            ("Show browser", not self.headless),
            ("Debug", self.debug),
            ("Custom Chrome path", self.chrome_path),
            ("Username", self.username),
            ("Password", masked_password),
            ("Expect cookies prompt", self.expect_cookie_banner),
            ("Output directory", self.outdir),
            ("Just print URLs", self.just_print_urls),
            ("Disable GPU", self.disable_gpu),
            ("Screenshot file format", "PDF" if self.screenshot_as_pdf else "PNG"),
            ("Settle interval", format_duration(self.settle_interval)),
            ("On item error", self.on_error),
        ]


def parse_duration(text):
    """
    Parse a duration such as "2h", "1h12m", "90s" or "1500ms" into seconds.

    A bare number is taken as seconds.

    Raises:
        ConfigError: If the text is not a valid duration
    """
    text = str(text).strip()
    if not text:
        raise ConfigError("empty duration")
    try:
        return float(text)
    except ValueError:
        pass

    units = {"h": 3600.0, "m": 60.0, "s": 1.0, "ms": 0.001}
    total = 0.0
    position = 0
    for match in _DURATION_PART.finditer(text):
        if match.start() != position:
            break
        total += float(match.group(1)) * units[match.group(2)]
        position = match.end()
    if position != len(text):
        raise ConfigError(f"invalid duration: {text!r}")
    return total


def format_duration(seconds):
    seconds = float(seconds)
    hours, rest = divmod(seconds, 3600)
    minutes, secs = divmod(rest, 60)
    parts = []
    if hours:
        parts.append(f"{int(hours)}h")
    if minutes:
        parts.append(f"{int(minutes)}m")
    if secs or not parts:
        parts.append(f"{secs:g}s")
    return "".join(parts)


def load_config_file(config_path=None):
    """
    Load configuration values from a JSON file.

    A missing file is not an error: an empty dict is returned and defaults apply.

    Args:
        config_path (str, optional): Path to the file, DEFAULT_CONFIG_FILE if None

    Returns:
        dict: Config field names mapped to the values found in the file

    Raises:
        ConfigError: If the file exists but cannot be read or parsed
    """
    if config_path is None:
        config_path = DEFAULT_CONFIG_FILE

    log.info(f"Trying to load config file {config_path}")
    if not os.path.exists(config_path):
        log.info("Configuration file does not exist, using defaults")
        return {}

    try:
        with open(config_path, "r") as f:
            data = json.load(f)
    except OSError as e:
        raise ConfigError(f"failed to open '{config_path}': {e}") from e
    except ValueError as e:
        raise ConfigError(f"failed to parse config file '{config_path}': {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"config file '{config_path}' must contain a JSON object")

    values = {}
    for key, field_name in FILE_KEYS.items():
        if key in data and data[key] is not None:
            values[field_name] = data[key]
    unknown = sorted(set(data) - set(FILE_KEYS))
    if unknown:
        log.warning(f"Ignoring unknown config keys: {', '.join(unknown)}")
    return values


def build_config(file_values=None, **overrides):
    """
    Merge file values with command-line overrides into a frozen Config.

    Overrides set to None are ignored, so only flags the user actually passed
    replace file values. Empty strings never override a value from the file.
    """
    known = {f.name for f in fields(Config)}
    values = {}
    for source in (file_values or {}, overrides):
        for name, value in source.items():
            if name not in known:
                raise ConfigError(f"unknown configuration field: {name}")
            if value is None:
                continue
            if value == "" and values.get(name):
                continue
            values[name] = value
    config = Config(**values)
    log.info("Config loaded")
    return config
