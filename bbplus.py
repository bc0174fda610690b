#!/usr/bin/env python3
"""
bbplus: fetch your paid Barbieri+ content.

Main entry point script. Logs into the members area, saves a snapshot of the
listing and of every item page, and downloads each item's video or PDF.
"""
import argparse
import sys
import time

from config import DEFAULT_CONFIG_FILE, build_config, load_config_file, parse_duration
from errors import BBPlusError, ConfigError, ItemFailed, RemuxError
from orchestrator import Orchestrator

# Import the logger module
import logger


def _duration(text):
    try:
        return parse_duration(text)
    except ConfigError as e:
        raise argparse.ArgumentTypeError(str(e))


def build_parser():
    parser = argparse.ArgumentParser(
        prog="bbplus",
        description="Fetch your paid Barbieri+ content.",
    )
    parser.add_argument('-d', '--debug', action='store_true',
                        help='Enable debug log and browser tracing')
    parser.add_argument('-c', '--config', default=DEFAULT_CONFIG_FILE,
                        help='Configuration file')
    parser.add_argument('-b', '--show-browser', action='store_true',
                        help='Show browser, useful for debugging')
    parser.add_argument('-C', '--chrome-path',
                        help='Custom path for the Chrome browser')
    parser.add_argument('-e', '--expect-cookies-prompt', dest='expect_cookies_prompt',
                        action='store_true', default=None,
                        help='Wait for the cookies notice and decline it (default)')
    parser.add_argument('--no-expect-cookies-prompt', dest='expect_cookies_prompt',
                        action='store_false',
                        help='Do not wait for the cookies notice')
    parser.add_argument('-P', '--proxy', help='HTTP proxy')
    parser.add_argument('-t', '--timeout', type=_duration, default=parse_duration("2h"),
                        help='Global timeout as a duration (e.g. 1h12m)')
    parser.add_argument('-O', '--outdir', help='Output directory')
    parser.add_argument('-J', '--just-print-urls', action='store_true',
                        help='Just print URLs without downloading')
    parser.add_argument('-p', '--as-pdf', action='store_true',
                        help='Save screenshots as PDF instead of PNG')
    parser.add_argument('-g', '--disable-gpu', action='store_true',
                        help='Pass --disable-gpu to Chrome')
    parser.add_argument('-u', '--username', help='Member username')
    parser.add_argument('--password', help='Member password')
    parser.add_argument('--settle', type=_duration, default=1.0,
                        help='Time to let the video player scripts run after pressing play')
    parser.add_argument('--wait-timeout', type=_duration, default=30.0,
                        help='How long to wait for each page element')
    parser.add_argument('--continue-on-error', action='store_true',
                        help='Keep going after an item fails and report a summary')
    parser.add_argument('--no-log-file', action='store_true',
                        help='Disable logging to file')
    return parser


def main(argv=None):
    """Main entry point for the script."""
    args = build_parser().parse_args(argv)

    level = logger.DEBUG if args.debug else logger.INFO
    logger.setup_logger(level=level, log_to_file=not args.no_log_file)

    try:
        config = build_config(
            load_config_file(args.config),
            username=args.username,
            password=args.password,
            proxy=args.proxy,
            expect_cookie_banner=args.expect_cookies_prompt,
            outdir=args.outdir,
            headless=not args.show_browser,
            chrome_path=args.chrome_path,
            disable_gpu=args.disable_gpu,
            debug=args.debug,
            timeout=args.timeout,
            just_print_urls=args.just_print_urls,
            screenshot_as_pdf=args.as_pdf,
            settle_interval=args.settle,
            wait_timeout=args.wait_timeout,
            on_error="continue" if args.continue_on_error else "abort",
        )
    except ConfigError as e:
        logger.error(f"Failed to load configuration: {e}")
        return 1

    for label, value in config.describe():
        logger.info(f"{label:<24}: {value}")

    start_time = time.time()
    try:
        report = Orchestrator(config).run()
    except KeyboardInterrupt:
        logger.warning("Download interrupted by user")
        return 130
    except ItemFailed as e:
        logger.error(f"Download failed for '{e.url}' at step '{e.step}': {e.cause}")
        if isinstance(e.cause, RemuxError) and e.cause.stderr:
            logger.error(f"ffmpeg output:\n{e.cause.stderr}")
        return 1
    except BBPlusError as e:
        logger.error(f"Run failed: {e}")
        return 1

    elapsed_time = time.time() - start_time
    logger.info(f"Finished in {elapsed_time:.2f} seconds: {report.summary()}")
    return 1 if report.failures else 0


if __name__ == "__main__":
    sys.exit(main())
