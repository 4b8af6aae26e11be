"""
Page Renderer

Loads recipe pages in headless Chromium through Playwright so that
JavaScript-built pages have their content, with a plain HTTP fetch as the
non-JS fallback.
"""

import logging
import os

import requests
from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import sync_playwright

from utils.url_validator import DEFAULT_HEADERS, SSRFError, safe_fetch

from .errors import BrowserUnavailableError, FetchError, RenderError

logger = logging.getLogger(__name__)

CHROMIUM_CANDIDATES = (
    '/usr/bin/chromium',
    '/usr/bin/chromium-browser',
    '/usr/bin/google-chrome',
    '/opt/homebrew/bin/chromium',
    '/Applications/Google Chrome.app/Contents/MacOS/Google Chrome',
)


def find_chromium_binary(override=None):
    """
    Locate a Chromium/Chrome executable.

    Checks the explicit override, then CHROMIUM_BIN, then the usual install
    locations. Returns '' when nothing is found.
    """
    candidates = [override, os.environ.get('CHROMIUM_BIN')]
    candidates.extend(CHROMIUM_CANDIDATES)
    for candidate in candidates:
        if candidate and os.path.isfile(candidate):
            return candidate
    return ''


class PageRenderer:
    """Renders pages with a fresh browser context per attempt."""

    def __init__(self, chromium_bin=None, attempts=2):
        self.chromium_bin = chromium_bin
        self.attempts = attempts

    def render(self, url, timeout=60):
        """
        Return the rendered HTML of url.

        Raises:
            BrowserUnavailableError: No browser binary could be found
            RenderError: Launch failed or every navigation attempt failed
        """
        binary = find_chromium_binary(self.chromium_bin)
        if not binary:
            raise BrowserUnavailableError(
                "no Chromium/Chrome binary found; set CHROMIUM_BIN or install chromium"
            )

        timeout_ms = int(timeout * 1000)
        last_error = None
        try:
            with sync_playwright() as playwright:
                browser = playwright.chromium.launch(executable_path=binary, headless=True)
                try:
                    for attempt in range(1, self.attempts + 1):
                        context = browser.new_context(user_agent=DEFAULT_HEADERS['User-Agent'])
                        try:
                            page = context.new_page()
                            page.goto(url, wait_until='load', timeout=timeout_ms)
                            return page.content()
                        except PlaywrightError as e:
                            last_error = e
                            logger.warning(f"Render attempt {attempt}/{self.attempts} failed for {url}: {e}")
                        finally:
                            context.close()
                finally:
                    browser.close()
        except PlaywrightError as e:
            raise RenderError(f"launch browser: {e}") from e

        raise RenderError(f"page navigation failed after {self.attempts} attempts: {last_error}")

    def fetch_raw(self, url, timeout=60):
        """
        Return the page HTML with a plain GET, without running scripts.

        Raises:
            FetchError: On SSRF rejection, network errors or bad status
        """
        try:
            response = safe_fetch(url, timeout=timeout)
        except (SSRFError, requests.RequestException) as e:
            raise FetchError(f"http fetch failed: {e}") from e
        return response.text
