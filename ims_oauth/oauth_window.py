"""
Native window login.

Instead of sending the system browser back to a loopback server, this mode
opens its own browser window on the IMS login page and picks the
authorization code out of the URL the provider redirects to.

Used as a standalone process:

    ims-oauth-window <auth url> <callback url>

The code is written to stdout with exit status 0, or an error message to
stderr with exit status 1.
"""

import re
import sys
from typing import List, Optional

from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import sync_playwright

from .utils import ImsOAuthException, debug

CODE_PATTERN = re.compile(r'code=([^&]*)')

WINDOW_SIZE = {'width': 800, 'height': 600}

# How often the event loop is pumped while waiting for the callback.
POLL_INTERVAL_MS = 100

USER_ABORT_MESSAGE = 'User terminated the browser without authenticating'


class RedirectWatcher:
    """Watches the URLs a login window navigates to for the callback."""

    def __init__(self, callback_url: str):
        self.callback_url = callback_url
        self.window = None
        self.resolved = False
        self.code: Optional[str] = None
        self.error: Optional[str] = None

    def attach(self, window):
        """
        Register on the navigation, redirect and close events of a window.

        Args:
            window: a Playwright page
        """
        self.window = window
        window.on('request', self._on_request)
        window.on('framenavigated', self._on_frame_navigated)
        window.on('close', lambda _: self.handle_closed())

    def _on_request(self, request):
        # Covers navigations started by the page as well as each hop of a
        # redirect chain.
        if request.is_navigation_request():
            self.handle_callback(request.url)

    def _on_frame_navigated(self, frame):
        if frame.parent_frame is None:
            self.handle_callback(frame.url)

    def handle_callback(self, url: str):
        if self.resolved or not url.startswith(self.callback_url):
            return

        # Dereference the window so closing it is not taken as a user abort.
        self.window = None
        self.resolved = True

        match = CODE_PATTERN.search(url)
        if match and match.group(1):
            self.code = match.group(1)
            debug("login window received the callback")
        else:
            self.error = f"Received empty code on callback URL {url}"

    def handle_closed(self):
        if self.resolved:
            return
        self.window = None
        self.resolved = True
        self.error = USER_ABORT_MESSAGE

    def result(self) -> str:
        """
        Returns:
            The authorization code.

        Raises:
            ImsOAuthException: If the login did not produce a code.
        """
        if self.error is not None:
            raise ImsOAuthException(self.error)
        return self.code


def watch_page(page, auth_url: str, watcher: RedirectWatcher) -> str:
    """
    Load the login page and wait for the watcher to resolve.

    Args:
        page: the Playwright page used as the login window
        auth_url: the IMS login url
        watcher: the watcher looking for the callback url

    Returns:
        The authorization code.
    """
    watcher.attach(page)

    try:
        page.goto(auth_url)
    except PlaywrightError as e:
        # Navigating to the callback url itself may fail, which is fine once
        # the code was seen.
        if not watcher.resolved:
            debug(f"login window navigation failed: {e}")

    while not watcher.resolved:
        try:
            page.wait_for_timeout(POLL_INTERVAL_MS)
        except PlaywrightError:
            watcher.handle_closed()

    return watcher.result()


def run_window(auth_url: str, callback_url: str) -> str:
    """
    Run a login in a browser window.

    Args:
        auth_url: the IMS login url
        callback_url: prefix of the url the provider redirects to

    Returns:
        The authorization code.

    Raises:
        ImsOAuthException: If no code was received or the window was closed.
    """
    watcher = RedirectWatcher(callback_url)
    with sync_playwright() as p:
        browser = p.chromium.launch(headless=False)
        try:
            page = browser.new_page(viewport=WINDOW_SIZE)
            return watch_page(page, auth_url, watcher)
        finally:
            browser.close()


def _get_arg(argv: List[str], idx: int, message: str) -> str:
    if len(argv) > idx:
        return argv[idx]
    raise ImsOAuthException(message)


def main(argv: Optional[List[str]] = None) -> int:
    argv = sys.argv if argv is None else argv

    try:
        auth_url = _get_arg(argv, 1, 'Missing authentication URL')
        callback_url = _get_arg(argv, 2, 'Missing callback URL')
        code = run_window(auth_url, callback_url)
    except (ImsOAuthException, PlaywrightError) as e:
        sys.stderr.write(str(e))
        sys.stderr.flush()
        return 1

    sys.stdout.write(code)
    sys.stdout.flush()
    return 0


if __name__ == "__main__":
    sys.exit(main())
