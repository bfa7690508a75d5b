"""
Unit tests for the native window login, with a fake Playwright page.
"""

import re

import pytest
from playwright.sync_api import Error as PlaywrightError

from ims_oauth import oauth_window
from ims_oauth.oauth_window import RedirectWatcher, USER_ABORT_MESSAGE, watch_page
from ims_oauth.utils import ImsOAuthException

AUTH_URL = 'https://ims.example.com/ims/authorize?client_id=cli'
CALLBACK_URL = 'https://callback.example.com/cb'


class FakeRequest:
    def __init__(self, url, navigation=True):
        self.url = url
        self._navigation = navigation

    def is_navigation_request(self):
        return self._navigation


class FakeFrame:
    def __init__(self, url, parent_frame=None):
        self.url = url
        self.parent_frame = parent_frame


class FakePage:
    """Fires scripted events while loading, then optionally gets closed by the user."""

    def __init__(self, events=(), close_while_waiting=False):
        self.handlers = {}
        self.events = list(events)
        self.close_while_waiting = close_while_waiting
        self.visited = None
        self.waits = 0

    def on(self, event, handler):
        self.handlers.setdefault(event, []).append(handler)

    def fire(self, event, arg):
        for handler in self.handlers.get(event, []):
            handler(arg)

    def goto(self, url):
        self.visited = url
        for event, arg in self.events:
            self.fire(event, arg)

    def wait_for_timeout(self, timeout):
        self.waits += 1
        if self.close_while_waiting:
            self.fire('close', self)
            raise PlaywrightError('Target page, context or browser has been closed')


class TestRedirectWatcher:

    def test_ignores_provider_urls(self):
        watcher = RedirectWatcher(CALLBACK_URL)
        watcher.handle_callback('https://ims.example.com/ims/login?code=not-this-one')

        assert not watcher.resolved

    def test_extracts_code(self):
        watcher = RedirectWatcher(CALLBACK_URL)
        watcher.attach(FakePage())
        watcher.handle_callback(CALLBACK_URL + '?code=abc123&state=xyz')

        assert watcher.resolved
        assert watcher.window is None
        assert watcher.result() == 'abc123'

    def test_close_after_success_is_not_an_abort(self):
        watcher = RedirectWatcher(CALLBACK_URL)
        watcher.handle_callback(CALLBACK_URL + '?code=abc123')
        watcher.handle_closed()

        assert watcher.result() == 'abc123'
        assert watcher.error is None

    def test_callback_without_code(self):
        url = CALLBACK_URL + '?error=access_denied'
        watcher = RedirectWatcher(CALLBACK_URL)
        watcher.handle_callback(url)

        with pytest.raises(ImsOAuthException, match=re.escape('Received empty code on callback URL %s' % url)):
            watcher.result()

    def test_callback_with_empty_code(self):
        watcher = RedirectWatcher(CALLBACK_URL)
        watcher.handle_callback(CALLBACK_URL + '?code=&state=xyz')

        assert watcher.code is None
        with pytest.raises(ImsOAuthException):
            watcher.result()

    def test_user_closed_window(self):
        watcher = RedirectWatcher(CALLBACK_URL)
        watcher.handle_closed()

        with pytest.raises(ImsOAuthException, match=USER_ABORT_MESSAGE):
            watcher.result()

    def test_only_first_outcome_counts(self):
        watcher = RedirectWatcher(CALLBACK_URL)
        watcher.handle_callback(CALLBACK_URL + '?code=first')
        watcher.handle_callback(CALLBACK_URL + '?code=second')

        assert watcher.result() == 'first'


class TestWatchPage:

    def test_code_from_redirect_request(self):
        page = FakePage(events=[
            ('request', FakeRequest('https://ims.example.com/ims/login')),
            ('request', FakeRequest(CALLBACK_URL + '?code=from-redirect')),
        ])

        assert watch_page(page, AUTH_URL, RedirectWatcher(CALLBACK_URL)) == 'from-redirect'
        assert page.visited == AUTH_URL
        assert page.waits == 0

    def test_code_from_main_frame_navigation(self):
        page = FakePage(events=[
            ('request', FakeRequest(CALLBACK_URL + '?code=subresource', navigation=False)),
            ('framenavigated', FakeFrame(CALLBACK_URL + '?code=iframe', parent_frame=object())),
            ('framenavigated', FakeFrame(CALLBACK_URL + '?code=main-frame')),
        ])

        assert watch_page(page, AUTH_URL, RedirectWatcher(CALLBACK_URL)) == 'main-frame'

    def test_window_closed_by_user(self):
        page = FakePage(close_while_waiting=True)

        with pytest.raises(ImsOAuthException, match=USER_ABORT_MESSAGE):
            watch_page(page, AUTH_URL, RedirectWatcher(CALLBACK_URL))

    def test_failed_navigation_to_callback(self):
        class UnreachableCallbackPage(FakePage):
            def goto(self, url):
                super().goto(url)
                raise PlaywrightError('net::ERR_CONNECTION_REFUSED')

        page = UnreachableCallbackPage(events=[('request', FakeRequest(CALLBACK_URL + '?code=abc'))])

        assert watch_page(page, AUTH_URL, RedirectWatcher(CALLBACK_URL)) == 'abc'


class TestMain:

    def test_missing_auth_url(self, capsys):
        assert oauth_window.main(['ims-oauth-window']) == 1
        assert capsys.readouterr().err == 'Missing authentication URL'

    def test_missing_callback_url(self, capsys):
        assert oauth_window.main(['ims-oauth-window', AUTH_URL]) == 1
        assert capsys.readouterr().err == 'Missing callback URL'

    def test_success(self, monkeypatch, capsys):
        calls = []

        def fake_run_window(auth_url, callback_url):
            calls.append((auth_url, callback_url))
            return 'the-code'

        monkeypatch.setattr(oauth_window, 'run_window', fake_run_window)

        assert oauth_window.main(['ims-oauth-window', AUTH_URL, CALLBACK_URL]) == 0
        captured = capsys.readouterr()
        assert captured.out == 'the-code'
        assert captured.err == ''
        assert calls == [(AUTH_URL, CALLBACK_URL)]

    def test_failure(self, monkeypatch, capsys):
        def fake_run_window(auth_url, callback_url):
            raise ImsOAuthException(USER_ABORT_MESSAGE)

        monkeypatch.setattr(oauth_window, 'run_window', fake_run_window)

        assert oauth_window.main(['ims-oauth-window', AUTH_URL, CALLBACK_URL]) == 1
        captured = capsys.readouterr()
        assert captured.out == ''
        assert captured.err == USER_ABORT_MESSAGE
