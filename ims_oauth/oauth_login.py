"""
Browser login against the IMS login site.

The flow:

1. Generate a session id and start the loopback callback server
2. Build the login site url, the session id travels in the `state` parameter
3. The user signs in through the system browser
4. The login site redirects (or posts) back to the loopback server with the code
5. The code is validated against the session id and returned
"""

import webbrowser
from typing import Any, Optional

from . import json_utils
from .constants import DEFAULT_ENV, LOOPBACK_HOST, OAUTH_CALLBACK_TIMEOUT
from .helpers import auth_site_url, random_id
from .oauth_server import OAuthCallbackServer
from .utils import debug


def build_login_url(session_id: str, port: int, env: str,
                    client_id: Optional[str] = None,
                    scope: Optional[str] = None,
                    code_type: Optional[str] = None) -> str:
    """
    Build the login site url for one login attempt.

    Args:
        session_id: id of the login attempt, echoed back in `state`
        port: port of the loopback callback server
        env: the IMS environment
        client_id: IMS client id (optional)
        scope: requested scopes (optional)
        code_type: 'auth_code' or 'access_token' (optional)

    Returns:
        The url to open in the browser.
    """
    return auth_site_url({
        'id': session_id,
        'port': port,
        'client_id': client_id,
        'scope': scope,
        'code_type': code_type,
        'redirect_uri': f'http://{LOOPBACK_HOST}:{port}',
        'state': json_utils.dumps({'id': session_id, 'port': port}),
    }, env)


def login(client_id: Optional[str] = None,
          scope: Optional[str] = None,
          env: str = DEFAULT_ENV,
          code_type: Optional[str] = None,
          no_browser: bool = False,
          timeout: int = OAUTH_CALLBACK_TIMEOUT,
          console=None) -> Any:
    """
    Run a browser login and wait for the callback.

    Args:
        client_id: IMS client id (optional)
        scope: requested scopes (optional)
        env: the IMS environment
        code_type: 'auth_code' or 'access_token' (optional)
        no_browser: If True, print URL instead of opening browser
        timeout: seconds to wait for the callback
        console: rich Console used for messages to the user

    Returns:
        The auth code, or the decoded access token.

    Raises:
        CallbackError: If the callback does not match this login attempt.
        OAuthTimeoutError: If the login is not completed in time.
    """
    session_id = random_id()
    callback_server = OAuthCallbackServer(session_id, env, timeout=timeout)
    port = callback_server.start()

    try:
        url = build_login_url(session_id, port, env,
                              client_id=client_id,
                              scope=scope,
                              code_type=code_type)
        debug(f"login url: {url}")

        if no_browser:
            _print(console, f"\nPlease visit this URL to log in:\n{url}\n")
        else:
            _print(console, "Opening browser for authentication...")
            if not webbrowser.open(url):
                _print(console, f"\nCould not open browser. Please visit this URL:\n{url}\n")

        _print(console, "Waiting for authentication...")
        return callback_server.wait_for_callback()
    finally:
        # Always stop the server
        callback_server.stop()


def _print(console, message: str):
    if console is not None:
        console.print(message, highlight=False, markup=False)
