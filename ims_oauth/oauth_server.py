import http.server
import threading
import queue
from typing import Any, Dict, Optional

from . import helpers
from .constants import LOOPBACK_HOST, OAUTH_CALLBACK_TIMEOUT
from .utils import OAuthTimeoutError, debug


class CallbackResponse:
    """
    Response being built by the callback handlers.

    Handlers set headers before choosing the status, which the
    BaseHTTPRequestHandler API does not allow, so the response is collected
    here and written out once complete.
    """

    def __init__(self):
        self.status_code = 200
        self.headers: Dict[str, str] = {}
        self.body = b''
        self.finished = False

    def set_header(self, name: str, value: str):
        self.headers[name] = value

    def write_head(self, status_code: int, headers: Optional[Dict[str, str]] = None):
        self.status_code = status_code
        for name, value in (headers or {}).items():
            self.set_header(name, value)

    def end(self, body=None):
        if body is not None:
            self.body = body.encode('utf-8') if isinstance(body, str) else body
        self.finished = True

    def send_to(self, handler: http.server.BaseHTTPRequestHandler):
        """Write the response on the handler's connection."""
        handler.send_response(self.status_code)
        for name, value in self.headers.items():
            handler.send_header(name, value)
        handler.send_header('Content-Length', str(len(self.body)))
        handler.end_headers()
        if self.body and handler.command != 'HEAD':
            handler.wfile.write(self.body)
        handler.wfile.flush()


class OAuthCallbackHandler(http.server.BaseHTTPRequestHandler):
    """Handler for OAuth callback requests."""

    def do_OPTIONS(self):
        response = CallbackResponse()
        helpers.handle_options(self, response, self.server.env)
        response.send_to(self)

    def do_GET(self):
        """Handle GET request from OAuth provider redirect."""
        self._handle_callback(helpers.handle_get)

    def do_POST(self):
        """Handle POST request from the login page."""
        self._handle_callback(helpers.handle_post)

    def _handle_callback(self, method_handler):
        response = CallbackResponse()
        try:
            code = method_handler(self, response, self.server.expected_id, self.server.done.set, self.server.env)
        except Exception as e:
            # Failures are reported to the thread waiting on the login.
            self.server.callback_queue.put({
                'success': False,
                'code': None,
                'error': e
            })
        else:
            self.server.callback_queue.put({
                'success': True,
                'code': code,
                'error': None
            })

        if response.finished:
            response.send_to(self)
        else:
            self.send_error(500)

    def _handle_unsupported(self):
        response = CallbackResponse()
        helpers.handle_unsupported_http_method(self, response, self.server.env)
        response.send_to(self)

    def __getattr__(self, name):
        # Any other method gets a 405 instead of the default 501.
        if name.startswith('do_'):
            return self._handle_unsupported
        raise AttributeError(name)

    def log_message(self, format, *args):
        debug("callback server: %s" % (format % args,))


class CallbackHTTPServer(http.server.HTTPServer):
    """Loopback HTTP server holding the state of one login attempt."""

    def __init__(self, expected_id: str, env: str):
        self.expected_id = expected_id
        self.env = env
        self.callback_queue = queue.Queue()
        self.done = threading.Event()
        super().__init__((LOOPBACK_HOST, 0), OAuthCallbackHandler)

    @property
    def port(self) -> int:
        return self.server_address[1]


def create_server(expected_id: str, env: str) -> CallbackHTTPServer:
    """
    Create a local server listening on an OS assigned loopback port.

    Args:
        expected_id: the session id of the login attempt
        env: the IMS environment

    Returns:
        The bound and listening server.

    Raises:
        OSError: If the server cannot bind or listen.
    """
    return CallbackHTTPServer(expected_id, env)


class OAuthCallbackServer:
    """Local HTTP server for handling OAuth callbacks."""

    def __init__(self, expected_id: str, env: str, timeout: int = OAUTH_CALLBACK_TIMEOUT):
        """
        Initialize OAuth callback server.

        Args:
            expected_id: session id the callback state must carry
            env: the IMS environment
            timeout: Maximum time to wait for callback (seconds)
        """
        self.expected_id = expected_id
        self.env = env
        self.timeout = timeout
        self.port = None
        self.server = None
        self.server_thread = None

    def start(self) -> int:
        """
        Start the OAuth callback server.

        Returns:
            The port number the server is listening on
        """
        self.server = create_server(self.expected_id, self.env)
        self.server.timeout = 1  # Check for shutdown every second
        self.port = self.server.port
        debug(f"callback server listening on {LOOPBACK_HOST}:{self.port}")

        # Start server in separate thread
        self.server_thread = threading.Thread(target=self._run_server, args=(self.server,))
        self.server_thread.daemon = True
        self.server_thread.start()

        return self.port

    def _run_server(self, server: CallbackHTTPServer):
        """Serve requests until a callback completes or the server is stopped."""
        while self.server is server and not server.done.is_set():
            server.handle_request()

    def wait_for_callback(self) -> Any:
        """
        Wait for OAuth callback.

        Returns:
            The auth code or decoded access token.

        Raises:
            CallbackError: If the callback did not match this login attempt.
            OAuthTimeoutError: If no callback arrives in time.
        """
        try:
            result = self.server.callback_queue.get(timeout=self.timeout)
        except queue.Empty:
            raise OAuthTimeoutError('Authentication timeout')

        if not result['success']:
            raise result['error']
        return result['code']

    def stop(self):
        """Stop the OAuth callback server."""
        if self.server:
            server = self.server
            self.server = None
            server.done.set()

            if self.server_thread and self.server_thread.is_alive():
                self.server_thread.join(timeout=2)

            server.server_close()
