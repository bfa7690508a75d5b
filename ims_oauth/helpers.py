"""
Request handling for the IMS OAuth loopback callback.

The identity provider's login site sends the user's browser back to a local
server with the authorization code (GET redirect) or posts it from the login
page (POST with a form encoded body). The handlers below validate the echoed
`state` against the session id of the login attempt and hand the code back.

Every helper takes the IMS environment ('prod' or 'stage') explicitly, the
default is only picked by the CLI and `login()`.
"""

import secrets
import urllib.parse
from typing import Any, Callable, Dict, Optional

from . import json_utils
from .constants import CLI_ERROR_MESSAGE
from .constants import IMS_CLI_OAUTH_URL
from .constants import PROTOCOL_VERSION
from .constants import UNSUPPORTED_METHOD_MESSAGE
from .utils import CallbackError, debug

# Size of the reads used to accumulate a POST body.
BODY_CHUNK_SIZE = 4096


def random_id() -> str:
    """
    Generates a random 8 character hex id from 4 random bytes.

    Returns:
        The session id.
    """
    return secrets.token_hex( 4 )


def auth_site_url(query_params: Dict[str, Any], env: str) -> str:
    """
    Construct the auth site url with these query params.

    Parameters set to None are left out of the url. A parameter already present
    on the base url is replaced.

    Args:
        query_params: the query params to add to the url
        env: the IMS environment

    Returns:
        The constructed url.

    Raises:
        KeyError: If env is not a known IMS environment.
    """
    parts = urllib.parse.urlsplit(IMS_CLI_OAUTH_URL[env])
    params = urllib.parse.parse_qsl(parts.query, keep_blank_values=True)

    for key, value in query_params.items():
        if value is None:
            continue
        value = str(value)
        existing = [i for i, (k, _) in enumerate(params) if k == key]
        if existing:
            params[existing[0]] = (key, value)
            params = [p for i, p in enumerate(params) if i not in existing[1:]]
        else:
            params.append((key, value))

    return urllib.parse.urlunsplit(parts._replace(query=urllib.parse.urlencode(params)))


def string_to_json(value) -> Any:
    """
    Safe convert from string to json, anything unparsable gives an empty dict.
    """
    try:
        return json_utils.loads(value)
    except (ValueError, TypeError):
        return {}


def origin(env: str) -> str:
    parts = urllib.parse.urlsplit(IMS_CLI_OAUTH_URL[env])
    return f"{parts.scheme}://{parts.netloc}"


def cors(response, env: str):
    """
    Sets the CORS headers on the response.

    Args:
        response: the response to decorate
        env: the IMS environment

    Returns:
        The same response.
    """
    response.set_header('Content-Type', 'text/plain')
    response.set_header('Access-Control-Allow-Origin', origin(env))
    response.set_header('Access-Control-Request-Method', '*')
    response.set_header('Access-Control-Allow-Methods', 'OPTIONS, POST')
    response.set_header('Access-Control-Allow-Headers', '*')

    return response


def code_transform(code: str, code_type: Optional[str]) -> Any:
    """
    Transforms the code based on the code type.

    An access token is sent as a JSON document and gets decoded. Decoding
    errors are not handled here.

    Args:
        code: the code to transform
        code_type: one of 'access_token', 'auth_code'

    Returns:
        The decoded access token, or the code unchanged.
    """
    if code_type == 'access_token':
        return json_utils.loads(code)

    return code


def create_json_response(redirect: Optional[str] = None, message: Optional[str] = None, error: bool = False) -> Dict[str, Any]:
    return {
        'protocol_version': PROTOCOL_VERSION,
        'redirect': redirect,
        'error': error,
        'message': message,
    }


def signed_in_url(env: str) -> str:
    return f"{IMS_CLI_OAUTH_URL[env]}/signed-in"


def error_url(env: str) -> str:
    return f"{IMS_CLI_OAUTH_URL[env]}/error?message={CLI_ERROR_MESSAGE}"


def _parse_callback_data(raw: str) -> Dict[str, str]:
    # Repeated fields keep their first value.
    parsed = urllib.parse.parse_qs(raw, keep_blank_values=True)
    return {k: v[0] for k, v in parsed.items()}


def _is_expected_callback(query_data: Dict[str, str], expected_id: str) -> bool:
    state = string_to_json(query_data.get('state'))
    debug(f"state: {json_utils.dumps(state)}")
    debug(f"queryData: {json_utils.dumps(query_data)}")

    state_id = state.get('id') if isinstance(state, dict) else None
    return bool(query_data.get('code')) and state_id == expected_id


def read_body(request, chunk_size: int = BODY_CHUNK_SIZE) -> str:
    """
    Accumulate the request body until its end, then decode it.

    The body length comes from the Content-Length header, a request without
    a usable one has no body. A connection closing early ends the body.
    Invalid UTF-8 is replaced so the callback fails validation normally.

    Args:
        request: object with `headers` and a readable `rfile`
        chunk_size: maximum size of a single read

    Returns:
        The whole body as text.
    """
    try:
        remaining = int(request.headers.get('Content-Length') or 0)
    except ValueError:
        remaining = 0
    chunks = []
    while remaining > 0:
        chunk = request.rfile.read(min(chunk_size, remaining))
        if not chunk:
            break
        chunks.append(chunk)
        remaining -= len(chunk)
    return b''.join(chunks).decode('utf-8', errors='replace')


def handle_options(request, response, env: str) -> None:
    """
    OPTIONS http method handler, answers CORS preflights.
    """
    cors(response, env).end()


def handle_get(request, response, expected_id: str, done: Callable[[], None], env: str) -> Any:
    """
    GET http method handler.

    Args:
        request: the request, its `path` carries the callback query string
        response: the response to fill
        expected_id: the session id to compare to the id in the request 'state'
        done: called once the response is complete, whatever the outcome
        env: the IMS environment

    Returns:
        The auth code or the decoded access token.

    Raises:
        CallbackError: If the code is missing or the state does not match.
    """
    try:
        cors(response, env)
        query_data = _parse_callback_data(urllib.parse.urlsplit(request.path).query)

        if _is_expected_callback(query_data, expected_id):
            result = code_transform(query_data['code'], query_data.get('code_type'))
            response.set_header('Cache-Control', 'private, no-cache')
            response.write_head(302, {'Location': signed_in_url(env)})
            response.end()
            return result

        response.status_code = 400
        response.set_header('Cache-Control', 'private, no-cache')
        response.write_head(302, {'Location': error_url(env)})
        response.end()
        code = query_data.get('code')
        raise CallbackError(f"error code={code}", code=code)
    finally:
        done()


def handle_post(request, response, expected_id: str, done: Callable[[], None], env: str) -> Any:
    """
    POST http method handler.

    Same validation as the GET handler, but the callback data is the form
    encoded request body and the reply is a JSON envelope.

    Args:
        request: the request, with `headers` and a readable `rfile`
        response: the response to fill
        expected_id: the session id to compare to the id in the request 'state'
        done: called once the response is complete, whatever the outcome
        env: the IMS environment

    Returns:
        The auth code or the decoded access token.

    Raises:
        CallbackError: If the code is missing or the state does not match.
    """
    try:
        cors(response, env)
        query_data = _parse_callback_data(read_body(request))

        if _is_expected_callback(query_data, expected_id):
            result = code_transform(query_data['code'], query_data.get('code_type'))
            response.status_code = 200
            # Sent as a string for backwards compat reasons.
            response.end(json_utils.dumps(create_json_response(redirect=signed_in_url(env)), omit_none=True))
            return result

        response.status_code = 400
        response.end(json_utils.dumps(create_json_response(redirect=error_url(env),
                                                           message=CLI_ERROR_MESSAGE,
                                                           error=True), omit_none=True))
        code = query_data.get('code')
        raise CallbackError(f"error code={code}", code=code)
    finally:
        done()


def handle_unsupported_http_method(request, response, env: str) -> None:
    response.status_code = 405
    cors(response, env).end(UNSUPPORTED_METHOD_MESSAGE)
