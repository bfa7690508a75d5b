"""Loopback OAuth callback receiver for the IMS CLI login."""

__version__ = "1.0.0"
__license__ = "Apache v2"

from .constants import DEFAULT_ENV, IMS_CLI_OAUTH_URL, PROTOCOL_VERSION
from .helpers import auth_site_url
from .helpers import code_transform
from .helpers import cors
from .helpers import handle_get
from .helpers import handle_options
from .helpers import handle_post
from .helpers import handle_unsupported_http_method
from .helpers import random_id
from .helpers import string_to_json
from .oauth_server import OAuthCallbackServer, create_server
from .oauth_login import login
from .utils import ImsOAuthException, CallbackError, OAuthTimeoutError
