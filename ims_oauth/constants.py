import os

# Path to the optional configuration file. Can be overriden for tests.
CONFIG_FILE_PATH = os.path.expanduser( '~/.ims-oauth' )
CONFIG_FILE_ENV_VAR = 'IMS_OAUTH_CONFIG_FILE'

# Environment variables overriding values from the configuration file.
ENV_ENV_VAR = 'IMS_OAUTH_ENV'
CLIENT_ID_ENV_VAR = 'IMS_OAUTH_CLIENT_ID'
SCOPE_ENV_VAR = 'IMS_OAUTH_SCOPE'

# OAuth-related constants
OAUTH_CALLBACK_TIMEOUT = 300  # 5 minutes

# Environment used when neither the caller, the config file nor the
# environment variables pick one.
DEFAULT_ENV = 'prod'

# Version of the JSON envelope returned to POST callbacks. Existing login
# pages depend on it, do not change.
PROTOCOL_VERSION = 2

# Login site hosting the IMS redirect pages, per environment.
IMS_CLI_OAUTH_URL = {
    'prod': 'https://aio-login.adobeioruntime.net/api/v1/web/default/applogin',
    'stage': 'https://aio-login.adobeioruntime.net/api/v1/web/default/applogin-stage',
}

# Only ever bind the callback server on the loopback interface.
LOOPBACK_HOST = '127.0.0.1'

CLI_ERROR_MESSAGE = 'An error occurred in the cli.'
UNSUPPORTED_METHOD_MESSAGE = 'Supported HTTP methods are OPTIONS, GET, POST'
