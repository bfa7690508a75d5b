"""
Settings for the login commands.

Values are read from, lowest priority first: built-in defaults, the YAML
config file (`~/.ims-oauth` or the path in IMS_OAUTH_CONFIG_FILE), the
IMS_OAUTH_* environment variables and finally explicit overrides such as
command line flags.

Example config file:

    env: stage
    client_id: my-cli
    scope: openid,AdobeID
    timeout: 120
"""

import os
import yaml

from . import constants
from .utils import ImsOAuthException

DEFAULTS = {
    'env': constants.DEFAULT_ENV,
    'client_id': None,
    'scope': None,
    'timeout': constants.OAUTH_CALLBACK_TIMEOUT,
}


def _getConfigFilePath():
    return os.environ.get( constants.CONFIG_FILE_ENV_VAR, None ) or constants.CONFIG_FILE_PATH


def loadConfigFile( path = None ):
    """
    Load the YAML config file.

    Args:
        path (str): file to load, defaults to the configured path.

    Returns:
        dict: the settings in the file, empty if there is no file.
    """
    if path is None:
        path = _getConfigFilePath()
    if not os.path.isfile( path ):
        return {}
    with open( path, 'rb' ) as f:
        conf = yaml.safe_load( f.read() )

    # Handle scenario where a file is empty
    conf = conf or {}
    if not isinstance( conf, dict ):
        raise ImsOAuthException( 'Invalid config file %s: expected a mapping' % ( path, ) )
    return conf


def loadSettings( **overrides ):
    """
    Resolve the effective login settings.

    Args:
        overrides: explicit values, None values are ignored.

    Returns:
        dict: settings with the keys of DEFAULTS.
    """
    settings = dict( DEFAULTS )
    fileConf = loadConfigFile()
    for k in DEFAULTS:
        if fileConf.get( k, None ) is not None:
            settings[ k ] = fileConf[ k ]

    for k, envVar in ( ( 'env', constants.ENV_ENV_VAR ),
                       ( 'client_id', constants.CLIENT_ID_ENV_VAR ),
                       ( 'scope', constants.SCOPE_ENV_VAR ) ):
        value = os.environ.get( envVar, '' )
        if value != '':
            settings[ k ] = value

    for k, v in overrides.items():
        if v is not None:
            settings[ k ] = v

    if settings[ 'env' ] not in constants.IMS_CLI_OAUTH_URL:
        raise ImsOAuthException( 'Unknown IMS environment "%s", expected one of: %s' % ( settings[ 'env' ], ', '.join( constants.IMS_CLI_OAUTH_URL ) ) )

    try:
        settings[ 'timeout' ] = int( settings[ 'timeout' ] )
    except ( TypeError, ValueError ):
        raise ImsOAuthException( 'Invalid timeout: %s' % ( settings[ 'timeout' ], ) )

    return settings
