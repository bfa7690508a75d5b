from typing import Callable, Optional


class ImsOAuthException ( Exception ):
    '''Exception type used for various errors in the IMS OAuth helpers.'''

    def __init__(self, message, code=None):
        """
        Initialize the exception with a message and an optional code.

        Args:
            message (str): The error message.
            code (str, optional): The authorization code received with the failed callback, if any.
        """
        super().__init__(message)
        self.code = code


class CallbackError( ImsOAuthException ):
    '''A callback was received but did not match the login attempt.'''
    pass


class OAuthTimeoutError( ImsOAuthException ):
    '''No callback was received before the deadline.'''
    pass


# Default function to call with debug messages.
DEFAULT_PRINT_DEBUG_FN: Optional[Callable[[str], None]] = None

def set_default_print_debug_fn( fn: Optional[Callable[[str], None]] = None ):
    """
    Set a default function to call with debug messages.

    Args:
        fn (function): the function to call with debug messages.
    """
    global DEFAULT_PRINT_DEBUG_FN
    DEFAULT_PRINT_DEBUG_FN = fn

def debug( msg: str ):
    if DEFAULT_PRINT_DEBUG_FN is not None:
        DEFAULT_PRINT_DEBUG_FN( msg )
