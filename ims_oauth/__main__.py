import sys
import traceback


def cli(args):
    """
    Command line interface for the IMS OAuth login helpers.

    Args:
        args (list): list of CLI arguments to parse.
    """
    import argparse
    from rich.console import Console

    from . import json_utils
    from .config import loadSettings

    # Messages go to stderr, stdout only carries the resulting code.
    console = Console( stderr = True )

    parser = argparse.ArgumentParser( prog = 'ims-oauth' )
    parser.add_argument( 'action',
                         type = str,
                         help = 'action, currently supported "login" (log in through the browser and print the code), "url" (print the login url for a new session, without starting a callback server), "version"' )

    # Hack around a bit so that we can pass the help
    # to the proper sub-command line.
    rootArgs = args[ 1: 2 ]

    # Everything after the command name and the action name that is passed
    # to the action argument parser.
    actionArgs = args[ 2: ]
    args = parser.parse_args( rootArgs )

    def addLoginArgs( parser ):
        parser.add_argument( '--env', '--environment',
                             type = str,
                             default = None,
                             dest = 'env',
                             help = 'IMS environment, "prod" or "stage" (default: from config, else "prod")' )
        parser.add_argument( '--client-id',
                             type = str,
                             default = None,
                             help = 'IMS client id' )
        parser.add_argument( '--scope',
                             type = str,
                             default = None,
                             help = 'scopes to request' )
        parser.add_argument( '--code-type',
                             type = str,
                             default = None,
                             choices = [ 'auth_code', 'access_token' ],
                             help = 'what the login site should send back' )

    if args.action.lower() == 'version':
        from . import __version__
        print( "IMS OAuth Version %s" % ( __version__, ) )
    elif args.action.lower() == 'login':
        from .oauth_login import login

        parser = argparse.ArgumentParser( prog = 'ims-oauth login' )
        addLoginArgs( parser )
        parser.add_argument( '--no-browser',
                             action = 'store_true',
                             help = 'print URL instead of opening browser' )
        parser.add_argument( '--timeout',
                             type = int,
                             default = None,
                             help = 'seconds to wait for the login to complete' )
        login_args = parser.parse_args( actionArgs )

        settings = loadSettings( env = login_args.env,
                                 client_id = login_args.client_id,
                                 scope = login_args.scope,
                                 timeout = login_args.timeout )

        code = login( client_id = settings[ 'client_id' ],
                      scope = settings[ 'scope' ],
                      env = settings[ 'env' ],
                      code_type = login_args.code_type,
                      no_browser = login_args.no_browser,
                      timeout = settings[ 'timeout' ],
                      console = console )

        console.print( "[bold green]Login successful.[/bold green]" )
        if isinstance( code, str ):
            print( code )
        else:
            print( json_utils.dumps( code, indent = 2 ) )
    elif args.action.lower() == 'url':
        from .helpers import random_id
        from .oauth_login import build_login_url

        parser = argparse.ArgumentParser( prog = 'ims-oauth url',
                                          description = 'Print the login url for a new session. No callback server is started, the caller must run its own on --port and check callbacks against the printed session id.' )
        addLoginArgs( parser )
        parser.add_argument( '--port',
                             type = int,
                             required = True,
                             help = 'port where your own callback server listens' )
        url_args = parser.parse_args( actionArgs )

        settings = loadSettings( env = url_args.env,
                                 client_id = url_args.client_id,
                                 scope = url_args.scope )
        sessionId = random_id()
        console.print( "Session id: %s" % ( sessionId, ), highlight = False )
        print( build_login_url( sessionId,
                                url_args.port,
                                settings[ 'env' ],
                                client_id = settings[ 'client_id' ],
                                scope = settings[ 'scope' ],
                                code_type = url_args.code_type ) )
    else:
        raise Exception( 'invalid action' )


def main():
    args = sys.argv

    # Hack since we don't have access to parsed args here and parsing itself may fail
    debug_mode = False
    if "--debug" in args:
        debug_mode = True
        args.remove("--debug")
        from .utils import set_default_print_debug_fn
        set_default_print_debug_fn(lambda x: print(x, file=sys.stderr))

    try:
        cli(args)
    except Exception as e:
        print("Error:", e, file=sys.stderr)

        if debug_mode:
            print(traceback.format_exc(), file=sys.stderr)

        return 1

    return 0

if __name__ == "__main__":
    sys.exit(main())
