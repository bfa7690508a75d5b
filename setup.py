from setuptools import setup

__version__ = "1.0.0"
__license__ = "Apache v2"

setup( name = 'ims-oauth',
       version = __version__,
       description = 'Loopback OAuth callback receiver for browser based IMS CLI logins',
       license = __license__,
       packages = [ 'ims_oauth' ],
       zip_safe = True,
       python_requires = '>=3.8',
       install_requires = [ 'orjson', 'pyyaml', 'rich', 'playwright' ],
       extras_require = {
           'test': [ 'pytest' ],
       },
       long_description = 'Local loopback callback server and native window helper used to complete a browser based IMS OAuth login.',
       entry_points = {
           'console_scripts': [
               'ims-oauth=ims_oauth.__main__:main',
               'ims-oauth-window=ims_oauth.oauth_window:main',
           ],
       },
)
