import os
import sys

import pytest

# Get the directory of the current conftest.py file
current_dir = os.path.dirname(os.path.abspath(__file__))

# The project root is two levels up from tests/unit
project_root = os.path.abspath(os.path.join(current_dir, '../../'))

# Insert the project root at the beginning of sys.path
if project_root not in sys.path:
    sys.path.insert(0, project_root)

from ims_oauth import constants


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    """Isolate tests from the user's config file and IMS_OAUTH_* variables."""
    for name in (constants.CONFIG_FILE_ENV_VAR, constants.ENV_ENV_VAR,
                 constants.CLIENT_ID_ENV_VAR, constants.SCOPE_ENV_VAR):
        monkeypatch.delenv(name, raising=False)
    config_path = str(tmp_path / "ims-oauth.yaml")
    monkeypatch.setattr(constants, "CONFIG_FILE_PATH", config_path)
    return config_path
