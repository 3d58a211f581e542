import pytest

from ubcalc import core


@pytest.fixture(autouse=True)
def restore_config():
    yield
    core.reset_config()
