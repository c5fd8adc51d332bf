import pathlib
import site

import pytest
from dbloader.strategy import get_strategy
from dbloader.utils.connection_utils import dispose_all_engines

HERE = pathlib.Path(pathlib.Path(__file__).resolve()).parent
site.addsitedir(HERE)


@pytest.fixture(autouse=True)
def clear_engines():
    """Dispose cached engines and strategies around each test to ensure test isolation."""
    dispose_all_engines()
    get_strategy.cache_clear()
    yield
    dispose_all_engines()
    get_strategy.cache_clear()


pytest_plugins = [
    'tests.fixtures.mocks',
    'tests.fixtures.values',
    'tests.fixtures.sqlite',
    'tests.fixtures.postgres',
]
