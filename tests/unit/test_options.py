import pytest
from dbloader.options import LoaderOptions


def test_init_defaults():
    """Test default initialization"""
    options = LoaderOptions()

    assert options.fetch_size == 5000
    assert options.stream_results is True
    assert options.timeout == 0
    assert options.appname


def test_explicit_appname():
    options = LoaderOptions(appname='loader_test')
    assert options.appname == 'loader_test'


@pytest.mark.parametrize('fetch_size', [0, -1])
def test_fetch_size_validation(fetch_size):
    with pytest.raises(ValueError, match='fetch_size must be positive'):
        LoaderOptions(fetch_size=fetch_size)


def test_timeout_validation():
    with pytest.raises(ValueError, match='timeout must not be negative'):
        LoaderOptions(timeout=-1)
