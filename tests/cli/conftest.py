import pytest
from loguru import logger

from dbsoup.config import get_config


@pytest.fixture(autouse=True)
def isolated_cli(tmp_path, monkeypatch):
    """Run every CLI test from a scratch directory with fresh config and log sinks."""
    monkeypatch.chdir(tmp_path)
    get_config.cache_clear()
    yield
    # The app callback binds a sink to the runner's stderr, which is closed afterwards
    logger.remove()
    get_config.cache_clear()
