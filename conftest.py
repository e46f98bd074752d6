import pytest
from django.core.cache import cache


@pytest.fixture(autouse=True)
def _reset_throttles():
    # DRF throttle history lives in the cache
    cache.clear()
    yield
    cache.clear()
