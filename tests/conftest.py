import pytest

from api_compliance.config import get_settings
from api_compliance.registry import REGISTRY


@pytest.fixture(autouse=True)
def clean_state():
    get_settings.cache_clear()
    REGISTRY.clear()
    yield
    REGISTRY.clear()
    get_settings.cache_clear()
