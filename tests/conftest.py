import pytest

from mustc import ArrayLoader, Engine, EngineConfig


@pytest.fixture
def partials() -> ArrayLoader:
    """Empty in-memory partial source; tests add templates as needed."""
    return ArrayLoader()


@pytest.fixture
def engine(partials: ArrayLoader) -> Engine:
    return Engine(EngineConfig(), partials)
