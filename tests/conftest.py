import pytest
from loguru import logger


@pytest.fixture(autouse=True)
def _isolated_environment(monkeypatch: pytest.MonkeyPatch):
    # Keep the developer's shell from leaking into settings resolution
    monkeypatch.delenv("STACKPILOT_APP", raising=False)
    monkeypatch.delenv("STACKPILOT_CONFIG", raising=False)
    yield
    # The CLI callback rebinds loguru to the runner's captured stderr
    logger.remove()
