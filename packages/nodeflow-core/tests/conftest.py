from pathlib import Path

import sys

# Allow running tests without installing the package.
sys.path.insert(0, str(Path(__file__).resolve().parents[1] / "src"))

import pytest
from nodeflow.core import observability
from nodeflow.core.runtime.settings import Settings


@pytest.fixture()
def settings(tmp_path):
    return Settings(
        log_level="DEBUG",
        log_format="text",
        plugin_paths=[],
        plugin_strict=True,
    )


@pytest.fixture(autouse=True)
def _reset_observability():
    yield
    observability.reset()
