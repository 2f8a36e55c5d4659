import pytest

from forestmap import config as fm_config

_ENV_VARS = [
    "FORESTMAP_LOG_LEVEL",
    "FORESTMAP_ENABLE_DIAGNOSTICS",
    "FORESTMAP_ARENA_CAPACITY",
    "FORESTMAP_ARENA_GROWTH",
    "FORESTMAP_INDEX_DTYPE",
    "FORESTMAP_PRUNE_ON_DELETE",
    "FORESTMAP_VALIDATE",
]


@pytest.fixture(autouse=True)
def _isolated_runtime_config(monkeypatch: pytest.MonkeyPatch):
    for key in _ENV_VARS:
        monkeypatch.delenv(key, raising=False)
    fm_config.reset_runtime_config_cache()
    yield
    fm_config.reset_runtime_config_cache()
