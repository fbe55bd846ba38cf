"""
Tests for environment parsing and data directory resolution.
"""

from jaxspot.core import config
from jaxspot.core.paths import get_data_dir, get_positions_path, get_project_root


def test_env_float_falls_back_on_garbage(monkeypatch):
    monkeypatch.setenv("JAXSPOT_TEST_VALUE", "fast")
    assert config._env_float("JAXSPOT_TEST_VALUE", 5.0) == 5.0

    monkeypatch.setenv("JAXSPOT_TEST_VALUE", "2.5")
    assert config._env_float("JAXSPOT_TEST_VALUE", 5.0) == 2.5
    assert config._env_int("JAXSPOT_TEST_VALUE", 7) == 2

    monkeypatch.delenv("JAXSPOT_TEST_VALUE")
    assert config._env_int("JAXSPOT_TEST_VALUE", 7) == 7


def test_utc_now_is_aware():
    assert config.utc_now().utcoffset().total_seconds() == 0


def test_data_dir_override_is_created(tmp_path):
    target = tmp_path / "nested" / "data"
    data_dir = get_data_dir(str(target))

    assert data_dir == target
    assert target.is_dir()
    assert get_positions_path(data_dir).name == "positions.json"


def test_project_root_holds_src():
    assert (get_project_root() / "src" / "jaxspot").is_dir()
