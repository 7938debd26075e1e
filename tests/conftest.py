import pytest
import yaml
import os

from config_utils import clear_config_cache
from constants import BASE_URL_ENV, WORKER_NUMBER_ENV, WORKER_COUNT_ENV

pytest_plugins = ["pytester"]


class FakeItem:
    """Stands in for a pytest item carrying markers (closest first)."""

    def __init__(self, *marks, nodeid="beakers/fake_beaker.py::test_example"):
        self.marks = [m.mark if hasattr(m, "mark") else m for m in marks]
        self.nodeid = nodeid

    def iter_markers(self, name=None):
        return (m for m in self.marks if name is None or m.name == name)

    def get_closest_marker(self, name, default=None):
        return next(self.iter_markers(name), default)


@pytest.fixture
def fake_item():
    """Factory for items tagged with the given pytest marks."""
    return FakeItem


@pytest.fixture
def base_config_dict():
    """Returns a base configuration dictionary for tests."""
    return {
        "base_url": "http://localhost:8080",
        "concurrency": 1,
        "log": {
            "path": "evidence",
            "results_file": "results_junit.xml",
            "format": "junit",
        },
        "selenium_connect": {
            "host": "localhost",
            "browser": "firefox",
        },
    }


@pytest.fixture
def tmp_config(tmp_path, base_config_dict):
    """Creates a temporary config file; call with overrides to change values."""

    def _write(**overrides):
        config_data = dict(base_config_dict)
        config_data.update(overrides)
        config_path = tmp_path / "config.yaml"
        with open(config_path, "w") as f:
            yaml.dump(config_data, f)
        return str(config_path)

    return _write


@pytest.fixture
def beaker_project(tmp_path):
    """A project directory with config.yaml and a few tagged beakers."""
    project = tmp_path / "project"
    (project / "beakers").mkdir(parents=True)
    (project / "formulas" / "lib").mkdir(parents=True)

    (project / "config.yaml").write_text(
        "base_url: http://example.test\n"
        "concurrency: 1\n"
        "log:\n"
        "  path: evidence\n"
        "  results_file: results_junit.xml\n"
    )
    (project / "beakers" / "login_beaker.py").write_text(
        "import pytest\n"
        "\n"
        "@pytest.mark.depth('shallow')\n"
        "def test_login_form_shows():\n"
        "    assert True\n"
        "\n"
        "@pytest.mark.depth('deep')\n"
        "@pytest.mark.speed('slow')\n"
        "def test_login_lockout():\n"
        "    assert True\n"
    )
    (project / "beakers" / "search_beaker.py").write_text(
        "import pytest\n"
        "\n"
        "pytestmark = pytest.mark.depth('shallow')\n"
        "\n"
        "@pytest.mark.smoke\n"
        "def test_search_box():\n"
        "    assert True\n"
    )
    return project


@pytest.fixture
def clean_env(monkeypatch):
    """Cleans environment variables that might leak between tests."""
    # setenv first so teardown removes values the code under test exports
    for var in [BASE_URL_ENV, WORKER_NUMBER_ENV, WORKER_COUNT_ENV, "CKIT_DEBUG"]:
        monkeypatch.setenv(var, "")
        monkeypatch.delenv(var)

    yield


@pytest.fixture(autouse=True)
def clean_config_cache():
    """Config loading is cached per path; start every test empty."""
    clear_config_cache()
    yield
    clear_config_cache()


@pytest.fixture(autouse=True)
def clean_work_dir(tmp_path, monkeypatch):
    """Automatically changes to a clean working directory for each test."""
    original_cwd = os.getcwd()
    test_dir = tmp_path / "test_workspace"
    test_dir.mkdir()

    monkeypatch.chdir(test_dir)

    yield test_dir

    os.chdir(original_cwd)
