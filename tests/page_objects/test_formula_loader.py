import sys
import pytest
from pathlib import Path

from formula import get_formulas, load_formulas


@pytest.fixture
def formula_project(tmp_path):
    """A project with formulas spread across lib and feature directories."""
    root = tmp_path / "proj"
    formulas = root / "formulas"
    (formulas / "lib").mkdir(parents=True)
    (formulas / "admin").mkdir()
    (formulas / "__init__.py").write_text("")
    (formulas / "lib" / "base_page.py").write_text("LOADED = True\n")
    (formulas / "login_page.py").write_text("from formulas.lib.base_page import LOADED\n")
    (formulas / "admin" / "users_page.py").write_text("NAME = 'users'\n")
    (formulas / "notes.txt").write_text("not a formula")
    yield root
    for name in [n for n in sys.modules if n == "formulas" or n.startswith("formulas.")]:
        del sys.modules[name]
    if str(root) in sys.path:
        sys.path.remove(str(root))


def test_lib_formulas_come_first(formula_project):
    formulas = get_formulas(formula_project / "formulas")

    relative = [p.relative_to(formula_project / "formulas").as_posix() for p in formulas]
    assert relative == ["lib/base_page.py", "admin/users_page.py", "login_page.py"]


def test_missing_directory_gives_nothing(tmp_path):
    assert get_formulas(tmp_path / "nope") == []


def test_load_formulas_imports_by_dotted_name(formula_project):
    modules = load_formulas(formula_project)

    assert set(modules) == {"formulas.lib.base_page", "formulas.admin.users_page", "formulas.login_page"}
    assert modules["formulas.login_page"].LOADED is True
    assert str(formula_project.resolve()) in sys.path


def test_broken_formula_is_skipped(formula_project, caplog):
    (formula_project / "formulas" / "broken_page.py").write_text("raise RuntimeError('boom')\n")

    modules = load_formulas(formula_project)

    assert "formulas.broken_page" not in modules
    assert "formulas.login_page" in modules
    assert "boom" in caplog.text


def test_loading_another_project_replaces_cached_formulas(formula_project, tmp_path, monkeypatch):
    monkeypatch.setattr(sys, "path", list(sys.path))
    load_formulas(formula_project)

    other = tmp_path / "other"
    (other / "formulas" / "lib").mkdir(parents=True)
    (other / "formulas" / "__init__.py").write_text("")
    (other / "formulas" / "lib" / "base_page.py").write_text("LOADED = 'other'\n")

    modules = load_formulas(other)

    assert modules["formulas.lib.base_page"].LOADED == "other"
    assert sys.path[0] == str(other.resolve())
