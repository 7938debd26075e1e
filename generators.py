"""Scaffolding for new projects, formulas and beakers."""

import os
import re
from pathlib import Path
from typing import Union

from constants import (
    DEFAULT_CONFIG_FILE,
    BEAKERS_DIR,
    FORMULAS_DIR,
    FORMULA_LIB_DIR,
    DEFAULT_LOG_PATH,
    DEFAULT_RESULTS_FILE,
    BEAKER_SUFFIX,
    DEFAULT_ENCODING,
)
from exceptions import GeneratorError

CONFIG_TEMPLATE = """\
base_url: http://localhost:8080
concurrency: 1
log:
  path: {log_path}
  results_file: {results_file}
  format: junit
selenium_connect:
  host: localhost
  browser: firefox
"""

GITIGNORE_TEMPLATE = """\
{log_path}/
__pycache__/
.pytest_cache/
"""

FORMULA_TEMPLATE = """\
from selenium.webdriver.common.by import By

from formula import Formula


class {class_name}(Formula):
    \"\"\"Page object for the {title} screen\"\"\"

    def open_page(self):
        self.visit("/")

    def heading(self):
        return self.find(By.TAG_NAME, "h1").text
"""

BEAKER_TEMPLATE = """\
import pytest

pytestmark = pytest.mark.depth("shallow")


class Test{class_name}:
    \"\"\"{title}\"\"\"

    def test_page_loads(self, driver, base_url):
        driver.get(base_url)
        assert driver.title
"""


def snake_case(name: str) -> str:
    """'LoginPage', 'login page' and 'login-page' all become 'login_page'"""
    name = re.sub(r'([a-z0-9])([A-Z])', r'\1_\2', name.strip())
    name = re.sub(r'[^0-9a-zA-Z]+', '_', name)
    return name.strip('_').lower()


def camel_case(name: str) -> str:
    return ''.join(part.capitalize() for part in snake_case(name).split('_'))


def _write(path: Path, content: str) -> Path:
    if path.exists():
        raise GeneratorError(str(path), "file already exists")
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding=DEFAULT_ENCODING)
    print(f"      create  {path}")
    return path


def new_project(name: str, root: Union[str, Path] = None) -> Path:
    """Create the directory layout and config of a new project"""
    if not snake_case(name):
        raise GeneratorError(name, "project name is empty")

    project = Path(root or os.getcwd()) / name
    if project.exists():
        raise GeneratorError(str(project), "directory already exists")

    for directory in (BEAKERS_DIR, os.path.join(FORMULAS_DIR, FORMULA_LIB_DIR), DEFAULT_LOG_PATH):
        (project / directory).mkdir(parents=True)
        print(f"      create  {project / directory}")

    settings = {"log_path": DEFAULT_LOG_PATH, "results_file": DEFAULT_RESULTS_FILE}
    _write(project / DEFAULT_CONFIG_FILE, CONFIG_TEMPLATE.format(**settings))
    _write(project / ".gitignore", GITIGNORE_TEMPLATE.format(**settings))
    return project


def generate_formula(name: str, root: Union[str, Path] = None) -> Path:
    """Write formulas/<name>.py with an empty page object"""
    module = snake_case(name)
    if not module:
        raise GeneratorError(name, "formula name is empty")

    path = Path(root or os.getcwd()) / FORMULAS_DIR / f"{module}.py"
    content = FORMULA_TEMPLATE.format(class_name=camel_case(name), title=module.replace('_', ' '))
    return _write(path, content)


def generate_beaker(name: str, root: Union[str, Path] = None) -> Path:
    """Write beakers/<name>_beaker.py with one shallow example"""
    module = snake_case(name)
    if not module:
        raise GeneratorError(name, "beaker name is empty")
    if module.endswith(BEAKER_SUFFIX):
        module = module[:-len(BEAKER_SUFFIX)]

    path = Path(root or os.getcwd()) / BEAKERS_DIR / f"{module}{BEAKER_SUFFIX}.py"
    content = BEAKER_TEMPLATE.format(class_name=camel_case(module), title=module.replace('_', ' ').capitalize())
    return _write(path, content)
