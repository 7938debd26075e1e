import os
import sys
import logging
import importlib
from pathlib import Path
from typing import Dict, List, Union
from types import ModuleType

from .base import Formula
from .catalyst import Catalyst
from constants import FORMULAS_DIR, FORMULA_LIB_DIR

logger = logging.getLogger(__name__)

__all__ = ["Formula", "Catalyst", "get_formulas", "load_formulas"]


def _load_order(path: Path, directory: Path):
    """Formulas inside a lib directory load before everything else"""
    relative = path.relative_to(directory)
    in_lib = FORMULA_LIB_DIR in relative.parts[:-1]
    return (0 if in_lib else 1, relative.as_posix())


def _forget_formulas():
    """Drop formula modules imported from a previously loaded project"""
    for name in list(sys.modules):
        if name == FORMULAS_DIR or name.startswith(f"{FORMULAS_DIR}."):
            del sys.modules[name]
    importlib.invalidate_caches()


def get_formulas(directory: Union[str, Path]) -> List[Path]:
    """Find every formula file below a directory in load order.

    Parameters
    ----------
    directory : str or Path
        The formulas directory of a project

    Returns
    -------
    List[Path]
        Python files other than __init__.py, shared ``lib`` formulas first,
        then alphabetical by relative path
    """
    directory = Path(directory)
    if not directory.is_dir():
        return []

    files = [
        path for path in directory.rglob("*.py")
        if path.name != "__init__.py" and "__pycache__" not in path.parts
    ]
    return sorted(files, key=lambda path: _load_order(path, directory))


def load_formulas(root: Union[str, Path] = None, silent: bool = True) -> Dict[str, ModuleType]:
    """Import every formula of the project rooted at ``root``.

    Formulas are imported by dotted name (``formulas.lib.base``) so beakers
    can import them the same way. A formula that fails to import is logged
    and skipped.

    Returns
    -------
    Dict[str, ModuleType]
        Imported modules keyed by module name
    """
    root = Path(root or os.getcwd()).resolve()
    if str(root) in sys.path:
        sys.path.remove(str(root))
    sys.path.insert(0, str(root))
    _forget_formulas()

    modules = {}
    for path in get_formulas(root / FORMULAS_DIR):
        module_name = ".".join(path.relative_to(root).with_suffix("").parts)
        try:
            modules[module_name] = importlib.import_module(module_name)
            if not silent:
                print(f"Loaded formula: {module_name}")
        except Exception as e:
            logger.warning(f"Could not load formula from {path}: {e}")

    return modules
