import os
import logging
from pathlib import Path
from typing import List, Optional, Sequence, Union

import pytest

from config_utils import Configuration
from constants import BEAKERS_DIR, BEAKER_PATTERN
from exceptions import BeakerNotFoundError, BeakerCollectionError
from formula import load_formulas
from plugin import BrewPlugin, TagCollector
from tag_filters import TagFilters

logger = logging.getLogger(__name__)


def discover_beakers(root: Union[str, Path] = None) -> List[str]:
    """Every beaker file under ``<root>/beakers``, sorted"""
    beakers_dir = Path(root or os.getcwd()) / BEAKERS_DIR
    return sorted(str(path) for path in beakers_dir.rglob(BEAKER_PATTERN))


def check_beakers(beakers: Sequence[str]) -> List[str]:
    """Make sure explicitly named beakers exist"""
    for beaker in beakers:
        if not Path(beaker).exists():
            raise BeakerNotFoundError(beaker)
    return list(beakers)


def build_pytest_args(beakers: Sequence[str], results_path: Optional[Path] = None) -> List[str]:
    """
    Command-line arguments for a pytest session over the given beakers.

    Parameters
    ----------
    beakers : Sequence[str]
        Beaker files or directories
    results_path : Path, optional
        Where to write JUnit XML; omitted when the parent of a parallel
        brew is going to merge worker results instead

    Returns
    -------
    List[str]
        Arguments suitable for pytest.main
    """
    args = list(beakers)
    args += ["-o", f"python_files={BEAKER_PATTERN}", "-p", "no:cacheprovider"]
    # beaker tags are arbitrary markers
    args += ["-W", "ignore::pytest.PytestUnknownMarkWarning"]
    if results_path is not None:
        args.append(f"--junitxml={results_path}")
    return args


def run_beakers(beakers: Sequence[str], config: Configuration, filters: Optional[TagFilters] = None,
                run_all: bool = False, parallel: bool = False, seed: Optional[int] = None,
                root: Union[str, Path] = None) -> int:
    """Run beakers in this process and return pytest's exit code.

    Results are written to the configured JUnit file only when this process
    owns the whole run (concurrency 1) or is one worker of a parallel brew.
    """
    root = Path(root or os.getcwd())

    results_path = None
    if config.concurrency == 1 or parallel:
        results_path = config.results_path(root)
        results_path.parent.mkdir(parents=True, exist_ok=True)

    plugin = BrewPlugin(config, filters=filters, run_all=run_all, seed=seed, root=root)
    args = build_pytest_args(beakers, results_path)

    logger.debug(f"Running pytest with {args}")
    exit_code = pytest.main(args, plugins=[plugin])
    # a filter that selects nothing is not a failure
    if exit_code == pytest.ExitCode.NO_TESTS_COLLECTED:
        return 0
    return int(exit_code)


def list_tags(root: Union[str, Path] = None, silent: bool = False) -> List[str]:
    """Collect every beaker without running it and report the tags in use"""
    beakers = discover_beakers(root)
    if not beakers:
        raise BeakerNotFoundError(str(Path(root or os.getcwd()) / BEAKERS_DIR))

    # beakers import formulas the same way during collection as during a brew
    load_formulas(root)

    collector = TagCollector(silent=silent)
    args = build_pytest_args(beakers) + ["--collect-only", "-q"]
    exit_code = pytest.main(args, plugins=[collector])
    if exit_code not in (pytest.ExitCode.OK, pytest.ExitCode.NO_TESTS_COLLECTED):
        raise BeakerCollectionError(int(exit_code))
    return collector.used_tags
