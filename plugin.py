"""pytest plugins that turn a pytest session into a ChemistryKit brew."""

import os
import random
import logging
from pathlib import Path
from typing import List, Optional

import pytest

from config_utils import Configuration
from constants import BASE_URL_ENV
from driver import DriverFactory
from tag_filters import TagFilters, tag_strings

logger = logging.getLogger(__name__)


class BrewPlugin:
    """Selects, orders and equips beaker examples.

    Attributes:
        config (Configuration): Harness configuration
        filters (TagFilters): Tag filters to apply during collection
        run_all (bool): Ignore every filter
        seed (int): Seed for the random example order
        driver_factory (DriverFactory): Starts a browser per example
    """

    def __init__(self, config: Configuration, filters: Optional[TagFilters] = None,
                 run_all: bool = False, seed: Optional[int] = None,
                 driver_factory: Optional[DriverFactory] = None, root: Optional[Path] = None):
        self.config = config
        self.filters = filters or TagFilters()
        self.run_all = run_all
        self.seed = seed if seed is not None else random.randrange(100000)
        self.driver_factory = driver_factory or DriverFactory(config.selenium_connect)
        self.root = Path(root or os.getcwd())

    def pytest_sessionstart(self, session):
        if self.config.base_url:
            os.environ[BASE_URL_ENV] = str(self.config.base_url)

    def pytest_collection_modifyitems(self, session, config, items):
        if not self.run_all and self.filters:
            selected, deselected = [], []
            for item in items:
                (selected if self.filters.matches(item) else deselected).append(item)
            if deselected:
                config.hook.pytest_deselected(items=deselected)
            items[:] = selected

        random.Random(self.seed).shuffle(items)

    def pytest_report_header(self, config):
        return f"ckit: randomized with seed {self.seed}"

    @pytest.hookimpl(hookwrapper=True)
    def pytest_runtest_makereport(self, item, call):
        outcome = yield
        report = outcome.get_result()
        if report.when == "call" and report.failed:
            self._capture_evidence(item)

    def _capture_evidence(self, item):
        """Save a screenshot of the failing example's browser"""
        session = getattr(item, "funcargs", {}).get("driver")
        if session is None:
            return
        evidence_dir = self.config.log_dir(self.root)
        evidence_dir.mkdir(parents=True, exist_ok=True)
        name = "".join(c if c.isalnum() or c in "-_." else "_" for c in item.nodeid)
        path = evidence_dir / f"{name}.png"
        try:
            session.save_screenshot(str(path))
            logger.info(f"Saved screenshot for {item.nodeid} to {path}")
        except Exception as e:
            logger.warning(f"Could not save screenshot for {item.nodeid}: {e}")

    def pytest_sessionfinish(self, session, exitstatus):
        self.driver_factory.finish()

    @pytest.fixture(scope="session")
    def ckit_config(self):
        """The harness configuration"""
        return self.config

    @pytest.fixture(scope="session")
    def base_url(self):
        return self.config.base_url

    @pytest.fixture
    def driver(self):
        """A fresh browser session, quit when the example finishes"""
        session = self.driver_factory.start()
        yield session
        self.driver_factory.quit(session)


class TagCollector:
    """Records every tag in use during a collect-only session"""

    def __init__(self, silent: bool = False):
        self.used_tags: List[str] = []
        self.silent = silent

    def pytest_collection_modifyitems(self, session, config, items):
        for item in items:
            for tag in tag_strings(item):
                if tag not in self.used_tags:
                    self.used_tags.append(tag)
        self.used_tags.sort()

    def pytest_collection_finish(self, session):
        if not self.silent:
            print("\nTags used in harness:\n")
            for tag in self.used_tags:
                print(tag)
