import logging
import threading
from typing import Any, Dict, List, Optional

from selenium import webdriver
from selenium.common.exceptions import WebDriverException

from constants import (
    DEFAULT_HOST,
    DEFAULT_PORT,
    DEFAULT_BROWSER,
    SAUCELABS_HOST,
    SAUCELABS_URL,
)
from exceptions import DriverError, UnsupportedBrowserError

logger = logging.getLogger(__name__)

# browser name -> (driver class, options class) on the selenium webdriver module
BROWSERS = {
    'firefox': ('Firefox', 'FirefoxOptions'),
    'chrome': ('Chrome', 'ChromeOptions'),
    'edge': ('Edge', 'EdgeOptions'),
    'safari': ('Safari', 'SafariOptions'),
}

HEADLESS_BROWSERS = ['firefox', 'chrome', 'edge']


class DriverFactory:
    """Starts and tracks browser sessions for beakers.

    Settings come from the ``selenium_connect`` section of config.yaml:

    - ``host``: ``localhost`` (default) runs a local browser, ``saucelabs``
      runs on Sauce Labs, anything else is a Selenium Grid host
    - ``port``: grid port (default 4444)
    - ``browser``: firefox, chrome, edge or safari (default firefox)
    - ``headless``: run local browsers without a window
    - ``arguments``: extra browser command-line arguments
    - ``browser_version``, ``os``: remote capabilities
    - ``sauce_username``, ``sauce_api_key``, ``description``: Sauce Labs job
    """

    def __init__(self, settings: Optional[Dict[str, Any]] = None):
        self.settings = dict(settings or {})
        self.sessions: List[Any] = []
        self._lock = threading.Lock()

    @property
    def browser(self) -> str:
        return str(self.settings.get('browser', DEFAULT_BROWSER)).lower()

    @property
    def host(self) -> str:
        return str(self.settings.get('host', DEFAULT_HOST))

    def _remote_url(self) -> str:
        if self.host == SAUCELABS_HOST:
            return SAUCELABS_URL
        port = self.settings.get('port', DEFAULT_PORT)
        return f"http://{self.host}:{port}/wd/hub"

    def build_options(self):
        """Browser options carrying every configured capability"""
        if self.browser not in BROWSERS:
            raise UnsupportedBrowserError(self.browser)

        options = getattr(webdriver, BROWSERS[self.browser][1])()

        if self.settings.get('headless') and self.browser in HEADLESS_BROWSERS:
            options.add_argument('--headless')
        for argument in self.settings.get('arguments') or []:
            options.add_argument(argument)

        if self.settings.get('browser_version'):
            options.set_capability('browserVersion', str(self.settings['browser_version']))
        if self.settings.get('os'):
            options.set_capability('platformName', self.settings['os'])

        if self.host == SAUCELABS_HOST:
            sauce_options = {
                'username': self.settings.get('sauce_username'),
                'accessKey': self.settings.get('sauce_api_key'),
            }
            if self.settings.get('description'):
                sauce_options['name'] = self.settings['description']
            options.set_capability('sauce:options', sauce_options)

        return options

    def start(self):
        """Start a new browser session and return its WebDriver"""
        options = self.build_options()

        try:
            if self.host == DEFAULT_HOST:
                logger.debug(f"Starting local {self.browser} session")
                session = getattr(webdriver, BROWSERS[self.browser][0])(options=options)
            else:
                url = self._remote_url()
                logger.debug(f"Starting remote {self.browser} session on {url}")
                session = webdriver.Remote(command_executor=url, options=options)
        except WebDriverException as e:
            raise DriverError(f"Could not start {self.browser} on {self.host}: {e.msg}")

        with self._lock:
            self.sessions.append(session)
        return session

    def quit(self, session):
        """Quit one session started by this factory"""
        with self._lock:
            if session in self.sessions:
                self.sessions.remove(session)
        try:
            session.quit()
        except WebDriverException as e:
            logger.warning(f"Browser session did not quit cleanly: {e.msg}")

    def finish(self):
        """Quit every session still open"""
        with self._lock:
            remaining = list(self.sessions)
        for session in remaining:
            self.quit(session)
