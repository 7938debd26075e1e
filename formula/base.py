import os

from selenium.webdriver.common.by import By

from constants import BASE_URL_ENV


class Formula:
    """Base class for page objects.

    A formula wraps the interactions with one screen of the application
    under test. Subclasses add methods in the language of that screen:

    >>> class LoginPage(Formula):
    ...     def login(self, user, password):
    ...         self.find(By.ID, "username").send_keys(user)
    ...         self.find(By.ID, "password").send_keys(password)
    ...         self.find(By.CSS_SELECTOR, "button[type=submit]").click()
    """

    def __init__(self, driver, catalyst=None):
        self.driver = driver
        self.catalyst = catalyst

    @property
    def base_url(self):
        return os.environ.get(BASE_URL_ENV, "")

    def open(self, url: str):
        self.driver.get(url)

    def visit(self, path: str = ""):
        """Open a path relative to BASE_URL"""
        self.open(self.base_url.rstrip("/") + "/" + path.lstrip("/"))

    def find(self, by: str, value: str = None):
        """Find one element; a bare value is treated as a CSS selector"""
        if value is None:
            by, value = By.CSS_SELECTOR, by
        return self.driver.find_element(by, value)

    def find_all(self, by: str, value: str = None):
        if value is None:
            by, value = By.CSS_SELECTOR, by
        return self.driver.find_elements(by, value)
