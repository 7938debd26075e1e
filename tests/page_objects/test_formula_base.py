import pytest
from unittest.mock import MagicMock

from selenium.webdriver.common.by import By

from formula import Formula, Catalyst


class LoginPage(Formula):
    def login(self, user):
        self.find(By.ID, "username").send_keys(user)


def test_visit_joins_base_url(monkeypatch):
    monkeypatch.setenv("BASE_URL", "http://example.test/app/")
    driver = MagicMock()

    LoginPage(driver).visit("login")

    driver.get.assert_called_once_with("http://example.test/app/login")


@pytest.mark.parametrize("base_url,path", [
    ("http://example.test/app", "/login"),
    ("http://example.test/app", "login"),
    ("http://example.test/app/", "/login"),
])
def test_visit_keeps_base_url_path(monkeypatch, base_url, path):
    monkeypatch.setenv("BASE_URL", base_url)
    driver = MagicMock()

    Formula(driver).visit(path)

    driver.get.assert_called_once_with("http://example.test/app/login")


def test_visit_without_path_opens_base_url(monkeypatch):
    monkeypatch.setenv("BASE_URL", "http://example.test")
    driver = MagicMock()

    Formula(driver).visit()

    driver.get.assert_called_once_with("http://example.test/")


def test_open_goes_to_url():
    driver = MagicMock()
    Formula(driver).open("http://example.test")
    driver.get.assert_called_once_with("http://example.test")


def test_find_with_locator():
    driver = MagicMock()

    LoginPage(driver).login("bob")

    driver.find_element.assert_called_once_with(By.ID, "username")
    driver.find_element.return_value.send_keys.assert_called_once_with("bob")


def test_find_with_bare_selector_uses_css():
    driver = MagicMock()

    Formula(driver).find("#login")
    Formula(driver).find_all(".row")

    driver.find_element.assert_called_once_with(By.CSS_SELECTOR, "#login")
    driver.find_elements.assert_called_once_with(By.CSS_SELECTOR, ".row")


@pytest.fixture
def catalyst_file(tmp_path):
    path = tmp_path / "login.csv"
    path.write_text("username,bob\npassword,s3cret\n\nempty\n")
    return path


def test_catalyst_values(catalyst_file):
    catalyst = Catalyst(catalyst_file)

    assert catalyst.username == "bob"
    assert catalyst.get_value_for("password") == "s3cret"
    assert catalyst.empty is None
    assert catalyst.keys() == ["username", "password", "empty"]
    assert "username" in catalyst


def test_catalyst_unknown_key(catalyst_file):
    catalyst = Catalyst(catalyst_file)

    with pytest.raises(AttributeError, match="Unknown key 'colour'"):
        catalyst.colour
    assert catalyst.get_value_for("colour") is None


def test_formula_carries_catalyst(catalyst_file):
    formula = Formula(MagicMock(), catalyst=Catalyst(catalyst_file))
    assert formula.catalyst.username == "bob"
