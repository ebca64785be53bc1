"""
pages.login_page 單元測試
以 mock driver 驗證登入流程的成功與失敗判定。
"""

from unittest.mock import MagicMock, patch

import pytest

from core.exceptions import ElementNotFoundError, LoginFailed
from pages.login_page import LoginPage


def _page(error_shown=False, password_still_visible=False):
    driver = MagicMock()
    browser = MagicMock()
    browser.read_storage_artifacts.return_value = {"cookies": [{"name": "jwt", "value": "t"}]}
    page = LoginPage(driver, browser, timeout=0.5)

    def displayed(locator):
        if locator == LoginPage.ERROR_MESSAGE:
            return error_shown
        if locator == LoginPage.PASSWORD_INPUT:
            return password_still_visible
        return False

    page.is_element_displayed = MagicMock(side_effect=displayed)
    return page, driver, browser


@pytest.mark.unit
class TestLoginAndCapture:
    """login collaborator"""

    @pytest.mark.unit
    @patch.object(LoginPage, "login")
    def test_success_returns_artifact(self, mock_login):
        page, _, browser = _page()
        artifact = page.login_and_capture("admin", "adminadminadmin")
        assert artifact["cookies"][0]["name"] == "jwt"
        browser.navigate.assert_called_once_with("#/login")
        mock_login.assert_called_once_with("admin", "adminadminadmin")

    @pytest.mark.unit
    @patch.object(LoginPage, "get_error_message", return_value="Invalid credentials")
    @patch.object(LoginPage, "login")
    def test_rejected_credentials(self, mock_login, mock_error):
        page, _, browser = _page(error_shown=True, password_still_visible=True)
        with pytest.raises(LoginFailed, match="Invalid credentials"):
            page.login_and_capture("admin", "wrong")
        browser.read_storage_artifacts.assert_not_called()

    @pytest.mark.unit
    @patch.object(LoginPage, "login")
    def test_stuck_on_login_page(self, mock_login):
        page, _, _ = _page(password_still_visible=True)
        with pytest.raises(LoginFailed, match="登入頁"):
            page.login_and_capture("admin", "pw")

    @pytest.mark.unit
    @patch.object(LoginPage, "login", side_effect=ElementNotFoundError(("css", "input"), 0.5))
    def test_form_missing(self, mock_login):
        page, _, _ = _page()
        with pytest.raises(LoginFailed, match="找不到登入表單"):
            page.login_and_capture("admin", "pw")


class TestFormActions:

    @patch.object(LoginPage, "tap_login")
    @patch.object(LoginPage, "input_text")
    def test_login_fills_form(self, mock_input, mock_tap):
        page = LoginPage(MagicMock(), MagicMock())
        page.login("admin", "secret")
        mock_input.assert_any_call(LoginPage.USERNAME_INPUT, "admin")
        mock_input.assert_any_call(LoginPage.PASSWORD_INPUT, "secret", secret=True)
        mock_tap.assert_called_once()

    def test_is_login_page_displayed(self):
        driver = MagicMock()
        el = MagicMock()
        el.is_displayed.return_value = True
        driver.find_elements.return_value = [el]
        assert LoginPage(driver, MagicMock()).is_login_page_displayed() is True
