"""
登入頁面 Page Object

負責實際的登入表單操作，也是 SessionCache 的 login collaborator：
login_and_capture() 成功時回傳 session artifact，失敗時拋出 LoginFailed。
"""

from selenium.common.exceptions import TimeoutException
from selenium.webdriver.common.by import By
from selenium.webdriver.support.ui import WebDriverWait

from core.base_page import BasePage
from core.browser import BrowserAdapter
from core.classifier import PageType
from core.exceptions import ElementNotFoundError, LoginFailed
from core.page_context import PAGE_DEFINITIONS
from utils.logger import logger


class LoginPage(BasePage):
    """登入頁面"""

    # ── Locators ──
    USERNAME_INPUT = (
        By.CSS_SELECTOR,
        "[data-testid='username'], input[name='username'], input[id*='username']",
    )
    PASSWORD_INPUT = (
        By.CSS_SELECTOR,
        "[data-testid='password'], input[name='password'], input[type='password']",
    )
    LOGIN_BUTTON = (
        By.CSS_SELECTOR,
        "[data-testid='login-button'], input[value='Login'], button[type='submit']",
    )
    ERROR_MESSAGE = (
        By.CSS_SELECTOR,
        "[data-testid='login-error'], .login-error, mat-error",
    )

    def __init__(self, driver, browser: BrowserAdapter | None = None, timeout: float | None = None):
        super().__init__(driver, timeout)
        self.browser = browser or BrowserAdapter(driver)

    # ── 頁面操作 ──

    def open(self) -> "LoginPage":
        self.browser.navigate(PAGE_DEFINITIONS[PageType.LOGIN].route)
        return self

    def enter_username(self, username: str) -> "LoginPage":
        self.input_text(self.USERNAME_INPUT, username)
        return self

    def enter_password(self, password: str) -> "LoginPage":
        self.input_text(self.PASSWORD_INPUT, password, secret=True)
        return self

    def tap_login(self) -> None:
        self.click(self.LOGIN_BUTTON)

    def login(self, username: str, password: str) -> None:
        """填表並送出（不判斷結果）"""
        self.enter_username(username)
        self.enter_password(password)
        self.tap_login()

    def login_and_capture(self, identity: str, proof) -> dict:
        """
        完整登入並擷取 session artifact。

        送出後等到密碼欄位消失（成功）或錯誤訊息出現（失敗）。

        Raises:
            LoginFailed: 找不到登入表單、帳密被拒、或送出後仍停在登入頁
        """
        logger.info(f"登入: {identity}")
        self.open()
        try:
            self.login(identity, str(proof))
        except ElementNotFoundError as e:
            raise LoginFailed(identity, f"找不到登入表單: {e}") from e

        try:
            WebDriverWait(self.driver, self.timeout).until(
                lambda _: self.is_element_displayed(self.ERROR_MESSAGE)
                or not self.is_element_displayed(self.PASSWORD_INPUT)
            )
        except TimeoutException as e:
            raise LoginFailed(identity, "送出後仍停留在登入頁") from e

        if self.is_element_displayed(self.ERROR_MESSAGE):
            raise LoginFailed(identity, self.get_error_message())

        return self.browser.read_storage_artifacts()

    # ── 頁面驗證 ──

    def get_error_message(self) -> str:
        return self.get_text(self.ERROR_MESSAGE).strip()

    def is_login_page_displayed(self) -> bool:
        return self.is_element_displayed(self.PASSWORD_INPUT)
