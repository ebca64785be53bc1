"""
Page Object 基底類別

所有 Page Object 都繼承此類，提供通用的元素操作方法。
元素等待一律使用 explicit wait (WebDriverWait)，逾時轉成 ElementNotFoundError。
"""

from selenium.common.exceptions import TimeoutException, WebDriverException
from selenium.webdriver.remote.webelement import WebElement
from selenium.webdriver.support import expected_conditions as EC
from selenium.webdriver.support.ui import WebDriverWait

from config.config import Config
from core.exceptions import ElementNotFoundError
from utils.logger import logger


class BasePage:
    """
    Page Object 基底類別

    提供：
    - 元素等待與查找
    - 點擊、輸入等通用操作
    """

    def __init__(self, driver, timeout: float | None = None):
        self.driver = driver
        self.timeout = timeout or Config.WAIT_TIMEOUT_MS / 1000
        self.wait = WebDriverWait(driver, self.timeout)

    # ── 元素查找 ──

    def find_element(self, locator: tuple) -> WebElement:
        """等待元素出現並回傳"""
        try:
            return self.wait.until(EC.presence_of_element_located(locator))
        except TimeoutException:
            raise ElementNotFoundError(locator, self.timeout)

    def wait_for_clickable(self, locator: tuple) -> WebElement:
        try:
            return self.wait.until(EC.element_to_be_clickable(locator))
        except TimeoutException:
            raise ElementNotFoundError(locator, self.timeout)

    def wait_for_visible(self, locator: tuple) -> WebElement:
        try:
            return self.wait.until(EC.visibility_of_element_located(locator))
        except TimeoutException:
            raise ElementNotFoundError(locator, self.timeout)

    def is_element_displayed(self, locator: tuple) -> bool:
        """立即判斷，不等待"""
        try:
            return any(el.is_displayed() for el in self.driver.find_elements(*locator))
        except WebDriverException:
            return False

    # ── 元素操作 ──

    def click(self, locator: tuple) -> None:
        logger.info(f"點擊元素: {locator}")
        self.wait_for_clickable(locator).click()

    def input_text(self, locator: tuple, text: str, secret: bool = False) -> None:
        """清除後輸入文字"""
        shown = "***" if secret else text
        logger.info(f"輸入文字: '{shown}' -> {locator}")
        element = self.wait_for_visible(locator)
        element.clear()
        element.send_keys(text)

    def get_text(self, locator: tuple) -> str:
        return self.find_element(locator).text

