"""
Driver 生命週期管理

負責建立、取得、關閉 Selenium WebDriver，確保每個測試 session 獨立。

支援：
- Chrome / Firefox，本機或 Selenium Grid (SELENIUM_REMOTE_URL)
- 執行緒安全（每個執行緒各自一個 driver）
- Grid 連線前健康檢查
- 連線失敗自動重試（指數退避）
"""

import threading
import time

import requests
from selenium import webdriver
from selenium.common.exceptions import WebDriverException

from config.config import SUPPORTED_BROWSERS, Config
from core.exceptions import (
    DriverConnectionError,
    InvalidConfigError,
)
from utils.logger import logger


class DriverManager:
    """
    管理 Selenium WebDriver 的建立與銷毀

    使用 thread-local storage 保存 driver。
    """

    _local = threading.local()

    # ── Selenium Grid 健康檢查 ──

    @classmethod
    def health_check(cls, url: str | None = None, timeout: float = 5.0) -> bool:
        """
        檢查 Selenium Grid 是否可用。

        Args:
            url: Grid URL，預設讀取 Config.REMOTE_URL
            timeout: 連線逾時秒數

        Returns:
            True = Grid 可用, False = 不可用
        """
        url = (url or Config.REMOTE_URL).rstrip("/")
        if not url:
            return False
        try:
            resp = requests.get(f"{url}/status", timeout=timeout)
        except requests.RequestException:
            return False
        if resp.status_code != 200:
            return False
        try:
            return bool(resp.json().get("value", {}).get("ready", True))
        except ValueError:
            return True

    # ── Driver 建立 ──

    @staticmethod
    def build_options(browser: str, headless: bool | None = None):
        """依瀏覽器種類建立 Options"""
        headless = Config.HEADLESS if headless is None else headless
        if browser == "chrome":
            options = webdriver.ChromeOptions()
            if headless:
                options.add_argument("--headless=new")
            options.add_argument("--window-size=1920,1080")
            options.add_argument("--no-sandbox")
            options.add_argument("--disable-dev-shm-usage")
        elif browser == "firefox":
            options = webdriver.FirefoxOptions()
            if headless:
                options.add_argument("-headless")
        else:
            raise InvalidConfigError(
                "browser", browser, f"僅支援 {', '.join(SUPPORTED_BROWSERS)}"
            )
        # 測試環境多半是自簽憑證
        options.accept_insecure_certs = True
        return options

    @classmethod
    def _start(cls, browser: str, options, remote_url: str):
        if remote_url:
            return webdriver.Remote(command_executor=remote_url, options=options)
        if browser == "chrome":
            return webdriver.Chrome(options=options)
        return webdriver.Firefox(options=options)

    @classmethod
    def create_driver(
        cls,
        browser: str | None = None,
        headless: bool | None = None,
        max_retries: int = 3,
        retry_delay: float = 2.0,
    ):
        """
        建立 WebDriver，支援自動重試。

        Args:
            browser: 'chrome' 或 'firefox'，預設讀取 Config.BROWSER
            headless: 是否無頭模式，預設讀取 Config.HEADLESS
            max_retries: 連線失敗時最多重試次數
            retry_delay: 首次重試等待秒數（後續指數退避）

        Returns:
            Selenium WebDriver 實例
        """
        browser = (browser or Config.BROWSER).lower()
        options = cls.build_options(browser, headless)
        remote_url = Config.REMOTE_URL

        if remote_url and not cls.health_check(remote_url):
            logger.warning(f"Selenium Grid 健康檢查失敗: {remote_url}，仍嘗試連線...")

        last_error: Exception | None = None
        for attempt in range(max_retries):
            try:
                drv = cls._start(browser, options, remote_url)
                break
            except WebDriverException as e:
                last_error = e
                if attempt < max_retries - 1:
                    wait = retry_delay * (2 ** attempt)
                    logger.warning(
                        f"Driver 連線失敗 (第 {attempt + 1} 次)，"
                        f"{wait:.1f}s 後重試: {e}"
                    )
                    time.sleep(wait)
        else:
            raise DriverConnectionError(remote_url, last_error)

        # 頁面狀態一律由輪詢判斷，不使用 implicit wait
        drv.implicitly_wait(0)
        drv.set_page_load_timeout(Config.PAGE_LOAD_TIMEOUT)

        cls._local.driver = drv
        logger.info(f"Driver 已建立: {browser} -> {remote_url or 'local'}")
        return drv

    @classmethod
    def quit_driver(cls) -> None:
        """安全關閉當前執行緒的 driver"""
        drv = getattr(cls._local, "driver", None)
        if drv is not None:
            try:
                drv.quit()
            except WebDriverException as e:
                logger.warning(f"關閉 driver 時發生錯誤: {e}")
            cls._local.driver = None
            logger.info("Driver 已關閉")
