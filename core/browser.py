"""
Browser Adapter — 瀏覽器協作者

把 Selenium WebDriver 包成引擎需要的少數幾個操作：
取得 DOM root、URL、標題、頁面文字、導覽，以及 cookie / storage 的讀寫。

Session artifact 格式（對引擎而言是不透明的 dict）：
    {
        "cookies": [...],          # driver.get_cookies() 的結果
        "local_storage": {...},
        "session_storage": {...},
    }
"""

from __future__ import annotations

from selenium.common.exceptions import NoSuchElementException, WebDriverException
from selenium.webdriver.common.by import By

from config.config import Config
from utils.logger import logger

_READ_STORAGE_JS = "return Object.assign({}, window[arguments[0]]);"
_WRITE_STORAGE_JS = """
const store = window[arguments[0]];
const items = arguments[1] || {};
Object.keys(items).forEach(function (k) { store.setItem(k, items[k]); });
"""
_CLEAR_STORAGE_JS = "window.localStorage.clear(); window.sessionStorage.clear();"

# add_cookie 只接受這些欄位
_COOKIE_FIELDS = ("name", "value", "path", "domain", "secure", "httpOnly", "expiry", "sameSite")


class BrowserAdapter:
    """Selenium WebDriver 的薄包裝"""

    def __init__(self, driver, base_url: str | None = None):
        self.driver = driver
        self.base_url = (base_url or Config.BASE_URL).rstrip("/")

    # ── 狀態讀取 ──

    def get_current_dom(self):
        """WebDriver 本身就是可查詢的 DOM root"""
        return self.driver

    def get_url(self) -> str:
        return self.driver.current_url or ""

    def get_title(self) -> str:
        return self.driver.title or ""

    def get_text(self) -> str:
        """body 的可見文字，頁面還沒有 body 時回傳空字串"""
        try:
            return self.driver.find_element(By.TAG_NAME, "body").text or ""
        except (NoSuchElementException, WebDriverException):
            return ""

    # ── 導覽 ──

    def url_for(self, route: str) -> str:
        if not route:
            return self.base_url
        if route.startswith("#"):
            return f"{self.base_url}/{route}"
        return f"{self.base_url}/{route.lstrip('/')}"

    def navigate(self, route: str) -> None:
        url = self.url_for(route)
        logger.info(f"導覽至: {url}")
        self.driver.get(url)

    # ── Session artifact ──

    def read_storage_artifacts(self) -> dict:
        return {
            "cookies": list(self.driver.get_cookies() or []),
            "local_storage": dict(
                self.driver.execute_script(_READ_STORAGE_JS, "localStorage") or {}
            ),
            "session_storage": dict(
                self.driver.execute_script(_READ_STORAGE_JS, "sessionStorage") or {}
            ),
        }

    def write_storage_artifacts(self, artifact: dict) -> None:
        """
        還原 cookie 與 storage。

        瀏覽器只允許對目前網域寫 cookie，所以先導覽到 base URL。
        """
        self.driver.get(self.base_url)
        for cookie in artifact.get("cookies", []):
            self.driver.add_cookie(
                {k: v for k, v in cookie.items() if k in _COOKIE_FIELDS}
            )
        self.driver.execute_script(
            _WRITE_STORAGE_JS, "localStorage", artifact.get("local_storage", {})
        )
        self.driver.execute_script(
            _WRITE_STORAGE_JS, "sessionStorage", artifact.get("session_storage", {})
        )
        # 重新載入讓應用程式讀到還原後的 cookie / token
        self.driver.refresh()
        logger.debug(
            f"已還原 session artifact: {len(artifact.get('cookies', []))} 個 cookie"
        )

    def clear_storage_artifacts(self) -> None:
        self.driver.delete_all_cookies()
        try:
            self.driver.execute_script(_CLEAR_STORAGE_JS)
        except WebDriverException as e:
            # about:blank 之類的頁面沒有 storage
            logger.debug(f"清除 storage 略過: {type(e).__name__}")
        logger.info("已清除 cookie 與 storage")
