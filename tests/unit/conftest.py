"""
單元測試共用 fixtures

不需要瀏覽器：DOM 以 FakeDom 模擬，時間以 FakeClock 模擬。
"""

import copy
from unittest.mock import MagicMock

import pytest
from selenium.common.exceptions import StaleElementReferenceException, WebDriverException

from core.classifier import PageType
from core.page_context import PageContext
from core.signals import SelectorRegistry

REGISTRY_DATA = {
    "version": "test-1",
    "groups": {
        "login_fields": ["input[type='password']", "input[name='username']"],
        "canvas": ["#canvas-container"],
        "toolbar": [".toolbar"],
        "logout": ["#logout"],
        "user_menu": ["#user-menu"],
        "app_loading": [".splash"],
    },
    "text_indicators": ["login", "canvas", "processor"],
}


class FakeDom:
    """
    模擬 WebDriver.find_elements。

    state 的值：
        True / False  → 一個可見 / 不可見的元素
        "stale"       → 元素 is_displayed() 拋 StaleElementReferenceException
        "error"       → find_elements 本身拋 WebDriverException
    沒列出的 selector 回傳空列表。
    """

    def __init__(self, state: dict | None = None):
        self.state = dict(state or {})
        self.queries: list[str] = []

    def find_elements(self, by, selector):
        self.queries.append(selector)
        value = self.state.get(selector)
        if value is None:
            return []
        if value == "error":
            raise WebDriverException("invalid selector")
        el = MagicMock()
        if value == "stale":
            el.is_displayed.side_effect = StaleElementReferenceException("stale")
        else:
            el.is_displayed.return_value = bool(value)
        return [el]


class FakeClock:
    """可手動推進的 monotonic clock，sleep 直接推進時間"""

    def __init__(self, start: float = 1000.0):
        self.now = start
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds

    def advance_ms(self, ms: float) -> None:
        self.now += ms / 1000

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


@pytest.fixture
def registry_data() -> dict:
    """可修改的 registry 原始資料（每個測試一份）"""
    return copy.deepcopy(REGISTRY_DATA)


@pytest.fixture
def registry(registry_data) -> SelectorRegistry:
    return SelectorRegistry.from_dict(registry_data)


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def make_dom():
    return FakeDom


@pytest.fixture
def make_context():
    """建立 PageContext（只需指定關心的欄位）"""

    def _make(page_type=PageType.UNKNOWN, authenticated=False, ready=False, url="https://nifi.test/nifi/"):
        return PageContext(
            url=url,
            pathname="/nifi/",
            title="NiFi",
            page_type=page_type,
            is_authenticated=authenticated,
            is_ready=ready,
        )

    return _make
