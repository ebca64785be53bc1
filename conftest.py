"""
pytest 全域 fixtures

提供：
- driver fixture：每個測試自動建立/銷毀 Selenium driver
- session_cache fixture：整個 pytest session 共用，登入一次即可跨測試重用
- harness fixture：測試步驟使用的入口
- @pytest.mark.budget(ms)：單一測試的累計時間預算
- 失敗時自動截圖（含 Allure 報告附件與最後的 PageContext）
- 命令列參數支援 (--browser, --env, --base-url)
"""

import pytest

from config.config import SUPPORTED_BROWSERS, Config
from core.browser import BrowserAdapter
from core.driver_manager import DriverManager
from core.env_manager import env
from core.harness import Harness, HarnessOptions
from core.session_cache import SessionCache
from pages.login_page import LoginPage
from utils.allure_helper import attach_failure
from utils.health import wait_for_app
from utils.logger import logger
from utils.screenshot import take_screenshot


# ── 命令列參數 ──

def pytest_addoption(parser):
    """新增自訂命令列參數"""
    parser.addoption(
        "--browser",
        action="store",
        default=Config.BROWSER,
        choices=list(SUPPORTED_BROWSERS),
        help="瀏覽器: chrome 或 firefox",
    )
    parser.addoption(
        "--env",
        action="store",
        default="dev",
        help="測試環境: dev / ci / open_access",
    )
    parser.addoption(
        "--base-url",
        action="store",
        default=None,
        help="覆蓋目標應用程式 URL",
    )


# ── Session / Environment ──

@pytest.fixture(scope="session")
def test_env(request) -> str:
    """取得測試環境並初始化 EnvManager"""
    env_name = request.config.getoption("--env")
    env.switch(env_name)
    return env_name


@pytest.fixture(scope="session")
def base_url(request, test_env) -> str:
    return request.config.getoption("--base-url") or env.get("base_url", Config.BASE_URL)


@pytest.fixture(scope="session")
def app_available(base_url):
    """應用程式沒起來時整批 e2e 直接 skip，不逐一等到逾時"""
    result = wait_for_app(base_url, timeout_ms=env.get("wait_timeout_ms", Config.WAIT_TIMEOUT_MS))
    if not result.accessible:
        pytest.skip(f"應用程式無法連線: {base_url} ({result.status_code or result.error})")
    return result


@pytest.fixture(scope="session")
def session_cache():
    """整個 pytest session 共用的登入快取"""
    cache = SessionCache(ttl=env.get("session_ttl_seconds", Config.SESSION_TTL_SECONDS))
    yield cache
    logger.info(f"Session 快取統計: {cache.stats}，剩餘 {cache.size} 筆")
    cache.clear()


# ── Driver ──

@pytest.fixture(scope="function")
def driver(request, app_available):
    """
    每個測試函式自動建立並銷毀 driver。

    scope=function 確保每個測試獨立，登入狀態靠 session_cache 還原。
    """
    browser_name = request.config.getoption("--browser")
    logger.info(f"===== 建立 {browser_name} driver =====")
    drv = DriverManager.create_driver(browser_name)
    yield drv
    logger.info("===== 關閉 driver =====")
    DriverManager.quit_driver()


@pytest.fixture
def browser(driver, base_url) -> BrowserAdapter:
    return BrowserAdapter(driver, base_url)


@pytest.fixture
def login_page(driver, browser) -> LoginPage:
    return LoginPage(driver, browser)


@pytest.fixture
def credentials(test_env) -> tuple[str, str]:
    return env.credentials()


@pytest.fixture
def harness(request, browser, login_page, session_cache):
    """
    測試步驟入口。

    有 @pytest.mark.budget(ms) 時自動啟動時間預算，測試結束時停止。
    """
    h = Harness(
        browser,
        session_cache=session_cache,
        login=login_page.login_and_capture,
        open_access=bool(env.get("open_access", Config.OPEN_ACCESS)),
        defaults=HarnessOptions.from_env(env),
        default_budget_ms=env.get("test_budget_ms", Config.TEST_BUDGET_MS),
    )
    marker = request.node.get_closest_marker("budget")
    if marker is not None:
        h.start_test_timer(marker.args[0] if marker.args else None, test_id=request.node.nodeid)
    request.node.harness = h
    yield h
    elapsed = h.end_test_timer()
    if elapsed is not None:
        logger.info(f"測試耗時 {elapsed:.0f}ms")


# ── 測試生命週期 Hook ──

@pytest.hookimpl(tryfirst=True, hookwrapper=True)
def pytest_runtest_makereport(item, call):
    """測試失敗時：截圖 + 最後的 PageContext + 頁面原始碼"""
    outcome = yield
    report = outcome.get_result()

    if report.when != "call" or not report.failed:
        return

    logger.error(f"測試失敗: {item.name}")
    driver = item.funcargs.get("driver")
    h = getattr(item, "harness", None)
    page_context = h.last_context if h is not None else None
    # 逾時例外本身就帶著最後的狀態
    if call.excinfo is not None:
        page_context = getattr(call.excinfo.value, "last_context", None) or page_context

    if page_context is not None:
        logger.error(
            f"最後狀態: {page_context.page_type.value} @ {page_context.url}",
            extra={"page_context": page_context.to_dict()},
        )
    if driver is not None and env.get("screenshot_on_fail", True):
        take_screenshot(driver, f"FAIL_{item.name}")
    attach_failure(driver, page_context)
