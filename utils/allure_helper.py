"""
Allure 報告整合輔助
封裝 Allure 常用的步驟標記與附件功能。
失敗時附上最後一次的 PageContext，報告上就能直接看到「停在哪一頁」。
"""

import functools
import json

import allure
from selenium.common.exceptions import WebDriverException

from utils.logger import logger


def allure_step(title: str):
    """
    裝飾器：將函式標記為 Allure step。

    用法：
        @allure_step("登入並等待 canvas")
        def ensure_canvas_ready(self, identity, proof): ...
    """
    def decorator(func):
        @allure.step(title)
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            return func(*args, **kwargs)
        return wrapper
    return decorator


def attach_page_context(page_context, name: str = "PageContext") -> None:
    """將 PageContext 以 JSON 附加到 Allure 報告"""
    if page_context is None:
        return
    allure.attach(
        json.dumps(page_context.to_dict(), indent=2, ensure_ascii=False),
        name=name,
        attachment_type=allure.attachment_type.JSON,
    )


def attach_screenshot(driver, name: str = "截圖") -> None:
    """將截圖附加到 Allure 報告"""
    try:
        png = driver.get_screenshot_as_png()
    except WebDriverException as e:
        logger.warning(f"無法附加截圖: {e}")
        return
    allure.attach(png, name=name, attachment_type=allure.attachment_type.PNG)


def attach_page_source(driver, name: str = "Page Source") -> None:
    try:
        source = driver.page_source
    except WebDriverException as e:
        logger.warning(f"無法附加頁面原始碼: {e}")
        return
    allure.attach(source, name=name, attachment_type=allure.attachment_type.HTML)


def attach_failure(driver, page_context=None) -> None:
    """失敗時一次附上 PageContext、截圖與頁面原始碼"""
    attach_page_context(page_context, name="最後的 PageContext")
    if driver is not None:
        attach_screenshot(driver, name="失敗截圖")
        attach_page_source(driver)
