"""
截圖工具
測試失敗時自動截圖，方便 debug。
"""

import re
from datetime import datetime

from selenium.common.exceptions import WebDriverException

from config.config import Config
from utils.logger import logger

_UNSAFE = re.compile(r"[^\w.-]+")


def safe_name(name: str) -> str:
    """把 pytest nodeid 之類的字串轉成可用的檔名"""
    return _UNSAFE.sub("_", name).strip("_") or "screenshot"


def take_screenshot(driver, name: str) -> str | None:
    """
    擷取瀏覽器截圖並儲存到 screenshots 目錄。

    Args:
        driver: Selenium WebDriver 實例
        name: 截圖名稱（不含副檔名）

    Returns:
        截圖檔案的完整路徑，瀏覽器已關閉時回傳 None
    """
    Config.SCREENSHOT_DIR.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    filepath = Config.SCREENSHOT_DIR / f"{safe_name(name)}_{timestamp}.png"
    try:
        driver.save_screenshot(str(filepath))
    except WebDriverException as e:
        logger.warning(f"截圖失敗: {e}")
        return None
    logger.info(f"截圖已儲存: {filepath}")
    return str(filepath)
