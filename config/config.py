"""
設定管理模組
統一管理目標應用程式 URL、瀏覽器、等待時間、Session 有效期等設定。
支援透過環境變數覆蓋預設值，方便 CI/CD 整合。
Selector registry 以 JSON 檔 (config/selectors.json) 管理，不寫死在程式碼中。
"""

import os
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent.parent
CONFIG_DIR = Path(__file__).resolve().parent

SUPPORTED_BROWSERS = ("chrome", "firefox")


def _env_bool(name: str, default: str = "0") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes")


class Config:
    """框架全域設定"""

    # 目標應用程式
    BASE_URL = os.getenv("APP_BASE_URL", "https://localhost:9095/nifi")
    OPEN_ACCESS = _env_bool("OPEN_ACCESS")

    # 預設帳密
    USERNAME = os.getenv("APP_USERNAME", "admin")
    PASSWORD = os.getenv("APP_PASSWORD", "adminadminadmin")

    # 瀏覽器
    BROWSER = os.getenv("BROWSER", "chrome").lower()
    HEADLESS = _env_bool("HEADLESS", "1")
    REMOTE_URL = os.getenv("SELENIUM_REMOTE_URL", "")
    PAGE_LOAD_TIMEOUT = int(os.getenv("PAGE_LOAD_TIMEOUT", "30"))

    # 超時設定 (毫秒)
    WAIT_TIMEOUT_MS = int(os.getenv("WAIT_TIMEOUT_MS", "10000"))
    POLL_INTERVAL_MS = int(os.getenv("POLL_INTERVAL_MS", "500"))
    MAX_POLL_INTERVAL_MS = int(os.getenv("MAX_POLL_INTERVAL_MS", "2000"))
    TEST_BUDGET_MS = int(os.getenv("TEST_BUDGET_MS", "120000"))

    # Session 快取有效期 (秒)
    SESSION_TTL_SECONDS = float(os.getenv("SESSION_TTL_SECONDS", "1800"))

    # Selector registry 與報告
    SELECTORS_FILE = Path(os.getenv("SELECTORS_FILE", str(CONFIG_DIR / "selectors.json")))
    SCREENSHOT_DIR = BASE_DIR / "screenshots"
    REPORT_DIR = BASE_DIR / "reports"

