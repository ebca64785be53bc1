"""
應用程式可用性檢查

在開瀏覽器之前先用 HTTP 探測目標應用程式是否已啟動，
避免整批測試在應用程式還沒起來時各自等到逾時。

判定規則：
    2xx / 3xx → 可用
    401       → 可用（需要登入的部署，未帶憑證時就是 401）
    其他狀態碼或連線失敗 → 不可用
"""

from __future__ import annotations

from dataclasses import dataclass

import requests

from config.config import Config
from utils.logger import logger
from utils.wait_helper import poll_until


@dataclass
class AccessibilityResult:
    url: str
    accessible: bool
    status_code: int | None = None
    error: str = ""


def is_accessible_status(status_code: int) -> bool:
    return 200 <= status_code < 400 or status_code == 401


def check_app_accessibility(
    url: str | None = None,
    timeout: float = 10.0,
    verify: bool = False,
    session: requests.Session | None = None,
) -> AccessibilityResult:
    """
    探測應用程式是否可連線。

    Args:
        url: 目標 URL，預設 Config.BASE_URL
        timeout: 單次請求逾時秒數
        verify: 是否驗證 TLS 憑證（本機部署多為自簽憑證，預設不驗證）
        session: 可注入的 requests.Session
    """
    url = url or Config.BASE_URL
    http = session or requests
    try:
        resp = http.get(url, timeout=timeout, verify=verify, allow_redirects=False)
    except requests.RequestException as e:
        logger.warning(f"[Health] 無法連線 {url}: {type(e).__name__}")
        return AccessibilityResult(url, False, error=str(e))

    accessible = is_accessible_status(resp.status_code)
    level = logger.info if accessible else logger.warning
    level(f"[Health] {url} → {resp.status_code} ({'可用' if accessible else '不可用'})")
    return AccessibilityResult(url, accessible, status_code=resp.status_code)


def wait_for_app(
    url: str | None = None,
    timeout_ms: int = 60000,
    interval_ms: int = 2000,
    **kwargs,
) -> AccessibilityResult:
    """反覆探測直到應用程式可用或逾時，回傳最後一次結果"""
    result = poll_until(
        observe=lambda: check_app_accessibility(url, **kwargs),
        accept=lambda r: r.accessible,
        timeout_ms=timeout_ms,
        interval_ms=interval_ms,
        backoff=1.0,
    )
    return result.value
