"""
自訂 Exception 體系

統一的錯誤處理階層，讓每種失敗都有明確的分類與訊息。
上層可以 catch 大類別 (如 HarnessError)，
也可以精準 catch 子類別 (如 PageStateTimeout)。

Exception 樹：
    HarnessError
    ├── DriverError
    │   └── DriverConnectionError
    ├── PageStateError
    │   ├── PageStateTimeout
    │   ├── PageTypeMismatchError
    │   └── ElementNotFoundError
    ├── DeadlineExceeded
    ├── AuthError
    │   ├── LoginFailed
    │   └── SessionValidationFailed
    └── ConfigError
        ├── InvalidConfigError
        └── SelectorRegistryError

頁面分類的模稜兩可 (login 與 canvas 訊號同時存在) 不是錯誤，
不會拋出，而是記錄在 PageContext.ambiguous 供呼叫端檢查。
"""


class HarnessError(Exception):
    """框架所有例外的基底，catch 這個就能攔截一切框架錯誤"""

    def __init__(self, message: str = "", context: dict | None = None):
        self.context = context or {}
        super().__init__(message)


# ── Driver 相關 ──

class DriverError(HarnessError):
    """Driver 相關錯誤"""


class DriverConnectionError(DriverError):
    """無法建立瀏覽器 session"""

    def __init__(self, url: str = "", original: Exception | None = None):
        self.original = original
        msg = f"無法建立瀏覽器 driver: {url or 'local'}"
        if original:
            msg += f" ({type(original).__name__}: {original})"
        super().__init__(msg, context={"url": url})


# ── 頁面狀態相關 ──

class PageStateError(HarnessError):
    """頁面狀態判定相關錯誤"""


class PageStateTimeout(PageStateError):
    """
    等待頁面狀態逾時。

    一定帶著最後一次觀察到的 PageContext，方便診斷「到底停在哪一頁」。
    """

    def __init__(self, target: str = "", timeout_ms: int = 0, last_context=None):
        self.target = target
        self.timeout_ms = timeout_ms
        self.last_context = last_context
        if last_context is not None:
            observed = (
                f"{last_context.page_type.value} "
                f"(ready={last_context.is_ready}, "
                f"authenticated={last_context.is_authenticated}, "
                f"url={last_context.url})"
            )
        else:
            observed = "無任何觀察結果"
        super().__init__(
            f"等待頁面 {target} 逾時 ({timeout_ms}ms)，最後狀態: {observed}",
            context={"target": target, "timeout_ms": timeout_ms},
        )


class PageTypeMismatchError(PageStateError):
    """頁面類型或就緒狀態與預期不符"""

    def __init__(self, expected: str = "", page_context=None, reason: str = ""):
        self.expected = expected
        self.page_context = page_context
        actual = page_context.page_type.value if page_context is not None else "?"
        msg = f"頁面驗證失敗: 預期 {expected}，實際 {actual}"
        if reason:
            msg += f" ({reason})"
        super().__init__(msg, context={"expected": expected, "actual": actual})


class ElementNotFoundError(PageStateError):
    """Page Object 在時限內找不到可操作的元素"""

    def __init__(self, locator: tuple = (), timeout: float = 0):
        self.locator = locator
        super().__init__(
            f"找不到元素: {locator} (等待 {timeout}s)",
            context={"locator": str(locator), "timeout": timeout},
        )


# ── Deadline 相關 ──

class DeadlineExceeded(HarnessError):
    """
    單一測試的累計時間預算用盡。

    與單一步驟自己的 timeout 不同：這代表整個多步驟流程超時，應立即失敗。
    """

    def __init__(self, test_id: str = "", budget_ms: int = 0, elapsed_ms: float = 0.0):
        self.test_id = test_id
        self.budget_ms = budget_ms
        self.elapsed_ms = elapsed_ms
        super().__init__(
            f"測試 {test_id} 超過時間預算: 已用 {elapsed_ms:.0f}ms > {budget_ms}ms",
            context={"test_id": test_id, "budget_ms": budget_ms, "elapsed_ms": elapsed_ms},
        )


# ── 認證相關 ──

class AuthError(HarnessError):
    """登入與 Session 相關錯誤"""


class LoginFailed(AuthError):
    """登入流程失敗，由 login collaborator 原樣拋出"""

    def __init__(self, identity: str = "", reason: str = ""):
        self.identity = identity
        msg = f"登入失敗: {identity}"
        if reason:
            msg += f" ({reason})"
        super().__init__(msg, context={"identity": identity})


class SessionValidationFailed(AuthError):
    """快取的 Session 未通過存活檢查"""

    def __init__(self, identity: str = ""):
        self.identity = identity
        super().__init__(
            f"Session 驗證失敗，需要重新登入: {identity}",
            context={"identity": identity},
        )


# ── Config 相關 ──

class ConfigError(HarnessError):
    """設定相關錯誤"""


class InvalidConfigError(ConfigError):
    """設定值無效"""

    def __init__(self, key: str = "", value: str = "", reason: str = ""):
        msg = f"設定值無效: {key}={value}"
        if reason:
            msg += f" ({reason})"
        super().__init__(msg, context={"key": key, "value": value})


class SelectorRegistryError(ConfigError):
    """Selector registry 檔案缺失或格式錯誤"""

    def __init__(self, path: str = "", reason: str = ""):
        msg = f"Selector registry 無效: {path}"
        if reason:
            msg += f" ({reason})"
        super().__init__(msg, context={"path": path})
