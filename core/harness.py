"""
Harness — 測試程式使用的入口

把訊號收集、頁面分類、就緒判斷、輪詢、Session 快取與時間預算
組合成測試步驟會直接呼叫的幾個操作：

    harness.get_page_context()
    harness.wait_for_page_type(PageType.MAIN_CANVAS, timeout=15000, wait_for_ready=True)
    harness.verify_page_type(PageType.LOGIN)
    harness.navigate_to_page(PageType.MAIN_CANVAS)
    harness.retrieve_session("admin", "secret", validate_session=True)
    harness.clear_session()
    harness.start_test_timer(5000) / check_test_timer() / end_test_timer()
    harness.logout()
    harness.ensure_canvas_ready()

選項只接受 HarnessOptions 定義的欄位，其他 key 一律拋 InvalidConfigError。
有啟動計時器時，每次輪詢 tick 都會先檢查時間預算。
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields, replace
from typing import Any, Callable, Mapping

from config.config import Config
from core.browser import BrowserAdapter
from core.classifier import PageType
from core.deadline import DeadlineGuard
from core.exceptions import (
    InvalidConfigError,
    PageStateTimeout,
    PageTypeMismatchError,
)
from core.orchestrator import PageStateOrchestrator
from core.page_context import PAGE_DEFINITIONS, PageContext, PageContextReader
from core.session_cache import LoginFn, SessionCache, SessionRecord
from core.signals import SignalCollector
from utils.allure_helper import allure_step
from utils.logger import logger

DEFAULT_TEST_ID = "default"


@dataclass(frozen=True)
class HarnessOptions:
    timeout: int = field(default_factory=lambda: Config.WAIT_TIMEOUT_MS)
    poll_interval_ms: int = field(default_factory=lambda: Config.POLL_INTERVAL_MS)
    wait_for_ready: bool = False
    force_login: bool = False
    validate_session: bool = False

    @classmethod
    def keys(cls) -> frozenset[str]:
        return frozenset(f.name for f in fields(cls))

    @classmethod
    def from_mapping(
        cls,
        options: Mapping[str, Any] | None = None,
        base: HarnessOptions | None = None,
    ) -> HarnessOptions:
        """以 base 為底套用 options，拒絕未知的 key 與不合理的值"""
        options = dict(options or {})
        for key, value in options.items():
            if key not in cls.keys():
                raise InvalidConfigError(key, str(value), "不支援的選項")
        for key in ("timeout", "poll_interval_ms"):
            value = options.get(key)
            if key in options and (
                isinstance(value, bool) or not isinstance(value, (int, float)) or value <= 0
            ):
                raise InvalidConfigError(key, str(value), "必須是大於 0 的數字")
        return replace(base or cls(), **options)

    @classmethod
    def from_env(cls, settings) -> HarnessOptions:
        """以 EnvManager 目前環境的 wait_timeout_ms / poll_interval_ms 為預設"""
        return cls.from_mapping({
            "timeout": settings.get("wait_timeout_ms", Config.WAIT_TIMEOUT_MS),
            "poll_interval_ms": settings.get("poll_interval_ms", Config.POLL_INTERVAL_MS),
        })


class Harness:
    """測試步驟與頁面狀態引擎之間的單一入口"""

    def __init__(
        self,
        browser: BrowserAdapter,
        session_cache: SessionCache | None = None,
        login: LoginFn | None = None,
        collector: SignalCollector | None = None,
        deadline_guard: DeadlineGuard | None = None,
        defaults: HarnessOptions | None = None,
        open_access: bool | None = None,
        orchestrator: PageStateOrchestrator | None = None,
        default_budget_ms: int | None = None,
    ):
        self.browser = browser
        self.open_access = Config.OPEN_ACCESS if open_access is None else open_access
        self.reader = PageContextReader(browser, collector or SignalCollector(), self.open_access)
        self.orchestrator = orchestrator or PageStateOrchestrator(self.reader)
        self.deadline_guard = deadline_guard or DeadlineGuard()
        self.defaults = defaults or HarnessOptions()
        self.default_budget_ms = (
            Config.TEST_BUDGET_MS if default_budget_ms is None else default_budget_ms
        )

        self.session_cache = session_cache or SessionCache()
        self.session_cache.bind(
            login=login,
            restore=browser.write_storage_artifacts,
            liveness_check=self._session_alive,
            clear_artifacts=browser.clear_storage_artifacts,
        )

        self.test_id: str | None = None
        self.last_context: PageContext | None = None

    def options(self, **opts) -> HarnessOptions:
        return HarnessOptions.from_mapping(opts, base=self.defaults)

    # ── 頁面狀態 ──

    def get_page_context(self) -> PageContext:
        """立即評估一次（不等待）"""
        context = self.reader.read()
        self.last_context = context
        logger.debug(
            f"[Harness] {context.page_type.value} "
            f"(ready={context.is_ready}, auth={context.is_authenticated})"
        )
        return context

    def wait_for_page_type(self, target: PageType, **opts) -> PageContext:
        """
        等待頁面變成 target。

        Raises:
            PageStateTimeout: 逾時（附最後一次的 PageContext）
            DeadlineExceeded: 整體時間預算用盡
        """
        options = self.options(**opts)
        try:
            return self.orchestrator.wait_for_page_type(
                target,
                timeout_ms=options.timeout,
                poll_interval_ms=options.poll_interval_ms,
                wait_for_ready=options.wait_for_ready,
                checkpoint=self.check_test_timer,
            )
        finally:
            if self.orchestrator.last_context is not None:
                self.last_context = self.orchestrator.last_context

    def verify_page_type(self, target: PageType, **opts) -> PageContext:
        """
        目前頁面必須是 target，否則拋 PageTypeMismatchError。
        wait_for_ready=True 時還必須是 ready。
        """
        options = self.options(**opts)
        context = self.get_page_context()
        if context.page_type is not target:
            raise PageTypeMismatchError(target.value, context)
        if options.wait_for_ready and not context.is_ready:
            raise PageTypeMismatchError(target.value, context, "頁面類型正確但尚未 ready")
        return context

    def navigate_to_page(self, target: PageType, **opts) -> PageContext:
        """導覽到 target 的路由並等待頁面到位"""
        route = PAGE_DEFINITIONS[target].route
        if route is None:
            raise InvalidConfigError("target", target.value, "沒有可導覽的路由")
        self.check_test_timer()
        if self.test_id is not None:
            remaining = self.deadline_guard.remaining_ms(self.test_id)
            logger.debug(f"[Harness] 導覽到 {route}，剩餘預算 {remaining:.0f}ms")
        self.browser.navigate(route)
        return self.wait_for_page_type(target, **opts)

    # ── Session ──

    def retrieve_session(self, identity: str, proof: Any, **opts) -> SessionRecord:
        options = self.options(**opts)
        self.check_test_timer()
        return self.session_cache.retrieve_session(
            identity,
            proof,
            force_login=options.force_login,
            validate_session=options.validate_session,
        )

    def clear_session(self) -> None:
        self.session_cache.clear_session()
        self.last_context = None

    # ── 時間預算 ──

    def start_test_timer(self, budget_ms: int | None = None, test_id: str | None = None) -> None:
        self.test_id = test_id or DEFAULT_TEST_ID
        if budget_ms is None:
            budget_ms = self.default_budget_ms
        self.deadline_guard.start(self.test_id, budget_ms)

    def check_test_timer(self) -> None:
        """沒有啟動計時器時不做任何事"""
        if self.test_id is not None:
            self.deadline_guard.check(self.test_id)

    def end_test_timer(self) -> float | None:
        if self.test_id is None:
            return None
        elapsed = self.deadline_guard.end(self.test_id)
        self.test_id = None
        return elapsed

    # ── 組合流程 ──

    @allure_step("登出並確認回到登入頁")
    def logout(self, **opts) -> PageContext:
        """清除 session 後回到登入頁，且必須是未登入狀態"""
        identity = self.session_cache.current_identity
        self.clear_session()
        context = self.navigate_to_page(PageType.LOGIN, **opts)
        if context.is_authenticated:
            raise PageTypeMismatchError(PageType.LOGIN.value, context, "登出後仍為已登入狀態")
        logger.info(f"[Harness] 已登出: {identity or '(無快取 session)'}")
        return context

    @allure_step("確保 canvas 可操作")
    def ensure_canvas_ready(
        self,
        identity: str | None = None,
        proof: Any = None,
        **opts,
    ) -> PageContext:
        """
        取得 session → 導覽到 canvas → 等待 ready。
        需要登入的部署另外要求 is_authenticated。
        """
        if not self.open_access:
            identity = identity or Config.USERNAME
            proof = proof if proof is not None else Config.PASSWORD
            session_opts = {k: opts.pop(k) for k in ("force_login", "validate_session") if k in opts}
            self.retrieve_session(identity, proof, **session_opts)

        opts.setdefault("wait_for_ready", True)
        context = self.navigate_to_page(PageType.MAIN_CANVAS, **opts)
        if not self.open_access and not context.is_authenticated:
            raise PageTypeMismatchError(
                PageType.MAIN_CANVAS.value, context, "canvas 可見但未登入"
            )
        return context

    # ── 內部方法 ──

    def _session_alive(self) -> bool:
        """
        還原 artifact 後等頁面落定：進了 canvas 才算存活，被導回登入頁立即判定失效。
        這裡不檢查時間預算。
        """
        try:
            context = self.orchestrator.wait_for_any_page_type(
                (PageType.LOGIN, PageType.MAIN_CANVAS),
                timeout_ms=self.defaults.timeout,
                poll_interval_ms=self.defaults.poll_interval_ms,
            )
        except PageStateTimeout:
            return False
        finally:
            if self.orchestrator.last_context is not None:
                self.last_context = self.orchestrator.last_context
        return context.page_type is PageType.MAIN_CANVAS
