"""
Retry/Polling Orchestrator — 等待頁面進入目標狀態

狀態機：
    POLLING ──(page_type 符合，且 wait_for_ready 時 is_ready)──→ MATCHED
       │
       └──(超過 timeout)──→ TIMED_OUT → 拋 PageStateTimeout（附最後一次的 PageContext）

每個 tick 都重新讀一次 PageContext（收集訊號 → 分類 → 就緒判斷），
間隔依 backoff_factor 放大，最多到 max_interval_ms，且不會睡過 timeout。
checkpoint（通常是 Deadline Guard 的 check）在每個 tick 前執行，
拋出的例外會直接中止輪詢。
"""

from __future__ import annotations

import time
from enum import Enum
from typing import Callable, Iterable

from selenium.common.exceptions import WebDriverException

from config.config import Config
from core.classifier import PageType
from core.exceptions import PageStateTimeout
from core.page_context import PageContext, PageContextReader
from utils.logger import logger
from utils.wait_helper import poll_until


class PollState(str, Enum):
    POLLING = "POLLING"
    MATCHED = "MATCHED"
    TIMED_OUT = "TIMED_OUT"


class PageStateOrchestrator:
    """輪詢 PageContext 直到符合目標 PageType"""

    def __init__(
        self,
        reader: PageContextReader,
        poll_interval_ms: int | None = None,
        max_interval_ms: int | None = None,
        backoff_factor: float = 1.5,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.reader = reader
        self.poll_interval_ms = poll_interval_ms or Config.POLL_INTERVAL_MS
        self.max_interval_ms = max(
            max_interval_ms or Config.MAX_POLL_INTERVAL_MS, self.poll_interval_ms
        )
        self.backoff_factor = backoff_factor
        self._clock = clock
        self._sleep = sleep
        self.state: PollState | None = None
        self.last_context: PageContext | None = None
        self.attempts = 0

    @staticmethod
    def matches(context: PageContext, target: PageType, wait_for_ready: bool = False) -> bool:
        if context.page_type is not target:
            return False
        return context.is_ready or not wait_for_ready

    def wait_for_page_type(
        self,
        target: PageType,
        timeout_ms: int | None = None,
        poll_interval_ms: int | None = None,
        wait_for_ready: bool = False,
        checkpoint: Callable[[], None] | None = None,
    ) -> PageContext:
        """
        等待頁面變成 target。

        Returns:
            最後一次（符合目標的）PageContext

        Raises:
            PageStateTimeout: 逾時，last_context 為最後一次觀察結果
            DeadlineExceeded: checkpoint 判定整體預算已用盡
        """
        return self._poll(
            target.value,
            lambda ctx: self.matches(ctx, target, wait_for_ready),
            timeout_ms,
            poll_interval_ms,
            checkpoint,
            wait_for_ready=wait_for_ready,
        )

    def wait_for_any_page_type(
        self,
        targets: Iterable[PageType],
        timeout_ms: int | None = None,
        poll_interval_ms: int | None = None,
        checkpoint: Callable[[], None] | None = None,
    ) -> PageContext:
        """
        等待頁面落定在 targets 其中之一，回傳當下的 PageContext。
        還原 session 後用來判斷「進了 canvas」還是「被導回登入頁」。
        """
        targets = frozenset(targets)
        label = "|".join(sorted(t.value for t in targets))
        return self._poll(
            label,
            lambda ctx: ctx.page_type in targets,
            timeout_ms,
            poll_interval_ms,
            checkpoint,
        )

    # ── 內部方法 ──

    def _poll(
        self,
        label: str,
        accept: Callable[[PageContext], bool],
        timeout_ms: int | None,
        poll_interval_ms: int | None,
        checkpoint: Callable[[], None] | None,
        wait_for_ready: bool = False,
    ) -> PageContext:
        timeout_ms = timeout_ms if timeout_ms is not None else Config.WAIT_TIMEOUT_MS
        interval = poll_interval_ms or self.poll_interval_ms
        self.state = PollState.POLLING
        self.last_context = None
        self.attempts = 0
        logger.debug(
            f"[Poll] 等待 {label} (timeout={timeout_ms}ms, interval={interval}ms, "
            f"wait_for_ready={wait_for_ready})"
        )

        def observe() -> PageContext:
            self.attempts += 1
            context = self.reader.read()
            self.last_context = context
            return context

        result = poll_until(
            observe=observe,
            accept=accept,
            timeout_ms=timeout_ms,
            interval_ms=interval,
            backoff=self.backoff_factor,
            max_interval_ms=max(self.max_interval_ms, interval),
            ignoring=(WebDriverException,),
            checkpoint=checkpoint,
            clock=self._clock,
            sleep=self._sleep,
        )

        if result.matched:
            self.state = PollState.MATCHED
            logger.info(
                f"[Poll] 已到達 {result.value.page_type.value}，嘗試 {result.attempts} 次，"
                f"耗時 {result.elapsed_ms:.0f}ms"
            )
            return result.value

        self.state = PollState.TIMED_OUT
        logger.warning(
            f"[Poll] 等待 {label} 逾時，嘗試 {result.attempts} 次",
            extra={"page_context": self.last_context.to_dict() if self.last_context else None},
        )
        raise PageStateTimeout(label, timeout_ms, self.last_context)
