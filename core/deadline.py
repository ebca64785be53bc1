"""
Deadline Guard — 單一測試的累計時間預算

和每個步驟自己的 timeout 不同，這裡限制的是「整個測試」累計花費的時間，
避免一個測試連續等完好幾個長 timeout 才失敗。

check() 只做時間比較，不碰 I/O，可以放在輪詢的每個 tick 反覆呼叫。
它不會中斷正在執行的 driver 呼叫，只會讓下一次 check 失敗。

用法：
    from core.deadline import DeadlineGuard

    guard = DeadlineGuard()
    guard.start("test_login", 5000)
    ...
    guard.check("test_login")   # 超過 5000ms 拋 DeadlineExceeded
    guard.end("test_login")
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Callable

from core.exceptions import DeadlineExceeded, InvalidConfigError
from utils.logger import logger


@dataclass(frozen=True)
class Deadline:
    test_id: str
    started_at: float
    budget_ms: int

    def elapsed_ms(self, now: float) -> float:
        return (now - self.started_at) * 1000

    def remaining_ms(self, now: float) -> float:
        return self.budget_ms - self.elapsed_ms(now)

    def is_exceeded(self, now: float) -> bool:
        # 剛好等於預算不算超時
        return self.elapsed_ms(now) > self.budget_ms


class DeadlineGuard:
    """追蹤每個測試的 Deadline"""

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._deadlines: dict[str, Deadline] = {}

    def start(self, test_id: str, budget_ms: int) -> Deadline:
        if budget_ms <= 0:
            raise InvalidConfigError("budget_ms", str(budget_ms), "時間預算必須大於 0")
        if test_id in self._deadlines:
            logger.debug(f"[Deadline] {test_id} 重新開始計時")
        deadline = Deadline(test_id=test_id, started_at=self._clock(), budget_ms=budget_ms)
        self._deadlines[test_id] = deadline
        logger.debug(f"[Deadline] {test_id} 開始計時，預算 {budget_ms}ms")
        return deadline

    def check(self, test_id: str) -> None:
        """
        超過預算時拋出 DeadlineExceeded。

        未追蹤的 test_id 直接略過。
        """
        deadline = self._deadlines.get(test_id)
        if deadline is None:
            return
        now = self._clock()
        if deadline.is_exceeded(now):
            elapsed = deadline.elapsed_ms(now)
            logger.error(
                f"[Deadline] {test_id} 超過時間預算: {elapsed:.0f}ms > {deadline.budget_ms}ms"
            )
            raise DeadlineExceeded(test_id, deadline.budget_ms, elapsed)

    def end(self, test_id: str) -> float | None:
        """停止追蹤，回傳總耗時 (ms)"""
        deadline = self._deadlines.pop(test_id, None)
        if deadline is None:
            return None
        elapsed = deadline.elapsed_ms(self._clock())
        logger.debug(f"[Deadline] {test_id} 結束，耗時 {elapsed:.0f}ms")
        return elapsed

    def remaining_ms(self, test_id: str) -> float | None:
        deadline = self._deadlines.get(test_id)
        if deadline is None:
            return None
        return deadline.remaining_ms(self._clock())

