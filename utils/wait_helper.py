"""
等待工具
提供有上限的 backoff 輪詢 (poll_until)。

poll_until 不拋出逾時例外，而是回傳 PollResult，
讓呼叫端自己決定逾時要帶什麼診斷資訊（例如最後一次的頁面狀態）。

用法：
    from utils.wait_helper import poll_until

    result = poll_until(
        observe=lambda: reader.read(),
        accept=lambda ctx: ctx.page_type is PageType.LOGIN,
        timeout_ms=10000,
        interval_ms=500,
    )
    if not result.matched:
        raise SomeTimeout(last=result.value)
"""

import time
from dataclasses import dataclass
from typing import Callable, Generic, Iterator, TypeVar

from utils.logger import logger

T = TypeVar("T")


@dataclass
class PollResult(Generic[T]):
    """輪詢結果"""
    matched: bool
    value: T | None
    attempts: int
    elapsed_ms: float


def backoff_intervals(
    initial_ms: float,
    factor: float = 1.5,
    max_ms: float | None = None,
) -> Iterator[float]:
    """
    產生遞增的輪詢間隔（毫秒），到達 max_ms 後維持不變。

    factor <= 1 時為固定間隔。
    """
    if initial_ms <= 0:
        raise ValueError(f"輪詢間隔必須大於 0: {initial_ms}")
    cap = max_ms if max_ms is not None else initial_ms
    cap = max(cap, initial_ms)
    current = float(initial_ms)
    while True:
        yield current
        if factor > 1:
            current = min(current * factor, cap)


def poll_until(
    observe: Callable[[], T],
    accept: Callable[[T], bool],
    timeout_ms: float,
    interval_ms: float = 500,
    backoff: float = 1.5,
    max_interval_ms: float | None = None,
    ignoring: tuple = (),
    checkpoint: Callable[[], None] | None = None,
    clock: Callable[[], float] = time.monotonic,
    sleep: Callable[[float], None] = time.sleep,
) -> PollResult[T]:
    """
    反覆呼叫 observe 直到 accept(結果) 成立或逾時。

    Args:
        observe: 取得目前觀察值的 callable
        accept: 判斷觀察值是否符合目標
        timeout_ms: 最長等待毫秒數，至少會 observe 一次
        interval_ms: 初始輪詢間隔
        backoff: 每次間隔的放大倍率
        max_interval_ms: 間隔上限，預設與 interval_ms 相同（不放大）
        ignoring: observe 拋出這些例外時視為「尚未滿足」
        checkpoint: 每次 tick 前呼叫，可拋出例外中止輪詢（例如時間預算檢查）
        clock / sleep: 可注入，方便單元測試

    Returns:
        PollResult，value 永遠是最後一次成功 observe 的結果
    """
    intervals = backoff_intervals(interval_ms, backoff, max_interval_ms)
    start = clock()
    deadline = start + timeout_ms / 1000.0
    attempts = 0
    last: T | None = None

    while True:
        if checkpoint is not None:
            checkpoint()

        attempts += 1
        try:
            last = observe()
            if accept(last):
                return PollResult(True, last, attempts, (clock() - start) * 1000)
        except ignoring as e:
            logger.debug(f"輪詢第 {attempts} 次忽略例外: {type(e).__name__}: {e}")

        remaining = deadline - clock()
        if remaining <= 0:
            return PollResult(False, last, attempts, (clock() - start) * 1000)
        sleep(min(next(intervals) / 1000.0, remaining))

