"""
Page Type Classifier — 頁面類型判定

純函式：SignalMap → PageType。依固定優先序判斷，第一個符合者勝出：

    1. 有任何登入欄位 (username / password input)  → LOGIN
    2. 有任何 canvas 容器或 toolbar               → MAIN_CANVAS
    3. 其他                                      → UNKNOWN

登入欄位優先：切換頁面途中，舊的 canvas markup 可能還殘留在 DOM，
但只要登入表單出現，就一定是 LOGIN，不會在兩者之間來回跳動。
"""

from __future__ import annotations

from enum import Enum

from core.signals import CANVAS, LOGIN_FIELDS, TOOLBAR, SignalMap


class PageType(str, Enum):
    LOGIN = "LOGIN"
    MAIN_CANVAS = "MAIN_CANVAS"
    UNKNOWN = "UNKNOWN"

    @classmethod
    def parse(cls, value: "str | PageType") -> "PageType":
        """接受 PageType 或字串（不分大小寫）"""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().upper())
        except ValueError:
            raise ValueError(f"未知的頁面類型: {value}") from None


def classify(signal_map: SignalMap, text_snapshot: str = "") -> PageType:
    """
    判定頁面類型。

    text_snapshot 只作為診斷資料傳入，不影響判定結果，
    同樣的 signal_map 永遠得到同樣的 PageType。
    """
    if signal_map.has(LOGIN_FIELDS):
        return PageType.LOGIN
    if signal_map.has(CANVAS) or signal_map.has(TOOLBAR):
        return PageType.MAIN_CANVAS
    return PageType.UNKNOWN


def is_ambiguous(signal_map: SignalMap) -> bool:
    """登入欄位與 canvas/toolbar 同時存在（由優先序解決，但值得記錄）"""
    return signal_map.has(LOGIN_FIELDS) and (
        signal_map.has(CANVAS) or signal_map.has(TOOLBAR)
    )
