"""
Readiness & Auth Evaluator — 認證與就緒判斷

由 PageType 與 SignalMap 推導兩個互相獨立的布林值：

is_authenticated:
    MAIN_CANVAS 且出現只有登入後才有的訊號（logout 按鈕或 user menu）。
    Open access 設定下，未登入的使用者也能看到 canvas，
    但這時 is_authenticated 仍然是 False。

is_ready:
    PageType 不是 UNKNOWN；若是 MAIN_CANVAS，toolbar 與 canvas 必須同時存在
    （只有 canvas 沒有 toolbar 代表還不能互動）。
"""

from __future__ import annotations

from dataclasses import dataclass

from core.classifier import PageType
from core.signals import CANVAS, LOGOUT, TOOLBAR, USER_MENU, SignalMap


@dataclass(frozen=True)
class Readiness:
    is_authenticated: bool
    is_ready: bool
    # open access 下未登入即可看到 canvas
    open_access_view: bool = False


def evaluate(
    page_type: PageType,
    signal_map: SignalMap,
    open_access: bool = False,
) -> Readiness:
    if page_type is PageType.UNKNOWN:
        return Readiness(is_authenticated=False, is_ready=False)

    if page_type is PageType.LOGIN:
        return Readiness(is_authenticated=False, is_ready=True)

    has_auth_signal = signal_map.has(LOGOUT) or signal_map.has(USER_MENU)
    is_ready = signal_map.has(TOOLBAR) and signal_map.has(CANVAS)
    return Readiness(
        is_authenticated=has_auth_signal,
        is_ready=is_ready,
        open_access_view=open_access and not has_auth_signal and signal_map.has(CANVAS),
    )
