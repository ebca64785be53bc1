"""
PageContext — 「我現在在哪一頁、可以操作了嗎」的快照

每次評估都產生一個全新、不可變的 PageContext：
    收集訊號 (SignalCollector) → 判定類型 (classify) → 判斷就緒 (evaluate)

不變條件（建立時檢查）：
    is_authenticated ⇒ page_type != LOGIN
    is_ready         ⇒ page_type != UNKNOWN
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from types import MappingProxyType
from typing import Mapping
from urllib.parse import urlparse

from core.classifier import PageType, classify, is_ambiguous
from core.readiness import evaluate
from core.signals import SignalCollector


@dataclass(frozen=True)
class PageDefinition:
    route: str | None
    description: str


PAGE_DEFINITIONS: dict[PageType, PageDefinition] = {
    PageType.LOGIN: PageDefinition(route="#/login", description="登入頁"),
    PageType.MAIN_CANVAS: PageDefinition(route="#/", description="主 Canvas"),
    PageType.UNKNOWN: PageDefinition(route=None, description="未知頁面"),
}


@dataclass(frozen=True)
class PageContext:
    url: str
    pathname: str
    title: str
    page_type: PageType
    is_authenticated: bool
    is_ready: bool
    indicators: frozenset[str] = field(default_factory=frozenset)
    elements: Mapping[str, bool] = field(default_factory=lambda: MappingProxyType({}))
    ambiguous: bool = False
    open_access_view: bool = False
    timestamp: str = field(
        default_factory=lambda: datetime.now(timezone.utc).isoformat()
    )

    def __post_init__(self):
        if self.is_authenticated and self.page_type is PageType.LOGIN:
            raise ValueError("is_authenticated 不可能出現在 LOGIN 頁")
        if self.is_ready and self.page_type is PageType.UNKNOWN:
            raise ValueError("UNKNOWN 頁面不可能是 ready")

    def to_dict(self) -> dict:
        return {
            "url": self.url,
            "pathname": self.pathname,
            "title": self.title,
            "page_type": self.page_type.value,
            "is_authenticated": self.is_authenticated,
            "is_ready": self.is_ready,
            "indicators": sorted(self.indicators),
            "elements": {k: v for k, v in self.elements.items() if v},
            "ambiguous": self.ambiguous,
            "open_access_view": self.open_access_view,
            "timestamp": self.timestamp,
        }


class PageContextReader:
    """從瀏覽器讀取一次完整的 PageContext"""

    def __init__(self, browser, collector: SignalCollector, open_access: bool = False):
        self.browser = browser
        self.collector = collector
        self.open_access = open_access

    def read(self) -> PageContext:
        url = self.browser.get_url()
        title = self.browser.get_title()
        text = self.browser.get_text()

        signals = self.collector.collect(self.browser.get_current_dom(), text)
        page_type = classify(signals, text)
        readiness = evaluate(page_type, signals, open_access=self.open_access)

        return PageContext(
            url=url,
            pathname=urlparse(url).path,
            title=title,
            page_type=page_type,
            is_authenticated=readiness.is_authenticated,
            is_ready=readiness.is_ready,
            indicators=signals.indicators,
            elements=signals.elements,
            ambiguous=is_ambiguous(signals),
            open_access_view=readiness.open_access_view,
        )
