"""
DOM Signal Collector — 頁面訊號收集

給定一個可查詢的 DOM root（Selenium WebDriver 或 WebElement），
依照 selector registry 逐一檢查每個 selector 是否「存在且可見」，
回傳 selector → bool 的對照表，以及各 selector 群組的彙總結果。

Registry 是版本化的設定資料 (config/selectors.json)，不是寫死的字串，
分類規則因此可以用錄下來的 DOM fixture 做單元測試，不需要真的瀏覽器。

特性：
- 完全唯讀，不修改 DOM
- selector 找不到、driver 拋錯、元素 stale 一律視為 False，不會拋例外

用法：
    from core.signals import SignalCollector, SelectorRegistry

    collector = SignalCollector(SelectorRegistry.load())
    signals = collector.collect(driver, text_snapshot=body_text)
    signals.has("login_fields")
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Mapping

from selenium.common.exceptions import WebDriverException
from selenium.webdriver.common.by import By

from config.config import Config
from core.exceptions import SelectorRegistryError
from utils.logger import logger

# 分類與就緒判斷依賴的群組
LOGIN_FIELDS = "login_fields"
CANVAS = "canvas"
TOOLBAR = "toolbar"
LOGOUT = "logout"
USER_MENU = "user_menu"
APP_LOADING = "app_loading"

REQUIRED_GROUPS = (LOGIN_FIELDS, CANVAS, TOOLBAR, LOGOUT, USER_MENU, APP_LOADING)


@dataclass(frozen=True)
class SelectorRegistry:
    """版本化的 selector 群組設定"""
    version: str
    groups: Mapping[str, tuple[str, ...]]
    text_indicators: tuple[str, ...] = ()

    @classmethod
    def from_dict(cls, data: dict, source: str = "<dict>") -> "SelectorRegistry":
        if not isinstance(data, dict):
            raise SelectorRegistryError(source, "頂層必須是 object")
        version = data.get("version")
        if not version:
            raise SelectorRegistryError(source, "缺少 version")

        raw_groups = data.get("groups")
        if not isinstance(raw_groups, dict):
            raise SelectorRegistryError(source, "缺少 groups")

        missing = [g for g in REQUIRED_GROUPS if g not in raw_groups]
        if missing:
            raise SelectorRegistryError(source, f"缺少群組: {', '.join(missing)}")

        groups: dict[str, tuple[str, ...]] = {}
        for name, selectors in raw_groups.items():
            if not isinstance(selectors, list) or not all(
                isinstance(s, str) and s.strip() for s in selectors
            ):
                raise SelectorRegistryError(source, f"群組 {name} 必須是非空字串列表")
            groups[name] = tuple(selectors)

        indicators = data.get("text_indicators", [])
        if not isinstance(indicators, list):
            raise SelectorRegistryError(source, "text_indicators 必須是列表")

        return cls(
            version=str(version),
            groups=MappingProxyType(groups),
            text_indicators=tuple(i.lower() for i in indicators),
        )

    @classmethod
    def load(cls, path: str | Path | None = None) -> "SelectorRegistry":
        """從 JSON 檔載入 registry，預設讀取 Config.SELECTORS_FILE"""
        path = Path(path or Config.SELECTORS_FILE)
        if not path.exists():
            raise SelectorRegistryError(str(path), "檔案不存在")
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise SelectorRegistryError(str(path), f"JSON 格式錯誤: {e}") from e
        registry = cls.from_dict(data, source=str(path))
        logger.debug(f"Selector registry 已載入: v{registry.version} ({path})")
        return registry

    def selectors(self) -> list[str]:
        """所有群組的 selector（去重、保留順序）"""
        seen: dict[str, None] = {}
        for selectors in self.groups.values():
            for s in selectors:
                seen.setdefault(s, None)
        return list(seen)


@dataclass(frozen=True)
class SignalMap:
    """一次收集的結果，建立後不可變"""
    elements: Mapping[str, bool]
    groups: Mapping[str, bool]
    indicators: frozenset[str] = field(default_factory=frozenset)
    registry_version: str = ""

    def has(self, group: str) -> bool:
        return self.groups.get(group, False)

    @classmethod
    def from_groups(cls, **present: bool) -> "SignalMap":
        """直接由群組布林值建立 SignalMap（錄製 fixture 與單元測試用）"""
        groups = {g: False for g in REQUIRED_GROUPS}
        groups.update({g: bool(v) for g, v in present.items()})
        return cls(elements=MappingProxyType({}), groups=MappingProxyType(groups))


class SignalCollector:
    """依 registry 收集 DOM 訊號"""

    def __init__(self, registry: SelectorRegistry | None = None):
        self.registry = registry or SelectorRegistry.load()

    def collect(self, dom_root, text_snapshot: str = "") -> SignalMap:
        elements = {
            selector: self._is_present(dom_root, selector)
            for selector in self.registry.selectors()
        }
        groups = {
            name: any(elements[s] for s in selectors)
            for name, selectors in self.registry.groups.items()
        }
        return SignalMap(
            elements=MappingProxyType(elements),
            groups=MappingProxyType(groups),
            indicators=self.collect_indicators(text_snapshot),
            registry_version=self.registry.version,
        )

    def collect_indicators(self, text_snapshot: str) -> frozenset[str]:
        """頁面文字中出現的 text indicator（僅供診斷，不參與判斷）"""
        if not text_snapshot:
            return frozenset()
        text = text_snapshot.lower()
        return frozenset(i for i in self.registry.text_indicators if i in text)

    @staticmethod
    def _is_present(dom_root, selector: str) -> bool:
        """selector 是否有任一可見元素"""
        try:
            found = dom_root.find_elements(By.CSS_SELECTOR, selector)
        except WebDriverException as e:
            logger.debug(f"Selector 查詢失敗，視為不存在: {selector} ({type(e).__name__})")
            return False

        for element in found:
            try:
                if element.is_displayed():
                    return True
            except WebDriverException:
                # stale element，換下一個
                continue
        return False
