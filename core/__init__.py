"""
core — 頁面狀態引擎

統一匯出所有核心元件，方便外部 import。

用法：
    from core import Harness, PageType, SessionCache
    from core import DeadlineExceeded, PageStateTimeout
    from core import env
"""

from core.base_page import BasePage
from core.browser import BrowserAdapter
from core.classifier import PageType, classify, is_ambiguous
from core.deadline import Deadline, DeadlineGuard
from core.driver_manager import DriverManager
from core.env_manager import env
from core.exceptions import (
    AuthError,
    ConfigError,
    DeadlineExceeded,
    DriverConnectionError,
    DriverError,
    ElementNotFoundError,
    HarnessError,
    InvalidConfigError,
    LoginFailed,
    PageStateError,
    PageStateTimeout,
    PageTypeMismatchError,
    SelectorRegistryError,
    SessionValidationFailed,
)
from core.harness import Harness, HarnessOptions
from core.orchestrator import PageStateOrchestrator, PollState
from core.page_context import PAGE_DEFINITIONS, PageContext, PageContextReader
from core.readiness import Readiness, evaluate
from core.session_cache import SessionCache, SessionRecord
from core.signals import SelectorRegistry, SignalCollector, SignalMap

__all__ = [
    # Engine
    "Harness",
    "HarnessOptions",
    "PageType",
    "PageContext",
    "PageContextReader",
    "PAGE_DEFINITIONS",
    "classify",
    "is_ambiguous",
    "Readiness",
    "evaluate",
    "SelectorRegistry",
    "SignalCollector",
    "SignalMap",
    "PageStateOrchestrator",
    "PollState",
    "SessionCache",
    "SessionRecord",
    "Deadline",
    "DeadlineGuard",
    # Browser
    "BrowserAdapter",
    "BasePage",
    "DriverManager",
    "env",
    # Exceptions
    "HarnessError",
    "DriverError",
    "DriverConnectionError",
    "PageStateError",
    "PageStateTimeout",
    "PageTypeMismatchError",
    "ElementNotFoundError",
    "DeadlineExceeded",
    "AuthError",
    "LoginFailed",
    "SessionValidationFailed",
    "ConfigError",
    "InvalidConfigError",
    "SelectorRegistryError",
]
