"""
core/exceptions.py 單元測試

驗證自訂例外體系的繼承關係、訊息格式、context 欄位。
"""

import pytest

from core.classifier import PageType
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


@pytest.mark.unit
class TestExceptionHierarchy:
    """測試例外繼承關係"""

    @pytest.mark.unit
    def test_all_inherit_from_base(self):
        classes = [
            DriverError, DriverConnectionError,
            PageStateError, PageStateTimeout, PageTypeMismatchError, ElementNotFoundError,
            DeadlineExceeded, AuthError, LoginFailed, SessionValidationFailed,
            ConfigError, InvalidConfigError, SelectorRegistryError,
        ]
        for cls in classes:
            assert issubclass(cls, HarnessError), f"{cls.__name__} 未繼承 HarnessError"

    @pytest.mark.unit
    def test_groups(self):
        assert issubclass(PageStateTimeout, PageStateError)
        assert issubclass(PageTypeMismatchError, PageStateError)
        assert issubclass(LoginFailed, AuthError)
        assert issubclass(SessionValidationFailed, AuthError)
        assert issubclass(SelectorRegistryError, ConfigError)

    @pytest.mark.unit
    def test_deadline_is_not_a_page_timeout(self):
        """整體預算用盡與單步逾時是不同的錯誤"""
        assert not issubclass(DeadlineExceeded, PageStateError)


@pytest.mark.unit
class TestExceptionMessages:
    """訊息與 context"""

    @pytest.mark.unit
    def test_page_state_timeout_includes_last_state(self, make_context):
        ctx = make_context(PageType.LOGIN, ready=True, url="https://nifi.test/nifi/#/login")
        err = PageStateTimeout("MAIN_CANVAS", 5000, ctx)
        assert err.last_context is ctx
        assert "MAIN_CANVAS" in str(err)
        assert "LOGIN" in str(err)
        assert "5000ms" in str(err)
        assert err.context == {"target": "MAIN_CANVAS", "timeout_ms": 5000}

    @pytest.mark.unit
    def test_page_state_timeout_without_context(self):
        assert "無任何觀察結果" in str(PageStateTimeout("LOGIN", 100))

    @pytest.mark.unit
    def test_mismatch(self, make_context):
        err = PageTypeMismatchError("MAIN_CANVAS", make_context(PageType.LOGIN), "需要登入")
        assert err.context["actual"] == "LOGIN"
        assert "需要登入" in str(err)

    @pytest.mark.unit
    def test_deadline_exceeded(self):
        err = DeadlineExceeded("test_x", 5000, 6000.4)
        assert "6000ms > 5000ms" in str(err)
        assert err.context["test_id"] == "test_x"

    @pytest.mark.unit
    def test_login_failed(self):
        err = LoginFailed("admin", "帳密錯誤")
        assert err.identity == "admin"
        assert "帳密錯誤" in str(err)

    def test_driver_connection_wraps_original(self):
        original = RuntimeError("refused")
        err = DriverConnectionError("http://grid:4444", original)
        assert err.original is original
        assert "RuntimeError" in str(err)

    def test_catch_base_catches_all(self):
        with pytest.raises(HarnessError):
            raise SessionValidationFailed("admin")

    def test_default_context_is_empty_dict(self):
        assert HarnessError("x").context == {}
