"""
登入與 canvas 狀態 e2e 測試

需要可連線的應用程式與瀏覽器，預設被 `-m 'not e2e'` 排除：
    pytest -m e2e --env dev --base-url https://localhost:8443/nifi
"""

import pytest

from core.classifier import PageType
from core.exceptions import LoginFailed

pytestmark = [pytest.mark.e2e, pytest.mark.usefixtures("login_required")]


@pytest.fixture
def login_required(harness):
    if harness.open_access:
        pytest.skip("open access 部署沒有登入流程")


class TestLogin:
    """登入相關測試"""

    def test_login_page_is_classified(self, harness, login_page):
        """未登入時導到登入頁，分類為 LOGIN 且未驗證"""
        harness.clear_session()
        context = harness.navigate_to_page(PageType.LOGIN, wait_for_ready=True)

        assert login_page.is_login_page_displayed()

        assert context.page_type is PageType.LOGIN
        assert context.is_authenticated is False

    @pytest.mark.budget(60000)
    def test_canvas_ready_after_login(self, harness, credentials):
        """登入後 canvas 可操作"""
        username, password = credentials
        context = harness.ensure_canvas_ready(username, password)

        assert context.page_type is PageType.MAIN_CANVAS
        assert context.is_ready

    @pytest.mark.budget(60000)
    def test_session_is_reused_across_tests(self, harness, credentials, session_cache):
        """同一個 identity 第二次取 session 不再登入"""
        username, password = credentials
        harness.retrieve_session(username, password)
        logins = session_cache.stats["logins"]

        harness.retrieve_session(username, password, validate_session=True)

        assert session_cache.stats["logins"] == logins

    def test_logout_returns_to_login(self, harness, credentials):
        username, password = credentials
        harness.ensure_canvas_ready(username, password)

        context = harness.logout()

        assert context.page_type is PageType.LOGIN
        assert not context.is_authenticated


@pytest.mark.parametrize("username, password", [
    ("admin", "wrong_password"),
    ("nobody", "nobody-password"),
])
def test_invalid_credentials_are_rejected(harness, session_cache, username, password):
    """錯誤帳密：LoginFailed 直接往上拋，快取內不留紀錄"""
    with pytest.raises(LoginFailed):
        harness.retrieve_session(username, password, force_login=True)

    assert session_cache.get(username) is None
