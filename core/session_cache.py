"""
Session Cache — 登入 Session 快取

每個帳號 (identity) 最多保留一筆有效的 session artifact（cookie / storage）。
同一個帳號在有效期內重複要求 session 時直接重用，不再走一次登入流程。

流程：
1. 有效且未過期的記錄 → 還原 artifact → 直接回傳（不登入）
2. validate_session=True → 還原後先做存活檢查（沒被導回登入頁）
   檢查失敗 → 作廢記錄、視為 miss、重新登入
3. force_login=True、無記錄、已過期 → 呼叫 login collaborator → 存成新記錄

失敗處理：
- login collaborator 拋出的 LoginFailed 原樣往上拋，不存任何記錄，也不自動重試
- SessionValidationFailed 在內部處理（改走重新登入），不會拋給呼叫端

生命週期：
    由 conftest 的 session fixture 建立（第一次登入時才有內容），
    clear_session() 或 pytest session 結束時清除。
    單一 worker 執行，不加鎖。

用法：
    cache = SessionCache(login=login_page.login_and_capture,
                         restore=browser.write_storage_artifacts,
                         liveness_check=lambda: harness.get_page_context().page_type is not PageType.LOGIN,
                         clear_artifacts=browser.clear_storage_artifacts)
    record = cache.retrieve_session("admin", "secret")
    cache.clear_session()
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any, Callable

from config.config import Config
from core.exceptions import InvalidConfigError, SessionValidationFailed
from utils.logger import logger

LoginFn = Callable[[str, Any], dict]


@dataclass
class SessionRecord:
    """單一帳號的 session 記錄"""
    identity: str
    artifact: dict
    created_at: float
    ttl: float
    valid: bool = True
    hit_count: int = 0

    @property
    def expires_at(self) -> float:
        return self.created_at + self.ttl

    def is_alive(self, now: float) -> bool:
        return self.valid and now < self.expires_at


class SessionCache:
    """
    Session 快取

    策略:
    - 以 identity 為 key，同一 identity 重新登入會覆蓋舊記錄
    - TTL 預設讀取 Config.SESSION_TTL_SECONDS
    - clock 可注入，方便測試 TTL
    """

    def __init__(
        self,
        login: LoginFn | None = None,
        restore: Callable[[dict], None] | None = None,
        liveness_check: Callable[[], bool] | None = None,
        clear_artifacts: Callable[[], None] | None = None,
        ttl: float | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._login = login
        self._restore = restore
        self._liveness_check = liveness_check
        self._clear_artifacts = clear_artifacts
        self._ttl = ttl if ttl is not None else Config.SESSION_TTL_SECONDS
        self._clock = clock
        self._records: dict[str, SessionRecord] = {}
        self._current: str | None = None
        self._stats = {"hits": 0, "logins": 0, "invalidations": 0, "validation_failures": 0}

    def bind(
        self,
        login: LoginFn | None = None,
        restore: Callable[[dict], None] | None = None,
        liveness_check: Callable[[], bool] | None = None,
        clear_artifacts: Callable[[], None] | None = None,
    ) -> None:
        """
        重新綁定 collaborator。

        快取活得比 driver 久（session scope vs function scope），
        每個測試拿到新的 driver 後要把還原/檢查/清除的對象換成新的瀏覽器。
        只替換有傳入的項目。
        """
        if login is not None:
            self._login = login
        if restore is not None:
            self._restore = restore
        if liveness_check is not None:
            self._liveness_check = liveness_check
        if clear_artifacts is not None:
            self._clear_artifacts = clear_artifacts

    @property
    def current_identity(self) -> str | None:
        return self._current

    def get(self, identity: str) -> SessionRecord | None:
        """取得仍有效的記錄，過期或已作廢回傳 None"""
        record = self._records.get(identity)
        if record is not None and record.is_alive(self._clock()):
            return record
        return None

    def retrieve_session(
        self,
        identity: str,
        proof: Any,
        force_login: bool = False,
        validate_session: bool = False,
    ) -> SessionRecord:
        """
        取得可用的 session，必要時才登入。

        Raises:
            LoginFailed: login collaborator 回報失敗（原樣拋出）
        """
        record = self._records.get(identity)

        if force_login:
            logger.info(f"[Session] 強制重新登入: {identity}")
        elif record is not None and record.is_alive(self._clock()):
            try:
                self._reuse(record, validate_session)
            except SessionValidationFailed as e:
                self._stats["validation_failures"] += 1
                logger.warning(f"[Session] {e}")
                self.invalidate(identity)
            else:
                record.hit_count += 1
                self._stats["hits"] += 1
                self._current = identity
                logger.info(f"[Session] 重用快取 session: {identity}")
                return record
        elif record is not None:
            logger.info(f"[Session] 快取 session 已過期或作廢: {identity}")
            del self._records[identity]

        return self._login_and_store(identity, proof)

    def invalidate(self, identity: str) -> None:
        """作廢特定帳號的記錄"""
        record = self._records.pop(identity, None)
        if record is not None:
            record.valid = False
            self._stats["invalidations"] += 1
            logger.debug(f"[Session] 已作廢: {identity}")
        if self._current == identity:
            self._current = None

    def clear_session(self) -> None:
        """
        作廢目前帳號的記錄，並清除瀏覽器端的 cookie / storage，
        下一次評估一定從 LOGIN 開始。
        """
        if self._current is not None:
            self.invalidate(self._current)
        if self._clear_artifacts is not None:
            self._clear_artifacts()
        logger.info("[Session] 已清除目前 session")

    def clear(self) -> None:
        """清除所有記錄（teardown 用，不碰瀏覽器）"""
        for record in self._records.values():
            record.valid = False
        self._records.clear()
        self._current = None

    @property
    def size(self) -> int:
        return len(self._records)

    @property
    def stats(self) -> dict:
        return dict(self._stats)

    # ── 內部方法 ──

    def _reuse(self, record: SessionRecord, validate_session: bool) -> None:
        if self._restore is not None:
            self._restore(record.artifact)
        if not validate_session:
            return
        if self._liveness_check is None:
            logger.debug("[Session] 未設定存活檢查，略過驗證")
            return
        if not self._liveness_check():
            raise SessionValidationFailed(record.identity)

    def _login_and_store(self, identity: str, proof: Any) -> SessionRecord:
        if self._login is None:
            raise InvalidConfigError("login", "None", "SessionCache 尚未綁定 login collaborator")
        logger.info(f"[Session] 執行登入: {identity}")
        self._stats["logins"] += 1
        artifact = self._login(identity, proof)
        record = SessionRecord(
            identity=identity,
            artifact=artifact,
            created_at=self._clock(),
            ttl=self._ttl,
        )
        self._records[identity] = record
        self._current = identity
        logger.info(f"[Session] 登入成功並已快取: {identity}")
        return record
