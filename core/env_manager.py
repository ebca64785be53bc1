"""
Environment Manager — 多環境設定繼承

支援 dev / ci / open_access 等多套環境，透過繼承合併設定。
每個環境只需覆寫差異（例如不同的 base_url、open access 或帳密）。

設定查找順序：
    1. 環境變數 (最高優先，dot 換成底線並轉大寫，例如 CREDENTIALS_USERNAME)
    2. config/env/{env_name}.json (環境專用)
    3. config/env/base.json (基底)
    4. 程式碼內建預設值 (取自 Config)

內附的 base.json 不覆寫 base_url、帳密與逾時，
APP_BASE_URL / APP_USERNAME / APP_PASSWORD 等經由 Config 進到第 4 層。

用法：
    from core.env_manager import env

    url = env.get("base_url")
    username, password = env.credentials()

    env.switch("ci")

    # 在測試中
    pytest --env ci
"""

from __future__ import annotations

import json
import os
from copy import deepcopy
from pathlib import Path

from config.config import Config
from core.exceptions import InvalidConfigError
from utils.logger import logger

_CONFIG_DIR = Path(__file__).resolve().parent.parent / "config"
_ENV_DIR = _CONFIG_DIR / "env"


def _deep_merge(base: dict, override: dict) -> dict:
    """深層合併兩個 dict，override 覆蓋 base"""
    merged = deepcopy(base)
    for key, value in override.items():
        if key in merged and isinstance(merged[key], dict) and isinstance(value, dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = deepcopy(value)
    return merged


def _defaults() -> dict:
    return {
        "base_url": Config.BASE_URL,
        "open_access": Config.OPEN_ACCESS,
        "browser": Config.BROWSER,
        "credentials": {
            "username": Config.USERNAME,
            "password": Config.PASSWORD,
        },
        "wait_timeout_ms": Config.WAIT_TIMEOUT_MS,
        "poll_interval_ms": Config.POLL_INTERVAL_MS,
        "test_budget_ms": Config.TEST_BUDGET_MS,
        "session_ttl_seconds": Config.SESSION_TTL_SECONDS,
        "screenshot_on_fail": True,
    }


class EnvManager:
    """
    多環境設定管理

    合併順序: 預設值 → base.json → {env}.json → 環境變數覆蓋
    """

    def __init__(self, env_dir: Path | None = None):
        self._env_name: str = os.getenv("TEST_ENV", "dev")
        self._env_dir = env_dir or _ENV_DIR
        self._config: dict = {}
        self._loaded = False

    @property
    def env_name(self) -> str:
        return self._env_name

    def switch(self, env_name: str) -> None:
        """切換環境並重新載入"""
        logger.info(f"切換環境: {self._env_name} → {env_name}")
        self._env_name = env_name
        self._loaded = False
        self._load()

    def get(self, key: str, default=None):
        """
        取得設定值，支援 dot notation。

        範例:
            env.get("base_url")                → "https://..."
            env.get("credentials")             → {...}
            env.get("credentials.username")
        """
        self._ensure_loaded()

        env_val = os.getenv(key.upper().replace(".", "_"))
        if env_val is not None:
            return self._cast(env_val)

        value = self._config
        for part in key.split("."):
            if isinstance(value, dict) and part in value:
                value = value[part]
            else:
                return default
        return value

    def credentials(self) -> tuple[str, str]:
        """目前環境的預設帳密 (username, password)"""
        return (
            str(self.get("credentials.username", Config.USERNAME)),
            str(self.get("credentials.password", Config.PASSWORD)),
        )

    # ── 內部方法 ──

    def _ensure_loaded(self) -> None:
        if not self._loaded:
            self._load()

    def _load(self) -> None:
        """載入並合併設定"""
        config = _defaults()

        base_file = self._env_dir / "base.json"
        if base_file.exists():
            config = _deep_merge(config, self._read_json(base_file))

        env_file = self._env_dir / f"{self._env_name}.json"
        if env_file.exists():
            config = _deep_merge(config, self._read_json(env_file))
        elif self._env_name not in ("dev", "base"):
            logger.warning(f"找不到環境設定檔: {env_file}，使用 base 設定")

        self._config = config
        self._loaded = True
        logger.debug(f"環境設定已載入: {self._env_name}")

    @staticmethod
    def _read_json(path: Path) -> dict:
        try:
            with open(path, encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise InvalidConfigError(str(path), "", f"JSON 格式錯誤: {e}") from e
        # 移除 _comment 欄位
        return {k: v for k, v in data.items() if not k.startswith("_")}

    @staticmethod
    def _cast(value: str):
        """嘗試將環境變數字串轉為適當型別"""
        if value.lower() in ("true", "1", "yes"):
            return True
        if value.lower() in ("false", "0", "no"):
            return False
        try:
            return int(value)
        except ValueError:
            pass
        try:
            return float(value)
        except ValueError:
            pass
        return value


# 全域 singleton
env = EnvManager()
