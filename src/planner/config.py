"""
設定管理モジュール

関連クラス:
  - quick_add.QuickAddSession: デバウンス間隔・既定の時間枠を使用
  - src.server.dependencies: ログ設定とDBパスを使用
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

import yaml


@dataclass
class QuickAddConfig:
    """クイック追加フォーム設定"""

    debounce_seconds: float = 0.3
    min_parse_length: int = 4  # これより短いタイトルは解析しない


@dataclass
class CalendarConfig:
    """カレンダー表示設定"""

    first_slot_hour: int = 6
    last_slot_hour: int = 23
    default_time_slot: str = "09:00"  # 週ビューの日付セルへのドロップ時


@dataclass
class ServerConfig:
    """開発サーバー設定"""

    host: str = "0.0.0.0"
    port: int = 8000
    reload: bool = True


@dataclass
class Config:
    """アプリケーション設定クラス"""

    quick_add: QuickAddConfig = None  # type: ignore
    calendar: CalendarConfig = None  # type: ignore
    server: ServerConfig = None  # type: ignore

    # ログ設定
    log_level: str = "INFO"
    log_file: str = "logs/life_planner.log"

    # ストレージ設定 (None の場合は data/life_planner.db)
    db_path: Optional[str] = None

    def __post_init__(self):
        """デフォルト値の初期化"""
        if self.quick_add is None:
            self.quick_add = QuickAddConfig()
        if self.calendar is None:
            self.calendar = CalendarConfig()
        if self.server is None:
            self.server = ServerConfig()

    @classmethod
    def from_yaml(cls, config_path: Optional[Path] = None) -> "Config":
        """YAMLファイルから設定を読み込む

        Args:
            config_path: 設定ファイルパス（省略時はconfig/app_config.yamlを使用）

        Returns:
            Config: 設定インスタンス
        """
        if config_path is None:
            project_root = Path(__file__).parent.parent.parent
            config_path = project_root / "config" / "app_config.yaml"

        with open(config_path, "r", encoding="utf-8") as f:
            yaml_data: Dict[str, Any] = yaml.safe_load(f) or {}

        quick_add_data = yaml_data.get("quick_add", {})
        calendar_data = yaml_data.get("calendar", {})
        log_data = yaml_data.get("log", {})
        storage_data = yaml_data.get("storage", {})
        server_data = yaml_data.get("server", {})

        return cls(
            quick_add=QuickAddConfig(
                debounce_seconds=float(quick_add_data.get("debounce_seconds", 0.3)),
                min_parse_length=int(quick_add_data.get("min_parse_length", 4)),
            ),
            calendar=CalendarConfig(
                first_slot_hour=int(calendar_data.get("first_slot_hour", 6)),
                last_slot_hour=int(calendar_data.get("last_slot_hour", 23)),
                default_time_slot=calendar_data.get("default_time_slot", "09:00"),
            ),
            server=ServerConfig(
                host=server_data.get("host", "0.0.0.0"),
                port=int(server_data.get("port", 8000)),
                reload=bool(server_data.get("reload", True)),
            ),
            log_level=log_data.get("level", "INFO"),
            log_file=log_data.get("file", "logs/life_planner.log"),
            db_path=storage_data.get("db_path"),
        )

    @classmethod
    def from_env(cls) -> "Config":
        """環境変数から設定を読み込む"""
        return cls(
            quick_add=QuickAddConfig(
                debounce_seconds=float(os.getenv("QUICK_ADD_DEBOUNCE_SECONDS", "0.3")),
                min_parse_length=int(os.getenv("QUICK_ADD_MIN_PARSE_LENGTH", "4")),
            ),
            calendar=CalendarConfig(
                first_slot_hour=int(os.getenv("CALENDAR_FIRST_SLOT_HOUR", "6")),
                last_slot_hour=int(os.getenv("CALENDAR_LAST_SLOT_HOUR", "23")),
                default_time_slot=os.getenv("CALENDAR_DEFAULT_TIME_SLOT", "09:00"),
            ),
            server=ServerConfig(
                host=os.getenv("SERVER_HOST", "0.0.0.0"),
                port=int(os.getenv("SERVER_PORT", "8000")),
                reload=os.getenv("SERVER_RELOAD", "true").lower() == "true",
            ),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            log_file=os.getenv("LOG_FILE", "logs/life_planner.log"),
            db_path=os.getenv("LIFE_PLANNER_DB_PATH"),
        )
