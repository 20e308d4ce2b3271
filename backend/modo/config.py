# -*- coding: utf-8 -*-
"""
MODO Creator Verse - AI 辅助的 IP Bible 创作平台
MODO Creator Verse - AI-assisted IP Bible creation platform

Copyright © 2025-2026 MODO Team
License: PolyForm Noncommercial License 1.0.0

模块说明 / Module Description:
  应用配置 - 环境变量（.env）与 config.yaml 业务参数
  Application configuration - environment settings (.env) and config.yaml business parameters.

使用示例 / Usage:
    from modo.config import settings, config

    settings.database_url
    config.get("credits", {}).get("default_cost", 5)
"""

import os
from pathlib import Path
from typing import Any, Dict, List

import yaml
from dotenv import load_dotenv

BACKEND_ROOT = Path(__file__).resolve().parent.parent

load_dotenv(BACKEND_ROOT / ".env")


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return str(value).strip().lower() in {"1", "true", "yes", "on"}


class Settings:
    """
    运行时设置 / Runtime settings

    Values come from environment variables (optionally via a `.env` file in
    the backend directory). Attributes are plain so tests can override them.
    """

    def __init__(self) -> None:
        self.app_name: str = "MODO Creator Verse"
        self.debug: bool = _env_bool("MODO_DEBUG", False)
        self.host: str = os.getenv("MODO_HOST", "0.0.0.0")
        self.port: int = int(os.getenv("MODO_PORT", "8000"))
        self.data_dir: str = os.getenv("MODO_DATA_DIR", str(BACKEND_ROOT / "data"))
        self.database_url: str = os.getenv(
            "DATABASE_URL",
            f"sqlite+aiosqlite:///{Path(self.data_dir) / 'modo.db'}",
        )
        self.export_dir: str = os.getenv("MODO_EXPORT_DIR", str(Path(self.data_dir) / "exports"))
        self.rate_limit: str = os.getenv("MODO_RATE_LIMIT", "100/minute")
        self.auto_create_tables: bool = _env_bool("MODO_AUTO_CREATE_TABLES", True)
        self.cors_origins: List[str] = [
            origin.strip()
            for origin in os.getenv(
                "MODO_CORS_ORIGINS",
                "http://localhost:3000,http://127.0.0.1:3000",
            ).split(",")
            if origin.strip()
        ]


def load_config(path: Path = None) -> Dict[str, Any]:
    """
    加载业务配置 / Load business configuration from YAML

    Args:
        path: 配置文件路径，默认 backend/config.yaml / Config path (default backend/config.yaml)

    Returns:
        配置字典，文件不存在时为空字典 / Config dict, empty when the file is missing
    """
    config_path = Path(path or os.getenv("MODO_CONFIG", BACKEND_ROOT / "config.yaml"))
    if not config_path.exists():
        return {}
    with open(config_path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Config file {config_path} must contain a mapping")
    return data


settings = Settings()
config: Dict[str, Any] = load_config()
