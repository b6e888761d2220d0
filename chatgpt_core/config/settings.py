"""配置管理模块。

支持从环境变量、.env 以及 config.yaml 加载配置。

注意：SessionManager / Conversation 本身不读取配置，所有参数都由构造函数传入；
只有 ``chatgpt_core.providers.create_session`` 会把这里的配置映射为构造参数。
"""

import os
import warnings
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from chatgpt_core.domain.models import DEFAULT_MODEL


def _load_config_from_yaml() -> Dict[str, Any]:
    """从 config.yaml 加载配置（若存在）。"""
    candidates = []
    explicit = os.getenv("CHATGPT_CONFIG_FILE")
    if explicit:
        candidates.append(Path(explicit).expanduser())
    candidates.extend([
        Path.cwd() / "config.yaml",
        Path(__file__).resolve().parents[2] / "config.yaml",
    ])

    seen: set[Path] = set()
    for path in candidates:
        if not path or path in seen:
            continue
        seen.add(path)
        try:
            if path.exists():
                data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
                if isinstance(data, dict):
                    return data
                warnings.warn(f"Config file {path} is not a mapping, ignored")
        except (OSError, yaml.YAMLError) as exc:
            warnings.warn(f"Failed to read config file {path}: {exc}")
    return {}


class ClientSettings(BaseSettings):
    """客户端配置。"""

    # ---- 浏览器会话凭据 ----
    session_token: Optional[str] = Field(
        default=None,
        description="__Secure-next-auth.session-token cookie 的值",
    )
    clearance_token: Optional[str] = Field(default=None, description="cf_clearance cookie 的值")
    user_agent: Optional[str] = Field(
        default=None,
        description="获取 cf_clearance 时使用的浏览器 User-Agent，必须一致",
    )

    # ---- 请求 ----
    base_url: str = Field(default="https://chat.openai.com", description="ChatGPT Web 基础URL")
    model: str = Field(default=DEFAULT_MODEL, description="conversation 请求中的模型名")
    http_timeout: float = Field(default=10.0, ge=0, description="单次 HTTP 请求超时时间（秒），0 表示不限时")

    # ---- 日志 ----
    log_dir: str = Field(default="logs", description="日志目录")
    log_level: str = Field(default="INFO", description="日志级别")
    log_redact_content: bool = Field(default=False, description="是否截断日志内容")

    model_config = SettingsConfigDict(
        env_prefix="CHATGPT_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @staticmethod
    def _config_source() -> Dict[str, Any]:
        return _load_config_from_yaml()

    @field_validator("base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"unknown log level: {v}")
        return level

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls,
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            cls._config_source,
            file_secret_settings,
        )


settings = ClientSettings()

# 类型别名，让外部代码可以使用 Settings 类型
Settings = ClientSettings
