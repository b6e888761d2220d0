"""ChatGPT Web 集成层。

该包下的模块负责：
- 定义 accessToken 来源协议 (base)。
- 浏览器会话换取并缓存 accessToken (session)。
- 发送消息并解析事件流 (conversation、stream)。
"""

import logging
from typing import Optional

from chatgpt_core.config.settings import settings
from chatgpt_core.providers.session import SessionManager


def create_session(cfg=None, logger: Optional[logging.Logger] = None, **overrides) -> SessionManager:
    """根据配置创建 SessionManager，overrides 优先于配置项。"""

    cfg = cfg or settings
    params = {
        "session_token": getattr(cfg, "session_token", None) or "",
        "clearance_token": getattr(cfg, "clearance_token", None) or "",
        "user_agent": getattr(cfg, "user_agent", None) or "",
        "timeout": getattr(cfg, "http_timeout", None),
        "base_url": getattr(cfg, "base_url", None) or "https://chat.openai.com",
    }
    model = getattr(cfg, "model", None)
    if model:
        params["model"] = model
    params.update(overrides)
    return SessionManager(logger=logger, **params)
