"""Provider 抽象接口。

Conversation 不直接依赖 SessionManager 的实现，而是依赖此协议：

- 提供浏览器凭据、超时、基础 URL、模型名与 logger。
- ensure_valid_token(): 返回可用的 accessToken，必要时阻塞刷新。

测试中可以用任意满足该协议的桩对象替换 SessionManager。
"""

import logging
from typing import Optional, Protocol

from chatgpt_core.domain.models import Credentials


class TokenSource(Protocol):
    """accessToken 来源协议。"""

    credentials: Credentials
    timeout: Optional[float]
    base_url: str
    model: str
    logger: logging.Logger

    def ensure_valid_token(self) -> str:
        ...

    def browser_headers(self) -> dict:
        """模拟浏览器请求的附加 header（语言、origin、referer 等）。"""

        ...
