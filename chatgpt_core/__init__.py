"""ChatGPT Web 客户端顶层包。

使用浏览器会话 cookie（而非官方 API Key）换取 accessToken，
并通过事件流接口与 ChatGPT Web 服务进行多轮对话。
"""

from chatgpt_core.domain.exceptions import (
    BodyReadError,
    ChatGPTError,
    ConfigurationError,
    DecodeError,
    HTTPStatusError,
    MissingTokenError,
    RemoteLogicalError,
    TransportError,
)
from chatgpt_core.providers import create_session
from chatgpt_core.providers.conversation import Conversation
from chatgpt_core.providers.session import SessionManager

__all__ = [
    "BodyReadError",
    "ChatGPTError",
    "ConfigurationError",
    "Conversation",
    "DecodeError",
    "HTTPStatusError",
    "MissingTokenError",
    "RemoteLogicalError",
    "SessionManager",
    "TransportError",
    "create_session",
]
