"""会话与消息的数据模型。

本模块定义客户端内部共享的标准数据结构：

- Credentials: 浏览器会话凭据（session cookie、cf_clearance cookie、User-Agent）。
- AccessToken: 用凭据换来的短期 accessToken 及其过期时间。
- ConversationState: 一段对话的链接信息（conversation_id + parent_message_id）。
- ConversationBody: 每轮发给 conversation 端点的请求体。
- SessionResult / ConversationResult: 两个端点响应解析后的结构。

Provider 层（session、conversation）只依赖这些模型，并负责在服务端 JSON
与这些模型之间做转换。
"""

import json
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Literal, Optional

from chatgpt_core.domain.exceptions import ConfigurationError


Role = Literal["user", "assistant", "system"]

DEFAULT_MODEL = "text-davinci-002-render"


@dataclass(frozen=True)
class Credentials:
    """浏览器会话凭据，客户端生命周期内不可变。"""

    session_token: str
    clearance_token: str
    user_agent: str

    def validate(self) -> None:
        if not self.session_token or not self.clearance_token or not self.user_agent:
            raise ConfigurationError(
                code="MISSING_CREDENTIALS",
                message="session_token and clearance_token and user_agent must be set",
            )


@dataclass
class AccessToken:
    """缓存的 accessToken。token 为空视同不存在。"""

    token: str = ""
    expires_at: Optional[datetime] = None

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        if not self.token or self.expires_at is None:
            return True
        now = now or datetime.now(timezone.utc)
        return now >= self.expires_at


@dataclass(frozen=True)
class ConversationState:
    """对话链接信息的只读快照。"""

    conversation_id: Optional[str] = None
    parent_message_id: Optional[str] = None


@dataclass
class MessageContent:
    content_type: str = "text"
    parts: List[str] = field(default_factory=list)


@dataclass
class ConversationBodyMessage:
    id: str
    role: Role
    content: MessageContent


@dataclass
class ConversationBody:
    """一轮对话的请求体。

    conversation_id 为 None 时整个字段不出现在 payload 里：服务端区分
    “字段缺失”（新对话）和“空字符串”。
    """

    messages: List[ConversationBodyMessage]
    parent_message_id: str
    model: str = DEFAULT_MODEL
    action: str = "next"
    conversation_id: Optional[str] = None

    def to_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "action": self.action,
            "messages": [asdict(m) for m in self.messages],
            "parent_message_id": self.parent_message_id,
            "model": self.model,
        }
        if self.conversation_id is not None:
            payload["conversation_id"] = self.conversation_id
        return payload

    def to_json(self) -> str:
        return json.dumps(self.to_payload(), ensure_ascii=False)


@dataclass
class SessionResult:
    """session 端点响应。user 原样透传，客户端不解读。"""

    access_token: str
    expires: Optional[datetime] = None
    error: str = ""
    user: Dict[str, Any] = field(default_factory=dict)


@dataclass
class ReplyMessage:
    id: str
    role: str
    content: MessageContent


@dataclass
class ConversationResult:
    """conversation 端点流中最后一条完整消息。

    - message: 助手回复（id、role、content）。
    - conversation_id: 服务端分配/回显的对话 id。
    - error: 服务端显式错误，正常为 None。
    - raw: 原始 JSON，用于调试日志。
    """

    message: ReplyMessage
    conversation_id: Optional[str] = None
    error: Any = None
    raw: Optional[dict] = None

    def get_message(self) -> str:
        return self.message.content.parts[0]

    def to_json(self) -> str:
        if self.raw is not None:
            return json.dumps(self.raw, ensure_ascii=False)
        data = asdict(self)
        data.pop("raw", None)
        return json.dumps(data, ensure_ascii=False)
