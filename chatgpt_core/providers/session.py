"""ChatGPT Web 会话管理。

本模块负责：

1. 保存长期有效的浏览器凭据（session-token cookie、cf_clearance cookie、User-Agent）。
2. 在没有缓存或缓存过期时，用凭据调用 /api/auth/session 换取短期 accessToken。
3. 缓存 accessToken 直到其声明的过期时间。

刷新只尝试一次，失败直接抛给调用方，是否重试由调用方决定。

默认实现不做任何加锁：多个 Conversation 并发共享同一个 SessionManager 时，
缓存字段的读写存在竞争。需要共享时请传 ``thread_safe=True``，或者每个
Conversation 使用独立的 SessionManager。
"""

import contextlib
import json
import logging
import threading
from datetime import datetime, timezone
from typing import Any, Dict, Optional

import httpx

from chatgpt_core.domain.exceptions import (
    BodyReadError,
    ConfigurationError,
    DecodeError,
    HTTPStatusError,
    MissingTokenError,
    RemoteLogicalError,
    TransportError,
)
from chatgpt_core.domain.models import DEFAULT_MODEL, AccessToken, Credentials, SessionResult
from chatgpt_core.infrastructure.logging.logger import logger as default_logger
from chatgpt_core.providers.conversation import Conversation

DEFAULT_BASE_URL = "https://chat.openai.com"
DEFAULT_TIMEOUT = 10.0
SESSION_PATH = "/api/auth/session"
SESSION_COOKIE = "__Secure-next-auth.session-token"
CLEARANCE_COOKIE = "cf_clearance"


class SessionManager:
    """浏览器会话 -> accessToken 的交换与缓存。

    - ensure_valid_token: 有未过期缓存时直接返回，否则刷新一次。
    - new_conversation: 基于当前会话创建一段对话。
    """

    def __init__(
        self,
        session_token: str,
        clearance_token: str,
        user_agent: str,
        logger: Optional[logging.Logger] = None,
        timeout: Optional[float] = None,
        base_url: str = DEFAULT_BASE_URL,
        model: str = DEFAULT_MODEL,
        thread_safe: bool = False,
    ):
        self.credentials = Credentials(
            session_token=session_token,
            clearance_token=clearance_token,
            user_agent=user_agent,
        )
        # 凭据缺失走 ConfigurationError，不构造实例
        self.credentials.validate()
        if timeout is not None and timeout < 0:
            raise ConfigurationError(code="INVALID_CONFIG", message=f"timeout must not be negative, got {timeout}")
        # 0 表示不限时
        self.timeout: Optional[float] = DEFAULT_TIMEOUT if timeout is None else (timeout or None)
        self.base_url = base_url.rstrip("/")
        self.model = model
        self.logger = logger or default_logger
        self._access_token = AccessToken()
        self._lock = threading.Lock() if thread_safe else None

    @property
    def access_token(self) -> AccessToken:
        return self._access_token

    def is_access_token_expired(self) -> bool:
        return self._access_token.is_expired(datetime.now(timezone.utc))

    def ensure_valid_token(self) -> str:
        """返回可用的 accessToken，必要时阻塞刷新。"""

        with self._guard():
            if self.is_access_token_expired():
                self._refresh()
            return self._access_token.token

    def refresh_access_token(self) -> str:
        """无视缓存，强制刷新一次 accessToken。"""

        with self._guard():
            self._refresh()
            return self._access_token.token

    def browser_headers(self) -> Dict[str, str]:
        return {
            "user-agent": self.credentials.user_agent,
            "x-openai-assistant-app-id": "",
            "accept-language": "en-US,en;q=0.9",
            "origin": self.base_url,
            "referer": f"{self.base_url}/chat",
        }

    def new_conversation(
        self,
        conversation_id: Optional[str] = None,
        parent_message_id: Optional[str] = None,
    ) -> Conversation:
        return Conversation(self, conversation_id=conversation_id, parent_message_id=parent_message_id)

    # ---- 辅助方法 ----

    def _guard(self):
        return self._lock if self._lock is not None else contextlib.nullcontext()

    def _refresh(self) -> None:
        url = f"{self.base_url}{SESSION_PATH}"
        headers = {
            "cookie": (
                f"{CLEARANCE_COOKIE}={self.credentials.clearance_token}; "
                f"{SESSION_COOKIE}={self.credentials.session_token}"
            ),
            **self.browser_headers(),
        }
        try:
            with httpx.Client(timeout=self.timeout, trust_env=False) as client:
                with client.stream("GET", url, headers=headers) as resp:
                    try:
                        resp.read()
                    except (httpx.TransportError, httpx.StreamError) as e:
                        raise BodyReadError(code="BODY_READ_ERROR", message=f"read body: {e}", stage="session")
                    status_code = resp.status_code
                    body = resp.text
        except httpx.RequestError as e:
            self.logger.debug("session.request_error", extra={"extra": {"url": url, "error": str(e)}})
            raise TransportError(code="NETWORK_ERROR", message=str(e), stage="session")

        self.logger.debug(
            "session.response",
            extra={"extra": {"status_code": status_code, "body": body}},
        )
        if status_code != 200:
            raise HTTPStatusError(
                code="HTTP_STATUS",
                message=f"response status={status_code} not 200",
                http_status=status_code,
                stage="session",
                body=body,
            )

        result = self._parse_session(body)
        # token 与过期时间一起替换
        self._access_token = AccessToken(token=result.access_token, expires_at=result.expires)

    @staticmethod
    def _parse_session(body: str) -> SessionResult:
        """将 session 响应 JSON 解析为 SessionResult，并按顺序校验 token 与 error。"""

        try:
            data = json.loads(body)
        except json.JSONDecodeError as e:
            raise DecodeError(code="DECODE_ERROR", message=f"JSON {body} format: {e}", stage="session")
        if not isinstance(data, dict):
            raise DecodeError(code="DECODE_ERROR", message=f"JSON {body} is not an object", stage="session")

        for key, types in (("accessToken", str), ("error", str), ("user", dict)):
            if data.get(key) is not None and not isinstance(data[key], types):
                raise DecodeError(
                    code="DECODE_ERROR",
                    message=f"JSON {body} field {key!r} has type {type(data[key]).__name__}",
                    stage="session",
                )

        result = SessionResult(
            access_token=data.get("accessToken") or "",
            expires=_parse_expires(data.get("expires")),
            error=data.get("error") or "",
            user=data.get("user") or {},
        )
        if not result.access_token:
            raise MissingTokenError(
                code="MISSING_ACCESS_TOKEN",
                message=f"response does not contain accessToken: {body}",
                stage="session",
            )
        if result.error:
            raise RemoteLogicalError(
                code="REMOTE_ERROR",
                message=f"response has error: {result.error}",
                stage="session",
            )
        return result


def _parse_expires(raw: Any) -> Optional[datetime]:
    """解析 ISO-8601 过期时间；缺失时返回 None（视为已过期）。"""

    if raw is None or raw == "":
        return None
    if not isinstance(raw, str):
        raise DecodeError(code="DECODE_ERROR", message=f"invalid expires: {raw!r}", stage="session")
    try:
        expires = datetime.fromisoformat(raw.replace("Z", "+00:00"))
    except ValueError as e:
        raise DecodeError(code="DECODE_ERROR", message=f"invalid expires {raw!r}: {e}", stage="session")
    if expires.tzinfo is None:
        expires = expires.replace(tzinfo=timezone.utc)
    return expires
