"""ChatGPT Web 对话客户端。

一个 Conversation 对应一段对话，靠 (conversation_id, parent_message_id) 串联：

1. 首次发送且没有 parent_message_id 时，生成随机 uuid 作为对话树的根。
2. 通过 TokenSource 确保 accessToken 可用。
3. 构造 ConversationBody 并以 POST 发送，要求 text/event-stream 响应。
4. 逐行扫描事件流，只保留 [DONE] 之前的最后一个 payload。
5. 解析为 ConversationResult，更新链接信息后返回回复文本。

任何一步失败都不会修改链接信息。Conversation 不是线程安全的：
每次发送结束时都会改写链接字段，同一实例上的并发发送会互相覆盖。
"""

import contextlib
import json
import logging
from typing import Any, Dict, Iterator, Optional
from uuid import uuid4

import httpx

from chatgpt_core.domain.exceptions import (
    BodyReadError,
    ChatGPTError,
    DecodeError,
    HTTPStatusError,
    RemoteLogicalError,
    TransportError,
)
from chatgpt_core.domain.models import (
    ConversationBody,
    ConversationBodyMessage,
    ConversationResult,
    ConversationState,
    MessageContent,
    ReplyMessage,
)
from chatgpt_core.providers.base import TokenSource
from chatgpt_core.providers.stream import iter_event_values, last_event_value

CONVERSATION_PATH = "/backend-api/conversation"


class Conversation:
    """一段对话。

    - send_message: 发送一条消息，等流结束后返回完整回复文本。
    - stream_message: 发送一条消息，逐个产出流中可解析的中间结果。
    """

    def __init__(
        self,
        session: TokenSource,
        conversation_id: Optional[str] = None,
        parent_message_id: Optional[str] = None,
    ):
        self._session = session
        self.conversation_id = conversation_id or None
        self.parent_message_id = parent_message_id or None

    @property
    def state(self) -> ConversationState:
        return ConversationState(
            conversation_id=self.conversation_id,
            parent_message_id=self.parent_message_id,
        )

    @property
    def logger(self) -> logging.Logger:
        return self._session.logger

    def send_message(self, message: str) -> str:
        """发送一条消息并返回回复文本。

        步骤：
        1. 确定 parent_message_id（首次发送时生成 uuid）。
        2. 刷新 accessToken，失败时带上阶段说明原样抛出。
        3. 发送请求，扫描事件流，取 [DONE] 前最后一个 payload。
        4. 解析 payload；流里一个 payload 都没有时解析空串，同样抛 DecodeError。
        """

        parent_message_id = self.parent_message_id or str(uuid4())
        token = self._ensure_token()
        body = self._build_body(message, parent_message_id)
        with self._open_stream(token, body) as lines:
            value = last_event_value(lines)
        result = self._parse_result(value)
        return self._finish(result)

    def stream_message(self, message: str) -> Iterator[ConversationResult]:
        """发送一条消息，逐个产出流中的中间结果。

        服务端每个事件都携带截至目前的完整回复，无法解析的事件直接跳过。
        链接信息只在流正常结束后，按最后一个结果更新。
        """

        parent_message_id = self.parent_message_id or str(uuid4())
        token = self._ensure_token()
        body = self._build_body(message, parent_message_id)
        last: Optional[ConversationResult] = None
        with self._open_stream(token, body) as lines:
            for value in iter_event_values(lines):
                try:
                    result = self._parse_result(value)
                except DecodeError:
                    continue
                last = result
                yield result
        if last is None:
            raise DecodeError(code="DECODE_ERROR", message="stream ended without a reply", stage="conversation")
        self._finish(last)

    # ---- 辅助方法 ----

    def _ensure_token(self) -> str:
        try:
            return self._session.ensure_valid_token()
        except ChatGPTError as e:
            raise e.with_context("refresh access token") from e

    def _build_body(self, message: str, parent_message_id: str) -> ConversationBody:
        body = ConversationBody(
            messages=[
                ConversationBodyMessage(
                    id=str(uuid4()),
                    role="user",
                    content=MessageContent(content_type="text", parts=[message]),
                )
            ],
            parent_message_id=parent_message_id,
            model=self._session.model,
            conversation_id=self.conversation_id,
        )
        self.logger.debug("conversation.send_request", extra={"extra": {"body": body.to_json()}})
        return body

    def _headers(self, token: str) -> Dict[str, str]:
        return {
            "authorization": token,
            "content-type": "application/json",
            "accept": "text/event-stream",
            "cookie": f"cf_clearance={self._session.credentials.clearance_token}",
            **self._session.browser_headers(),
        }

    @contextlib.contextmanager
    def _open_stream(self, token: str, body: ConversationBody) -> Iterator[Iterator[str]]:
        """打开事件流，产出逐行迭代器；退出时关闭响应。"""

        url = f"{self._session.base_url}{CONVERSATION_PATH}"
        try:
            with httpx.Client(timeout=self._session.timeout, trust_env=False) as client:
                with client.stream("POST", url, json=body.to_payload(), headers=self._headers(token)) as resp:
                    if resp.status_code != 200:
                        try:
                            resp.read()
                        except (httpx.TransportError, httpx.StreamError) as e:
                            raise BodyReadError(
                                code="BODY_READ_ERROR",
                                message=f"read body: {e}",
                                http_status=resp.status_code,
                                stage="conversation",
                            )
                        raise HTTPStatusError(
                            code="HTTP_STATUS",
                            message=f"response status code={resp.status_code}, body={resp.text}",
                            http_status=resp.status_code,
                            stage="conversation",
                            body=resp.text,
                        )
                    yield self._iter_lines(resp)
        except httpx.RequestError as e:
            self.logger.debug("conversation.request_error", extra={"extra": {"url": url, "error": str(e)}})
            raise TransportError(code="NETWORK_ERROR", message=str(e), stage="conversation")

    @staticmethod
    def _iter_lines(resp) -> Iterator[str]:
        try:
            yield from resp.iter_lines()
        except (httpx.TransportError, httpx.StreamError) as e:
            raise BodyReadError(code="BODY_READ_ERROR", message=f"read body: {e}", stage="conversation")

    @staticmethod
    def _parse_result(value: str) -> ConversationResult:
        """将流中的 payload 解析为 ConversationResult。"""

        try:
            data = json.loads(value)
        except json.JSONDecodeError as e:
            raise DecodeError(code="DECODE_ERROR", message=f"JSON {value!r} format: {e}", stage="conversation")
        if not isinstance(data, dict) or not isinstance(data.get("message"), dict):
            raise DecodeError(code="DECODE_ERROR", message=f"JSON {value!r} has no message", stage="conversation")

        def typed(obj: Dict[str, Any], key: str, types, default=None):
            # 字段缺失或为 null 取默认值，其余类型不符一律视为解析失败
            v = obj.get(key)
            if v is None:
                return default
            if not isinstance(v, types):
                raise DecodeError(
                    code="DECODE_ERROR",
                    message=f"JSON {value!r} field {key!r} has type {type(v).__name__}",
                    stage="conversation",
                )
            return v

        msg: Dict[str, Any] = data["message"]
        content = typed(msg, "content", dict, {})
        parts = typed(content, "parts", list, [])
        if not all(isinstance(p, str) for p in parts):
            raise DecodeError(code="DECODE_ERROR", message=f"JSON {value!r} parts must be strings", stage="conversation")
        return ConversationResult(
            message=ReplyMessage(
                id=typed(msg, "id", str, ""),
                role=typed(msg, "role", str, "") or "assistant",
                content=MessageContent(
                    content_type=typed(content, "content_type", str, "") or "text",
                    parts=parts,
                ),
            ),
            conversation_id=typed(data, "conversation_id", str),
            error=data.get("error"),
            raw=data,
        )

    def _finish(self, result: ConversationResult) -> str:
        """校验结果并更新链接信息，返回回复文本。"""

        self.logger.debug("conversation.send_response", extra={"extra": {"body": result.to_json()}})
        if result.error:
            raise RemoteLogicalError(
                code="REMOTE_ERROR",
                message=f"response has error: {result.error}",
                stage="conversation",
            )
        if not result.message.content.parts:
            raise DecodeError(code="DECODE_ERROR", message="reply has no text parts", stage="conversation")
        text = result.get_message()
        self.parent_message_id = result.message.id
        self.conversation_id = result.conversation_id
        return text
