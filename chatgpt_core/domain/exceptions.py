"""统一异常模型。

客户端内所有对外抛出的错误都继承自 ChatGPTError，调用方可以只捕获基类，
也可以按具体子类区分：配置缺失、网络失败、非 200 响应、响应体读取失败、
JSON 解析失败、缺少 accessToken、服务端显式报错。

客户端内部不做任何重试，错误原样交给调用方决定如何处理。
"""

from typing import Any, Dict, Optional


class ChatGPTError(Exception):
    """异常基类。

    Attributes:
        code: 机器可读错误码（如 "DECODE_ERROR"）。
        message: 可读错误信息。
        http_status: 触发错误的 HTTP 状态码；非 HTTP 错误时为默认值 400。
        stage: 出错阶段，"session"（换取 accessToken）或 "conversation"（发送消息）。
        extra: 其他补充字段（例如响应 body）。
    """

    def __init__(
        self,
        code: str,
        message: str,
        http_status: int = 400,
        stage: Optional[str] = None,
        **extra,
    ):
        self.code = code
        self.message = message
        self.http_status = http_status
        self.stage = stage
        self.extra = extra
        super().__init__(message)

    def with_context(self, prefix: str) -> "ChatGPTError":
        """返回同类型的新异常，错误信息前加上阶段说明。

        调用方应使用 ``raise err.with_context(...) from err`` 保留原始异常链。
        """

        return type(self)(
            code=self.code,
            message=f"{prefix}: {self.message}",
            http_status=self.http_status,
            stage=self.stage,
            **self.extra,
        )

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "code": self.code,
            "message": self.message,
            "http_status": self.http_status,
        }
        if self.stage:
            payload["stage"] = self.stage
        payload.update(self.extra)
        return payload


class ConfigurationError(ChatGPTError):
    """构造参数缺失或配置非法。"""


class TransportError(ChatGPTError):
    """网络层错误，例如连接失败、超时等。"""


class HTTPStatusError(ChatGPTError):
    """服务端返回非 200 状态码。"""

    @property
    def body(self) -> str:
        return self.extra.get("body", "")


class BodyReadError(ChatGPTError):
    """读取响应体时连接中断。"""


class DecodeError(ChatGPTError):
    """响应体不是期望结构的 JSON。"""


class MissingTokenError(ChatGPTError):
    """session 响应解析成功，但不包含 accessToken。"""


class RemoteLogicalError(ChatGPTError):
    """响应中 error 字段非空，服务端显式报告了逻辑错误。"""
