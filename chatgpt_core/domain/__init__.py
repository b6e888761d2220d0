"""领域层模型与异常。

包含：
- models: 凭据、accessToken、对话链接信息与请求/响应结构。
- exceptions: 客户端异常类型定义。
"""
