"""conversation 端点的事件流扫描。

服务端每个事件都会重发“截至目前的完整消息”，形如 ``data: {...}``，
最后以 ``data: [DONE]`` 结束（也可能直接断流）。

- iter_event_values: 惰性产出每一行 ``": "`` 之后的值，遇到 [DONE] 停止。
- last_event_value: 只保留最后一个值；一个都没有时返回空字符串。
"""

from typing import Iterable, Iterator

DONE = "[DONE]"
SEPARATOR = ": "


def iter_event_values(lines: Iterable[str]) -> Iterator[str]:
    """逐行扫描事件流。

    跳过长度小于 2 的行和不含分隔符的行；值去掉末尾换行。
    """

    for line in lines:
        if len(line) < 2:
            continue
        _, sep, value = line.partition(SEPARATOR)
        if not sep:
            continue
        value = value.rstrip("\r\n")
        if value == DONE:
            return
        yield value


def last_event_value(lines: Iterable[str]) -> str:
    value = ""
    for value in iter_event_values(lines):
        pass
    return value
