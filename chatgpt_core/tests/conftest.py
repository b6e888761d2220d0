from datetime import datetime, timedelta, timezone

import pytest

from chatgpt_core.domain.models import AccessToken
from chatgpt_core.providers.session import SessionManager


class FakeResponse:
    def __init__(self, status_code=200, lines=None, body="", read_error=None):
        self.status_code = status_code
        self._lines = list(lines or [])
        self._body = body
        self._read_error = read_error
        self.closed = False

    @property
    def text(self):
        return self._body

    def read(self):
        if self._read_error is not None:
            raise self._read_error
        return self._body.encode("utf-8")

    def iter_lines(self):
        for line in self._lines:
            if isinstance(line, Exception):
                raise line
            yield line


class StreamContext:
    def __init__(self, response):
        self._response = response

    def __enter__(self):
        return self._response

    def __exit__(self, *args):
        self._response.closed = True
        return False


class FakeHttp:
    """按 (method, path 后缀) 排队返回响应，并记录每次请求。"""

    def __init__(self):
        self.routes = {}
        self.calls = []
        self.client_kwargs = []

    def add(self, method, path, response):
        self.routes.setdefault((method, path), []).append(response)

    def calls_to(self, path):
        return [c for c in self.calls if c["url"].endswith(path)]

    def client_class(self):
        http = self

        class Client:
            def __init__(self, *a, **kw):
                http.client_kwargs.append(kw)

            def __enter__(self):
                return self

            def __exit__(self, *a):
                return False

            def stream(self, method, url, **kw):
                http.calls.append({"method": method, "url": url, **kw})
                for (m, path), queue in http.routes.items():
                    if m == method and url.endswith(path) and queue:
                        item = queue.pop(0)
                        if isinstance(item, Exception):
                            raise item
                        return StreamContext(item)
                raise AssertionError(f"unexpected request {method} {url}")

        return Client


@pytest.fixture
def fake_http(monkeypatch):
    http = FakeHttp()
    monkeypatch.setattr("httpx.Client", http.client_class())
    return http


@pytest.fixture
def session():
    return SessionManager(session_token="sess", clearance_token="clear", user_agent="UA/1.0")


@pytest.fixture
def authed_session(session):
    session._access_token = AccessToken(
        token="cached-token",
        expires_at=datetime.now(timezone.utc) + timedelta(hours=1),
    )
    return session
