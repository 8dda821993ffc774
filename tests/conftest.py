import logging

import pytest
import requests


class FakeResponse:
    def __init__(self, status_code=200, payload=None):
        self.status_code = status_code
        self._payload = payload

    @property
    def ok(self):
        return 200 <= self.status_code < 400

    def json(self):
        if isinstance(self._payload, Exception):
            raise self._payload
        return self._payload


class FakeSession:
    """Records requests and answers from a ``(method, path) -> response`` table."""

    def __init__(self, base_url="http://backend.test", routes=None):
        self.base_url = base_url
        self.routes = dict(routes or {})
        self.headers = {}
        self.calls = []

    def request(self, method, url, timeout=None, **kwargs):
        path = url[len(self.base_url):] if url.startswith(self.base_url) else url
        self.calls.append({"method": method, "path": path, **kwargs})
        answer = self.routes.get((method, path))
        if answer is None:
            return FakeResponse(404, {"error": "not found"})
        if isinstance(answer, Exception):
            raise answer
        if isinstance(answer, FakeResponse):
            return answer
        return FakeResponse(200, answer)


@pytest.fixture
def fake_session():
    return FakeSession()


@pytest.fixture
def unreachable():
    return requests.ConnectionError("connection refused")


@pytest.fixture(autouse=True)
def _restore_root_logging():
    root_logger = logging.getLogger()
    original_handlers = list(root_logger.handlers)
    original_level = root_logger.level
    yield
    for handler in root_logger.handlers[:]:
        if handler not in original_handlers:
            root_logger.removeHandler(handler)
            handler.close()
    for handler in original_handlers:
        if handler not in root_logger.handlers:
            root_logger.addHandler(handler)
    root_logger.setLevel(original_level)


@pytest.fixture
def client(fake_session):
    from news_admin.api import NewsAdminClient

    return NewsAdminClient(api_url=fake_session.base_url, session=fake_session)


@pytest.fixture
def offline_client(fake_session):
    from news_admin.api import NewsAdminClient

    return NewsAdminClient(api_url="", session=fake_session)
