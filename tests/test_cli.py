import json
import logging

import pytest

from conftest import FakeResponse
from news_admin import cli
from news_admin.api import NewsAdminClient
from news_admin.config import AppConfig, DatabaseConfig, LoggingConfig
from news_admin.errors import ApiError
from news_admin.models import ContactMessage, DashboardStats, GeneratedContent, NewsItem, RSSFeed


class StubClient:
    """Stands in for NewsAdminClient inside CLI handlers."""

    def __init__(self, api_url="http://backend.test"):
        self.api_url = api_url
        self.calls = []
        self.is_authenticated = False
        self.news = [
            NewsItem(id="1", title="Existing", content="Old body", category="India", tags=["a"])
        ]

    @property
    def has_backend(self):
        return bool(self.api_url)

    def _record(self, name, *args):
        self.calls.append((name,) + args)

    def login(self, email, password):
        self._record("login", email, password)
        self.is_authenticated = password == "good"
        return {"success": self.is_authenticated}

    def get_stats(self):
        return DashboardStats(total=len(self.news))

    def get_all_news(self):
        return list(self.news)

    def publish_news(self, payload):
        self._record("publish", payload)
        return {"id": "2"}

    def update_news(self, news_id, payload):
        self._record("update", news_id, payload)
        return {"id": news_id}

    def delete_news(self, news_id):
        self._record("delete_news", news_id)
        return True

    def generate_content(self, prompt):
        self._record("generate", prompt)
        return GeneratedContent(
            headline="Generated", summary=["g"], category="Technology", tags=["ai"]
        )

    def get_rss_feeds(self):
        return [RSSFeed(id="f1", name="BBC", url="https://bbc", category="World")]

    def check_rss_health(self):
        return {"f1": "ok"}

    def add_rss_feed(self, name, url, category):
        self._record("add_feed", name, url, category)
        return {"id": "f2"}

    def send_newsletter(self, subject, content):
        self._record("newsletter", subject, content)
        return {"success": True, "count": 3}

    def get_contact_messages(self):
        return [
            ContactMessage(id="m1", name="A", email="a@x", message="hi"),
            ContactMessage(id="m2", name="B", email="b@x", message="yo", status="read"),
        ]

    def mark_contact_read(self, message_id):
        self._record("read", message_id)
        return True

    def delete_contact_message(self, message_id):
        self._record("delete_message", message_id)
        return True


@pytest.fixture
def stub_client(monkeypatch):
    client = StubClient()
    monkeypatch.setattr(cli, "configure_logging", lambda level, log_file=None: None)
    monkeypatch.setattr(cli, "load_app_config", lambda path: AppConfig())
    monkeypatch.setattr(cli, "build_client", lambda config, api_url=None: client)
    return client


def _output(capsys):
    return json.loads(capsys.readouterr().out)


def test_configure_logging_defaults_to_console_only():
    cli.configure_logging("INFO")

    handlers = logging.getLogger().handlers
    assert any(isinstance(handler, logging.StreamHandler) for handler in handlers)
    assert not any(isinstance(handler, logging.FileHandler) for handler in handlers)


def test_configure_logging_with_log_file_creates_file_handler(tmp_path):
    log_path = tmp_path / "nested" / "admin.log"
    cli.configure_logging("INFO", str(log_path))

    assert log_path.exists()
    assert any(
        isinstance(handler, logging.FileHandler) for handler in logging.getLogger().handlers
    )


def test_configure_logging_rejects_unknown_level():
    with pytest.raises(ValueError):
        cli.configure_logging("LOUD")


def test_main_cli_overrides_logging(monkeypatch, stub_client):
    captured = {}

    def fake_configure(level, log_file=None):
        captured["level"] = level
        captured["file"] = log_file

    monkeypatch.setattr(cli, "configure_logging", fake_configure)
    monkeypatch.setattr(
        cli,
        "load_app_config",
        lambda path: AppConfig(logging=LoggingConfig(level="INFO", file="config.log")),
    )

    cli.main(["--log-level", "DEBUG", "--log-file", "cli.log", "stats"])

    assert captured == {"level": "DEBUG", "file": "cli.log"}


def test_build_client_resolves_url_and_cache(monkeypatch):
    monkeypatch.delenv("NEWS_ADMIN_API_URL", raising=False)
    config = AppConfig(
        api_url="https://config.example.com",
        database=DatabaseConfig(enabled=True, connection_string="sqlite:///:memory:"),
    )

    client = cli.build_client(config, "https://cli.example.com/")

    assert isinstance(client, NewsAdminClient)
    assert client.api_url == "https://cli.example.com"
    assert client.session_factory is not None
    assert client.client_feeds == config.client_feeds


def test_load_app_config_falls_back_to_defaults(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)

    assert cli.load_app_config(None) == AppConfig()


def test_stats_without_backend_prints_zero_counters(monkeypatch, capsys, tmp_path):
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("NEWS_ADMIN_API_URL", raising=False)
    monkeypatch.setattr(cli, "configure_logging", lambda level, log_file=None: None)

    assert cli.main(["stats"]) == 0

    assert _output(capsys)["total"] == 0


def test_login_success_and_failure(stub_client, capsys):
    assert cli.main(["login", "--email", "admin@example.com", "--password", "good"]) == 0
    assert _output(capsys) == {"success": True}

    assert cli.main(["login", "--email", "admin@example.com", "--password", "bad"]) == 1


def test_news_publish_builds_payload_from_options(stub_client, capsys):
    exit_code = cli.main(
        [
            "news",
            "publish",
            "--title",
            "Budget passes",
            "--content",
            "Body",
            "--summary",
            "First",
            "--summary",
            "Second",
            "--category",
            "Business",
            "--tag",
            "economy",
            "--image-url",
            "https://img",
            "--breaking",
        ]
    )

    assert exit_code == 0
    name, payload = stub_client.calls[0]
    assert name == "publish"
    assert payload["summary"] == ["First", "Second"]
    assert payload["category"] == "Business"
    assert payload["tags"] == ["economy"]
    assert payload["is_breaking"] is True
    assert payload["is_featured"] is False
    assert _output(capsys) == {"id": "2"}


def test_news_publish_with_generated_draft(stub_client):
    cli.main(["news", "publish", "--generate", "space launch", "--content", "Body"])

    assert stub_client.calls[0] == ("generate", "space launch")
    payload = stub_client.calls[1][1]
    assert payload["title"] == "Generated"
    assert payload["category"] == "Technology"
    assert payload["is_ai_generated"] is True


@pytest.fixture
def backend_cli(monkeypatch, fake_session):
    """Run the CLI against a real client talking to the fake HTTP session."""
    client = NewsAdminClient(api_url=fake_session.base_url, session=fake_session)
    monkeypatch.setattr(cli, "configure_logging", lambda level, log_file=None: None)
    monkeypatch.setattr(cli, "load_app_config", lambda path: AppConfig())
    monkeypatch.setattr(cli, "build_client", lambda config, api_url=None: client)
    return fake_session


def test_news_publish_aborts_when_generation_fails(backend_cli):
    backend_cli.routes[("POST", "/api/generate")] = FakeResponse(500, {})
    backend_cli.routes[("POST", "/api/news")] = {"id": "9"}

    exit_code = cli.main(["news", "publish", "--generate", "space launch", "--content", "Body"])

    assert exit_code == 1
    assert [call["path"] for call in backend_cli.calls] == ["/api/generate"]


def test_news_publish_aborts_on_offline_generation_placeholder(stub_client, monkeypatch):
    monkeypatch.setattr(
        stub_client,
        "generate_content",
        lambda prompt: GeneratedContent(
            headline="AI Only Available with Backend", category="System", is_placeholder=True
        ),
    )

    assert cli.main(["news", "publish", "--generate", "x", "--content", "Body"]) == 1
    assert stub_client.calls == []


def test_news_publish_sends_video_url(stub_client):
    cli.main(["news", "publish", "--title", "T", "--content", "B", "--video-url", "https://v"])

    payload = stub_client.calls[0][1]
    assert payload["video_url"] == "https://v"


def test_malformed_backend_data_is_not_a_usage_error(backend_cli):
    backend_cli.routes[("GET", "/api/stats")] = {"total": "many"}

    assert cli.main(["stats"]) == 1


def test_bad_article_file_is_usage_error(stub_client, tmp_path):
    record = tmp_path / "article.json"
    record.write_text("[1, 2]", encoding="utf-8")

    with pytest.raises(SystemExit) as excinfo:
        cli.main(["news", "publish", "--from-file", str(record)])

    assert excinfo.value.code == 2


def test_news_publish_missing_content_is_usage_error(stub_client):
    with pytest.raises(SystemExit) as excinfo:
        cli.main(["news", "publish", "--title", "Only title"])

    assert excinfo.value.code == 2
    assert stub_client.calls == []


def test_news_update_starts_from_existing_article(stub_client):
    cli.main(["news", "update", "1", "--title", "Edited", "--no-breaking"])

    name, news_id, payload = stub_client.calls[0]
    assert (name, news_id) == ("update", "1")
    assert payload["title"] == "Edited"
    assert payload["content"] == "Old body"
    assert payload["category"] == "India"
    assert payload["tags"] == ["a"]
    assert payload["is_breaking"] is False


def test_news_update_unknown_article_fails(stub_client):
    assert cli.main(["news", "update", "404", "--title", "x"]) == 1
    assert stub_client.calls == []


def test_news_publish_from_file(stub_client, tmp_path):
    record = tmp_path / "article.json"
    record.write_text(
        json.dumps({"title": "From file", "content": "Body", "category": "Sports"}),
        encoding="utf-8",
    )

    cli.main(["news", "publish", "--from-file", str(record), "--featured"])

    payload = stub_client.calls[0][1]
    assert payload["title"] == "From file"
    assert payload["category"] == "Sports"
    assert payload["is_featured"] is True


def test_news_delete_requires_confirmation(stub_client, monkeypatch, capsys):
    monkeypatch.setattr("builtins.input", lambda prompt: "n")
    cli.main(["news", "delete", "1"])
    assert _output(capsys) == {"id": "1", "deleted": False}
    assert stub_client.calls == []

    cli.main(["news", "delete", "1", "--yes"])
    assert _output(capsys) == {"id": "1", "deleted": True}
    assert stub_client.calls == [("delete_news", "1")]


def test_news_preview_prints_text(stub_client, capsys):
    cli.main(["news", "preview", "1"])

    out = capsys.readouterr().out
    assert "Existing" in out
    assert "[India]" in out


def test_feeds_list_with_health(stub_client, capsys):
    cli.main(["feeds", "list", "--health"])

    assert _output(capsys) == [
        {"id": "f1", "name": "BBC", "url": "https://bbc", "category": "World", "health": "ok"}
    ]


def test_feeds_add_validates_and_forwards(stub_client):
    cli.main(["feeds", "add", "--name", "Verge", "--url", "https://verge", "--category", "Technology"])

    assert stub_client.calls == [("add_feed", "Verge", "https://verge", "Technology")]


def test_newsletter_send_and_preview(stub_client, capsys, tmp_path):
    body = tmp_path / "body.md"
    body.write_text("Hello **readers**", encoding="utf-8")

    cli.main(["newsletter", "send", "--subject", "Weekly", "--content-file", str(body)])
    assert _output(capsys) == {"success": True, "count": 3}
    assert stub_client.calls == [("newsletter", "Weekly", "Hello **readers**")]

    output = tmp_path / "out" / "preview.html"
    cli.main(
        ["newsletter", "preview", "--subject", "Weekly", "--content", "Hi", "--output", str(output)]
    )
    assert "Weekly" in output.read_text(encoding="utf-8")


def test_inbox_commands(stub_client, capsys):
    cli.main(["inbox", "list", "--unread"])
    assert [message["id"] for message in _output(capsys)] == ["m1"]

    cli.main(["inbox", "read", "m1"])
    assert _output(capsys) == {"id": "m1", "status": "read"}

    cli.main(["inbox", "delete", "m2", "--yes"])
    assert stub_client.calls == [("read", "m1"), ("delete_message", "m2")]


def test_backend_errors_exit_with_status_one(stub_client, monkeypatch):
    def failing_news():
        raise ApiError("Failed to fetch news", status_code=500)

    monkeypatch.setattr(stub_client, "get_all_news", failing_news)

    assert cli.main(["news", "list"]) == 1


def test_format_output_serialises_dataclasses():
    rendered = cli.format_output([RSSFeed(id="1", name="n", url="u", category="World")])

    assert json.loads(rendered) == [{"id": "1", "name": "n", "url": "u", "category": "World"}]
    assert cli.format_output("plain text") == "plain text"
