import time

import click
import pytest
from fastapi.testclient import TestClient

from clibrowse.click_node import click_factory
from clibrowse.example import new_command
from clibrowse.registry import Registry
from clibrowse.server import SUCCESS_MESSAGE, BrowserServer, create_app
from clibrowse.settings import AppSettings


@pytest.fixture
def settings():
    return AppSettings(title="Fake browser")


@pytest.fixture
def browser_server(registry, settings):
    """Server over the sample tree."""
    return BrowserServer(registry, settings)


@pytest.fixture
def client(browser_server):
    return TestClient(browser_server.app)


def _quiet_tree():
    @click.group(name="q")
    def q():
        pass

    @q.command(name="silent")
    def silent():
        pass

    return q


class TestPages:
    def test_list(self, client):
        response = client.get("/")
        assert response.status_code == 200
        assert "text/html" in response.headers["content-type"]
        body = response.text
        assert "Fake browser" in body
        assert "/command/fake/demo" in body
        assert "A demo command" in body

    def test_list_with_search(self, client):
        body = client.get("/", params={"search": "nothing"}).text
        assert "/command/fake/empty" in body
        assert "/command/fake/demo" not in body

    def test_live_search_fragment(self, client):
        response = client.post("/", data={"search": "demo"})
        assert response.status_code == 200
        assert "<html" not in response.text
        assert "/command/fake/demo" in response.text
        assert "/command/fake/norun" not in response.text

    def test_live_search_no_match(self, client):
        response = client.post("/", data={"search": "zzz"})
        assert "No command found" in response.text

    def test_command_page(self, client):
        response = client.get("/command/fake/demo")
        assert response.status_code == 200
        body = response.text
        assert 'name="flagstr"' in body
        assert 'type="checkbox" name="flagbool"' in body
        assert body.count('name="flagarray"') == 3
        assert body.count('name="args"') == 3
        assert 'name="flagglobal"' in body

    def test_command_page_lists_sub_commands(self, client):
        body = client.get("/command/fake").text
        assert "/command/fake/demo" in body
        assert "/command/fake/norun" in body

    def test_not_runnable_has_no_form(self, client):
        body = client.get("/command/fake/norun").text
        assert "hx-post" not in body

    def test_unknown_command(self, client):
        response = client.get("/command/fake/nope")
        assert response.status_code == 404
        assert "command not found" in response.text

    def test_favicon(self, client):
        assert client.get("/favicon.ico").status_code == 204


class TestRun:
    def test_success(self, client):
        response = client.post("/command/fake/demo", data={"flagstr": "hello", "flagint": "5"})
        assert response.status_code == 200
        assert "str: hello" in response.text
        assert "int: 5" in response.text
        assert "alert-danger" not in response.text

    def test_positional_and_repeated(self, client):
        response = client.post(
            "/command/fake/demo",
            data={"args": ["one", "", "two"], "flagstr": "x", "flagarray": ["a", "b", ""]},
        )
        assert "args: [one two]" in response.text
        assert "array: [a b]" in response.text

    def test_checkbox(self, client):
        response = client.post("/command/fake/demo", data={"flagstr": "x", "flagbool": "true"})
        assert "bool: true" in response.text

    def test_failure_is_shown(self, client):
        response = client.post("/command/fake/demo", data={})
        assert response.status_code == 200
        assert "alert-danger" in response.text
        assert "Missing option" in response.text

    def test_empty_output_reports_success(self, settings):
        server = BrowserServer(Registry(click_factory(_quiet_tree)), settings)
        response = TestClient(server.app).post("/command/q/silent", data={})
        assert SUCCESS_MESSAGE in response.text

    def test_unknown_command(self, client):
        assert client.post("/command/nope", data={}).status_code == 404

    def test_upload_is_malformed(self, client):
        response = client.post("/command/fake/demo", files={"args": ("a.txt", b"data")})
        assert response.status_code == 400
        assert "Malformed request" in response.text

    def test_timeout(self, registry, monkeypatch):
        server = BrowserServer(registry, AppSettings(execute_timeout=0.05))

        def slow(path, args=()):
            time.sleep(0.5)

        monkeypatch.setattr(server.registry, "execute", slow)
        response = TestClient(server.app).post("/command/fake/empty", data={})
        assert response.status_code == 504


class TestApi:
    def test_search(self, client):
        response = client.get("/api/commands", params={"search": "demo"})
        assert response.status_code == 200
        data = response.json()
        assert [c["path"] for c in data] == ["/fake/demo"]
        assert data[0]["full_name"] == "fake demo"

    def test_describe(self, client):
        data = client.get("/api/commands/fake/demo").json()
        assert data["runnable"] is True
        kinds = {f["name"]: f["kind"] for f in data["flags"]}
        assert kinds["bool"] == "bool"
        assert kinds["array"] == "array"
        assert kinds["str"] == "value"

    def test_describe_unknown(self, client):
        response = client.get("/api/commands/fake/nope")
        assert response.status_code == 404
        assert response.json()["detail"] == "command not found: /fake/nope"

    def test_execute(self, client):
        response = client.post(
            "/api/commands/fake/demo",
            json={"args": ["x"], "flags": {"str": ["hi"], "array": ["a", "b"]}},
        )
        data = response.json()
        assert data["ok"] is True
        assert data["path"] == "/fake/demo"
        assert "args: [x]" in data["output"]
        assert "array: [a b]" in data["output"]
        assert data["error"] is None

    def test_execute_failure(self, client):
        data = client.post("/api/commands/fake/demo", json={}).json()
        assert data["ok"] is False
        assert "--str" in data["error"]

    def test_health(self, client):
        data = client.get("/health").json()
        assert data["status"] == "healthy"
        assert data["commands"] == 4


def test_create_app_uses_factory_setting():
    app = create_app(AppSettings(factory="clibrowse.example:new_command", title="From factory"))
    body = TestClient(app).get("/").text
    assert "From factory" in body
    assert "/command/fake/demo" in body


def test_sample_factory_matches_fixture(registry):
    assert Registry(click_factory(new_command)).paths() == registry.paths()
