import pytest

from runtime import server


@pytest.fixture
def client():
    server.app.config.update(TESTING=True)
    return server.app.test_client()


def test_healthz(client):
    response = client.get("/healthz")

    assert response.status_code == 200
    assert response.get_json()["status"] == "ok"


def test_tools_lists_batch_schema(client):
    tools = {tool["name"]: tool for tool in client.get("/tools").get_json()["tools"]}

    batch = tools["browser_batch_execute"]
    assert batch["type"] == "destructive"
    assert batch["inputSchema"]["properties"]["operations"]["maxItems"] == 20
    assert "browser_navigate" in tools


def test_call_requires_name(client):
    response = client.post("/tools/call", json={"arguments": {}})

    assert response.status_code == 400
    assert response.get_json() == {"error": "tool name missing"}


def test_call_unknown_tool(client):
    response = client.post("/tools/call", json={"name": "browser_fly"})

    assert response.status_code == 404


def test_call_rejects_non_object_arguments(client):
    response = client.post("/tools/call", json={"name": "browser_snapshot", "arguments": [1]})

    assert response.status_code == 400


def test_batch_call_runs_against_shared_context(client, context, browser_context, monkeypatch):
    monkeypatch.setattr(server, "_get_context", lambda: context)

    response = client.post(
        "/tools/call",
        json={
            "name": "browser_batch_execute",
            "arguments": {
                "operations": [
                    {"toolName": "browser_navigate", "params": {"url": "https://example.com"}},
                    {"toolName": "browser_snapshot", "params": {}},
                ]
            },
        },
    )

    payload = response.get_json()
    assert response.status_code == 200
    assert payload["isError"] is False
    assert "✅ All 2 operations completed successfully" in payload["content"][0]["text"]
    assert browser_context.pages[0].url == "https://example.com"
