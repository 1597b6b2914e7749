from __future__ import annotations

import pytest
from fastapi.testclient import TestClient


@pytest.fixture
def client(plant, monkeypatch: pytest.MonkeyPatch) -> TestClient:
    import bridge.api.server as srv

    monkeypatch.setattr("bridge.tools.tools.get_control_manager", lambda cfg=None: plant)
    monkeypatch.setattr("bridge.state.runtime.get_control_manager", lambda cfg=None: plant)
    return TestClient(srv.app)


def test_healthz_is_public(client: TestClient) -> None:
    r = client.get("/healthz")
    assert r.status_code == 200
    assert r.json() == {"ok": True}


def test_api_requires_bearer_token(client: TestClient) -> None:
    assert client.get("/api/v1/tools").status_code == 401
    assert client.get("/api/v1/tools", headers={"Authorization": "Bearer wrong"}).status_code == 401

    r = client.get("/api/v1/tools", headers={"Authorization": "Bearer secret-token"})
    assert r.status_code == 200
    names = [t["name"] for t in r.json()]
    assert "dp.set" in names and "rules.list" in names


def test_tool_call_denied_write_is_a_normal_response(client: TestClient, plant) -> None:
    r = client.post(
        "/api/v1/tools/call",
        json={"tool": "dp.set", "args": {"dpe": "Boiler1_Safety_ESD", "value": True}},
        headers={"Authorization": "Bearer secret-token"},
    )
    assert r.status_code == 200
    body = r.json()
    assert body["ok"] is False
    assert body["error"] == "write_denied"
    assert body["result"]["allowed_patterns"] == ["*_AI_Assistant", "*_DEMO_*"]
    assert plant.datapoints["Boiler1_Safety_ESD"]["value"] is False


def test_tool_call_allowed_write(client: TestClient, plant) -> None:
    r = client.post(
        "/api/v1/tools/call",
        json={"tool": "dp.set", "args": {"dpe": "Line2_DEMO_Valve", "value": 55}},
        headers={"Authorization": "Bearer secret-token"},
    )
    assert r.status_code == 200
    assert r.json()["ok"] is True
    assert plant.datapoints["Line2_DEMO_Valve"]["value"] == 55


def test_unavailable_state_is_503(client: TestClient, plant) -> None:
    plant.values["MCPTool.viewName"] = "Missing"
    r = client.get("/api/v1/tools", headers={"Authorization": "Bearer secret-token"})
    assert r.status_code == 503


def test_token_check_can_be_disabled(client: TestClient, monkeypatch: pytest.MonkeyPatch) -> None:
    from bridge.config import load_bridge_config

    monkeypatch.setenv("BRIDGE_REQUIRE_TOKEN", "0")
    load_bridge_config.cache_clear()
    assert client.get("/api/v1/tools").status_code == 200


def test_state_init_runs_off_the_event_loop(client: TestClient, monkeypatch: pytest.MonkeyPatch) -> None:
    import bridge.api.server as srv

    offloaded = []
    real = srv.run_in_threadpool

    async def recording(func, *args, **kwargs):  # type: ignore[no-untyped-def]
        offloaded.append(func)
        return await real(func, *args, **kwargs)

    monkeypatch.setattr(srv, "run_in_threadpool", recording)
    r = client.get("/api/v1/tools", headers={"Authorization": "Bearer secret-token"})
    assert r.status_code == 200
    assert offloaded == [srv.get_or_init_state]
