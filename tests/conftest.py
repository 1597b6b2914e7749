"""
Pytest config.

Pins the repo root on sys.path so `import bridge` works under a global `pytest`
entrypoint, and gives every test a fresh runtime state and config cache.
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Any, Dict, Iterator

import pytest


def _ensure_repo_root_on_syspath() -> None:
    repo_root = Path(__file__).resolve().parents[1]
    repo_root_str = str(repo_root)
    if repo_root_str not in sys.path:
        sys.path.insert(0, repo_root_str)


_ensure_repo_root_on_syspath()

FIELD_DOC = """# Field Instructions

## Datapoint Naming Conventions

- `*_AI_Assistant` - Datapoints designated for AI manipulation
- `*_Safety_*` - Safety interlocks, strictly read only
- `*_Setpoint` - Production setpoints, changes require validation

## Operating Limits

- `*_Limit_*` - Limits, designated for AI review only
"""

PROJECT_DOC = """# Project Instructions

## Datapoint Conventions

- `*_DEMO_*` - Demo equipment designated for AI manipulation
- `*_AI_Assistant` - also designated for AI manipulation here

Writes to `Boiler1_*` are critical.
"""


@pytest.fixture(autouse=True)
def _fresh_runtime_state(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """The runtime state is a process-wide singleton; tests must not share it."""
    import bridge.state.runtime as runtime
    from bridge.config import load_bridge_config

    monkeypatch.setattr(runtime, "_state", None)
    for name in [
        "BRIDGE_PROVIDER",
        "BRIDGE_GATEWAY_URL",
        "BRIDGE_GATEWAY_TOKEN",
        "BRIDGE_STATIC_FILE",
        "BRIDGE_CONFIG_DP",
        "BRIDGE_TREE_MAX_DEPTH",
        "BRIDGE_MAX_BATCH_WRITES",
        "BRIDGE_REQUIRE_TOKEN",
    ]:
        monkeypatch.delenv(name, raising=False)
    load_bridge_config.cache_clear()
    yield
    load_bridge_config.cache_clear()


@pytest.fixture
def docs_dir(tmp_path: Path) -> Path:
    (tmp_path / "field.md").write_text(FIELD_DOC, encoding="utf-8")
    (tmp_path / "project.md").write_text(PROJECT_DOC, encoding="utf-8")
    return tmp_path


def plant_values(docs: Path, *, token: str = "secret-token", prefix: str = "MCPTool") -> Dict[str, Any]:
    return {
        f"{prefix}.keyPath": "/etc/bridge/key.pem",
        f"{prefix}.certPath": "/etc/bridge/cert.pem",
        f"{prefix}.token": token,
        f"{prefix}.mainInstructionsPath": str(docs / "field.md"),
        f"{prefix}.plantSpecificInstructionsPath": str(docs / "project.md"),
        f"{prefix}.viewName": "Plant",
    }


PLANT_VIEWS = {
    "Plant": [
        {
            "name": "Site",
            "children": [
                {"name": "Boiler", "dp": "Boiler1_AI_Assistant"},
                {
                    "name": "Line 2",
                    "children": [{"name": "Valve", "dp": "Line2_DEMO_Valve"}],
                },
            ],
        }
    ]
}

PLANT_DATAPOINTS = {
    "Boiler1_AI_Assistant": {"type": "AiSetpoint", "value": 70, "unit": "degC", "description": "Assistant setpoint"},
    "Boiler1_Safety_ESD": {"type": "SafetyInterlock", "value": False, "description": "ESD"},
    "Line2_DEMO_Valve": {"type": "Valve", "value": 0, "unit": "%"},
    "Line2_Setpoint": {"type": "_Internal", "value": 1},
}


@pytest.fixture
def plant(docs_dir: Path):
    from bridge.providers.static_provider import StaticControlManager

    return StaticControlManager(values=plant_values(docs_dir), views=PLANT_VIEWS, datapoints=PLANT_DATAPOINTS)
