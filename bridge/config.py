from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional


def _env_bool(name: str, default: bool = False) -> bool:
    raw = (os.getenv(name) or "").strip().lower()
    if not raw:
        return default
    return raw in ("1", "true", "yes", "y", "on")


def _env_int(name: str, default: int) -> int:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except Exception:
        return default


def _env_str(name: str) -> Optional[str]:
    return (os.getenv(name, "") or "").strip() or None


@dataclass(frozen=True)
class BridgeConfig:
    # Which ControlManager implementation to use: "http" or "static"
    provider: str

    # REST gateway (http provider)
    gateway_url: str
    gateway_token: Optional[str]
    gateway_timeout_seconds: int

    # YAML fixture (static provider)
    static_file: Optional[str]

    # Prefix of the configuration keys read at startup (e.g. MCPTool.keyPath)
    config_dp: str

    # Caps
    tree_max_depth: int
    max_batch_writes: int

    # HTTP surface
    require_token: bool


@lru_cache(maxsize=1)
def load_bridge_config() -> BridgeConfig:
    """
    Load bridge configuration from environment variables.

    Recommended vars:
    - BRIDGE_PROVIDER=http|static
    - BRIDGE_GATEWAY_URL=https://scada-gw.local:8443/api
    - BRIDGE_GATEWAY_TOKEN=...
    - BRIDGE_STATIC_FILE=dev/plant.yaml
    - BRIDGE_CONFIG_DP=MCPTool
    - BRIDGE_TREE_MAX_DEPTH=64
    - BRIDGE_MAX_BATCH_WRITES=20
    - BRIDGE_REQUIRE_TOKEN=1
    """
    provider = (os.getenv("BRIDGE_PROVIDER", "") or "").strip().lower() or "http"
    if provider not in ("http", "static"):
        provider = "http"

    return BridgeConfig(
        provider=provider,
        gateway_url=(_env_str("BRIDGE_GATEWAY_URL") or "http://localhost:8443/api").rstrip("/"),
        gateway_token=_env_str("BRIDGE_GATEWAY_TOKEN"),
        gateway_timeout_seconds=max(1, min(_env_int("BRIDGE_GATEWAY_TIMEOUT_SECONDS", 10), 120)),
        static_file=_env_str("BRIDGE_STATIC_FILE"),
        config_dp=_env_str("BRIDGE_CONFIG_DP") or "MCPTool",
        tree_max_depth=max(4, min(_env_int("BRIDGE_TREE_MAX_DEPTH", 64), 512)),
        max_batch_writes=max(1, min(_env_int("BRIDGE_MAX_BATCH_WRITES", 20), 200)),
        require_token=_env_bool("BRIDGE_REQUIRE_TOKEN", True),
    )
