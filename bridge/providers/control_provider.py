"""Control-system access: configuration values, namespace (CNS) views and datapoints."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Protocol, Sequence, runtime_checkable

import requests

from bridge.config import BridgeConfig, load_bridge_config

logger = logging.getLogger(__name__)


class ControlGatewayError(Exception):
    pass


@runtime_checkable
class ControlManager(Protocol):
    # Configuration source
    def get_values(self, keys: Sequence[str]) -> List[Any]: ...

    # Namespace provider
    def list_trees(self, view_name: str) -> List[str]: ...

    def get_root(self, tree: str) -> str: ...

    def get_display_name(self, node: str) -> str: ...

    def get_id(self, node: str) -> Optional[str]: ...

    def get_children(self, node: str) -> List[str]: ...

    # Datapoint driver
    def list_types(self, pattern: Optional[str] = None) -> List[str]: ...

    def list_datapoints(self, pattern: str = "*", dp_type: Optional[str] = None) -> List[str]: ...

    def get_type_name(self, dp_name: str) -> Optional[str]: ...

    def get_description(self, dpe: str) -> Optional[str]: ...

    def get_unit(self, dpe: str) -> Optional[str]: ...

    def get_value(self, dpe: str) -> Dict[str, Any]: ...

    def set_value(self, dpe: str, value: Any) -> Any: ...


class HttpControlManager:
    """
    ControlManager backed by the control system's REST gateway.

    Every endpoint answers `{"status": "success", "data": ...}`; anything else is an error.
    """

    def __init__(self, cfg: BridgeConfig, *, session: Optional[requests.Session] = None):
        self.base_url = cfg.gateway_url
        self.timeout = cfg.gateway_timeout_seconds
        self.session = session or requests.Session()
        if cfg.gateway_token:
            self.session.headers["Authorization"] = f"Bearer {cfg.gateway_token}"

    def _call(self, method: str, path: str, *, params: Optional[Dict[str, Any]] = None, body: Any = None) -> Any:
        url = f"{self.base_url}/{path.lstrip('/')}"
        try:
            response = self.session.request(method, url, params=params, json=body, timeout=self.timeout)
            response.raise_for_status()
            data = response.json()
        except requests.exceptions.RequestException as e:
            raise ControlGatewayError(f"Control gateway request failed: {method} {path}: {str(e)[:200]}") from e
        except ValueError as e:
            raise ControlGatewayError(f"Control gateway returned non-JSON for {method} {path}") from e

        if not isinstance(data, dict) or data.get("status") != "success":
            err = data.get("error", "Unknown error") if isinstance(data, dict) else "Malformed response"
            raise ControlGatewayError(f"Control gateway call failed: {method} {path}: {err}")
        return data.get("data")

    def get_values(self, keys: Sequence[str]) -> List[Any]:
        out = self._call("POST", "/dp/get", body={"dpes": list(keys)})
        values = list(out or [])
        if len(values) != len(keys):
            raise ControlGatewayError(f"Expected {len(keys)} values from dp/get, got {len(values)}")
        return values

    def list_trees(self, view_name: str) -> List[str]:
        return list(self._call("GET", "/cns/trees", params={"view": view_name}) or [])

    def get_root(self, tree: str) -> str:
        return str(self._call("GET", "/cns/root", params={"node": tree}))

    def get_display_name(self, node: str) -> str:
        return str(self._call("GET", "/cns/display-name", params={"node": node}) or "")

    def get_id(self, node: str) -> Optional[str]:
        out = self._call("GET", "/cns/id", params={"node": node})
        return str(out) if out else None

    def get_children(self, node: str) -> List[str]:
        return list(self._call("GET", "/cns/children", params={"node": node}) or [])

    def list_types(self, pattern: Optional[str] = None) -> List[str]:
        return list(self._call("GET", "/dp/types", params={"pattern": pattern or "*"}) or [])

    def list_datapoints(self, pattern: str = "*", dp_type: Optional[str] = None) -> List[str]:
        params: Dict[str, Any] = {"pattern": pattern or "*"}
        if dp_type:
            params["type"] = dp_type
        return list(self._call("GET", "/dp/names", params=params) or [])

    def get_type_name(self, dp_name: str) -> Optional[str]:
        return self._call("GET", "/dp/type-name", params={"dp": dp_name}) or None

    def get_description(self, dpe: str) -> Optional[str]:
        return self._call("GET", "/dp/description", params={"dpe": dpe}) or None

    def get_unit(self, dpe: str) -> Optional[str]:
        return self._call("GET", "/dp/unit", params={"dpe": dpe}) or None

    def get_value(self, dpe: str) -> Dict[str, Any]:
        out = self._call("POST", "/dp/get", body={"dpes": [f"{dpe}:_online.._value", f"{dpe}:_original.._stime"]})
        values = list(out or [])
        return {
            "value": values[0] if values else None,
            "timestamp": values[1] if len(values) > 1 else None,
        }

    def set_value(self, dpe: str, value: Any) -> Any:
        return self._call("POST", "/dp/set", body={"dpe": dpe, "value": value})


def get_control_manager(cfg: Optional[BridgeConfig] = None) -> ControlManager:
    """Seam for swapping the control-system backend (REST gateway or static fixture)."""
    cfg = cfg or load_bridge_config()
    if cfg.provider == "static":
        from bridge.providers.static_provider import load_static_manager

        if not cfg.static_file:
            raise ControlGatewayError("BRIDGE_PROVIDER=static requires BRIDGE_STATIC_FILE")
        return load_static_manager(cfg.static_file)
    logger.debug("Using REST control gateway at %s", cfg.gateway_url)
    return HttpControlManager(cfg)
