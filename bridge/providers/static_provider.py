"""
In-memory ControlManager loaded from a YAML fixture.

Used for local development and tests. Fixture layout:

    values:
      MCPTool.keyPath: /etc/bridge/key.pem
      MCPTool.viewName: Plant
    views:
      Plant:
        - name: Site
          children:
            - name: Boiler 1
              dp: Boiler1_AI_Assistant
    datapoints:
      Boiler1_AI_Assistant:
        type: AiSetpoint
        value: 0.0
        unit: degC
        description: Setpoint proposed by the assistant
"""

from __future__ import annotations

import threading
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence

import yaml

from bridge.authz.patterns import matches


class StaticControlManager:
    def __init__(
        self,
        *,
        values: Optional[Dict[str, Any]] = None,
        views: Optional[Dict[str, List[Dict[str, Any]]]] = None,
        datapoints: Optional[Dict[str, Dict[str, Any]]] = None,
    ):
        self.values = dict(values or {})
        self.datapoints: Dict[str, Dict[str, Any]] = {k: dict(v or {}) for k, v in (datapoints or {}).items()}
        self._trees: Dict[str, List[str]] = {}
        self._nodes: Dict[str, Dict[str, Any]] = {}
        self._lock = threading.Lock()
        for view_name, roots in (views or {}).items():
            self._trees[view_name] = []
            for i, root in enumerate(roots or []):
                tree_id = f"{view_name}:{i}"
                self._trees[view_name].append(tree_id)
                self._index(tree_id, root)

    def _index(self, node_id: str, spec: Dict[str, Any]) -> None:
        children = []
        for child in spec.get("children") or []:
            child_id = f"{node_id}/{child.get('name')}"
            children.append(child_id)
            self._index(child_id, child)
        self._nodes[node_id] = {
            "name": str(spec.get("name") or ""),
            "dp": spec.get("dp"),
            "children": children,
        }

    def _node(self, node: str) -> Dict[str, Any]:
        try:
            return self._nodes[node]
        except KeyError:
            raise KeyError(f"unknown namespace node: {node}")

    def get_values(self, keys: Sequence[str]) -> List[Any]:
        missing = [k for k in keys if k not in self.values]
        if missing:
            raise KeyError(f"configuration keys not found: {', '.join(missing)}")
        return [self.values[k] for k in keys]

    def list_trees(self, view_name: str) -> List[str]:
        return list(self._trees.get(view_name, []))

    def get_root(self, tree: str) -> str:
        self._node(tree)
        return tree

    def get_display_name(self, node: str) -> str:
        return self._node(node)["name"]

    def get_id(self, node: str) -> Optional[str]:
        return self._node(node)["dp"] or None

    def get_children(self, node: str) -> List[str]:
        return list(self._node(node)["children"])

    def list_types(self, pattern: Optional[str] = None) -> List[str]:
        types = sorted({str(dp.get("type")) for dp in self.datapoints.values() if dp.get("type")})
        if pattern and pattern != "*":
            types = [t for t in types if matches(t, pattern)]
        return types

    def list_datapoints(self, pattern: str = "*", dp_type: Optional[str] = None) -> List[str]:
        out = []
        for name, dp in sorted(self.datapoints.items()):
            if pattern and pattern != "*" and not matches(name, pattern):
                continue
            if dp_type and dp.get("type") != dp_type:
                continue
            out.append(name)
        return out

    def _dp(self, dpe: str) -> Dict[str, Any]:
        if dpe not in self.datapoints:
            raise KeyError(f"datapoint not found: {dpe}")
        return self.datapoints[dpe]

    def get_type_name(self, dp_name: str) -> Optional[str]:
        return self._dp(dp_name).get("type")

    def get_description(self, dpe: str) -> Optional[str]:
        return self._dp(dpe).get("description")

    def get_unit(self, dpe: str) -> Optional[str]:
        return self._dp(dpe).get("unit")

    def get_value(self, dpe: str) -> Dict[str, Any]:
        dp = self._dp(dpe)
        return {"value": dp.get("value"), "timestamp": dp.get("timestamp")}

    def set_value(self, dpe: str, value: Any) -> Any:
        with self._lock:
            dp = self._dp(dpe)
            dp["value"] = value
            dp["timestamp"] = datetime.now(timezone.utc).isoformat()
        return True


def load_static_manager(path: str) -> StaticControlManager:
    with open(path, "r", encoding="utf-8") as f:
        raw = yaml.safe_load(f) or {}
    if not isinstance(raw, dict):
        raise ValueError(f"static fixture must be a mapping: {path}")
    return StaticControlManager(
        values=raw.get("values") or {},
        views=raw.get("views") or {},
        datapoints=raw.get("datapoints") or {},
    )
