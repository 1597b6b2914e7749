from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

from bridge.authz.patterns import matches
from bridge.authz.policy import WriteDecision, check_write, denial_message, summarize_decision
from bridge.config import BridgeConfig, load_bridge_config
from bridge.core.errors import InitializationError
from bridge.providers.control_provider import ControlManager, get_control_manager
from bridge.state.namespace import thaw_tree
from bridge.state.runtime import RuntimeState, get_or_init_state

logger = logging.getLogger(__name__)
audit_logger = logging.getLogger("bridge.audit")

_MAX_SEARCH_RESULTS = 200


@dataclass(frozen=True)
class ToolResult:
    ok: bool
    result: Any = None
    error: Optional[str] = None


def _compact(obj: Any, *, max_chars: int = 20000) -> Any:
    """
    Best-effort compaction so tool results don't explode prompts.
    """
    try:
        s = json.dumps(obj, ensure_ascii=False, default=str)
        if len(s) <= max_chars:
            return obj
        return {"truncated": True, "preview": s[:max_chars]}
    except Exception:
        txt = str(obj)
        if len(txt) <= max_chars:
            return txt
        return txt[:max_chars]


def _as_bool(v: Any) -> bool:
    if isinstance(v, bool):
        return v
    return str(v or "").strip().lower() in ("1", "true", "yes", "y", "on")


def _write_entries(args: Dict[str, Any]) -> Optional[List[Tuple[str, Any]]]:
    """
    Normalize dp.set arguments to [(dpe, value), ...].

    Accepts {"datapoints": {...}}, {"datapoints": [{...}, ...]} or a bare {"dpe", "value"}.
    Returns None when an entry has no datapoint name.
    """
    raw = args.get("datapoints")
    if raw is None and "dpe" in args:
        raw = {"dpe": args.get("dpe"), "value": args.get("value")}
    if raw is None:
        return []
    items = raw if isinstance(raw, list) else [raw]
    out: List[Tuple[str, Any]] = []
    for item in items:
        if not isinstance(item, dict):
            return None
        dpe = str(item.get("dpe") or item.get("dpeName") or "").strip()
        if not dpe:
            return None
        out.append((dpe, item.get("value")))
    return out


def _is_critical(dpe: str, state: RuntimeState) -> bool:
    return any(matches(dpe, p) for p in state.critical_patterns)


def _state_or_error(manager: ControlManager, log: logging.Logger) -> Tuple[Optional[RuntimeState], Optional[ToolResult]]:
    try:
        return get_or_init_state(manager), None
    except InitializationError as e:
        log.warning(f"Runtime state unavailable: {type(e).__name__}: {str(e)[:200]}")
        return None, ToolResult(ok=False, error=f"state_unavailable:{type(e).__name__}")


def _set_datapoints(
    *, args: Dict[str, Any], manager: ControlManager, cfg: BridgeConfig, log: logging.Logger
) -> ToolResult:
    entries = _write_entries(args)
    if entries is None:
        return ToolResult(ok=False, error="dpe_required")
    if not entries:
        return ToolResult(ok=False, error="datapoints_required")
    if len(entries) > cfg.max_batch_writes:
        return ToolResult(ok=False, error=f"too_many_writes:{len(entries)}>{cfg.max_batch_writes}")

    state, err = _state_or_error(manager, log)
    if err is not None:
        return err
    assert state is not None
    policy = state.policy

    # Single write keeps the flat reply shape.
    if len(entries) == 1:
        dpe, value = entries[0]
        decision = check_write(dpe, policy)
        if not decision.allowed:
            log.warning(f"Write denied: dpe={dpe}")
            return ToolResult(
                ok=False,
                error="write_denied",
                result={"message": denial_message(dpe, policy), "allowed_patterns": list(policy.allowed_patterns)},
            )
        return _write_one(dpe, value, decision, state=state, manager=manager, log=log)

    results: List[Dict[str, Any]] = []
    denied = False
    failed = False
    for dpe, value in entries:
        decision = check_write(dpe, policy)
        if not decision.allowed:
            log.warning(f"Write denied: dpe={dpe}")
            denied = True
            results.append(
                {
                    "dpe": dpe,
                    "value": value,
                    "ok": False,
                    "error": "write_denied",
                    "message": denial_message(dpe, policy),
                }
            )
            continue
        r = _write_one(dpe, value, decision, state=state, manager=manager, log=log)
        failed = failed or not r.ok
        results.append({"dpe": dpe, "value": value, "ok": r.ok, **(r.result or {}), "error": r.error})

    out: Dict[str, Any] = {"results": results}
    if denied:
        out["allowed_patterns"] = list(policy.allowed_patterns)
    error = "write_denied" if denied else ("write_error" if failed else None)
    return ToolResult(ok=error is None, result=out, error=error)


def _write_one(
    dpe: str, value: Any, decision: WriteDecision, *, state: RuntimeState, manager: ControlManager, log: logging.Logger
) -> ToolResult:
    if _is_critical(dpe, state):
        audit_logger.warning("Critical datapoint write: dpe=%s value=%r pattern=%s", dpe, value, decision.pattern)
    try:
        res = manager.set_value(dpe, value)
    except Exception as e:
        log.warning(f"Write failed: dpe={dpe} error={str(e)[:200]}")
        return ToolResult(ok=False, error=f"write_error:{type(e).__name__}")
    log.info(f"Write ok: dpe={dpe} pattern={decision.pattern}")
    out: Dict[str, Any] = {"dpe": dpe, "result": res, "pattern": decision.pattern}
    if decision.warning:
        out["warning"] = decision.warning
    return ToolResult(ok=True, result=out)


def run_tool(
    *,
    tool: str,
    args: Optional[Dict[str, Any]] = None,
    manager: Optional[ControlManager] = None,
    cfg: Optional[BridgeConfig] = None,
    caller_logger: Optional[logging.Logger] = None,
) -> ToolResult:
    """
    Execute a single tool call with write-policy enforcement.

    Args:
        caller_logger: Optional logger to use instead of the module logger.
    """
    tool = (tool or "").strip()
    if not tool:
        return ToolResult(ok=False, error="tool_missing")

    args = args or {}
    log = caller_logger or logger
    cfg = cfg or load_bridge_config()
    compact_args = {k: v for k, v in args.items() if k in ["dpe", "pattern", "type"]}
    log.info(f"Tool call: {tool} args={compact_args}")

    try:
        manager = manager or get_control_manager(cfg)
    except Exception as e:
        log.warning(f"Control manager unavailable: {str(e)[:200]}")
        return ToolResult(ok=False, error=f"control_unavailable:{type(e).__name__}")

    # --------------------
    # dp.*
    # --------------------
    if tool == "dp.set":
        return _set_datapoints(args=args, manager=manager, cfg=cfg, log=log)

    if tool == "dp.types":
        pattern = str(args.get("pattern") or "").strip() or None
        try:
            types = manager.list_types(pattern)
        except Exception as e:
            log.warning(f"dp.types failed: error={str(e)[:200]}")
            return ToolResult(ok=False, error=f"control_error:{type(e).__name__}")
        if not _as_bool(args.get("with_internals")):
            types = [t for t in types if not str(t).startswith("_")]
        return ToolResult(ok=True, result=types)

    if tool == "dp.search":
        pattern = str(args.get("pattern") or "").strip() or "*"
        dp_type = str(args.get("type") or "").strip() or None
        try:
            names = manager.list_datapoints(pattern, dp_type)
            out = []
            for name in names[:_MAX_SEARCH_RESULTS]:
                out.append(
                    {
                        "name": name,
                        "type": manager.get_type_name(name),
                        "description": manager.get_description(name),
                    }
                )
        except Exception as e:
            log.warning(f"dp.search failed: pattern={pattern} error={str(e)[:200]}")
            return ToolResult(ok=False, error=f"control_error:{type(e).__name__}")
        return ToolResult(
            ok=True, result=_compact({"pattern": pattern, "total": len(names), "datapoints": out})
        )

    if tool == "dp.get":
        dpe = str(args.get("dpe") or "").strip()
        if not dpe:
            return ToolResult(ok=False, error="dpe_required")
        try:
            val = manager.get_value(dpe)
            unit = manager.get_unit(dpe)
        except Exception as e:
            log.warning(f"dp.get failed: dpe={dpe} error={str(e)[:200]}")
            return ToolResult(ok=False, error=f"control_error:{type(e).__name__}")
        return ToolResult(ok=True, result={"dpe": dpe, "value": val.get("value"), "timestamp": val.get("timestamp"), "unit": unit})

    # --------------------
    # state-backed tools
    # --------------------
    if tool in (
        "plant.overview",
        "instructions.field",
        "instructions.project",
        "instructions.merged",
        "rules.list",
        "rules.check",
    ):
        state, err = _state_or_error(manager, log)
        if err is not None:
            return err
        assert state is not None

        if tool == "plant.overview":
            return ToolResult(ok=True, result=_compact({"view": state.view_name, "tree": thaw_tree(state.tree)}))
        if tool == "instructions.field":
            return ToolResult(ok=True, result=state.field_instructions)
        if tool == "instructions.project":
            return ToolResult(ok=True, result=state.project_instructions)
        if tool == "instructions.merged":
            return ToolResult(ok=True, result=state.merged_instructions)
        if tool == "rules.list":
            return ToolResult(
                ok=True,
                result={
                    **state.policy.to_dict(),
                    "field_allowed_patterns": list(state.field_rules.allowed_patterns),
                    "project_allowed_patterns": list(state.project_rules.allowed_patterns),
                    "critical_patterns": list(state.critical_patterns),
                },
            )
        dpe = str(args.get("dpe") or "").strip()
        if not dpe:
            return ToolResult(ok=False, error="dpe_required")
        decision = check_write(dpe, state.policy)
        return ToolResult(
            ok=True,
            result={
                "dpe": dpe,
                "allowed": decision.allowed,
                "pattern": decision.pattern,
                "warning": decision.warning,
                "summary": summarize_decision(decision, state.policy),
            },
        )

    return ToolResult(ok=False, error="unknown_tool")
