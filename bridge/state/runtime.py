"""
Process-wide runtime state: credentials, instruction documents, write policy, plant tree.

Built once, on first use, and served read-only afterwards. Building reads the
configuration values, then both instruction documents, then derives the policy, then
snapshots the namespace view, in that order. The module-level reference is only
published once every step has succeeded; if any step raises, nothing is kept and the
next caller retries from the top.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Mapping, Optional, Tuple

from bridge.authz.policy import authorize
from bridge.authz.rules import RuleSet, extract_critical_patterns, extract_rules, merge_rules
from bridge.config import BridgeConfig, load_bridge_config
from bridge.core.errors import ConfigurationUnavailable, InitializationError
from bridge.providers.control_provider import ControlManager, get_control_manager
from bridge.providers.document_store import DocumentStore, FileDocumentStore
from bridge.state.namespace import build_namespace_snapshot, count_nodes, freeze_tree

logger = logging.getLogger(__name__)

_state: Optional["RuntimeState"] = None
_init_lock = threading.Lock()

CONFIG_FIELDS = (
    "keyPath",
    "certPath",
    "token",
    "mainInstructionsPath",
    "plantSpecificInstructionsPath",
    "viewName",
)


@dataclass(frozen=True)
class Credentials:
    key_path: Optional[str]
    cert_path: Optional[str]
    token: Optional[str] = field(default=None, repr=False)


@dataclass(frozen=True)
class RuntimeState:
    credentials: Credentials
    field_instructions: str
    project_instructions: str
    field_rules: RuleSet
    project_rules: RuleSet
    policy: RuleSet
    tree: Mapping[str, Any]
    view_name: str
    critical_patterns: Tuple[str, ...] = ()
    initialized_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def merged_instructions(self) -> str:
        return self.field_instructions + self.project_instructions


def config_keys(config_dp: str) -> Tuple[str, ...]:
    return tuple(f"{config_dp}.{name}" for name in CONFIG_FIELDS)


def _opt_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    s = str(value).strip()
    return s or None


def _require(value: Any, key: str) -> str:
    s = _opt_str(value)
    if s is None:
        raise ConfigurationUnavailable(f"configuration value '{key}' is empty", key=key)
    return s


def _build_state(manager: ControlManager, documents: DocumentStore, cfg: BridgeConfig) -> RuntimeState:
    keys = config_keys(cfg.config_dp)
    try:
        values = manager.get_values(list(keys))
    except InitializationError:
        raise
    except Exception as e:
        raise ConfigurationUnavailable(f"cannot read configuration values {cfg.config_dp}.*: {e}") from e
    if len(values) != len(keys):
        raise ConfigurationUnavailable(f"expected {len(keys)} configuration values, got {len(values)}")

    credentials = Credentials(key_path=_opt_str(values[0]), cert_path=_opt_str(values[1]), token=_opt_str(values[2]))
    if not credentials.token:
        logger.warning("Runtime state: no bearer token configured (%s)", keys[2])
    field_path = _require(values[3], keys[3])
    project_path = _require(values[4], keys[4])
    view_name = _require(values[5], keys[5])

    field_text = documents.read_text(field_path)
    project_text = documents.read_text(project_path)

    field_rules = extract_rules(field_text)
    project_rules = extract_rules(project_text)
    policy = merge_rules(field_rules, project_rules)

    tree = build_namespace_snapshot(manager, view_name, max_depth=cfg.tree_max_depth)

    return RuntimeState(
        credentials=credentials,
        field_instructions=field_text,
        project_instructions=project_text,
        field_rules=field_rules,
        project_rules=project_rules,
        policy=policy,
        tree=freeze_tree(tree),
        view_name=view_name,
        critical_patterns=extract_critical_patterns(project_text),
    )


def get_state() -> Optional[RuntimeState]:
    """The published state, or None before the first successful initialization. No I/O."""
    return _state


def get_or_init_state(
    manager: Optional[ControlManager] = None,
    *,
    documents: Optional[DocumentStore] = None,
    cfg: Optional[BridgeConfig] = None,
) -> RuntimeState:
    """
    Return the runtime state, building it on first call.

    Concurrent first callers block on the init lock; exactly one of them builds the
    state and all of them receive the same instance. Build failures propagate to the
    caller holding the lock and leave the state unpublished.
    """
    global _state

    state = _state
    if state is not None:
        return state

    with _init_lock:
        if _state is not None:
            return _state

        cfg = cfg or load_bridge_config()
        if manager is None:
            try:
                manager = get_control_manager(cfg)
            except Exception as e:
                raise ConfigurationUnavailable(f"control system unavailable: {e}") from e
        documents = documents or FileDocumentStore()

        logger.info("Runtime state: initializing (config=%s.*)", cfg.config_dp)
        try:
            state = _build_state(manager, documents, cfg)
        except Exception as e:
            logger.error("Runtime state: initialization failed: %s: %s", type(e).__name__, str(e))
            raise

        _state = state
        logger.info(
            "Runtime state: ready allowed=%d field=%d project=%d view=%s tree_nodes=%d",
            len(state.policy.allowed_patterns),
            len(state.field_rules.allowed_patterns),
            len(state.project_rules.allowed_patterns),
            state.view_name,
            count_nodes(state.tree),
        )
        return state


def authorize_write(identifier: str, manager: Optional[ControlManager] = None) -> bool:
    return authorize(identifier, get_or_init_state(manager).policy)
