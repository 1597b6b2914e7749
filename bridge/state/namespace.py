"""Snapshot of a namespace (CNS) view as nested dicts."""

from __future__ import annotations

import logging
from types import MappingProxyType
from typing import Any, Dict, Mapping, Union

from bridge.core.errors import NamespaceUnavailable
from bridge.providers.control_provider import ControlManager

logger = logging.getLogger(__name__)

DEFAULT_MAX_DEPTH = 64


def build_namespace_snapshot(
    manager: ControlManager, view_name: str, *, max_depth: int = DEFAULT_MAX_DEPTH
) -> Dict[str, Any]:
    """
    Walk a view into `{root_name: {child_name: ... "<identifier>"}}`.

    A node bound to a datapoint is a leaf; anything else recurses into its children.
    The source is assumed to be a tree. Depth beyond `max_depth` is reported as
    NamespaceUnavailable instead of recursing without bound.
    """
    if not view_name:
        raise NamespaceUnavailable("namespace view name is empty", view_name=view_name)
    try:
        trees = manager.list_trees(view_name)
    except Exception as e:
        raise NamespaceUnavailable(f"cannot list trees of view '{view_name}': {e}", view_name=view_name) from e
    if not trees:
        raise NamespaceUnavailable(f"namespace view '{view_name}' has no trees", view_name=view_name)

    try:
        root = manager.get_root(trees[0])
        tree = {manager.get_display_name(root): _walk(manager, root, depth=0, max_depth=max_depth)}
    except NamespaceUnavailable as e:
        e.view_name = view_name
        raise
    except Exception as e:
        raise NamespaceUnavailable(f"cannot read view '{view_name}': {e}", view_name=view_name) from e

    logger.debug("Namespace snapshot built: view=%s nodes=%d", view_name, count_nodes(tree))
    return tree


def _walk(manager: ControlManager, node: str, *, depth: int, max_depth: int) -> Union[str, Dict[str, Any]]:
    if depth > max_depth:
        raise NamespaceUnavailable(f"namespace deeper than {max_depth} levels (cycle?) at node '{node}'")

    dp_name = manager.get_id(node)
    if dp_name:
        return str(dp_name)

    children: Dict[str, Any] = {}
    for child in manager.get_children(node) or []:
        children[manager.get_display_name(child)] = _walk(manager, child, depth=depth + 1, max_depth=max_depth)
    return children


def freeze_tree(tree: Mapping[str, Any]) -> Mapping[str, Any]:
    """Read-only view of a snapshot, nested mappings included."""
    return MappingProxyType({k: freeze_tree(v) if isinstance(v, Mapping) else v for k, v in tree.items()})


def thaw_tree(tree: Mapping[str, Any]) -> Dict[str, Any]:
    return {k: thaw_tree(v) if isinstance(v, Mapping) else v for k, v in tree.items()}


def count_nodes(tree: Mapping[str, Any]) -> int:
    n = 0
    for value in tree.values():
        n += 1
        if isinstance(value, Mapping):
            n += count_nodes(value)
    return n
