from __future__ import annotations

from typing import Dict, List

from bridge.tools.types import ToolSpec

TOOLS: List[ToolSpec] = [
    ToolSpec(
        name="dp.types",
        description="List datapoint types. Internal types (leading underscore) only with with_internals=true.",
        args={"pattern": "optional type name pattern, '*' wildcards", "with_internals": "optional bool"},
    ),
    ToolSpec(
        name="dp.search",
        description="Search datapoint names by wildcard pattern (case-insensitive) and optional type.",
        args={"pattern": "optional name pattern (default '*')", "type": "optional datapoint type"},
    ),
    ToolSpec(
        name="dp.get",
        description="Read the online value, source timestamp and unit of a datapoint element.",
        args={"dpe": "datapoint element name"},
    ),
    ToolSpec(
        name="dp.set",
        description=(
            "Set the value of one or more datapoint elements. Only datapoints matching the allowed "
            "write patterns may be set; a refused write lists the permitted patterns. "
            "CAUTION: this controls real plant equipment."
        ),
        args={
            "datapoints": "{dpe, value} or a list of them",
            "dpe": "single datapoint element (alternative to datapoints)",
            "value": "value for dpe",
        },
        mutating=True,
    ),
    ToolSpec(
        name="plant.overview",
        description="Plant tree from the configured namespace view; leaves are datapoint names.",
    ),
    ToolSpec(name="instructions.field", description="Field (domain-wide) operating instructions."),
    ToolSpec(name="instructions.project", description="Project (site-specific) operating instructions."),
    ToolSpec(name="instructions.merged", description="Field instructions followed by project instructions."),
    ToolSpec(
        name="rules.list",
        description="Effective write policy: allowed patterns plus read-only and needs-validation hints.",
    ),
    ToolSpec(
        name="rules.check",
        description="Check whether a datapoint may be written, without writing it.",
        args={"dpe": "datapoint element name"},
    ),
]

TOOLS_BY_NAME: Dict[str, ToolSpec] = {t.name: t for t in TOOLS}


def is_mutating(tool: str) -> bool:
    spec = TOOLS_BY_NAME.get(tool)
    return bool(spec and spec.mutating)
