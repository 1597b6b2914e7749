"""
Rule extraction from instruction documents.

Instruction documents are markdown written for operators. The only part that is
machine-enforced is the datapoint conventions section: wildcard tokens in backticks
on lines that designate them for AI manipulation become allowed write patterns.

The helpers below are pure functions over single lines so the matching rules can be
tested on their own; `extract_rules` only strings them together.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable, List, Sequence, Tuple

SECTION_TITLES = ("Datapoint Naming Conventions", "Datapoint Conventions")
AI_PHRASES = ("ai manipulation", "designated for ai")

# Informational only: never consulted by the write gate.
FORBIDDEN_PHRASES = ("read only", "read-only", "strictly")
WARNING_PHRASES = ("validation", "requires", "coordinate")

_BACKTICK_RE = re.compile(r"`([^`]+)`")


@dataclass(frozen=True)
class RuleSet:
    allowed_patterns: Tuple[str, ...] = ()
    forbidden_patterns: Tuple[str, ...] = ()
    warning_patterns: Tuple[str, ...] = ()

    @classmethod
    def empty(cls) -> "RuleSet":
        return cls()

    def to_dict(self) -> dict:
        return {
            "allowed_patterns": list(self.allowed_patterns),
            "forbidden_patterns": list(self.forbidden_patterns),
            "warning_patterns": list(self.warning_patterns),
        }


def is_section_title(line: str) -> bool:
    return any(title in line for title in SECTION_TITLES)


def is_heading(line: str) -> bool:
    return line.startswith("#")


def backtick_tokens(line: str) -> List[str]:
    return _BACKTICK_RE.findall(line)


def _mentions(line: str, phrases: Sequence[str]) -> bool:
    low = line.lower()
    return any(p in low for p in phrases)


def has_ai_phrase(line: str) -> bool:
    return _mentions(line, AI_PHRASES)


def section_lines(lines: Iterable[str]) -> List[str]:
    """
    Lines inside a datapoint conventions section, in document order.

    A title line opens the section and is not itself returned. Any later heading
    closes it, unless that heading is a title again (titles are checked first).
    """
    out: List[str] = []
    inside = False
    for line in lines:
        if is_section_title(line):
            inside = True
            continue
        if inside and is_heading(line):
            inside = False
            continue
        if inside:
            out.append(line)
    return out


def extract_rules(document_text: str) -> RuleSet:
    allowed: List[str] = []
    forbidden: List[str] = []
    warning: List[str] = []

    for line in section_lines((document_text or "").split("\n")):
        if "`" not in line:
            continue
        for token in backtick_tokens(line):
            if "*" not in token:
                continue
            if has_ai_phrase(line):
                allowed.append(token)
            if _mentions(line, FORBIDDEN_PHRASES):
                forbidden.append(token)
            elif _mentions(line, WARNING_PHRASES):
                warning.append(token)

    return RuleSet(
        allowed_patterns=tuple(allowed),
        forbidden_patterns=tuple(forbidden),
        warning_patterns=tuple(warning),
    )


def _union(base: Sequence[str], override: Sequence[str]) -> Tuple[str, ...]:
    seen = set()
    out: List[str] = []
    for p in list(base) + list(override):
        if p in seen:
            continue
        seen.add(p)
        out.append(p)
    return tuple(out)


def merge_rules(base: RuleSet, override: RuleSet) -> RuleSet:
    """
    Order-stable union: base patterns first, then override patterns not seen yet.

    Merging is strictly additive; an override can add write targets but never
    remove one granted by the base.
    """
    return RuleSet(
        allowed_patterns=_union(base.allowed_patterns, override.allowed_patterns),
        forbidden_patterns=_union(base.forbidden_patterns, override.forbidden_patterns),
        warning_patterns=_union(base.warning_patterns, override.warning_patterns),
    )


def extract_critical_patterns(document_text: str) -> Tuple[str, ...]:
    """Backtick tokens on any line mentioning "critical"; writes matching them are audited."""
    out: List[str] = []
    for line in (document_text or "").split("\n"):
        if "critical" in line.lower() and "`" in line:
            out.extend(backtick_tokens(line))
    return _union(out, ())
