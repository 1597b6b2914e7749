"""Write authorization against a merged RuleSet. Only allowed patterns grant access."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from bridge.authz.patterns import matches
from bridge.authz.rules import RuleSet
from bridge.core.errors import AuthorizationDenied, format_denial


@dataclass(frozen=True)
class WriteDecision:
    identifier: str
    allowed: bool
    pattern: Optional[str] = None
    warning: Optional[str] = None


def authorize(identifier: str, policy: RuleSet) -> bool:
    return any(matches(identifier, p) for p in policy.allowed_patterns)


def _first_match(identifier: str, patterns) -> Optional[str]:
    for p in patterns:
        if matches(identifier, p):
            return p
    return None


def check_write(identifier: str, policy: RuleSet) -> WriteDecision:
    """
    Decide a single write and explain it.

    Only the allow-list grants access. Warning patterns annotate an allowed write;
    they never turn a denial into a grant.
    """
    pattern = _first_match(identifier, policy.allowed_patterns)
    if pattern is None:
        return WriteDecision(identifier=identifier, allowed=False)

    warning = None
    warn_pattern = _first_match(identifier, policy.warning_patterns)
    if warn_pattern is not None:
        warning = f"'{identifier}' matches '{warn_pattern}', which requires validation before changes."
    return WriteDecision(identifier=identifier, allowed=True, pattern=pattern, warning=warning)


def require_write(identifier: str, policy: RuleSet) -> WriteDecision:
    decision = check_write(identifier, policy)
    if not decision.allowed:
        raise AuthorizationDenied(identifier, policy.allowed_patterns)
    return decision


def denial_message(identifier: str, policy: RuleSet) -> str:
    return format_denial(identifier, policy.allowed_patterns)


def summarize_decision(decision: WriteDecision, policy: RuleSet) -> str:
    if not decision.allowed:
        return f"DENIED: {denial_message(decision.identifier, policy)}"
    if decision.warning:
        return f"WARNING: {decision.warning} (matched pattern: {decision.pattern})"
    return f"ALLOWED (matched pattern: {decision.pattern})"
