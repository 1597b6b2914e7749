from __future__ import annotations

import pytest

FIELD = "## Datapoint Naming Conventions\n- `*_AI_Assistant` - Datapoints designated for AI manipulation\n"
PROJECT = "## Datapoint Conventions\n- `*_DEMO_*` - demo rigs designated for AI manipulation\n"


def _effective():
    from bridge.authz.rules import extract_rules, merge_rules

    return merge_rules(extract_rules(FIELD), extract_rules(PROJECT))


def test_end_to_end_field_and_project_policy() -> None:
    from bridge.authz.policy import authorize

    policy = _effective()
    assert policy.allowed_patterns == ("*_AI_Assistant", "*_DEMO_*")
    assert authorize("Boiler1_AI_Assistant", policy) is True
    assert authorize("Line2_DEMO_Valve", policy) is True
    assert authorize("Boiler1_Safety_ESD", policy) is False


def test_empty_policy_denies_everything() -> None:
    from bridge.authz.policy import authorize
    from bridge.authz.rules import RuleSet

    assert authorize("Boiler1_AI_Assistant", RuleSet.empty()) is False


def test_require_write_raises_denial_listing_all_patterns() -> None:
    from bridge.authz.policy import require_write
    from bridge.core.errors import AuthorizationDenied

    policy = _effective()
    with pytest.raises(AuthorizationDenied) as exc:
        require_write("Boiler1_Safety_ESD", policy)

    err = exc.value
    assert err.identifier == "Boiler1_Safety_ESD"
    assert err.allowed_patterns == ("*_AI_Assistant", "*_DEMO_*")
    msg = str(err)
    assert "*_AI_Assistant" in msg and "*_DEMO_*" in msg
    assert "not among the permitted write targets" in msg
    assert "invalid" not in msg.lower()


def test_denial_message_with_no_patterns() -> None:
    from bridge.authz.policy import denial_message
    from bridge.authz.rules import RuleSet

    msg = denial_message("X", RuleSet.empty())
    assert "No datapoints are currently designated for AI writes" in msg


def test_authorization_denied_is_not_an_initialization_failure() -> None:
    from bridge.core.errors import AuthorizationDenied, InitializationError

    assert not issubclass(AuthorizationDenied, InitializationError)


def test_check_write_reports_pattern_and_warning() -> None:
    from bridge.authz.policy import check_write, summarize_decision
    from bridge.authz.rules import RuleSet

    policy = RuleSet(allowed_patterns=("*_AI_*",), warning_patterns=("*_Setpoint",))
    ok = check_write("Boiler_AI_Setpoint", policy)
    assert ok.allowed is True
    assert ok.pattern == "*_AI_*"
    assert ok.warning is not None
    assert summarize_decision(ok, policy).startswith("WARNING:")

    plain = check_write("Boiler_AI_Temp", policy)
    assert plain.warning is None
    assert summarize_decision(plain, policy) == "ALLOWED (matched pattern: *_AI_*)"


def test_warning_patterns_never_grant_a_write() -> None:
    from bridge.authz.policy import check_write, summarize_decision
    from bridge.authz.rules import RuleSet

    policy = RuleSet(allowed_patterns=("*_AI_*",), warning_patterns=("*_Setpoint",))
    d = check_write("Line_Setpoint", policy)
    assert d.allowed is False
    assert summarize_decision(d, policy).startswith("DENIED:")
